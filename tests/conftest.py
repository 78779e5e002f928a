"""Shared fixtures for the grid tests."""

import os
import tempfile

# Qt widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
os.environ.setdefault("SCRATCHPAD_GRID_LOG_DIR", tempfile.mkdtemp(prefix="scratchpad_grid_logs_"))

import pytest
from PySide6 import QtWidgets

from scratchpad_grid.cell_addressing import GridDimensions
from scratchpad_grid.cell_store import CellStore


@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


@pytest.fixture
def dims() -> GridDimensions:
    return GridDimensions(100, 26)


@pytest.fixture
def store() -> CellStore:
    return CellStore()


class FakeClipboard:
    """Stands in for QClipboard: ``text()`` / ``setText()``."""

    def __init__(self, text=""):
        self._text = text

    def text(self):
        return self._text

    def setText(self, text):
        self._text = text


class BrokenClipboard:
    def text(self):
        raise RuntimeError("permission denied")

    def setText(self, text):
        raise RuntimeError("permission denied")


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    return FakeClipboard()
