"""Tests for the Qt model and widget over a GridSession."""

import pytest
from PySide6 import QtGui
from PySide6.QtCore import Qt
from PySide6.QtTest import QTest

from conftest import FakeClipboard
from scratchpad_grid.autosave import DebouncedGridSaver
from scratchpad_grid.cell_addressing import CellPosition
from scratchpad_grid.clipboard_bridge import ClipboardBridge
from scratchpad_grid.errors import REF_ERROR
from scratchpad_grid.grid_session import GridSession
from scratchpad_grid.persistence import GridSnapshot
from scratchpad_grid.spreadsheet_widget import (
    COLUMN_WIDTH,
    ZOOM_MAX,
    ZOOM_MIN,
    GridTableModel,
    SpreadsheetWidget,
)
from test_autosave import RecordingGateway


def _session(cells) -> GridSession:
    grid_data = {cell_id: {"value": value} for cell_id, value in cells.items()}
    return GridSession(GridSnapshot(grid_data=grid_data, rows=20, cols=5))


class TestGridTableModel:
    def test_shape_and_headers(self, qapp) -> None:
        model = GridTableModel(_session({}))
        assert model.rowCount() == 20
        assert model.columnCount() == 5
        assert model.headerData(0, Qt.Horizontal) == "A"
        assert model.headerData(4, Qt.Vertical) == "5"

    def test_display_and_edit_roles(self, qapp) -> None:
        model = GridTableModel(_session({"A1": "2", "B1": "=A1*5"}))
        index = model.index(0, 1)
        assert model.data(index, Qt.DisplayRole) == "10"
        assert model.data(index, Qt.EditRole) == "=A1*5"

    def test_set_data_commits_through_session(self, qapp) -> None:
        session = _session({})
        model = GridTableModel(session)
        assert model.setData(model.index(2, 0), "hello")
        assert session.raw_value(CellPosition(2, 0)) == "hello"
        assert len(session.history) == 2

    def test_error_cells_are_highlighted(self, qapp) -> None:
        model = GridTableModel(_session({"A1": "=A1"}))
        index = model.index(0, 0)
        assert model.data(index, Qt.DisplayRole) == REF_ERROR
        assert model.data(index, Qt.ForegroundRole) is not None

    def test_dimension_change_resets_model(self, qapp) -> None:
        session = _session({})
        model = GridTableModel(session)
        session.add_rows(5)
        assert model.rowCount() == 25


class TestSpreadsheetWidget:
    @pytest.fixture
    def widget(self, qapp):
        session = _session({"A1": "1", "A2": "2"})
        gateway = RecordingGateway()
        saver = DebouncedGridSaver(gateway, "grid-1", session.to_snapshot, interval_ms=10)
        widget = SpreadsheetWidget(session, saver, ClipboardBridge(FakeClipboard()))
        widget.gateway = gateway
        yield widget
        widget.close()

    def test_formula_bar_commits_and_moves_down(self, widget) -> None:
        widget.session.move_active(2, 0)
        widget.formula_bar.setText("=SUM(A1:A2)")
        widget._on_formula_bar_enter()
        assert widget.session.display_value(CellPosition(2, 0)) == "3"
        assert widget.session.selection.active == CellPosition(3, 0)

    def test_changes_are_saved(self, widget) -> None:
        widget.session.set_cell(CellPosition(4, 4), "x")
        QTest.qWait(100)
        assert widget.gateway.saved
        assert widget.save_status_label.text() == "Saved"

    def test_keyboard_navigation_and_delete(self, widget) -> None:
        QTest.keyClick(widget.table_view, Qt.Key_Down, Qt.ShiftModifier)
        assert widget.name_box.text() == "A1:A2"
        QTest.keyClick(widget.table_view, Qt.Key_Delete)
        assert len(widget.session.store) == 0

    def test_undo_shortcut(self, widget) -> None:
        widget.session.set_cell(CellPosition(0, 0), "changed")
        QTest.keyClick(widget.table_view, Qt.Key_Z, Qt.ControlModifier)
        assert widget.session.raw_value(CellPosition(0, 0)) == "1"

    def test_copy_paste_shortcuts(self, widget) -> None:
        QTest.keyClick(widget.table_view, Qt.Key_C, Qt.ControlModifier)
        widget.session.move_active(0, 2)
        QTest.keyClick(widget.table_view, Qt.Key_V, Qt.ControlModifier)
        assert widget.session.raw_value(CellPosition(0, 2)) == "1"

    def test_add_rows_updates_status(self, widget) -> None:
        widget.add_rows()
        assert widget.dims_label.text() == "70 × 5 cells"

    def test_search_highlights_matches(self, widget) -> None:
        widget.search_edit.setText("2")
        index = widget.model.index(1, 0)
        assert widget.model.data(index, Qt.BackgroundRole) is not None
        assert widget.model.data(widget.model.index(0, 0), Qt.BackgroundRole) is None

    def test_close_cancels_pending_save(self, widget) -> None:
        widget.session.set_cell(CellPosition(4, 4), "x")
        widget.closeEvent(QtGui.QCloseEvent())
        assert not widget.saver.is_pending()

    def test_zoom_starts_at_100(self, widget) -> None:
        assert widget.zoom_percent == 100
        assert widget.zoom_label.text() == "100%"
        assert widget.zoom_status_label.text() == "Zoom: 100%"

    def test_zoom_in_scales_cells_and_labels(self, widget) -> None:
        base_size = widget.table_view.font().pointSizeF()
        widget.toolbar_buttons["Zoom In"].click()
        assert widget.zoom_percent == 110
        assert widget.zoom_label.text() == "110%"
        assert widget.zoom_status_label.text() == "Zoom: 110%"
        assert widget.table_view.horizontalHeader().defaultSectionSize() == round(COLUMN_WIDTH * 1.1)
        if base_size > 0:
            assert widget.table_view.font().pointSizeF() == pytest.approx(base_size * 1.1)

    def test_zoom_is_clamped(self, widget) -> None:
        for _ in range(30):
            widget.zoom_out()
        assert widget.zoom_percent == ZOOM_MIN
        assert widget.table_view.horizontalHeader().defaultSectionSize() == COLUMN_WIDTH // 2
        for _ in range(30):
            widget.zoom_in()
        assert widget.zoom_percent == ZOOM_MAX
        assert widget.zoom_status_label.text() == "Zoom: 200%"
