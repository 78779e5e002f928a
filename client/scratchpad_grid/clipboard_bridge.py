"""
Clipboard Bridge
Tab-separated text interchange for rectangular blocks of cells, and access to
the host clipboard through Qt.
"""

import logging
from typing import List, Optional

from PySide6 import QtGui

from .cell_addressing import CellPosition, CellRange, GridDimensions, get_cell_id
from .cell_store import CellStore
from .errors import ClipboardError

logger = logging.getLogger(__name__)

COLUMN_DELIMITER = "\t"
ROW_DELIMITER = "\n"


def serialize_range(cell_range: CellRange, store: CellStore) -> str:
    """Serialize the raw values of a range as tab-separated text.

    Formulas are copied as written ("=A1+1"), never as their results. Each
    row ends with a newline.
    """
    lines = []
    for row in range(cell_range.min_row, cell_range.max_row + 1):
        row_values = []
        for col in range(cell_range.min_col, cell_range.max_col + 1):
            row_values.append(store.get(get_cell_id(CellPosition(row, col))) or "")
        lines.append(COLUMN_DELIMITER.join(row_values))
    return "".join(line + ROW_DELIMITER for line in lines)


def parse_delimited_text(text: str) -> List[List[str]]:
    """Split clipboard text into rows of cell values.

    Accepts "\\r\\n" or "\\n" line endings; a single trailing line break does
    not produce an extra empty row. Values are stripped of surrounding
    whitespace.
    """
    if not text:
        return []

    text = text.replace("\r\n", ROW_DELIMITER).replace("\r", ROW_DELIMITER)
    if text.endswith(ROW_DELIMITER):
        text = text[:-1]

    return [
        [value.strip() for value in line.split(COLUMN_DELIMITER)]
        for line in text.split(ROW_DELIMITER)
    ]


def deserialize_and_paste(text: str, origin: CellPosition, store: CellStore,
                          dims: GridDimensions) -> Optional[CellRange]:
    """Paste tab-separated text into the store with its top-left at ``origin``.

    Empty source values delete the target cell. Targets outside ``dims`` are
    skipped.

    Returns:
        The pasted rectangle clipped to the grid, or None if nothing landed
    """
    rows = parse_delimited_text(text)
    if not rows:
        return None

    for row_offset, values in enumerate(rows):
        for col_offset, value in enumerate(values):
            target = CellPosition(origin.row + row_offset, origin.col + col_offset)
            if not dims.contains(target):
                continue
            store.set(get_cell_id(target), value)

    width = max(len(values) for values in rows)
    pasted = CellRange(origin, CellPosition(origin.row + len(rows) - 1, origin.col + width - 1))
    return pasted.clip(dims)


class ClipboardBridge:
    """Plain-text access to the host clipboard.

    Args:
        clipboard: Object with ``text()``/``setText()``. Defaults to the
            running Qt application's clipboard.
    """

    def __init__(self, clipboard=None):
        self._clipboard = clipboard

    def _get_clipboard(self):
        if self._clipboard is not None:
            return self._clipboard

        if QtGui.QGuiApplication.instance() is None:
            raise ClipboardError("Clipboard is not available (no running application)")

        clipboard = QtGui.QGuiApplication.clipboard()
        if clipboard is None:
            raise ClipboardError("Clipboard is not available on this system")
        return clipboard

    def write_text(self, text: str):
        try:
            self._get_clipboard().setText(text)
        except ClipboardError:
            raise
        except Exception as e:
            logger.error(f"Failed to write to clipboard: {e}", exc_info=True)
            raise ClipboardError(f"Failed to copy to clipboard: {e}") from e

    def read_text(self) -> str:
        try:
            return self._get_clipboard().text() or ""
        except ClipboardError:
            raise
        except Exception as e:
            logger.error(f"Failed to read from clipboard: {e}", exc_info=True)
            raise ClipboardError(
                f"Failed to paste. Check clipboard permissions and try again ({e})"
            ) from e
