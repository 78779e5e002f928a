"""
Grid Session
The editing controller behind one open grid: it owns the cell store, the
dimensions, the undo history and the selection, and implements every user
action on them.
"""

from typing import Callable, Optional, Set

from PySide6 import QtCore

from .cell_addressing import CellPosition, CellRange, GridDimensions, parse_cell_id
from .cell_store import CellStore
from .clipboard_bridge import ClipboardBridge, deserialize_and_paste, serialize_range
from .csv_io import ImportResult, read_csv_file, write_csv_file
from .formula_evaluator import CellValue, FormulaEvaluator
from .history_stack import HistoryStack
from .logger import logger
from .persistence import GRID_KIND, GridSnapshot
from .selection_model import SelectionModel

DEFAULT_ROW_STEP = 50
DEFAULT_COL_STEP = 10


class GridSession(QtCore.QObject):
    """Spreadsheet engine for a single grid.

    Every mutation (edit commit, paste, delete, import) goes through
    ``_apply_mutation`` so the history always holds the state from before the
    action and undo restores it exactly.

    Args:
        snapshot: Persisted grid to start from. None starts an empty 100x26 grid.
        history_limit: Maximum undo entries (0 = unbounded)
        row_step: Rows added by ``add_rows()`` without a count
        col_step: Columns added by ``add_columns()`` without a count
    """

    # Cell contents changed (edit, paste, delete, import, undo, redo)
    cellsChanged = QtCore.Signal()
    dimensionsChanged = QtCore.Signal(int, int)
    selectionChanged = QtCore.Signal()
    # message, is_error
    statusMessageChanged = QtCore.Signal(str, bool)

    def __init__(self, snapshot: Optional[GridSnapshot] = None, history_limit: int = 0,
                 row_step: int = DEFAULT_ROW_STEP, col_step: int = DEFAULT_COL_STEP,
                 parent=None):
        super().__init__(parent)
        self.store = CellStore()
        self.dims = GridDimensions(0, 0)
        self.history = HistoryStack(max_entries=history_limit)
        self.selection = SelectionModel()
        self.evaluator = FormulaEvaluator(self.store)
        self.row_step = row_step
        self.col_step = col_step
        self.name = ""
        self.kind = GRID_KIND

        self.load_snapshot(snapshot or GridSnapshot())

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def load_snapshot(self, snapshot: GridSnapshot):
        """Seed the grid from a persisted snapshot and reset history."""
        loaded = CellStore.from_grid_data(snapshot.grid_data)
        self.store.replace_all(loaded.snapshot())
        self._set_dims(GridDimensions(max(1, snapshot.rows), max(1, snapshot.cols)))
        self.name = snapshot.name
        self.kind = snapshot.kind

        self.history.clear()
        self.history.push(self.store.snapshot())
        self.selection = SelectionModel()

        logger.info(f"Loaded grid '{self.name}' ({len(self.store)} cells, "
                    f"{self.dims.rows}x{self.dims.cols})")
        self.cellsChanged.emit()
        self.selectionChanged.emit()

    def to_snapshot(self) -> GridSnapshot:
        return GridSnapshot(
            grid_data=self.store.to_grid_data(),
            rows=self.dims.rows,
            cols=self.dims.cols,
            kind=self.kind,
            name=self.name,
        )

    def _set_dims(self, dims: GridDimensions):
        self.dims = dims
        self.evaluator.dims = dims

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def raw_value(self, pos: CellPosition) -> str:
        return self.store.get_at(pos) or ""

    def evaluate(self, pos: CellPosition) -> CellValue:
        return self.evaluator.evaluate(pos)

    def display_value(self, pos: CellPosition) -> str:
        return self.evaluator.display_value(pos)

    @property
    def selection_label(self) -> str:
        return self.selection.label

    def find_matches(self, query: str) -> Set[str]:
        """Ids of cells whose displayed value contains ``query`` (any case)."""
        query = query.strip().casefold()
        if not query:
            return set()

        matches = set()
        for cell_id in list(self.store):
            pos = self._position_of(cell_id)
            if pos is not None and query in self.display_value(pos).casefold():
                matches.add(cell_id)
        return matches

    def _position_of(self, cell_id: str) -> Optional[CellPosition]:
        return parse_cell_id(cell_id, self.dims)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _apply_mutation(self, mutate: Callable[[], None], description: str) -> bool:
        """Run ``mutate`` against the store with history tracking.

        Returns:
            True if the store actually changed
        """
        before = self.store.snapshot()
        if not len(self.history):
            self.history.push(before)

        mutate()

        after = self.store.snapshot()
        if after == before:
            return False

        self.history.push(after)
        logger.info(description)
        self.cellsChanged.emit()
        return True

    def set_cell(self, pos: CellPosition, raw_value: str) -> bool:
        """Commit a raw value to one cell. Blank values clear the cell."""
        if not self.dims.contains(pos):
            raise ValueError(f"Cell ({pos.row},{pos.col}) is outside the grid")
        return self._apply_mutation(
            lambda: self.store.set_at(pos, raw_value),
            f"Set cell ({pos.row},{pos.col})",
        )

    def delete_selection(self) -> bool:
        """Remove every cell in the selected range, or the active cell."""
        cell_range = self.selection.target_range()

        def delete_cells():
            for pos in cell_range.positions():
                self.store.delete_at(pos)

        return self._apply_mutation(delete_cells, f"Deleted cells {cell_range.label}")

    def paste_text(self, text: str, origin: Optional[CellPosition] = None) -> Optional[CellRange]:
        """Paste tab-separated text at ``origin`` (default: the active cell).

        The selection becomes the pasted rectangle, clipped to the grid.
        """
        origin = origin or self.selection.active
        pasted = []

        def paste():
            pasted.append(deserialize_and_paste(text, origin, self.store, self.dims))

        self._apply_mutation(paste, "Pasted cells from clipboard")

        if pasted and pasted[0] is not None:
            self.selection.select_range(pasted[0])
            self.selectionChanged.emit()
            return pasted[0]
        return None

    def import_csv(self, path) -> ImportResult:
        """Replace the grid contents with a CSV file.

        Raises:
            ImportFormatError: The file was rejected; the grid is unchanged
        """
        result = read_csv_file(path, self.dims)
        self._apply_mutation(lambda: self.store.replace_all(result.data),
                             f"Imported {result.imported_cells} cells from {path}")
        self.statusMessageChanged.emit(result.message, False)
        return result

    def export_csv(self, path):
        return write_csv_file(path, self.store, self.dims)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Undo the last change."""
        self.selection.cancel_edit()
        if not self.history.can_undo:
            return False

        self.store.replace_all(self.history.undo())
        self.cellsChanged.emit()
        self.statusMessageChanged.emit("Undone", False)
        return True

    def redo(self) -> bool:
        """Redo the last undone change."""
        self.selection.cancel_edit()
        if not self.history.can_redo:
            return False

        self.store.replace_all(self.history.redo())
        self.cellsChanged.emit()
        self.statusMessageChanged.emit("Redone", False)
        return True

    # ------------------------------------------------------------------
    # Clipboard
    # ------------------------------------------------------------------

    def copy_selection(self, clipboard: ClipboardBridge) -> str:
        """Copy the raw values of the selection to the clipboard.

        Raises:
            ClipboardError: The clipboard could not be written
        """
        cell_range = self.selection.target_range()
        text = serialize_range(cell_range, self.store)
        clipboard.write_text(text)

        logger.info(f"Copied {cell_range.row_count * cell_range.col_count} cells "
                    f"from {cell_range.label}")
        self.statusMessageChanged.emit("Copied to clipboard!", False)
        return text

    def paste_from_clipboard(self, clipboard: ClipboardBridge) -> Optional[CellRange]:
        """Paste clipboard text at the active cell.

        Raises:
            ClipboardError: The clipboard could not be read; nothing changes
        """
        return self.paste_text(clipboard.read_text())

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    def add_rows(self, count: Optional[int] = None):
        count = self.row_step if count is None else count
        if count <= 0:
            raise ValueError(f"Row count must be positive: {count}")
        self._set_dims(GridDimensions(self.dims.rows + count, self.dims.cols))
        logger.info(f"Added {count} rows ({self.dims.rows} total)")
        self.dimensionsChanged.emit(self.dims.rows, self.dims.cols)

    def add_columns(self, count: Optional[int] = None):
        count = self.col_step if count is None else count
        if count <= 0:
            raise ValueError(f"Column count must be positive: {count}")
        self._set_dims(GridDimensions(self.dims.rows, self.dims.cols + count))
        logger.info(f"Added {count} columns ({self.dims.cols} total)")
        self.dimensionsChanged.emit(self.dims.rows, self.dims.cols)

    # ------------------------------------------------------------------
    # Selection and editing gestures
    # ------------------------------------------------------------------

    def begin_edit(self, pos: Optional[CellPosition] = None, initial_value: Optional[str] = None):
        """Enter edit mode. Without ``initial_value`` the raw value is edited."""
        pos = pos or self.selection.active
        if initial_value is None:
            initial_value = self.raw_value(pos)
        self.selection.begin_edit(pos, initial_value)
        self.selectionChanged.emit()

    def update_edit(self, text: str):
        self.selection.update_edit(text)

    def commit_edit(self) -> bool:
        """Write the edit buffer to its cell and leave edit mode."""
        edit = self.selection.finish_edit()
        if edit is None:
            return False
        pos, value = edit
        changed = self.set_cell(pos, value)
        self.selectionChanged.emit()
        return changed

    def cancel_edit(self):
        self.selection.cancel_edit()
        self.selectionChanged.emit()

    def pointer_down(self, pos: CellPosition, shift: bool = False):
        if self.selection.is_editing:
            self.commit_edit()
        self.selection.pointer_down(pos, shift)
        self.selectionChanged.emit()

    def pointer_move(self, pos: CellPosition):
        if self.selection.is_dragging:
            self.selection.pointer_move(pos)
            self.selectionChanged.emit()

    def pointer_up(self):
        self.selection.pointer_up()

    def move_active(self, d_row: int, d_col: int, extend: bool = False):
        """Arrow key: move one cell, growing the range when ``extend``."""
        if self.selection.is_editing:
            self.commit_edit()
        self.selection.move(d_row, d_col, self.dims, extend=extend)
        self.selectionChanged.emit()

    def press_enter(self, shift: bool = False):
        """Commit any edit, then move down (or up with shift)."""
        self.move_active(-1 if shift else 1, 0)

    def press_tab(self, shift: bool = False):
        """Commit any edit, then move right (or left with shift)."""
        self.move_active(0, -1 if shift else 1)

    def press_escape(self):
        self.cancel_edit()

    def press_delete(self):
        if not self.selection.is_editing:
            self.delete_selection()

    def type_character(self, text: str):
        """A printable key outside edit mode starts editing with that text."""
        if not self.selection.is_editing:
            self.begin_edit(self.selection.active, text)
