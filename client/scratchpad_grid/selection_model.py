"""
Selection Model
Tracks the active cell, the optional multi-cell range and whether the user is
idle, dragging out a range, or editing a cell.
"""

from enum import Enum
from typing import Optional, Tuple

from .cell_addressing import CellPosition, CellRange, GridDimensions, get_cell_id


class InteractionMode(Enum):
    """What the pointer/keyboard is currently doing."""

    IDLE = "idle"
    DRAGGING = "dragging"
    EDITING = "editing"


class SelectionModel:
    """Selection state machine driven by pointer and keyboard gestures.

    Without a range only ``active`` is highlighted; with a range, ``start`` is
    the anchor that stays fixed while ``end`` follows the pointer or the
    shift+arrow keys.
    """

    def __init__(self, active: CellPosition = CellPosition(0, 0)):
        self.active = active
        self.range: Optional[CellRange] = None
        self.mode = InteractionMode.IDLE
        self.drag_start: Optional[CellPosition] = None

        # In-progress edit
        self.edit_position: Optional[CellPosition] = None
        self.edit_value = ""

    @property
    def is_editing(self) -> bool:
        return self.mode is InteractionMode.EDITING

    @property
    def is_dragging(self) -> bool:
        return self.mode is InteractionMode.DRAGGING

    @property
    def active_id(self) -> str:
        return get_cell_id(self.active)

    @property
    def label(self) -> str:
        """Selection text for the name box: "A1:C3", or the active id alone."""
        return self.range.label if self.range else self.active_id

    def target_range(self) -> CellRange:
        """The selected range, or the active cell as a one-cell range."""
        return self.range or CellRange(self.active, self.active)

    def is_selected(self, pos: CellPosition) -> bool:
        return self.range is not None and self.range.contains(pos)

    # ------------------------------------------------------------------
    # Pointer gestures
    # ------------------------------------------------------------------

    def pointer_down(self, pos: CellPosition, shift: bool = False):
        """Start a selection (or extend the existing one with shift)."""
        if shift and self.range is not None:
            self.range = CellRange(self.range.start, pos)
        else:
            self.range = CellRange(pos, pos)

        self.active = pos
        self.drag_start = self.range.start
        self.mode = InteractionMode.DRAGGING

    def pointer_move(self, pos: CellPosition):
        if self.is_dragging and self.drag_start is not None:
            self.range = CellRange(self.drag_start, pos)

    def pointer_up(self):
        if self.is_dragging:
            self.mode = InteractionMode.IDLE
        self.drag_start = None

    # ------------------------------------------------------------------
    # Keyboard gestures
    # ------------------------------------------------------------------

    def move(self, d_row: int, d_col: int, dims: GridDimensions, extend: bool = False):
        """Move the active cell by one step, clamped to the grid.

        Args:
            d_row: Row delta (-1, 0, 1)
            d_col: Column delta
            dims: Grid dimensions used for clamping
            extend: Shift held - grow the range from a fixed anchor instead
                of clearing it
        """
        target = dims.clamp(CellPosition(self.active.row + d_row, self.active.col + d_col))

        if extend:
            anchor = self.range.start if self.range is not None else self.active
            self.range = CellRange(anchor, target)
        else:
            self.range = None

        self.active = target

    def select_range(self, cell_range: Optional[CellRange]):
        self.range = cell_range

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def begin_edit(self, pos: CellPosition, initial_value: str = ""):
        """Enter edit mode on a cell. Any range is dropped."""
        self.mode = InteractionMode.EDITING
        self.active = pos
        self.range = None
        self.drag_start = None
        self.edit_position = pos
        self.edit_value = initial_value

    def update_edit(self, text: str):
        if self.is_editing:
            self.edit_value = text

    def finish_edit(self) -> Optional[Tuple[CellPosition, str]]:
        """Leave edit mode.

        Returns:
            (position, edited text) to be committed, or None when not editing
        """
        if not self.is_editing:
            return None

        result = (self.edit_position, self.edit_value)
        self._reset_edit()
        return result

    def cancel_edit(self):
        """Drop the in-progress edit. The selection is left alone."""
        if self.is_editing:
            self._reset_edit()

    def _reset_edit(self):
        self.mode = InteractionMode.IDLE
        self.edit_position = None
        self.edit_value = ""
