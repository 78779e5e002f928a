"""Tests for the selection state machine."""

from scratchpad_grid.cell_addressing import CellPosition, CellRange, GridDimensions
from scratchpad_grid.selection_model import InteractionMode, SelectionModel

DIMS = GridDimensions(10, 5)


def _pos(row, col) -> CellPosition:
    return CellPosition(row, col)


class TestPointer:
    def test_click(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(2, 3))
        assert selection.active == _pos(2, 3)
        assert selection.range == CellRange(_pos(2, 3), _pos(2, 3))
        assert selection.mode is InteractionMode.DRAGGING
        selection.pointer_up()
        assert selection.mode is InteractionMode.IDLE

    def test_drag(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(1, 1))
        selection.pointer_move(_pos(3, 2))
        selection.pointer_move(_pos(4, 0))
        selection.pointer_up()
        assert selection.range == CellRange(_pos(1, 1), _pos(4, 0))
        assert selection.label == "B2:A5"
        assert selection.is_selected(_pos(2, 0))
        assert not selection.is_selected(_pos(0, 0))

    def test_move_without_drag_is_ignored(self) -> None:
        selection = SelectionModel()
        selection.pointer_move(_pos(3, 3))
        assert selection.range is None

    def test_shift_click_extends_from_anchor(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(1, 1))
        selection.pointer_up()
        selection.pointer_down(_pos(3, 3), shift=True)
        selection.pointer_up()
        assert selection.range == CellRange(_pos(1, 1), _pos(3, 3))
        assert selection.active == _pos(1, 1)


class TestKeyboard:
    def test_arrow_moves_and_clears_range(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(0, 0))
        selection.pointer_up()
        selection.move(1, 0, DIMS)
        assert selection.active == _pos(1, 0)
        assert selection.range is None
        assert selection.label == "A2"

    def test_arrow_clamps_to_grid(self) -> None:
        selection = SelectionModel()
        selection.move(-1, -1, DIMS)
        assert selection.active == _pos(0, 0)
        selection = SelectionModel(_pos(9, 4))
        selection.move(1, 1, DIMS)
        assert selection.active == _pos(9, 4)

    def test_shift_arrow_extends(self) -> None:
        selection = SelectionModel(_pos(2, 2))
        selection.move(0, 1, DIMS, extend=True)
        selection.move(1, 0, DIMS, extend=True)
        assert selection.range == CellRange(_pos(2, 2), _pos(3, 3))
        assert selection.active == _pos(1, 1)
        assert selection.target_range() == selection.range

    def test_target_range_defaults_to_active_cell(self) -> None:
        selection = SelectionModel(_pos(4, 1))
        assert selection.target_range() == CellRange(_pos(4, 1), _pos(4, 1))


class TestEditing:
    def test_begin_and_finish(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(0, 0))
        selection.pointer_move(_pos(2, 2))
        selection.pointer_up()

        selection.begin_edit(_pos(1, 1), "=A1")
        assert selection.is_editing
        assert selection.range is None
        assert selection.active == _pos(1, 1)

        selection.update_edit("=A1+1")
        assert selection.finish_edit() == (_pos(1, 1), "=A1+1")
        assert selection.mode is InteractionMode.IDLE
        assert selection.finish_edit() is None

    def test_update_outside_edit_is_ignored(self) -> None:
        selection = SelectionModel()
        selection.update_edit("ignored")
        assert selection.edit_value == ""

    def test_cancel_keeps_selection(self) -> None:
        selection = SelectionModel()
        selection.begin_edit(_pos(3, 1), "draft")
        selection.cancel_edit()
        assert not selection.is_editing
        assert selection.active == _pos(3, 1)
        assert selection.edit_value == ""

    def test_cancel_without_edit_keeps_range(self) -> None:
        selection = SelectionModel()
        selection.pointer_down(_pos(1, 1))
        selection.pointer_move(_pos(3, 3))
        selection.pointer_up()
        selection.cancel_edit()
        assert selection.range == CellRange(_pos(1, 1), _pos(3, 3))
        assert selection.active == _pos(1, 1)
        assert selection.mode is InteractionMode.IDLE
