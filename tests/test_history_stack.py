"""Tests for the undo/redo snapshot history."""

from scratchpad_grid.history_stack import HistoryStack


class TestHistoryStack:
    def test_empty(self) -> None:
        history = HistoryStack()
        assert len(history) == 0
        assert history.current is None
        assert not history.can_undo
        assert not history.can_redo
        assert history.undo() is None
        assert history.redo() is None

    def test_push_moves_cursor_to_newest(self) -> None:
        history = HistoryStack()
        history.push({})
        history.push({"A1": "1"})
        assert history.cursor == 1
        assert history.current == {"A1": "1"}

    def test_undo_redo(self) -> None:
        history = HistoryStack()
        for snapshot in ({}, {"A1": "1"}, {"A1": "2"}):
            history.push(snapshot)

        assert history.undo() == {"A1": "1"}
        assert history.undo() == {}
        # Already at the oldest entry
        assert history.undo() == {}
        assert history.cursor == 0

        assert history.redo() == {"A1": "1"}
        assert history.redo() == {"A1": "2"}
        assert history.redo() == {"A1": "2"}

    def test_push_discards_redo_branch(self) -> None:
        history = HistoryStack()
        for snapshot in ({}, {"A1": "1"}, {"A1": "2"}):
            history.push(snapshot)
        history.undo()
        history.undo()

        history.push({"B1": "x"})
        assert len(history) == 2
        assert not history.can_redo
        assert history.undo() == {}

    def test_entries_are_copies(self) -> None:
        history = HistoryStack()
        snapshot = {"A1": "1"}
        history.push(snapshot)
        snapshot["A1"] = "changed"
        returned = history.current
        returned["A1"] = "also changed"
        assert history.current == {"A1": "1"}

    def test_max_entries_drops_oldest(self) -> None:
        history = HistoryStack(max_entries=2)
        for value in ("1", "2", "3"):
            history.push({"A1": value})
        assert len(history) == 2
        assert history.undo() == {"A1": "2"}
        assert not history.can_undo

    def test_clear(self) -> None:
        history = HistoryStack()
        history.push({})
        history.clear()
        assert len(history) == 0
        assert history.cursor == -1
