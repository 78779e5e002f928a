"""Tests for tab-separated copy/paste."""

import pytest

from conftest import BrokenClipboard, FakeClipboard
from scratchpad_grid.cell_addressing import CellPosition, CellRange, GridDimensions
from scratchpad_grid.cell_store import CellStore
from scratchpad_grid.clipboard_bridge import (
    ClipboardBridge,
    deserialize_and_paste,
    parse_delimited_text,
    serialize_range,
)
from scratchpad_grid.errors import ClipboardError


class TestSerialize:
    def test_raw_values_with_trailing_newlines(self) -> None:
        store = CellStore({"A1": "1", "B1": "=A1*2", "A2": "x"})
        cell_range = CellRange(CellPosition(1, 1), CellPosition(0, 0))
        assert serialize_range(cell_range, store) == "1\t=A1*2\nx\t\n"

    def test_single_cell(self) -> None:
        store = CellStore({"C3": "hello"})
        pos = CellPosition(2, 2)
        assert serialize_range(CellRange(pos, pos), store) == "hello\n"


class TestParse:
    def test_line_endings(self) -> None:
        assert parse_delimited_text("a\tb\r\nc\td\r\n") == [["a", "b"], ["c", "d"]]

    def test_values_are_stripped_and_blank_rows_kept(self) -> None:
        assert parse_delimited_text(" a \t b\n\nc") == [["a", "b"], [""], ["c"]]

    def test_empty(self) -> None:
        assert parse_delimited_text("") == []


class TestPaste:
    def test_paste_block(self) -> None:
        store = CellStore({"C3": "keep"})
        pasted = deserialize_and_paste("1\t2\n3\t4\n", CellPosition(0, 0), store, GridDimensions(10, 10))
        assert pasted == CellRange(CellPosition(0, 0), CellPosition(1, 1))
        assert dict(store.items()) == {"A1": "1", "B1": "2", "A2": "3", "B2": "4", "C3": "keep"}

    def test_empty_values_clear_targets(self) -> None:
        store = CellStore({"A1": "old", "B1": "old"})
        deserialize_and_paste("\tnew", CellPosition(0, 0), store, GridDimensions(10, 10))
        assert dict(store.items()) == {"B1": "new"}

    def test_out_of_bounds_values_are_dropped(self) -> None:
        store = CellStore()
        pasted = deserialize_and_paste("1\t2\t3\n4\t5\t6", CellPosition(1, 1), store, GridDimensions(2, 2))
        assert dict(store.items()) == {"B2": "1"}
        assert pasted == CellRange(CellPosition(1, 1), CellPosition(1, 1))

    def test_ragged_rows_use_widest_row(self) -> None:
        store = CellStore()
        pasted = deserialize_and_paste("a\nb\tc\td", CellPosition(0, 0), store, GridDimensions(10, 10))
        assert pasted == CellRange(CellPosition(0, 0), CellPosition(1, 2))

    def test_copy_then_paste_elsewhere(self) -> None:
        store = CellStore({"A1": "1", "B1": "=A1+1"})
        dims = GridDimensions(10, 10)
        text = serialize_range(CellRange(CellPosition(0, 0), CellPosition(0, 1)), store)
        deserialize_and_paste(text, CellPosition(4, 0), store, dims)
        assert store.get("A5") == "1"
        assert store.get("B5") == "=A1+1"
        assert store.get("A6") is None

    def test_nothing_to_paste(self) -> None:
        store = CellStore()
        assert deserialize_and_paste("", CellPosition(0, 0), store, GridDimensions(5, 5)) is None


class TestClipboardBridge:
    def test_round_trip_through_clipboard(self) -> None:
        bridge = ClipboardBridge(FakeClipboard())
        bridge.write_text("a\tb\n")
        assert bridge.read_text() == "a\tb\n"

    def test_failures_become_clipboard_errors(self) -> None:
        bridge = ClipboardBridge(BrokenClipboard())
        with pytest.raises(ClipboardError):
            bridge.write_text("x")
        with pytest.raises(ClipboardError):
            bridge.read_text()

    def test_qt_clipboard(self, qapp) -> None:
        bridge = ClipboardBridge()
        bridge.write_text("from qt")
        assert bridge.read_text() == "from qt"
