"""Undo/redo history of whole-grid snapshots."""

from typing import Dict, List, Optional

Snapshot = Dict[str, str]


class HistoryStack:
    """Ordered list of grid snapshots with a cursor on the current one.

    ``push`` discards anything after the cursor (the redo branch) before
    appending. ``undo``/``redo`` move the cursor and return copies of the
    entry they land on, so callers can never modify a stored snapshot.

    Args:
        max_entries: Keep at most this many entries, dropping the oldest.
            0 means unbounded.
    """

    def __init__(self, max_entries: int = 0):
        self._entries: List[Snapshot] = []
        self._cursor = -1
        self.max_entries = max_entries

    def __len__(self):
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    @property
    def current(self) -> Optional[Snapshot]:
        if not self._entries:
            return None
        return dict(self._entries[self._cursor])

    def push(self, snapshot: Snapshot):
        """Record a snapshot as the newest entry and move the cursor to it."""
        del self._entries[self._cursor + 1:]
        self._entries.append(dict(snapshot))

        if self.max_entries and len(self._entries) > self.max_entries:
            del self._entries[:len(self._entries) - self.max_entries]

        self._cursor = len(self._entries) - 1

    def undo(self) -> Optional[Snapshot]:
        """Step back one entry. At the oldest entry this is a no-op."""
        if self.can_undo:
            self._cursor -= 1
        return self.current

    def redo(self) -> Optional[Snapshot]:
        """Step forward one entry. At the newest entry this is a no-op."""
        if self.can_redo:
            self._cursor += 1
        return self.current

    def clear(self):
        self._entries.clear()
        self._cursor = -1
