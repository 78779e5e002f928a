"""Sparse storage of raw cell values keyed by cell id."""

import logging
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .cell_addressing import CellPosition, get_cell_id, parse_cell_id

logger = logging.getLogger(__name__)


class CellStore:
    """Sparse mapping of cell id -> raw value ("100", "=A1+B1", "notes").

    The store holds only non-blank values: writing an empty or whitespace-only
    value removes the entry. It knows nothing about history; callers that
    mutate it are responsible for snapshotting first.
    """

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = {}
        if data:
            self.replace_all(data)

    def __len__(self):
        return len(self._data)

    def __contains__(self, cell_id):
        return cell_id in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __eq__(self, other):
        if isinstance(other, CellStore):
            return self._data == other._data
        return NotImplemented

    def __repr__(self):
        return f"CellStore({self._data!r})"

    def get(self, cell_id: str) -> Optional[str]:
        """Raw value for a cell id, or None when the cell is empty."""
        return self._data.get(cell_id)

    def get_at(self, pos: CellPosition) -> Optional[str]:
        return self._data.get(get_cell_id(pos))

    def set(self, cell_id: str, raw_value: Optional[str]):
        """Store a raw value. Blank values delete the cell instead."""
        if raw_value is None or not raw_value.strip():
            self.delete(cell_id)
        else:
            self._data[cell_id] = raw_value

    def set_at(self, pos: CellPosition, raw_value: Optional[str]):
        self.set(get_cell_id(pos), raw_value)

    def delete(self, cell_id: str):
        self._data.pop(cell_id, None)

    def delete_at(self, pos: CellPosition):
        self.delete(get_cell_id(pos))

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._data.items())

    def replace_all(self, data: Mapping[str, str]):
        """Swap in a whole new set of cells in one step.

        Blank values in ``data`` are dropped so the sparse invariant holds.
        """
        self._data = {
            cell_id: value
            for cell_id, value in data.items()
            if value is not None and value.strip()
        }

    def snapshot(self) -> Dict[str, str]:
        """Independent copy of the current cells, for history."""
        return dict(self._data)

    def to_grid_data(self) -> Dict[str, Dict[str, str]]:
        """Export cells in the persisted ``{"A1": {"value": "..."}}`` shape."""
        return {cell_id: {'value': value} for cell_id, value in self._data.items()}

    @classmethod
    def from_grid_data(cls, grid_data: Optional[Mapping]) -> "CellStore":
        """Build a store from persisted grid data.

        Entries with an unparseable id or a non-string value are skipped.
        """
        store = cls()
        if not grid_data:
            return store

        for cell_id, cell in grid_data.items():
            value = cell.get('value') if isinstance(cell, Mapping) else None
            if not isinstance(cell_id, str) or parse_cell_id(cell_id) is None:
                logger.warning(f"Skipping stored cell with invalid id: {cell_id!r}")
                continue
            if not isinstance(value, str):
                logger.warning(f"Skipping stored cell {cell_id} with non-text value")
                continue
            store.set(cell_id.upper(), value)
        return store
