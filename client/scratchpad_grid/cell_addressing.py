"""
Cell Addressing
Conversion between (row, col) coordinates and spreadsheet cell ids like "A1".
"""

import re
from typing import Iterator, NamedTuple, Optional

_CELL_ID_RE = re.compile(r'^([A-Za-z]+)(\d+)$')


class CellPosition(NamedTuple):
    """Zero-based grid coordinate."""

    row: int
    col: int


class GridDimensions(NamedTuple):
    """Addressable size of a grid."""

    rows: int
    cols: int

    def contains(self, pos: CellPosition) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def clamp(self, pos: CellPosition) -> CellPosition:
        """Clamp a position into [0, rows-1] x [0, cols-1]."""
        return CellPosition(
            max(0, min(self.rows - 1, pos.row)),
            max(0, min(self.cols - 1, pos.col)),
        )

    @property
    def label(self) -> str:
        return f"{self.rows} × {self.cols} cells"


class CellRange(NamedTuple):
    """Rectangular range between two corner positions.

    ``start`` is the anchor of a selection and ``end`` the far corner, so the
    two are not ordered. Use the ``min_*``/``max_*`` properties for bounds.
    """

    start: CellPosition
    end: CellPosition

    @property
    def min_row(self) -> int:
        return min(self.start.row, self.end.row)

    @property
    def max_row(self) -> int:
        return max(self.start.row, self.end.row)

    @property
    def min_col(self) -> int:
        return min(self.start.col, self.end.col)

    @property
    def max_col(self) -> int:
        return max(self.start.col, self.end.col)

    @property
    def row_count(self) -> int:
        return self.max_row - self.min_row + 1

    @property
    def col_count(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def label(self) -> str:
        """Range string like "A1:B5" (anchor first)."""
        return f"{get_cell_id(self.start)}:{get_cell_id(self.end)}"

    def contains(self, pos: CellPosition) -> bool:
        return (self.min_row <= pos.row <= self.max_row and
                self.min_col <= pos.col <= self.max_col)

    def positions(self) -> Iterator[CellPosition]:
        """Iterate over every cell in the normalized rectangle, row by row."""
        for row in range(self.min_row, self.max_row + 1):
            for col in range(self.min_col, self.max_col + 1):
                yield CellPosition(row, col)

    def clip(self, dims: GridDimensions) -> Optional["CellRange"]:
        """Intersect the normalized range with the grid.

        Returns:
            The clipped range (normalized), or None if nothing is in bounds
        """
        min_row = max(0, self.min_row)
        min_col = max(0, self.min_col)
        max_row = min(dims.rows - 1, self.max_row)
        max_col = min(dims.cols - 1, self.max_col)
        if min_row > max_row or min_col > max_col:
            return None
        return CellRange(CellPosition(min_row, min_col), CellPosition(max_row, max_col))


def col_to_letter(col: int) -> str:
    """Convert column index to letter (0->A, 1->B, ..., 25->Z, 26->AA)"""
    if col < 0:
        raise ValueError(f"Column index must be non-negative: {col}")
    result = ""
    while col >= 0:
        result = chr(65 + (col % 26)) + result
        col = col // 26 - 1
    return result


def letter_to_col(letter: str) -> int:
    """Convert column letter to index (A->0, B->1, ..., Z->25, AA->26)

    Lower-case letters are accepted.
    """
    col = 0
    for char in letter.upper():
        col = col * 26 + (ord(char) - 65 + 1)
    return col - 1


def get_cell_id(pos: CellPosition) -> str:
    """Get cell id like 'A1' from a zero-based position."""
    return f"{col_to_letter(pos.col)}{pos.row + 1}"


def parse_cell_id(cell_id: str, dims: Optional[GridDimensions] = None) -> Optional[CellPosition]:
    """Parse cell id like 'A1' into a position.

    Args:
        cell_id: Cell id like "A1", "c10", "AA3"
        dims: When given, positions outside the grid are rejected too

    Returns:
        CellPosition, or None if the id is malformed or out of range
    """
    match = _CELL_ID_RE.match(cell_id)
    if not match:
        return None

    col_letter, row_num = match.groups()
    col = letter_to_col(col_letter)
    row = int(row_num) - 1  # Convert to 0-based
    if row < 0 or col < 0:
        return None

    pos = CellPosition(row, col)
    if dims is not None and not dims.contains(pos):
        return None
    return pos


def parse_range_id(range_id: str, dims: Optional[GridDimensions] = None) -> Optional[CellRange]:
    """Parse a range id like 'A1:B5'. A single id yields a one-cell range."""
    parts = range_id.strip().split(':')
    if len(parts) == 1:
        pos = parse_cell_id(parts[0].strip(), dims)
        return CellRange(pos, pos) if pos else None
    if len(parts) != 2:
        return None

    start = parse_cell_id(parts[0].strip(), dims)
    end = parse_cell_id(parts[1].strip(), dims)
    if start is None or end is None:
        return None
    return CellRange(start, end)
