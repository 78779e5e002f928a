"""Exceptions raised at the I/O seams of the grid engine.

Formula problems are never raised: the evaluator returns them as the error
strings below so they can be displayed in place of a value.
"""

# Formula error values shown in cells
REF_ERROR = "#REF!"
NAME_ERROR = "#NAME?"
EVAL_ERROR = "#ERROR!"

FORMULA_ERRORS = frozenset({REF_ERROR, NAME_ERROR, EVAL_ERROR})


class GridError(Exception):
    """Base class for grid engine errors."""


class ImportFormatError(GridError):
    """A file could not be imported. The message is meant for the user."""


class ClipboardError(GridError):
    """The host clipboard could not be read or written."""


class PersistenceError(GridError):
    """A grid document could not be loaded or saved."""


class GridNotFoundError(PersistenceError):
    """No stored grid document exists for the requested id."""

    def __init__(self, grid_id):
        super().__init__(f"Grid not found: {grid_id}")
        self.grid_id = grid_id
