# Scratchpad Grid Package
# Spreadsheet engine and Qt editor for lightweight grids

from .cell_addressing import (
    CellPosition,
    CellRange,
    GridDimensions,
    col_to_letter,
    get_cell_id,
    letter_to_col,
    parse_cell_id,
    parse_range_id,
)
from .cell_store import CellStore
from .errors import (
    ClipboardError,
    GridError,
    GridNotFoundError,
    ImportFormatError,
    PersistenceError,
)
from .formula_evaluator import FormulaEvaluator
from .grid_session import GridSession
from .history_stack import HistoryStack
from .persistence import GridSnapshot, JsonFilePersistenceGateway, PersistenceGateway
from .selection_model import InteractionMode, SelectionModel

__all__ = [
    "CellPosition",
    "CellRange",
    "CellStore",
    "ClipboardError",
    "FormulaEvaluator",
    "GridDimensions",
    "GridError",
    "GridNotFoundError",
    "GridSession",
    "GridSnapshot",
    "HistoryStack",
    "ImportFormatError",
    "InteractionMode",
    "JsonFilePersistenceGateway",
    "PersistenceError",
    "PersistenceGateway",
    "SelectionModel",
    "col_to_letter",
    "get_cell_id",
    "letter_to_col",
    "parse_cell_id",
    "parse_range_id",
]
