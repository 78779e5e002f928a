"""CSV export and import of a whole grid."""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from .cell_addressing import CellPosition, GridDimensions, get_cell_id
from .cell_store import CellStore
from .errors import ImportFormatError

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"
CSV_EXTENSION = ".csv"
# Spreadsheet formats people try to import but that are not read
LEGACY_SPREADSHEET_EXTENSIONS = {".xls", ".xlsx", ".xlsm", ".xlsb", ".ods"}


@dataclass
class ImportResult:
    """Cells read from a CSV file, ready to replace the grid contents."""

    data: Dict[str, str] = field(default_factory=dict)
    imported_cells: int = 0
    dropped_cells: int = 0

    @property
    def message(self) -> str:
        text = f"Imported {self.imported_cells} cells from CSV file."
        if self.dropped_cells:
            text += f" {self.dropped_cells} cells outside the grid were skipped."
        return text


def export_csv_text(store: CellStore, dims: GridDimensions) -> str:
    """Serialize every addressable cell as CSV text.

    Raw values are written (formulas as formulas). Fields containing a comma,
    quote or line break are quoted with embedded quotes doubled. The text
    starts with a byte-order mark so spreadsheet applications pick UTF-8.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    for row in range(dims.rows):
        writer.writerow([
            store.get(get_cell_id(CellPosition(row, col))) or ""
            for col in range(dims.cols)
        ])
    return BYTE_ORDER_MARK + buffer.getvalue()


def write_csv_file(path, store: CellStore, dims: GridDimensions) -> Path:
    path = Path(path)
    if path.suffix.lower() != CSV_EXTENSION:
        path = path.with_suffix(CSV_EXTENSION)

    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(export_csv_text(store, dims))

    logger.info(f"Exported grid ({dims.rows}x{dims.cols}) to {path}")
    return path


def check_import_extension(path):
    """Reject anything that is not a .csv file before trying to read it.

    Raises:
        ImportFormatError: For legacy spreadsheet formats and unknown files
    """
    extension = Path(path).suffix.lower()

    if extension in LEGACY_SPREADSHEET_EXTENSIONS:
        raise ImportFormatError(
            f"Spreadsheet files ({extension}) are not supported. "
            "Please save your file as CSV format and try again."
        )

    if extension != CSV_EXTENSION:
        raise ImportFormatError("Unrecognized file format. Only CSV files (.csv) are supported.")


def parse_csv_text(text: str, dims: GridDimensions) -> ImportResult:
    """Parse CSV text into sparse cell data that fits in ``dims``.

    Raises:
        ImportFormatError: If the text is empty, malformed, or has no cell
            inside the grid
    """
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]

    if not text.strip():
        raise ImportFormatError("The CSV file is empty.")

    result = ImportResult()
    try:
        for row, values in enumerate(csv.reader(io.StringIO(text), strict=True)):
            for col, value in enumerate(values):
                if not value.strip():
                    continue
                if row >= dims.rows or col >= dims.cols:
                    result.dropped_cells += 1
                    continue
                result.data[get_cell_id(CellPosition(row, col))] = value
                result.imported_cells += 1
    except csv.Error as e:
        raise ImportFormatError(
            f"Error importing CSV file. Please check the file format and try again ({e})."
        ) from e

    if not result.imported_cells:
        if result.dropped_cells:
            raise ImportFormatError("No cells in the CSV file fit inside this grid.")
        raise ImportFormatError("The CSV file contains no values.")

    return result


def read_csv_file(path, dims: GridDimensions) -> ImportResult:
    """Validate, read and parse one CSV file."""
    check_import_extension(path)

    try:
        with open(path, 'r', encoding='utf-8-sig', newline='') as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ImportFormatError("The CSV file is not valid UTF-8 text.") from e
    except OSError as e:
        logger.error(f"Failed to read CSV file {path}: {e}", exc_info=True)
        raise ImportFormatError(f"Error reading file. Please try again ({e}).") from e

    return parse_csv_text(text, dims)
