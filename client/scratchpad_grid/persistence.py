"""Load/save contract for grid documents, with a JSON-file implementation.

A grid document stores the whole grid, never a diff::

    {
        "id": "3f2a...",
        "name": "Budget",
        "type": "grid",
        "gridData": {"A1": {"value": "100"}, "B1": {"value": "=A1*2"}},
        "rows": 100,
        "cols": 26,
        "createdAt": "2026-10-19T09:00:00",
        "updatedAt": "2026-10-19T09:05:00"
    }
"""

import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import GridNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

GRID_KIND = "grid"

# Size of a freshly created grid
NEW_GRID_ROWS = 100
NEW_GRID_COLS = 26

# Size assumed for stored grids that never recorded one
FALLBACK_ROWS = 200
FALLBACK_COLS = 50


@dataclass
class GridSnapshot:
    """Everything persisted for one grid."""

    grid_data: Dict[str, Dict[str, str]] = field(default_factory=dict)
    rows: int = NEW_GRID_ROWS
    cols: int = NEW_GRID_COLS
    kind: str = GRID_KIND
    name: str = ""


class PersistenceGateway(ABC):
    """Where grids are loaded from and saved to."""

    @abstractmethod
    def load(self, grid_id: str) -> GridSnapshot:
        """Load a grid.

        Raises:
            GridNotFoundError: No grid with this id
            PersistenceError: The stored grid could not be read
        """

    @abstractmethod
    def save(self, grid_id: str, snapshot: GridSnapshot):
        """Replace the stored grid data and dimensions.

        Raises:
            PersistenceError: The grid could not be written
        """


class JsonFilePersistenceGateway(PersistenceGateway):
    """Stores each grid as ``<grid_id>.json`` inside a directory.

    Args:
        data_dir: Directory holding grid documents. Defaults to
            ~/.scratchpad_grid/grids
        fallback_rows: Rows assumed when a document has no "rows"
        fallback_cols: Columns assumed when a document has no "cols"
    """

    def __init__(self, data_dir: Optional[Path] = None,
                 fallback_rows: int = FALLBACK_ROWS, fallback_cols: int = FALLBACK_COLS):
        if data_dir is None:
            data_dir = Path.home() / ".scratchpad_grid" / "grids"

        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.fallback_rows = fallback_rows
        self.fallback_cols = fallback_cols

        logger.info(f"JsonFilePersistenceGateway using {self.data_dir}")

    def _path_for(self, grid_id: str) -> Path:
        if not grid_id or any(sep in grid_id for sep in ('/', '\\')) or grid_id.startswith('.'):
            raise PersistenceError(f"Invalid grid id: {grid_id!r}")
        return self.data_dir / f"{grid_id}.json"

    def exists(self, grid_id: str) -> bool:
        return self._path_for(grid_id).exists()

    def _read_document(self, grid_id: str) -> Dict[str, Any]:
        path = self._path_for(grid_id)
        if not path.exists():
            raise GridNotFoundError(grid_id)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read grid {grid_id}: {e}") from e

        if not isinstance(document, dict):
            raise PersistenceError(f"Grid {grid_id} is not a JSON object")
        return document

    def _write_document(self, grid_id: str, document: Dict[str, Any]):
        path = self._path_for(grid_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write grid {grid_id}: {e}") from e

    def create_grid(self, name: str, rows: int = NEW_GRID_ROWS, cols: int = NEW_GRID_COLS,
                    grid_id: Optional[str] = None) -> str:
        """Create an empty grid document.

        Returns:
            The new grid's id
        """
        grid_id = grid_id or uuid.uuid4().hex
        now = datetime.now().isoformat()
        self._write_document(grid_id, {
            'id': grid_id,
            'name': name,
            'type': GRID_KIND,
            'gridData': {},
            'rows': rows,
            'cols': cols,
            'createdAt': now,
            'updatedAt': now,
        })
        logger.info(f"Created grid '{name}' ({grid_id}) with {rows} rows and {cols} columns")
        return grid_id

    def load(self, grid_id: str) -> GridSnapshot:
        document = self._read_document(grid_id)

        grid_data = document.get('gridData') or {}
        if not isinstance(grid_data, dict):
            logger.warning(f"Grid {grid_id} has malformed gridData; loading it empty")
            grid_data = {}

        return GridSnapshot(
            grid_data=grid_data,
            rows=int(document.get('rows') or self.fallback_rows),
            cols=int(document.get('cols') or self.fallback_cols),
            kind=document.get('type') or GRID_KIND,
            name=document.get('name') or grid_id,
        )

    def save(self, grid_id: str, snapshot: GridSnapshot):
        try:
            document = self._read_document(grid_id)
        except GridNotFoundError:
            document = {
                'id': grid_id,
                'name': snapshot.name or grid_id,
                'type': snapshot.kind,
                'createdAt': datetime.now().isoformat(),
            }

        # The document type is fixed at creation
        document.update({
            'gridData': snapshot.grid_data,
            'rows': snapshot.rows,
            'cols': snapshot.cols,
            'updatedAt': datetime.now().isoformat(),
        })
        self._write_document(grid_id, document)
        logger.debug(f"Saved grid {grid_id} ({len(snapshot.grid_data)} cells)")
