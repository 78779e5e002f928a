"""Debounced saving of a grid through a PersistenceGateway."""

import logging
from enum import Enum
from typing import Callable

from PySide6 import QtCore

from .persistence import GridSnapshot, PersistenceGateway

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000


class SaveStatus(str, Enum):
    SAVED = "saved"
    SAVING = "saving"
    ERROR = "error"


class DebouncedGridSaver(QtCore.QObject):
    """Saves the whole grid after a quiet period.

    Every ``schedule()`` restarts a single-shot timer, so a burst of edits
    produces one save of the latest state. A failed save only changes
    ``status``; the in-memory grid is never touched.

    The saver owns its timer. Use it as a context manager (or call
    ``close()``) so a pending save is cancelled - or flushed, with
    ``flush_on_close`` - when the view goes away.

    Args:
        gateway: Where the grid is saved
        grid_id: Id of the grid document
        snapshot_provider: Returns the GridSnapshot to save
        interval_ms: Quiet period before saving
        flush_on_close: Save a pending change on close instead of dropping it
    """

    statusChanged = QtCore.Signal(str)

    def __init__(self, gateway: PersistenceGateway, grid_id: str,
                 snapshot_provider: Callable[[], GridSnapshot],
                 interval_ms: int = DEFAULT_INTERVAL_MS, flush_on_close: bool = False,
                 parent=None):
        super().__init__(parent)
        self.gateway = gateway
        self.grid_id = grid_id
        self.snapshot_provider = snapshot_provider
        self.flush_on_close = flush_on_close
        self.status = SaveStatus.SAVED

        # Debounce timer for saving the grid
        self._save_timer = QtCore.QTimer(self)
        self._save_timer.setSingleShot(True)
        self._save_timer.setInterval(interval_ms)
        self._save_timer.timeout.connect(self.flush)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _set_status(self, status: SaveStatus):
        if status != self.status:
            self.status = status
            self.statusChanged.emit(status.value)

    def schedule(self):
        """(Re)start the quiet period before the next save."""
        self._save_timer.start()  # Restart timer on each change

    def is_pending(self) -> bool:
        return self._save_timer.isActive()

    def cancel(self):
        if self._save_timer.isActive():
            self._save_timer.stop()
            logger.debug(f"Cancelled pending save of grid {self.grid_id}")

    def flush(self) -> bool:
        """Save now.

        Returns:
            True if the gateway accepted the grid
        """
        self._save_timer.stop()
        self._set_status(SaveStatus.SAVING)

        try:
            snapshot = self.snapshot_provider()
            self.gateway.save(self.grid_id, snapshot)
        except Exception as e:
            logger.error(f"Failed to save grid {self.grid_id}: {e}", exc_info=True)
            self._set_status(SaveStatus.ERROR)
            return False

        logger.info(f"Saved grid {self.grid_id} ({len(snapshot.grid_data)} cells)")
        self._set_status(SaveStatus.SAVED)
        return True

    def close(self):
        if not self.is_pending():
            return
        if self.flush_on_close:
            self.flush()
        else:
            self.cancel()
