from pathlib import Path

from PySide6 import QtWidgets

from .autosave import DebouncedGridSaver
from .grid_session import GridSession
from .logger import logger
from .persistence import JsonFilePersistenceGateway
from .settings import AppSettings
from .spreadsheet_widget import SpreadsheetWidget


class ScratchpadGridApp(QtWidgets.QMainWindow):
    """Main application window holding one open grid."""

    def __init__(self, grid_id=None, grid_name="Untitled grid", app_settings=None,
                 data_dir=None, parent=None):
        """Open (or create) a grid and show it.

        Args:
            grid_id: Grid to open. A missing grid is created under this id;
                None creates a new grid with a generated id.
            grid_name: Name given to a newly created grid
            app_settings: AppSettings instance. If None, uses the default file.
            data_dir: Folder holding grid documents. Overrides the setting.
            parent: Parent widget
        """
        try:
            super().__init__(parent)

            # Initialize app settings
            self.app_settings = app_settings or AppSettings()

            fallback_rows, fallback_cols = self.app_settings.get_fallback_grid_size()
            self.gateway = JsonFilePersistenceGateway(
                Path(data_dir) if data_dir else self.app_settings.get_data_dir(),
                fallback_rows=fallback_rows,
                fallback_cols=fallback_cols,
            )

            self.grid_id = self._open_or_create_grid(grid_id, grid_name)
            snapshot = self.gateway.load(self.grid_id)

            self.session = GridSession(
                snapshot,
                history_limit=self.app_settings.get_history_limit(),
                row_step=self.app_settings.get_row_step(),
                col_step=self.app_settings.get_col_step(),
                parent=self,
            )
            self.saver = DebouncedGridSaver(
                self.gateway,
                self.grid_id,
                self.session.to_snapshot,
                interval_ms=self.app_settings.get_autosave_interval_ms(),
                flush_on_close=self.app_settings.get_flush_on_close(),
                parent=self,
            )

            self.spreadsheet = SpreadsheetWidget(self.session, self.saver, parent=self)
            self.setCentralWidget(self.spreadsheet)

            self.setWindowTitle(f"{self.session.name} - Scratchpad Grid")
            self.setMinimumSize(900, 600)

        except Exception as e:
            logger.error("=" * 60)
            logger.error(f"CRITICAL ERROR in __init__: {e}", exc_info=True)
            logger.error("=" * 60)
            raise

    def _open_or_create_grid(self, grid_id, grid_name):
        if grid_id and self.gateway.exists(grid_id):
            logger.info(f"Opening grid {grid_id}")
            return grid_id

        rows, cols = self.app_settings.get_default_grid_size()
        return self.gateway.create_grid(grid_name, rows, cols, grid_id=grid_id)

    def closeEvent(self, event):
        """Called when window is closed."""
        self.saver.close()
        super().closeEvent(event)
