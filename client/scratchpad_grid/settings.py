"""Application settings manager for persistent storage."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = Path.home() / ".scratchpad_grid"


class AppSettings:
    """Manages application settings with persistent JSON storage."""

    def __init__(self, settings_file=None):
        """Initialize settings manager.

        Args:
            settings_file: Path to settings file. If None, uses default location.
        """
        if settings_file is None:
            # Use user's home directory for settings
            DEFAULT_SETTINGS_DIR.mkdir(exist_ok=True)
            settings_file = DEFAULT_SETTINGS_DIR / "settings.json"

        self.settings_file = Path(settings_file)
        self.settings = {}
        self._load()

    def _load(self):
        """Load settings from file."""
        if self.settings_file.exists():
            try:
                with open(self.settings_file, 'r', encoding='utf-8') as f:
                    self.settings = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to load settings: {e}")
                self.settings = {}
            if not isinstance(self.settings, dict):
                logger.error(f"Ignoring malformed settings file {self.settings_file}")
                self.settings = {}
        else:
            self.settings = {}

    def _save(self):
        """Save settings to file."""
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, 'w', encoding='utf-8') as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save settings: {e}")

    def get(self, key, default=None):
        """Get a setting value.

        Args:
            key: Setting key
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        return self.settings.get(key, default)

    def set(self, key, value):
        """Set a setting value.

        Args:
            key: Setting key
            value: Setting value
        """
        self.settings[key] = value
        self._save()

    def _get_int(self, key, default, minimum=0):
        value = self.get(key, default)
        try:
            value = int(value)
        except (TypeError, ValueError):
            logger.warning(f"Setting '{key}' is not an integer ({value!r}); using {default}")
            return default
        if value < minimum:
            logger.warning(f"Setting '{key}' must be at least {minimum}; using {default}")
            return default
        return value

    def get_default_grid_size(self):
        """Get the size of newly created grids.

        Returns:
            tuple: (rows, cols) (default: (100, 26))
        """
        return self._get_int("default_rows", 100, 1), self._get_int("default_cols", 26, 1)

    def get_fallback_grid_size(self):
        """Get the size assumed for stored grids that never recorded one.

        Returns:
            tuple: (rows, cols) (default: (200, 50))
        """
        return self._get_int("fallback_rows", 200, 1), self._get_int("fallback_cols", 50, 1)

    def get_row_step(self):
        """Rows added by the "+ Rows" action (default: 50)."""
        return self._get_int("row_step", 50, 1)

    def get_col_step(self):
        """Columns added by the "+ Columns" action (default: 10)."""
        return self._get_int("col_step", 10, 1)

    def get_autosave_interval_ms(self):
        """Get the quiet period before a grid is saved.

        Returns:
            int: Milliseconds (default: 1000)
        """
        return self._get_int("autosave_interval_ms", 1000, 0)

    def set_autosave_interval_ms(self, interval_ms):
        self.set("autosave_interval_ms", int(interval_ms))

    def get_flush_on_close(self):
        """Whether a pending save is written when a grid is closed (default: False)."""
        return bool(self.get("flush_on_close", False))

    def get_history_limit(self):
        """Maximum undo entries per grid, 0 for unbounded (default: 0)."""
        return self._get_int("history_limit", 0, 0)

    def get_data_dir(self):
        """Get the folder holding grid documents.

        Returns:
            Path: Path to grid folder
        """
        data_dir = self.get("data_dir")
        if data_dir:
            return Path(data_dir)
        return DEFAULT_SETTINGS_DIR / "grids"

    def set_data_dir(self, path):
        """Set the folder holding grid documents.

        Args:
            path: Path to folder (string or Path object)
        """
        self.set("data_dir", str(path))
