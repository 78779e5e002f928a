"""Shared logging configuration for Scratchpad Grid."""

import logging
import os
from pathlib import Path
from datetime import datetime

# Global logger instance
_logger = None

LOGGER_NAME = "ScratchpadGrid"


def get_logger():
    """Get or create the logger instance."""
    global _logger

    if _logger is not None:
        return _logger

    try:
        # Logs live next to the checkout unless SCRATCHPAD_GRID_LOG_DIR says otherwise
        # Path structure: client/scratchpad_grid/logger.py -> go up to root
        log_dir = os.environ.get("SCRATCHPAD_GRID_LOG_DIR")
        if log_dir:
            log_dir = Path(log_dir)
        else:
            log_dir = Path(__file__).parent.parent.parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        # Create log file with timestamp
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"scratchpad_grid_{timestamp}.log"

        # Setup logging
        logging.basicConfig(
            level=logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(log_file, encoding='utf-8'),
                logging.StreamHandler()  # Also print to console
            ],
            force=True  # Override any existing configuration
        )

        _logger = logging.getLogger(LOGGER_NAME)
        _logger.setLevel(logging.INFO)

        return _logger

    except OSError as e:
        # Read-only install location: fall back to console-only logging
        logging.getLogger(LOGGER_NAME).warning(f"Failed to setup file logging: {e}")
        _logger = logging.getLogger(LOGGER_NAME)
        return _logger


# Initialize logger on import
logger = get_logger()
