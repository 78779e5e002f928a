#!/usr/bin/env python3
"""
Standalone launcher for Scratchpad Grid

Usage:
    python run_standalone.py
    python run_standalone.py --grid-id budget --name "Budget"
    python run_standalone.py --data-dir /tmp/grids --settings /tmp/settings.json
"""

import argparse
import sys
from pathlib import Path

# Add the client directory to path
client_dir = Path(__file__).parent / "client"
sys.path.insert(0, str(client_dir))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scratchpad Grid - standalone spreadsheet editor")
    parser.add_argument("--grid-id", help="Grid to open (created if it does not exist)")
    parser.add_argument("--name", default="Untitled grid", help="Name for a newly created grid")
    parser.add_argument("--data-dir", help="Folder holding grid documents")
    parser.add_argument("--settings", help="Path to the settings JSON file")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    print("=" * 80)
    print("Scratchpad Grid - Standalone Mode")
    print("=" * 80)
    print()

    from PySide6 import QtWidgets

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv)

    from scratchpad_grid.app import ScratchpadGridApp
    from scratchpad_grid.errors import PersistenceError
    from scratchpad_grid.settings import AppSettings

    try:
        print("Creating app window...")
        window = ScratchpadGridApp(
            grid_id=args.grid_id,
            grid_name=args.name,
            app_settings=AppSettings(args.settings),
            data_dir=args.data_dir,
        )
        print("✓ Window created")
    except PersistenceError as e:
        print(f"✗ Failed to open grid: {e}")
        QtWidgets.QMessageBox.critical(None, "Error", f"Failed to open grid:\n{str(e)}")
        return 1

    window.show()
    print(f"✓ Editing grid {window.grid_id}")
    print()

    # Run event loop
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
