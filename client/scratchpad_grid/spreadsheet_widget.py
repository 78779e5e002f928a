"""
Spreadsheet Widget
Grid view for a GridSession: table, formula bar, search box, toolbar and
save status.
"""

from PySide6 import QtWidgets, QtCore, QtGui
from PySide6.QtCore import Qt

from .autosave import DebouncedGridSaver, SaveStatus
from .cell_addressing import CellPosition, col_to_letter, get_cell_id
from .clipboard_bridge import ClipboardBridge
from .errors import ClipboardError, ImportFormatError
from .formula_evaluator import is_error
from .grid_session import GridSession
from .logger import logger

SELECTION_COLOR = QtGui.QColor(68, 114, 196, 90)
MATCH_COLOR = QtGui.QColor(255, 235, 59, 110)
ERROR_COLOR = QtGui.QColor("#ff6b6b")

COLUMN_WIDTH = 100
ROW_HEIGHT = 25

# Zoom in percent
ZOOM_MIN = 50
ZOOM_MAX = 200
ZOOM_STEP = 10

ARROW_KEYS = {
    Qt.Key_Up: (-1, 0),
    Qt.Key_Down: (1, 0),
    Qt.Key_Left: (0, -1),
    Qt.Key_Right: (0, 1),
}


class GridTableModel(QtCore.QAbstractTableModel):
    """Qt model over a GridSession.

    Display shows evaluated values, Edit shows raw values (formulas as
    written). The session's selection is painted through BackgroundRole, so
    the view's own selection model stays unused.
    """

    def __init__(self, session: GridSession, parent=None):
        super().__init__(parent)
        self.session = session
        self._search_matches = set()

        session.cellsChanged.connect(self.refresh)
        session.selectionChanged.connect(self.refresh)
        session.dimensionsChanged.connect(self._on_dimensions_changed)

    def rowCount(self, parent=QtCore.QModelIndex()):
        """Return the number of rows."""
        return 0 if parent.isValid() else self.session.dims.rows

    def columnCount(self, parent=QtCore.QModelIndex()):
        """Return the number of columns."""
        return 0 if parent.isValid() else self.session.dims.cols

    def position(self, index) -> CellPosition:
        return CellPosition(index.row(), index.column())

    def index_for(self, pos: CellPosition):
        return self.index(pos.row, pos.col)

    def data(self, index, role=Qt.DisplayRole):
        """Return data for the given index and role."""
        if not index.isValid():
            return None

        pos = self.position(index)
        selection = self.session.selection

        if role == Qt.DisplayRole:
            return self.session.display_value(pos)

        if role == Qt.EditRole:
            # While editing, the editor shows the in-progress buffer
            if selection.is_editing and selection.edit_position == pos:
                return selection.edit_value
            return self.session.raw_value(pos)

        if role == Qt.TextAlignmentRole:
            if isinstance(self.session.evaluate(pos), float):
                return Qt.AlignRight | Qt.AlignVCenter
            return Qt.AlignLeft | Qt.AlignVCenter

        if role == Qt.ForegroundRole:
            if is_error(self.session.evaluate(pos)):
                return QtGui.QBrush(ERROR_COLOR)
            return None

        if role == Qt.BackgroundRole:
            if selection.is_selected(pos):
                return QtGui.QBrush(SELECTION_COLOR)
            if get_cell_id(pos) in self._search_matches:
                return QtGui.QBrush(MATCH_COLOR)
            return None

        return None

    def setData(self, index, value, role=Qt.EditRole):
        """Commit an edit from the cell editor."""
        if not index.isValid() or role != Qt.EditRole:
            return False

        pos = self.position(index)
        value = "" if value is None else str(value)
        selection = self.session.selection

        if selection.is_editing and selection.edit_position == pos:
            self.session.update_edit(value)
            self.session.commit_edit()
        else:
            self.session.set_cell(pos, value)
        return True

    def flags(self, index):
        """Return item flags for the given index."""
        if not index.isValid():
            return Qt.NoItemFlags

        return Qt.ItemIsEnabled | Qt.ItemIsSelectable | Qt.ItemIsEditable

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        """Return header data."""
        if role == Qt.DisplayRole:
            if orientation == Qt.Horizontal:
                # Column headers: A, B, C, ..., Z, AA, AB, ...
                return col_to_letter(section)
            # Row headers: 1, 2, 3, ...
            return str(section + 1)
        return None

    def set_search_matches(self, cell_ids):
        self._search_matches = set(cell_ids)
        self.refresh()

    def refresh(self):
        """Repaint every cell. Formulas may depend on any changed cell."""
        if not self.rowCount() or not self.columnCount():
            return
        top_left = self.index(0, 0)
        bottom_right = self.index(self.rowCount() - 1, self.columnCount() - 1)
        self.dataChanged.emit(top_left, bottom_right)

    def _on_dimensions_changed(self, rows, cols):
        self.beginResetModel()
        self.endResetModel()


class SpreadsheetTableView(QtWidgets.QTableView):
    """Table view that routes mouse and keyboard gestures to a GridSession."""

    # message, is_error
    statusMessageChanged = QtCore.Signal(str, bool)

    def __init__(self, session: GridSession, clipboard: ClipboardBridge = None, parent=None):
        super().__init__(parent)
        self.session = session
        self.clipboard = clipboard or ClipboardBridge()

        self.setSelectionMode(QtWidgets.QAbstractItemView.NoSelection)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setMouseTracking(False)

        # Ensure the table view can receive keyboard events
        self.setFocusPolicy(Qt.StrongFocus)

    def grid_model(self) -> GridTableModel:
        return self.model()

    def sync_current_cell(self):
        """Move Qt's focus cell to the session's active cell."""
        model = self.grid_model()
        if model is None:
            return
        index = model.index_for(self.session.selection.active)
        if index.isValid():
            self.setCurrentIndex(index)
            self.scrollTo(index)

    def open_editor(self, initial_value=None):
        """Enter edit mode on the active cell and show the cell editor."""
        self.session.begin_edit(self.session.selection.active, initial_value)
        index = self.grid_model().index_for(self.session.selection.active)
        self.setCurrentIndex(index)
        self.edit(index)

    def finish_open_editor(self, commit=True):
        """Commit (or discard) an open cell editor, if any."""
        if self.state() != QtWidgets.QAbstractItemView.EditingState:
            return
        editor = self.indexWidget(self.currentIndex())
        if editor is None:
            return
        if commit:
            self.commitData(editor)
            self.closeEditor(editor, QtWidgets.QAbstractItemDelegate.NoHint)
        else:
            self.closeEditor(editor, QtWidgets.QAbstractItemDelegate.RevertModelCache)

    def undo(self):
        self.finish_open_editor(commit=False)
        self.session.undo()

    def redo(self):
        self.finish_open_editor(commit=False)
        self.session.redo()

    def closeEditor(self, editor, hint):
        """Map the delegate's close hints onto session gestures."""
        shift = bool(QtGui.QGuiApplication.keyboardModifiers() & Qt.ShiftModifier)

        if hint == QtWidgets.QAbstractItemDelegate.RevertModelCache:
            self.session.press_escape()
        elif hint == QtWidgets.QAbstractItemDelegate.SubmitModelCache:
            self.session.press_enter(shift)
        elif hint == QtWidgets.QAbstractItemDelegate.EditNextItem:
            self.session.press_tab()
        elif hint == QtWidgets.QAbstractItemDelegate.EditPreviousItem:
            self.session.press_tab(shift=True)

        super().closeEditor(editor, QtWidgets.QAbstractItemDelegate.NoHint)
        self.sync_current_cell()
        self.setFocus()

    def mousePressEvent(self, event):
        """Start a click or drag selection."""
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return

        index = self.indexAt(event.position().toPoint())
        if not index.isValid():
            return

        self.finish_open_editor()
        shift = bool(event.modifiers() & Qt.ShiftModifier)
        self.session.pointer_down(self.grid_model().position(index), shift)
        self.sync_current_cell()
        self.setFocus()
        event.accept()

    def mouseMoveEvent(self, event):
        """Extend a drag selection."""
        if self.session.selection.is_dragging and event.buttons() & Qt.LeftButton:
            index = self.indexAt(event.position().toPoint())
            if index.isValid():
                self.session.pointer_move(self.grid_model().position(index))
            event.accept()
            return

        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.session.pointer_up()
            event.accept()
            return

        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):
        index = self.indexAt(event.position().toPoint())
        if index.isValid():
            self.session.pointer_down(self.grid_model().position(index))
            self.session.pointer_up()
            self.open_editor()
            event.accept()

    def keyPressEvent(self, event):
        """Handle keyboard navigation, editing and clipboard shortcuts."""
        key = event.key()
        modifiers = event.modifiers()
        ctrl = bool(modifiers & (Qt.ControlModifier | Qt.MetaModifier))
        shift = bool(modifiers & Qt.ShiftModifier)

        if ctrl:
            if key == Qt.Key_Z:
                logger.info("Ctrl+Z detected - undoing")
                if shift:
                    self.redo()
                else:
                    self.undo()
            elif key == Qt.Key_Y:
                logger.info("Ctrl+Y detected - redoing")
                self.redo()
            elif key == Qt.Key_C:
                self.copy_selection()
            elif key == Qt.Key_V:
                self.paste_clipboard()
            else:
                super().keyPressEvent(event)
                return
            event.accept()
            return

        if key in ARROW_KEYS:
            d_row, d_col = ARROW_KEYS[key]
            self.session.move_active(d_row, d_col, extend=shift)
        elif key in (Qt.Key_Return, Qt.Key_Enter):
            self.session.press_enter(shift)
        elif key == Qt.Key_Tab:
            self.session.press_tab()
        elif key == Qt.Key_Backtab:
            self.session.press_tab(shift=True)
        elif key == Qt.Key_Escape:
            self.session.press_escape()
        elif key in (Qt.Key_Delete, Qt.Key_Backspace):
            self.session.press_delete()
        elif key == Qt.Key_F2:
            self.open_editor()
            event.accept()
            return
        elif event.text() and event.text().isprintable():
            # Typing replaces the cell contents
            self.open_editor(event.text())
            event.accept()
            return
        else:
            super().keyPressEvent(event)
            return

        self.sync_current_cell()
        event.accept()

    def focusNextPrevChild(self, next):
        # Tab moves between cells instead of widgets
        return False

    def copy_selection(self):
        """Copy the selected cells to the clipboard."""
        try:
            self.session.copy_selection(self.clipboard)
        except ClipboardError as e:
            self.statusMessageChanged.emit(str(e), True)

    def paste_clipboard(self):
        """Paste clipboard text at the active cell."""
        try:
            self.session.paste_from_clipboard(self.clipboard)
        except ClipboardError as e:
            self.statusMessageChanged.emit(str(e), True)
            return
        self.sync_current_cell()

    def delete_selection(self):
        self.finish_open_editor()
        self.session.delete_selection()


class SpreadsheetWidget(QtWidgets.QWidget):
    """Spreadsheet editor for one grid.

    Args:
        session: Grid being edited
        saver: Debounced saver scheduled after every change. None disables saving.
        clipboard: ClipboardBridge used for copy/paste
        parent: Parent widget
    """

    def __init__(self, session: GridSession, saver: DebouncedGridSaver = None,
                 clipboard: ClipboardBridge = None, parent=None):
        super().__init__(parent)
        self.session = session
        self.saver = saver

        # Create layout
        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(5)

        # Create custom table view FIRST (before toolbar)
        self.model = GridTableModel(session, self)
        self.table_view = SpreadsheetTableView(session, clipboard)
        self.table_view.setModel(self.model)
        self.table_view.setAlternatingRowColors(False)

        # Configure table view
        self.table_view.horizontalHeader().setDefaultSectionSize(COLUMN_WIDTH)
        self.table_view.horizontalHeader().setStretchLastSection(False)
        self.table_view.verticalHeader().setDefaultSectionSize(ROW_HEIGHT)

        self.zoom_percent = 100
        self._base_font = QtGui.QFont(self.table_view.font())

        # Enable grid
        self.table_view.setShowGrid(True)
        self.table_view.setGridStyle(Qt.SolidLine)

        self._create_toolbar()
        layout.addWidget(self.toolbar)

        self._create_formula_row()
        layout.addWidget(self.formula_row)

        # Add table view
        layout.addWidget(self.table_view, 1)

        # Status bar
        self.status_label = QtWidgets.QLabel()
        self.dims_label = QtWidgets.QLabel()
        self.zoom_status_label = QtWidgets.QLabel()
        status_layout = QtWidgets.QHBoxLayout()
        status_layout.setContentsMargins(5, 0, 5, 5)
        status_layout.addWidget(self.status_label, 1)
        status_layout.addWidget(self.zoom_status_label)
        status_layout.addWidget(self.dims_label)
        layout.addLayout(status_layout)

        # Clears transient status messages
        self._status_timer = QtCore.QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.setInterval(3000)
        self._status_timer.timeout.connect(self.status_label.clear)

        session.cellsChanged.connect(self._on_cells_changed)
        session.dimensionsChanged.connect(self._on_dimensions_changed)
        session.selectionChanged.connect(self._on_selection_changed)
        session.statusMessageChanged.connect(self.show_status_message)
        self.table_view.statusMessageChanged.connect(self.show_status_message)
        if saver is not None:
            saver.statusChanged.connect(self._on_save_status_changed)

        self._on_selection_changed()
        self.dims_label.setText(session.dims.label)
        self._update_zoom_labels()
        self._on_save_status_changed(saver.status.value if saver else SaveStatus.SAVED.value)
        self.table_view.sync_current_cell()

        logger.info(f"SpreadsheetWidget initialized with {session.dims.rows} rows "
                    f"and {session.dims.cols} columns")

    def _create_toolbar(self):
        """Create the toolbar with spreadsheet controls."""
        self.toolbar = QtWidgets.QWidget()
        toolbar_layout = QtWidgets.QHBoxLayout(self.toolbar)
        toolbar_layout.setContentsMargins(5, 5, 5, 5)
        toolbar_layout.setSpacing(5)

        buttons = [
            ("Undo", "Undo (Ctrl+Z)", self.table_view.undo),
            ("Redo", "Redo (Ctrl+Y)", self.table_view.redo),
            ("Copy", "Copy selection (Ctrl+C)", self.table_view.copy_selection),
            ("Paste", "Paste at active cell (Ctrl+V)", self.table_view.paste_clipboard),
            ("Delete", "Clear selected cells (Delete)", self.table_view.delete_selection),
            (f"+{self.session.row_step} Rows", "Add rows", self.add_rows),
            (f"+{self.session.col_step} Cols", "Add columns", self.add_columns),
            ("Export CSV", "Export the whole grid as CSV", self.export_csv),
            ("Import CSV", "Replace the grid with a CSV file", self.import_csv),
        ]
        self.toolbar_buttons = {}
        for label, tooltip, slot in buttons:
            button = QtWidgets.QPushButton(label)
            button.setToolTip(tooltip)
            button.setFocusPolicy(Qt.NoFocus)
            button.clicked.connect(lambda checked=False, s=slot: s())
            toolbar_layout.addWidget(button)
            self.toolbar_buttons[label] = button

        # Zoom controls
        for label, tooltip, slot in [("Zoom In", "Zoom in", self.zoom_in),
                                     ("Zoom Out", "Zoom out", self.zoom_out)]:
            button = QtWidgets.QPushButton(label)
            button.setToolTip(tooltip)
            button.setFocusPolicy(Qt.NoFocus)
            button.clicked.connect(lambda checked=False, s=slot: s())
            toolbar_layout.addWidget(button)
            self.toolbar_buttons[label] = button

        self.zoom_label = QtWidgets.QLabel()
        self.zoom_label.setStyleSheet("font-weight: bold;")
        toolbar_layout.addWidget(self.zoom_label)

        toolbar_layout.addStretch()

        # Search box
        self.search_edit = QtWidgets.QLineEdit()
        self.search_edit.setPlaceholderText("Search cells...")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.setMaximumWidth(220)
        self.search_edit.textChanged.connect(self._on_search_changed)
        toolbar_layout.addWidget(self.search_edit)

        self.save_status_label = QtWidgets.QLabel()
        self.save_status_label.setMinimumWidth(60)
        toolbar_layout.addWidget(self.save_status_label)

    def _create_formula_row(self):
        self.formula_row = QtWidgets.QWidget()
        formula_layout = QtWidgets.QHBoxLayout(self.formula_row)
        formula_layout.setContentsMargins(5, 0, 5, 0)
        formula_layout.setSpacing(5)

        # Active cell or range label
        self.name_box = QtWidgets.QLabel()
        self.name_box.setMinimumWidth(70)
        self.name_box.setStyleSheet("font-weight: bold; padding: 2px;")
        formula_layout.addWidget(self.name_box)

        # Formula bar label
        formula_label = QtWidgets.QLabel("fx")
        formula_label.setStyleSheet("font-weight: bold; padding: 2px;")
        formula_layout.addWidget(formula_label)

        # Formula bar
        self.formula_bar = QtWidgets.QLineEdit()
        self.formula_bar.setPlaceholderText("Enter formula or value...")
        self.formula_bar.returnPressed.connect(self._on_formula_bar_enter)
        formula_layout.addWidget(self.formula_bar, 1)

    # ------------------------------------------------------------------
    # Session callbacks
    # ------------------------------------------------------------------

    def _on_cells_changed(self):
        self._refresh_formula_bar()
        if self.search_edit.text():
            self._on_search_changed(self.search_edit.text())
        if self.saver is not None:
            self.saver.schedule()

    def _on_dimensions_changed(self, rows, cols):
        self.dims_label.setText(self.session.dims.label)
        if self.saver is not None:
            self.saver.schedule()

    def _on_selection_changed(self):
        self.name_box.setText(self.session.selection_label)
        self._refresh_formula_bar()

    def _refresh_formula_bar(self):
        if not self.formula_bar.hasFocus():
            self.formula_bar.setText(self.session.raw_value(self.session.selection.active))

    def _on_formula_bar_enter(self):
        """Commit the formula bar to the active cell and move down."""
        self.table_view.finish_open_editor()
        self.session.set_cell(self.session.selection.active, self.formula_bar.text())
        self.table_view.setFocus()
        self.session.press_enter()
        self.table_view.sync_current_cell()

    def _on_search_changed(self, text):
        matches = self.session.find_matches(text)
        self.model.set_search_matches(matches)
        if text.strip():
            self.show_status_message(f"Found: {len(matches)} matches")

    def _on_save_status_changed(self, status):
        labels = {
            SaveStatus.SAVED.value: "Saved",
            SaveStatus.SAVING.value: "Saving...",
            SaveStatus.ERROR.value: "Save failed",
        }
        self.save_status_label.setText(labels.get(status, status))
        if status == SaveStatus.ERROR.value:
            self.save_status_label.setStyleSheet("color: #ff6b6b;")
        else:
            self.save_status_label.setStyleSheet("")

    def show_status_message(self, message, is_error=False):
        self.status_label.setText(message)
        self.status_label.setStyleSheet("color: #ff6b6b;" if is_error else "")
        self._status_timer.start()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def add_rows(self):
        self.session.add_rows()
        self.show_status_message(f"Added {self.session.row_step} rows")

    def add_columns(self):
        self.session.add_columns()
        self.show_status_message(f"Added {self.session.col_step} columns")

    def zoom_in(self):
        self.set_zoom(self.zoom_percent + ZOOM_STEP)

    def zoom_out(self):
        self.set_zoom(self.zoom_percent - ZOOM_STEP)

    def set_zoom(self, percent):
        """Scale the table's font and cell sizes.

        Args:
            percent: Zoom level, clamped to 50-200%

        Returns:
            The zoom level applied
        """
        percent = max(ZOOM_MIN, min(ZOOM_MAX, int(percent)))
        if percent == self.zoom_percent:
            return percent
        self.zoom_percent = percent
        scale = percent / 100

        font = QtGui.QFont(self._base_font)
        if self._base_font.pointSizeF() > 0:
            font.setPointSizeF(self._base_font.pointSizeF() * scale)
        else:
            font.setPixelSize(max(1, round(self._base_font.pixelSize() * scale)))
        self.table_view.setFont(font)

        self.table_view.horizontalHeader().setDefaultSectionSize(round(COLUMN_WIDTH * scale))
        self.table_view.verticalHeader().setDefaultSectionSize(round(ROW_HEIGHT * scale))

        self._update_zoom_labels()
        return percent

    def _update_zoom_labels(self):
        self.zoom_label.setText(f"{self.zoom_percent}%")
        self.zoom_status_label.setText(f"Zoom: {self.zoom_percent}%")

    def export_csv(self):
        """Ask for a file name and export the grid as CSV."""
        default_name = f"{self.session.name or 'grid'}.csv"
        file_path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export CSV", default_name, "CSV Files (*.csv)"
        )
        if not file_path:
            return

        try:
            path = self.session.export_csv(file_path)
        except OSError as e:
            logger.error(f"Failed to export CSV: {e}", exc_info=True)
            QtWidgets.QMessageBox.critical(self, "Export Failed", f"Failed to export CSV:\n{str(e)}")
            return
        self.show_status_message(f"Exported grid to {path}")

    def import_csv(self):
        """Ask for a CSV file and replace the grid with its contents."""
        file_path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Import CSV", "", "CSV Files (*.csv);;All Files (*)"
        )
        if not file_path:
            return

        self.table_view.finish_open_editor()
        try:
            self.session.import_csv(file_path)
        except ImportFormatError as e:
            QtWidgets.QMessageBox.warning(self, "Import Failed", str(e))
            return
        self.table_view.sync_current_cell()

    def closeEvent(self, event):
        """Cancel (or flush) a pending save when the grid is closed."""
        if self.saver is not None:
            self.saver.close()
        super().closeEvent(event)
