"""
main.py

SqlTidy - SQL editor with a Format SQL command

PyQt6 application hosting one SQL document with:
- Format SQL (selection or whole document) bound to a configurable hotkey
- Optional format-on-save
- Formatting options dialog with import/export

Usage:
    python main.py [file.sql]

Dependencies:
    pip install PyQt6 platformdirs tomli-w sqlparse sqlglot

Environment:
    SQLTIDY_LOG_LEVEL=DEBUG   (default WARNING)
    SQLTIDY_LOG_FILE=path     (optional log file)
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QDialog,
    QFileDialog,
    QMainWindow,
    QMessageBox,
)

from editor import SqlCodeEditor, SqlHighlighter
from formatting import FormatOrchestrator, FormatOutcome, SaveGuard
from formatting.qt_host import QtEditorDocument, QtPrompter
from help_dialog import HelpDialog, show_about_dialog
from hotkeys import QtKeyBindingHost, pull_hotkey, push_hotkey
from settings import SettingsManager, get_settings
from settings_dialog import SettingsDialog

log = logging.getLogger(__name__)

SQL_FILE_FILTER = "SQL files (*.sql);;All files (*)"


class MainWindow(QMainWindow):
    """Editor window wiring the Format SQL command to one document.

    Signals:
        document_saved(object): Emitted with the document after it is written
            to disk; drives format-on-save.
    """

    document_saved = pyqtSignal(object)

    def __init__(self, settings_manager: SettingsManager):
        super().__init__()
        if settings_manager is None:
            raise ValueError("settings_manager is required")
        self.settings_manager = settings_manager
        self.resize(900, 650)

        self.editor = SqlCodeEditor(self, editor_settings=settings_manager.settings.editor)
        self.editor.setPlaceholderText("Type or open SQL here...")
        self._highlighter = SqlHighlighter(self.editor.document(), settings_manager.settings.editor.syntax)
        self.setCentralWidget(self.editor)

        self.document = QtEditorDocument(self.editor, "", save_callback=self._write_document)
        self.prompter = QtPrompter(self)
        self.orchestrator = FormatOrchestrator(settings_manager, self.prompter)
        self.save_guard = SaveGuard(self.orchestrator)
        self.document_saved.connect(self._format_on_save)

        self._create_actions()
        self._create_menus()

        self.key_bindings = QtKeyBindingHost(self.format_act)
        result = push_hotkey(self.settings_manager, self.key_bindings)
        if not result.ok:
            self.statusBar().showMessage(result.error.splitlines()[0])

        self.editor.document().modificationChanged.connect(lambda _: self._update_title())
        self._update_title()

    def _create_actions(self):
        self.new_act = self._action("&New", self.new_document, QKeySequence.StandardKey.New)
        self.open_act = self._action("&Open...", self.open_document_dialog, QKeySequence.StandardKey.Open)
        self.save_act = self._action("&Save", self.save_document, QKeySequence.StandardKey.Save)
        self.save_as_act = self._action("Save &As...", self.save_document_as, QKeySequence.StandardKey.SaveAs)
        self.quit_act = self._action("&Quit", self.close, QKeySequence.StandardKey.Quit)

        # Shortcut comes from the persisted hotkey, see push_hotkey
        self.format_act = self._action("&Format SQL", self.format_sql)
        self.settings_act = self._action("Formatting &Options...", self.show_settings_dialog)

        self.help_act = self._action("&Help", lambda: HelpDialog(self).exec(), QKeySequence.StandardKey.HelpContents)
        self.about_act = self._action("&About SqlTidy", lambda: show_about_dialog(self))

    def _action(self, text: str, slot, shortcut: Optional[QKeySequence.StandardKey] = None) -> QAction:
        act = QAction(text, self)
        if shortcut is not None:
            act.setShortcuts(shortcut)
        act.triggered.connect(lambda checked=False: slot())
        return act

    def _create_menus(self):
        file_menu = self.menuBar().addMenu("&File")
        for act in (self.new_act, self.open_act, self.save_act, self.save_as_act):
            file_menu.addAction(act)
        file_menu.addSeparator()
        file_menu.addAction(self.quit_act)

        edit_menu = self.menuBar().addMenu("&Edit")
        edit_menu.addAction(self.format_act)

        tools_menu = self.menuBar().addMenu("&Tools")
        tools_menu.addAction(self.settings_act)

        help_menu = self.menuBar().addMenu("&Help")
        help_menu.addAction(self.help_act)
        help_menu.addAction(self.about_act)

    def _update_title(self):
        name = Path(self.document.path).name if self.document.path else "Untitled"
        modified = "*" if self.editor.document().isModified() else ""
        self.setWindowTitle(f"{modified}{name} - SqlTidy")

    # =========================================================================
    # Formatting
    # =========================================================================

    def format_sql(self):
        """Format the selection, or the whole document when nothing is selected."""
        outcome = self.orchestrator.format_document(self.document)
        if outcome == FormatOutcome.FORMATTED_SELECTION:
            self.statusBar().showMessage("Formatted selection.")
        elif outcome == FormatOutcome.FORMATTED_DOCUMENT:
            self.statusBar().showMessage("Formatted document.")
        else:
            self.statusBar().showMessage("Formatting cancelled.")

    def show_settings_dialog(self):
        """Show the formatting options dialog."""
        result = pull_hotkey(self.settings_manager, self.key_bindings)
        if not result.ok:
            QMessageBox.warning(self, "Hotkey", result.error)

        dialog = SettingsDialog(self.settings_manager, self.key_bindings, self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            result = push_hotkey(self.settings_manager, self.key_bindings)
            if not result.ok:
                QMessageBox.warning(self, "Hotkey", result.error)
            self.orchestrator.refresh()
            self.editor.apply_editor_settings(self.settings_manager.settings.editor)
            self._highlighter = SqlHighlighter(self.editor.document(), self.settings_manager.settings.editor.syntax)
            self.statusBar().showMessage("Settings saved.")

    # =========================================================================
    # Files
    # =========================================================================

    def new_document(self):
        if not self._maybe_discard_changes():
            return
        self.editor.setPlainText("")
        self.document.path = ""
        self.editor.document().setModified(False)
        self._update_title()

    def open_document_dialog(self):
        if not self._maybe_discard_changes():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Open SQL File", "", SQL_FILE_FILTER)
        if path:
            self.open_document(path)

    def open_document(self, path: str) -> bool:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            QMessageBox.critical(self, "Open failed", str(e))
            return False
        self.editor.setPlainText(text)
        self.document.path = str(Path(path).resolve())
        self.editor.document().setModified(False)
        self._update_title()
        self.statusBar().showMessage(f"Opened: {path}")
        return True

    def save_document(self) -> bool:
        if not self.document.path:
            return self.save_document_as()
        try:
            self.document.save()
        except OSError as e:
            QMessageBox.critical(self, "Save failed", str(e))
            return False
        return True

    def save_document_as(self) -> bool:
        path, _ = QFileDialog.getSaveFileName(self, "Save SQL File", self.document.path or "query.sql",
                                              SQL_FILE_FILTER)
        if not path:
            return False
        self.document.path = str(Path(path).resolve())
        return self.save_document()

    def _write_document(self, document: QtEditorDocument):
        """Write the document to disk and emit the saved notification."""
        Path(document.path).write_text(document.text(), encoding="utf-8")
        self.editor.document().setModified(False)
        self._update_title()
        self.statusBar().showMessage(f"Saved: {document.path}")
        log.debug("Saved %s", document.path)
        self.document_saved.emit(document)

    def _format_on_save(self, document: QtEditorDocument):
        """Slot for document_saved; failures are reported, never raised into Qt."""
        try:
            self.save_guard.on_document_saved(document)
        except OSError as e:
            log.warning("Formatted document not written to %s: %s", document.path, e)
            self.prompter.warn("Format on save",
                               f"The document was saved, but the formatted text could not be written:\n{e}")
        except Exception as e:
            log.exception("Format on save failed for %s", document.path)
            self.prompter.warn("Format on save", f"The document was saved without formatting:\n{e}")

    def _maybe_discard_changes(self) -> bool:
        if not self.editor.document().isModified():
            return True
        answer = QMessageBox.question(
            self, "Unsaved changes", "Discard unsaved changes?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes

    def closeEvent(self, event):
        if self._maybe_discard_changes():
            event.accept()
        else:
            event.ignore()


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger from arguments or SQLTIDY_LOG_* variables."""
    level = (level or os.environ.get("SQLTIDY_LOG_LEVEL") or "WARNING").upper()
    log_file = log_file or os.environ.get("SQLTIDY_LOG_FILE")
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def excepthook(exc_type, exc_value, exc_tb):
    """Log uncaught exceptions before the default hook prints them."""
    log.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))
    sys.__excepthook__(exc_type, exc_value, exc_tb)


def main():
    """Application entry point."""
    configure_logging()
    sys.excepthook = excepthook
    log.info("Application starting")
    app = QApplication(sys.argv)

    settings_manager = get_settings()
    settings_manager.ensure_file_complete()

    w = MainWindow(settings_manager)
    if len(sys.argv) > 1:
        w.open_document(sys.argv[1])
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
