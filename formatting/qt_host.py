"""
formatting/qt_host.py

Qt implementations of the host document and prompt protocols.

QTextCursor positions count UTF-16 code units while Python strings index code
points, so the document adapter converts at every offset it hands across.
"""

from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtGui import QTextCursor
from PyQt6.QtWidgets import QMessageBox, QPlainTextEdit, QWidget

from formatting.host import SelectionState


def _utf16_width(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


def utf16_to_offset(text: str, position: int) -> int:
    """Convert a Qt cursor position into a code point offset into `text`.

    A position inside a surrogate pair maps to the start of that character.
    """
    units = 0
    for i, ch in enumerate(text):
        units += _utf16_width(ch)
        if units > position:
            return i
    return len(text)


def offset_to_utf16(text: str, offset: int) -> int:
    """Convert a code point offset into `text` into a Qt cursor position."""
    offset = min(max(offset, 0), len(text))
    return offset + sum(1 for ch in text[:offset] if ord(ch) > 0xFFFF)


class QtEditorDocument:
    """Adapts a QPlainTextEdit plus its file name to the EditorDocument protocol.

    Args:
        editor: The text widget holding the document.
        path: Full file name, "" for an untitled document.
        save_callback: Called with this document to write it to disk.
    """

    def __init__(self, editor: QPlainTextEdit, path: str = "",
                 save_callback: Optional[Callable[["QtEditorDocument"], None]] = None):
        if editor is None:
            raise ValueError("editor is required")
        self.editor = editor
        self._path = path
        self.save_callback = save_callback

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        self._path = value

    def text(self) -> str:
        return self.editor.toPlainText()

    def selection(self) -> SelectionState:
        text = self.text()
        cursor = self.editor.textCursor()
        return SelectionState(
            anchor=utf16_to_offset(text, cursor.anchor()),
            position=utf16_to_offset(text, cursor.position()),
        )

    def replace_range(self, start: int, end: int, text: str) -> None:
        current = self.text()
        cursor = self.editor.textCursor()
        cursor.beginEditBlock()
        cursor.setPosition(self._clamp(offset_to_utf16(current, start)))
        cursor.setPosition(self._clamp(offset_to_utf16(current, end)), QTextCursor.MoveMode.KeepAnchor)
        cursor.insertText(text)
        cursor.endEditBlock()
        self.editor.setTextCursor(cursor)

    def replace_all(self, text: str) -> None:
        cursor = self.editor.textCursor()
        cursor.beginEditBlock()
        cursor.select(QTextCursor.SelectionType.Document)
        cursor.insertText(text)
        cursor.endEditBlock()
        self.editor.setTextCursor(cursor)

    def set_caret(self, offset: int) -> None:
        cursor = self.editor.textCursor()
        cursor.setPosition(self._clamp(offset_to_utf16(self.text(), offset)))
        self.editor.setTextCursor(cursor)
        self.editor.ensureCursorVisible()

    def save(self) -> None:
        if self.save_callback is None:
            raise RuntimeError("document has no save handler")
        self.save_callback(self)

    def _clamp(self, position: int) -> int:
        # characterCount() includes the final paragraph separator.
        last = self.editor.document().characterCount() - 1
        return min(max(position, 0), max(last, 0))


class QtPrompter:
    """Blocking message boxes parented to a widget."""

    def __init__(self, parent: Optional[QWidget] = None):
        self.parent = parent

    def confirm(self, title: str, message: str) -> bool:
        answer = QMessageBox.question(
            self.parent, title, message,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return answer == QMessageBox.StandardButton.Yes

    def warn(self, title: str, message: str) -> None:
        QMessageBox.warning(self.parent, title, message)
