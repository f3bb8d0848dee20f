"""
editor/code_editor.py

SQL code editor with a line number gutter.
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt, QSize
from PyQt6.QtGui import QColor, QFont, QPainter, QTextCursor
from PyQt6.QtWidgets import QPlainTextEdit, QWidget

from settings import EditorSettings, get_settings


class LineNumberArea(QWidget):
    """Widget that displays line numbers alongside the code editor."""

    def __init__(self, editor: "SqlCodeEditor"):
        super().__init__(editor)
        self.editor = editor

    def sizeHint(self):
        return self.editor.line_number_area_size_hint()

    def paintEvent(self, event):
        self.editor.line_number_area_paint_event(event)

    def mousePressEvent(self, event):
        self.editor.line_number_area_mouse_press(event)


class SqlCodeEditor(QPlainTextEdit):
    """
    Plain text SQL editor with:
    - Line numbers (click a number to select the line)
    - Font and tab width from the editor settings
    """

    LINE_COLORS = {
        "background": "#f3f3f3",
        "text": "#8a8a8a",
        "text_active": "#1a1a1a",
        "current_line_bg": "#e4e4e4",
    }

    def __init__(self, parent=None, editor_settings: Optional[EditorSettings] = None):
        super().__init__(parent)
        self._editor_settings = editor_settings or get_settings().settings.editor

        self.line_number_area = LineNumberArea(self)

        self.blockCountChanged.connect(self._update_margins)
        self.updateRequest.connect(self._update_line_number_area)
        self.cursorPositionChanged.connect(self.line_number_area.update)

        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.apply_editor_settings(self._editor_settings)

    def apply_editor_settings(self, editor_settings: EditorSettings):
        """Apply font, tab width and gutter margins."""
        self._editor_settings = editor_settings
        font = QFont(editor_settings.font.family, editor_settings.font.size)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.setFont(font)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(' ') * editor_settings.font.tab_width)
        self._update_margins()

    def line_number_area_width(self) -> int:
        """Calculate the width needed for line numbers."""
        digits = len(str(max(1, self.blockCount())))
        ln = self._editor_settings.line_numbers
        return ln.left_margin + ln.right_margin + self.fontMetrics().horizontalAdvance('9') * digits

    def line_number_area_size_hint(self):
        return QSize(self.line_number_area_width(), 0)

    def _update_margins(self):
        self.setViewportMargins(self.line_number_area_width(), 0, 0, 0)

    def _update_line_number_area(self, rect, dy):
        """Update line number area when scrolling or content changes."""
        if dy:
            self.line_number_area.scroll(0, dy)
        else:
            self.line_number_area.update(0, rect.y(), self.line_number_area.width(), rect.height())

        if rect.contains(self.viewport().rect()):
            self._update_margins()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        cr = self.contentsRect()
        self.line_number_area.setGeometry(cr.left(), cr.top(), self.line_number_area_width(), cr.height())

    def line_number_area_paint_event(self, event):
        """Paint the line numbers, emphasizing the caret line."""
        painter = QPainter(self.line_number_area)
        colors = self.LINE_COLORS
        painter.fillRect(event.rect(), QColor(colors["background"]))

        block = self.firstVisibleBlock()
        block_number = block.blockNumber()
        top = int(self.blockBoundingGeometry(block).translated(self.contentOffset()).top())
        bottom = top + int(self.blockBoundingRect(block).height())

        current_block = self.textCursor().block().blockNumber()
        right_margin = self._editor_settings.line_numbers.right_margin
        width = self.line_number_area.width()

        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top():
                block_height = int(self.blockBoundingRect(block).height())
                if block_number == current_block:
                    painter.fillRect(0, top, width, block_height, QColor(colors["current_line_bg"]))
                    painter.setPen(QColor(colors["text_active"]))
                else:
                    painter.setPen(QColor(colors["text"]))

                painter.drawText(0, top, width - right_margin, block_height,
                                 Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
                                 str(block_number + 1))

            block = block.next()
            top = bottom
            bottom = top + int(self.blockBoundingRect(block).height())
            block_number += 1

        painter.end()

    def line_number_area_mouse_press(self, event):
        """Handle click on line number to select entire line."""
        block = self.firstVisibleBlock()
        top = int(self.blockBoundingGeometry(block).translated(self.contentOffset()).top())

        while block.isValid():
            if block.isVisible():
                block_bottom = top + int(self.blockBoundingRect(block).height())
                if top <= event.pos().y() < block_bottom:
                    cursor = QTextCursor(block)
                    cursor.movePosition(QTextCursor.MoveOperation.StartOfBlock)
                    cursor.movePosition(QTextCursor.MoveOperation.EndOfBlock, QTextCursor.MoveMode.KeepAnchor)
                    self.setTextCursor(cursor)
                    break
            top += int(self.blockBoundingRect(block).height())
            block = block.next()
