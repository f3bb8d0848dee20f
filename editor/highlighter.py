"""
editor/highlighter.py

SQL syntax highlighter for the code editor.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from PyQt6.QtCore import QRegularExpression
from PyQt6.QtGui import QColor, QSyntaxHighlighter, QTextCharFormat

from settings import EditorSyntaxSettings, get_settings

SQL_KEYWORDS = (
    "ADD", "ALL", "ALTER", "AND", "AS", "ASC", "BEGIN", "BETWEEN", "BY", "CASE",
    "COMMIT", "CREATE", "CROSS", "DECLARE", "DEFAULT", "DELETE", "DESC", "DISTINCT",
    "DROP", "ELSE", "END", "EXEC", "EXISTS", "FROM", "FULL", "GROUP", "HAVING",
    "IF", "IN", "INDEX", "INNER", "INSERT", "INTO", "IS", "JOIN", "KEY", "LEFT",
    "LIKE", "NOT", "NULL", "ON", "OR", "ORDER", "OUTER", "PRIMARY", "PROCEDURE",
    "RETURN", "RIGHT", "ROLLBACK", "SELECT", "SET", "TABLE", "THEN", "TOP",
    "TRANSACTION", "UNION", "UPDATE", "VALUES", "VIEW", "WHEN", "WHERE", "WITH",
)


class SqlHighlighter(QSyntaxHighlighter):
    """
    Syntax highlighter for SQL text.

    Highlights keywords, string literals, numbers, and "--" line comments.
    Block comments are not tracked across lines.
    """

    def __init__(self, parent, syntax: Optional[EditorSyntaxSettings] = None):
        super().__init__(parent)

        self.rules: List[Tuple[QRegularExpression, QTextCharFormat]] = []
        syntax = syntax or get_settings().settings.editor.syntax

        def fmt(color_hex: str, bold: bool = False) -> QTextCharFormat:
            f = QTextCharFormat()
            f.setForeground(QColor(color_hex))
            if bold:
                f.setFontWeight(700)
            return f

        keyword_pattern = r"\b(?:" + "|".join(SQL_KEYWORDS) + r")\b"
        self.rules.append((
            QRegularExpression(keyword_pattern, QRegularExpression.PatternOption.CaseInsensitiveOption),
            fmt(syntax.keyword_color, bold=syntax.keyword_bold),
        ))
        self.rules.append((QRegularExpression(r"\b\d+(?:\.\d+)?\b"), fmt(syntax.number_color)))
        # Later rules win, so strings and comments override keywords inside them
        self.rules.append((QRegularExpression(r"N?'(?:[^']|'')*'"), fmt(syntax.string_color)))
        self.rules.append((QRegularExpression(r"--[^\n]*"), fmt(syntax.comment_color)))

    def highlightBlock(self, text: str) -> None:
        """Apply highlighting rules to a block of text."""
        for regex, f in self.rules:
            it = regex.globalMatch(text)
            while it.hasNext():
                m = it.next()
                self.setFormat(m.capturedStart(), m.capturedLength(), f)
