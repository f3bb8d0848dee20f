"""
editor package

SQL code editor with syntax highlighting and line numbers.
"""

from editor.highlighter import SqlHighlighter
from editor.code_editor import LineNumberArea, SqlCodeEditor

__all__ = [
    "SqlHighlighter",
    "LineNumberArea",
    "SqlCodeEditor",
]
