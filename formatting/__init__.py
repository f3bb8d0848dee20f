"""
formatting package

The Format SQL command: span selection, engine invocation, write-back with
caret remapping, and format-on-save.
"""

from formatting.engine import FormatResult, FormattingEngine, SqlFormattingEngine, build_engine
from formatting.host import EditorDocument, Prompter, SelectionState
from formatting.orchestrator import (
    FormatOrchestrator,
    FormatOutcome,
    FormatSpan,
    remap_caret,
    resolve_span,
    trim_selection,
)
from formatting.save_guard import SaveGuard

__all__ = [
    "FormatResult",
    "FormattingEngine",
    "SqlFormattingEngine",
    "build_engine",
    "EditorDocument",
    "Prompter",
    "SelectionState",
    "FormatOrchestrator",
    "FormatOutcome",
    "FormatSpan",
    "remap_caret",
    "resolve_span",
    "trim_selection",
    "SaveGuard",
]
