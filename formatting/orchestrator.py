"""
formatting/orchestrator.py

The "Format SQL" command: decides whether to rewrite the selection or the whole
document, runs the formatting engine and writes the result back.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from formatting.engine import FormattingEngine, build_engine
from formatting.host import EditorDocument, Prompter, SelectionState
from settings import FormatterOptions, SettingsManager

log = logging.getLogger(__name__)

# Characters that end a "select this statement" gesture in most editors.
TRAILING_TRIM_CHARS = ("\n", "\r", "\u2028", "\u2029", " ")

FILE_TYPE_TITLE = "Format SQL"
FILE_TYPE_MESSAGE = (
    "The current file does not have a {extension} extension.\n"
    "Format it as SQL anyway?"
)
PARSE_ERROR_TITLE = "Format SQL"
PARSE_ERROR_MESSAGE = (
    "The SQL could not be parsed without errors, so the formatted result may "
    "be wrong.\nApply the formatting anyway?"
)


class FormatOutcome(enum.Enum):
    FORMATTED_SELECTION = "formatted_selection"
    FORMATTED_DOCUMENT = "formatted_document"
    DECLINED_FILE_TYPE = "declined_file_type"
    DECLINED_PARSE_ERRORS = "declined_parse_errors"


@dataclass(frozen=True)
class FormatSpan:
    """Text span chosen for formatting.

    Attributes:
        start: Start offset of the effective selection.
        end: End offset of the effective selection.
        selection_only: True when only [start, end) is rewritten.
        caret: Caret offset before formatting (active end of the selection).
    """
    start: int
    end: int
    selection_only: bool
    caret: int


def trim_selection(full_text: str, selection: SelectionState) -> SelectionState:
    """Contract a selection by one trailing line terminator or space.

    Only one character is removed, so a trailing "\\r\\n" keeps its "\\r".
    The selection is normalized to a forward selection first.
    """
    sel = selection.normalized()
    if sel.end > sel.start and full_text[sel.end - 1:sel.end] in TRAILING_TRIM_CHARS:
        return SelectionState(anchor=sel.anchor, position=sel.position - 1)
    return sel


def resolve_span(full_text: str, selection: SelectionState) -> FormatSpan:
    """Pick the text to format from the document text and raw selection.

    A non-empty selection strictly shorter than the document selects
    selection-only formatting; anything else (including select-all) formats
    the whole document.
    """
    sel = trim_selection(full_text, selection)
    length = sel.end - sel.start
    selection_only = 0 < length < len(full_text)
    return FormatSpan(start=sel.start, end=sel.end, selection_only=selection_only, caret=sel.position)


def remap_caret(caret: int, old_length: int, new_length: int) -> int:
    """Move a caret proportionally across a change in text length.

    Computes round(caret * new_length / old_length) with halves rounded away
    from zero, clamped to [0, new_length]. An empty original maps to 0.
    """
    if old_length <= 0:
        return 0
    caret = min(max(caret, 0), old_length)
    position = (2 * caret * new_length + old_length) // (2 * old_length)
    return min(max(position, 0), new_length)


def has_extension(path: str, extension: str) -> bool:
    """Case-insensitive check of a file name's extension."""
    if not extension:
        return False
    if not extension.startswith("."):
        extension = "." + extension
    return Path(path).suffix.lower() == extension.lower()


class FormatOrchestrator:
    """Runs the Format SQL command against host documents.

    Args:
        settings_manager: Source of the formatting options and SQL extension.
        prompter: Blocking yes/no and message prompts.
        engine: Formatting engine; built from the settings when omitted. The
            engine is cached until `refresh()`.
    """

    def __init__(self, settings_manager: SettingsManager, prompter: Prompter,
                 engine: Optional[FormattingEngine] = None):
        if settings_manager is None:
            raise ValueError("settings_manager is required")
        if prompter is None:
            raise ValueError("prompter is required")
        self.settings_manager = settings_manager
        self.prompter = prompter
        self._engine_override = engine
        settings = settings_manager.snapshot()
        self._engine: FormattingEngine = engine or build_engine(settings)
        self._options = settings.options
        self._sql_extension = settings.sql_extension

    @property
    def options(self) -> FormatterOptions:
        """Options the cached engine was configured with."""
        return self._options

    @property
    def sql_extension(self) -> str:
        """SQL file extension cached alongside the options."""
        return self._sql_extension

    @property
    def engine(self) -> FormattingEngine:
        return self._engine

    def refresh(self) -> None:
        """Reload the cached engine configuration from the settings store."""
        settings = self.settings_manager.snapshot()
        self._options = settings.options
        self._sql_extension = settings.sql_extension
        if self._engine_override is None:
            self._engine = build_engine(settings)
        log.debug("Formatting configuration refreshed")

    def is_sql_document(self, document: EditorDocument) -> bool:
        return has_extension(document.path, self._sql_extension)

    def format_document(self, document: EditorDocument) -> FormatOutcome:
        """Format the selection, or the whole document, in place.

        Returns:
            What happened; the declined outcomes leave the document untouched.
        """
        if document is None:
            raise ValueError("document is required")

        if not self.is_sql_document(document):
            message = FILE_TYPE_MESSAGE.format(extension=self._sql_extension)
            if not self.prompter.confirm(FILE_TYPE_TITLE, message):
                log.info("Formatting of %r declined (file type)", document.path)
                return FormatOutcome.DECLINED_FILE_TYPE

        full_text = document.text()
        span = resolve_span(full_text, document.selection())
        target = full_text[span.start:span.end] if span.selection_only else full_text

        result = self._engine.format(target)

        if result.had_errors and not self.prompter.confirm(PARSE_ERROR_TITLE, PARSE_ERROR_MESSAGE):
            log.info("Formatting of %r declined (parse errors)", document.path)
            return FormatOutcome.DECLINED_PARSE_ERRORS

        if span.selection_only:
            document.replace_range(span.start, span.end, result.text)
            log.debug("Formatted selection [%d, %d) of %r", span.start, span.end, document.path)
            return FormatOutcome.FORMATTED_SELECTION

        document.replace_all(result.text)
        document.set_caret(remap_caret(span.caret, len(full_text), len(result.text)))
        log.debug("Formatted whole document %r", document.path)
        return FormatOutcome.FORMATTED_DOCUMENT
