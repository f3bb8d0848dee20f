"""
formatting/engine.py

SQL formatting engine adapter.

Layout is produced by sqlparse; sqlglot parses the same text to decide whether
the input had errors. Malformed SQL never raises here: it is formatted on a
best-effort basis and reported through FormatResult.had_errors.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import List, NamedTuple, Optional, Protocol

import sqlglot
import sqlparse
from sqlglot.errors import SqlglotError

from settings import AppSettings, FormatterOptions

log = logging.getLogger(__name__)

_JOIN_LINE_RE = re.compile(
    r"^(?:(?:INNER|LEFT|RIGHT|FULL|CROSS|OUTER|NATURAL)\s+)*JOIN\b", re.IGNORECASE
)
_ON_RE = re.compile(r"\s+(ON)\s+", re.IGNORECASE)


class FormatResult(NamedTuple):
    """Formatted text plus whether the engine found errors in the input."""
    text: str
    had_errors: bool


class FormattingEngine(Protocol):
    def format(self, text: str) -> FormatResult:
        ...


class SqlFormattingEngine:
    """Formats SQL text according to a FormatterOptions record.

    The options are copied on construction, so a running engine is unaffected
    by later edits to the settings.

    Args:
        options: Formatting knobs.
        dialect: sqlglot dialect used for error detection; None for the
            generic dialect.
    """

    def __init__(self, options: FormatterOptions, dialect: Optional[str] = "tsql"):
        self.options = copy.deepcopy(options)
        self.dialect = _checked_dialect(dialect)

    def format(self, text: str) -> FormatResult:
        if not text.strip():
            return FormatResult(text, False)

        had_errors = self._has_errors(text)

        statements = [s for s in sqlparse.split(text) if s.strip()]
        formatted = [self._format_statement(s) for s in statements]

        breaks = self.options.new_statement_line_breaks
        separator = "\n" * breaks if breaks > 0 else " "
        result = separator.join(formatted)
        if text.endswith("\n"):
            result += "\n"
        return FormatResult(result, had_errors)

    def _has_errors(self, text: str) -> bool:
        try:
            sqlglot.parse(text, read=self.dialect)
        except SqlglotError as e:
            log.debug("Parse errors in input: %s", e)
            return True
        return False

    def _format_statement(self, statement: str) -> str:
        o = self.options
        reindent = o.new_clause_line_breaks > 0
        unit = max(o.spaces_per_tab, 1)
        formatted = sqlparse.format(
            statement,
            keyword_case="upper" if o.uppercase_keywords else "lower",
            reindent=reindent,
            indent_width=unit,
            wrap_after=0 if o.expand_comma_lists else o.max_line_width,
            comma_first=not o.trailing_commas,
        )
        lines = formatted.split("\n")
        if reindent and o.break_join_on_sections:
            lines = self._break_join_on(lines, unit)
        if reindent and o.new_clause_line_breaks > 1:
            lines = self._space_clauses(lines, o.new_clause_line_breaks - 1)
        return "\n".join(self._reindent(line, unit) for line in lines)

    def _break_join_on(self, lines: List[str], unit: int) -> List[str]:
        out = []
        for line in lines:
            stripped = line.lstrip(" ")
            leading = line[: len(line) - len(stripped)]
            match = _ON_RE.search(stripped) if _JOIN_LINE_RE.match(stripped) else None
            if match is None or "'" in stripped[: match.start()]:
                out.append(line)
                continue
            out.append(leading + stripped[: match.start()])
            out.append(leading + " " * unit + stripped[match.start(1):])
        return out

    @staticmethod
    def _space_clauses(lines: List[str], extra: int) -> List[str]:
        out = []
        for i, line in enumerate(lines):
            if i > 0 and line and not line[0].isspace():
                out.extend([""] * extra)
            out.append(line)
        return out

    def _reindent(self, line: str, unit: int) -> str:
        stripped = line.lstrip(" ")
        depth = len(line) - len(stripped)
        if not stripped:
            return ""
        return self.options.indent_string * (depth // unit) + " " * (depth % unit) + stripped


def build_engine(settings: AppSettings) -> SqlFormattingEngine:
    """Create an engine configured from the current application settings."""
    return SqlFormattingEngine(settings.options, settings.dialect or None)


def _checked_dialect(dialect: Optional[str]) -> Optional[str]:
    if not dialect:
        return None
    try:
        sqlglot.Dialect.get_or_raise(dialect)
    except ValueError:
        log.warning("Unknown SQL dialect %r, falling back to generic parsing", dialect)
        return None
    return dialect
