"""Tests for the Format SQL command: span selection, trimming, prompts and
caret placement in formatting/orchestrator.py.
"""
from __future__ import annotations

import pytest

from fakes import FakeDocument, FakeEngine, FakePrompter
from formatting.host import SelectionState
from formatting.orchestrator import (
    FormatOrchestrator,
    FormatOutcome,
    has_extension,
    remap_caret,
    resolve_span,
    trim_selection,
)
from settings import FormatterOptions

THREE_STATEMENTS = "select a;\nselect b;\nselect c;"


def _orchestrator(settings_manager, engine=None, answer=True):
    prompter = FakePrompter(answer)
    engine = engine or FakeEngine()
    return FormatOrchestrator(settings_manager, prompter, engine), prompter, engine


# ─────────────────────────────────────────────────────────
# Pure helpers
# ─────────────────────────────────────────────────────────


class TestTrimSelection:
    def test_trailing_newline_removed(self):
        sel = trim_selection("ab\ncd", SelectionState(0, 3))
        assert (sel.start, sel.end) == (0, 2)

    def test_trailing_space_removed(self):
        sel = trim_selection("ab cd", SelectionState(0, 3))
        assert (sel.start, sel.end) == (0, 2)

    def test_only_one_character_removed(self):
        sel = trim_selection("ab  cd", SelectionState(0, 4))
        assert (sel.start, sel.end) == (0, 3)

    def test_crlf_keeps_carriage_return(self):
        sel = trim_selection("ab\r\ncd", SelectionState(0, 4))
        assert (sel.start, sel.end) == (0, 3)

    def test_unicode_line_separators(self):
        for ch in ("\u2028", "\u2029", "\r"):
            sel = trim_selection(f"ab{ch}cd", SelectionState(0, 3))
            assert sel.end == 2, repr(ch)

    def test_backward_selection_is_normalized(self):
        sel = trim_selection("ab\ncd", SelectionState(anchor=3, position=0))
        assert not sel.is_backward
        assert (sel.start, sel.end) == (0, 2)

    def test_other_trailing_character_kept(self):
        sel = trim_selection("ab\tcd", SelectionState(0, 3))
        assert (sel.start, sel.end) == (0, 3)

    def test_empty_selection_untouched(self):
        sel = trim_selection("ab\ncd", SelectionState(3, 3))
        assert (sel.start, sel.end) == (3, 3)


class TestResolveSpan:
    def test_partial_selection_is_selection_only(self):
        span = resolve_span(THREE_STATEMENTS, SelectionState(10, 19))
        assert span.selection_only
        assert THREE_STATEMENTS[span.start:span.end] == "select b;"

    def test_select_all_is_whole_document(self):
        span = resolve_span(THREE_STATEMENTS, SelectionState(0, len(THREE_STATEMENTS)))
        assert not span.selection_only

    def test_empty_selection_is_whole_document(self):
        span = resolve_span(THREE_STATEMENTS, SelectionState(5, 5))
        assert not span.selection_only
        assert span.caret == 5

    def test_selection_of_only_a_newline_is_whole_document(self):
        span = resolve_span(THREE_STATEMENTS, SelectionState(9, 10))
        assert not span.selection_only

    def test_select_all_with_trailing_newline_after_trim_is_selection_only(self):
        # Trimming makes the selection one shorter than the document.
        text = "select 1;\n"
        span = resolve_span(text, SelectionState(0, len(text)))
        assert span.selection_only
        assert text[span.start:span.end] == "select 1;"


class TestRemapCaret:
    @pytest.mark.parametrize("caret, old, new, expected", [
        (50, 100, 200, 100),
        (0, 10, 50, 0),
        (10, 10, 5, 5),
        (5, 10, 20, 10),
        (0, 10, 20, 0),
        (1, 4, 2, 1),    # 0.5 rounds away from zero
        (3, 4, 2, 2),    # 1.5 rounds away from zero
        (7, 10, 3, 2),   # 2.1
        (5, 0, 7, 0),
        (5, 10, 0, 0),
    ])
    def test_remap(self, caret, old, new, expected):
        assert remap_caret(caret, old, new) == expected

    def test_result_within_bounds(self):
        for caret in range(0, 31):
            assert 0 <= remap_caret(caret, 30, 17) <= 17


class TestHasExtension:
    def test_case_insensitive(self):
        assert has_extension("C:/work/Query.SQL", ".sql")

    def test_extension_without_dot(self):
        assert has_extension("query.sql", "sql")

    def test_other_extension(self):
        assert not has_extension("notes.txt", ".sql")

    def test_untitled(self):
        assert not has_extension("", ".sql")


# ─────────────────────────────────────────────────────────
# FormatOrchestrator
# ─────────────────────────────────────────────────────────


class TestFormatDocument:
    def test_selection_only_leaves_outside_text_unchanged(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument(THREE_STATEMENTS, anchor=10, position=19)

        outcome = orch.format_document(doc)

        assert outcome == FormatOutcome.FORMATTED_SELECTION
        assert engine.calls == ["select b;"]
        assert doc.text() == "select a;\nSELECT B;\nselect c;"

    def test_backward_selection_formats_same_span(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument(THREE_STATEMENTS, anchor=19, position=10)

        orch.format_document(doc)

        assert engine.calls == ["select b;"]
        assert doc.text() == "select a;\nSELECT B;\nselect c;"

    def test_trailing_newline_stays_outside_selection(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument(THREE_STATEMENTS, anchor=10, position=20)

        orch.format_document(doc)

        assert engine.calls == ["select b;"]
        assert doc.text() == "select a;\nSELECT B;\nselect c;"

    def test_select_all_formats_whole_document(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument(THREE_STATEMENTS, anchor=0, position=len(THREE_STATEMENTS))

        outcome = orch.format_document(doc)

        assert outcome == FormatOutcome.FORMATTED_DOCUMENT
        assert engine.calls == [THREE_STATEMENTS]
        assert doc.text() == THREE_STATEMENTS.upper()

    def test_backward_select_all_formats_whole_document(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument(THREE_STATEMENTS, anchor=len(THREE_STATEMENTS), position=0)

        assert orch.format_document(doc) == FormatOutcome.FORMATTED_DOCUMENT
        assert engine.calls == [THREE_STATEMENTS]

    def test_whole_document_caret_is_remapped(self, settings_manager):
        engine = FakeEngine(transform=lambda t: t + t)
        orch, _, _ = _orchestrator(settings_manager, engine)
        doc = FakeDocument("0123456789", anchor=5)

        orch.format_document(doc)

        assert doc.text() == "01234567890123456789"
        assert doc.position == 10

    def test_caret_at_start_stays_at_start(self, settings_manager):
        engine = FakeEngine(transform=lambda t: t + t)
        orch, _, _ = _orchestrator(settings_manager, engine)
        doc = FakeDocument("0123456789", anchor=0)

        orch.format_document(doc)

        assert doc.position == 0

    def test_empty_document_is_formatted(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        doc = FakeDocument("")

        assert orch.format_document(doc) == FormatOutcome.FORMATTED_DOCUMENT
        assert engine.calls == [""]
        assert doc.position == 0

    def test_none_document_raises(self, settings_manager):
        orch, _, _ = _orchestrator(settings_manager)
        with pytest.raises(ValueError):
            orch.format_document(None)

    def test_missing_collaborators_raise(self, settings_manager):
        with pytest.raises(ValueError):
            FormatOrchestrator(None, FakePrompter())
        with pytest.raises(ValueError):
            FormatOrchestrator(settings_manager, None)


class TestFileTypePrompt:
    def test_sql_file_is_not_prompted(self, settings_manager):
        orch, prompter, _ = _orchestrator(settings_manager)
        orch.format_document(FakeDocument("select 1", path="Query.SQL"))
        assert prompter.confirmations == []

    def test_declined_non_sql_file_is_untouched(self, settings_manager):
        orch, prompter, engine = _orchestrator(settings_manager, answer=False)
        doc = FakeDocument("select 1", path="notes.txt", anchor=3)

        outcome = orch.format_document(doc)

        assert outcome == FormatOutcome.DECLINED_FILE_TYPE
        assert len(prompter.confirmations) == 1
        assert ".sql" in prompter.confirmations[0]
        assert engine.calls == []
        assert doc.text() == "select 1"
        assert doc.position == 3

    def test_accepted_non_sql_file_is_formatted(self, settings_manager):
        orch, _, _ = _orchestrator(settings_manager, answer=True)
        doc = FakeDocument("select 1", path="notes.txt")

        assert orch.format_document(doc) == FormatOutcome.FORMATTED_DOCUMENT
        assert doc.text() == "SELECT 1"

    def test_extension_cached_until_refresh(self, settings_manager):
        orch, prompter, engine = _orchestrator(settings_manager, answer=False)
        settings = settings_manager.snapshot()
        settings.sql_extension = ".tsql"
        settings_manager.apply(settings)
        doc = FakeDocument("select 1", path="proc.tsql")

        assert orch.format_document(doc) == FormatOutcome.DECLINED_FILE_TYPE
        assert orch.sql_extension == ".sql"

        orch.refresh()

        assert orch.format_document(doc) == FormatOutcome.FORMATTED_DOCUMENT
        assert len(prompter.confirmations) == 1
        assert doc.text() == "SELECT 1"

    def test_configured_extension_is_used(self, settings_manager):
        settings = settings_manager.snapshot()
        settings.sql_extension = ".tsql"
        settings_manager.apply(settings)
        orch, prompter, _ = _orchestrator(settings_manager)

        orch.format_document(FakeDocument("select 1", path="proc.tsql"))

        assert prompter.confirmations == []


class TestParseErrorPrompt:
    def test_declined_errors_leave_document_untouched(self, settings_manager):
        engine = FakeEngine(had_errors=True)
        orch, prompter, _ = _orchestrator(settings_manager, engine, answer=False)
        doc = FakeDocument(THREE_STATEMENTS, anchor=10, position=19)

        outcome = orch.format_document(doc)

        assert outcome == FormatOutcome.DECLINED_PARSE_ERRORS
        assert len(prompter.confirmations) == 1
        assert doc.text() == THREE_STATEMENTS
        assert (doc.anchor, doc.position) == (10, 19)

    def test_accepted_errors_apply_result(self, settings_manager):
        engine = FakeEngine(had_errors=True)
        orch, _, _ = _orchestrator(settings_manager, engine, answer=True)
        doc = FakeDocument("select (", anchor=0)

        assert orch.format_document(doc) == FormatOutcome.FORMATTED_DOCUMENT
        assert doc.text() == "SELECT ("


class TestRefresh:
    def test_options_are_cached_until_refresh(self, settings_manager):
        orch, _, _ = _orchestrator(settings_manager)
        settings_manager.save(options=FormatterOptions(format_on_save=True))

        assert orch.options.format_on_save is False
        orch.refresh()
        assert orch.options.format_on_save is True

    def test_refresh_rebuilds_default_engine(self, settings_manager):
        orch = FormatOrchestrator(settings_manager, FakePrompter())
        before = orch.engine
        settings_manager.save(options=FormatterOptions(uppercase_keywords=False))

        orch.refresh()

        assert orch.engine is not before
        assert orch.engine.options.uppercase_keywords is False

    def test_refresh_keeps_injected_engine(self, settings_manager):
        orch, _, engine = _orchestrator(settings_manager)
        orch.refresh()
        assert orch.engine is engine
