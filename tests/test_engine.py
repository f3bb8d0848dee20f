"""Tests for the sqlparse/sqlglot formatting engine in formatting/engine.py."""
from __future__ import annotations

from formatting.engine import SqlFormattingEngine, build_engine
from settings import AppSettings, FormatterOptions


def _format(text, **options):
    return SqlFormattingEngine(FormatterOptions(**options)).format(text)


class TestKeywordCase:
    def test_uppercase_by_default(self):
        result = _format("select a, b from t")
        assert "SELECT" in result.text
        assert "FROM" in result.text
        assert result.had_errors is False

    def test_lowercase_when_disabled(self):
        result = _format("SELECT a FROM t", uppercase_keywords=False)
        assert "SELECT" not in result.text
        assert "select" in result.text


class TestLayout:
    def test_statements_separated_by_blank_line(self):
        result = _format("select 1; select 2;")
        assert result.text == "SELECT 1;\n\nSELECT 2;"

    def test_statement_breaks_configurable(self):
        result = _format("select 1; select 2;", new_statement_line_breaks=1)
        assert result.text == "SELECT 1;\nSELECT 2;"

    def test_zero_statement_breaks_joins_with_space(self):
        result = _format("select 1; select 2;", new_statement_line_breaks=0)
        assert result.text == "SELECT 1; SELECT 2;"

    def test_zero_clause_breaks_keeps_single_line(self):
        result = _format("select a from t where b = 1", new_clause_line_breaks=0)
        assert "\n" not in result.text
        assert result.text.startswith("SELECT a FROM t WHERE")

    def test_clauses_on_separate_lines(self):
        lines = _format("select a from t where b = 1").text.split("\n")
        assert lines[0].startswith("SELECT")
        assert any(line.startswith("FROM") for line in lines)
        assert any(line.startswith("WHERE") for line in lines)

    def test_extra_clause_breaks_add_blank_lines(self):
        result = _format("select a from t", new_clause_line_breaks=2)
        assert "\n\nFROM" in result.text

    def test_trailing_newline_preserved(self):
        assert _format("select 1;\n").text.endswith(";\n")

    def test_whitespace_only_input_unchanged(self):
        result = _format("  \n\t")
        assert result.text == "  \n\t"
        assert result.had_errors is False


class TestIndentation:
    def test_expanded_list_indented_with_tabs(self):
        lines = _format("select a, b from t", trailing_commas=True).text.split("\n")
        assert lines[0] == "SELECT a,"
        assert lines[1].startswith("\t")
        assert lines[1].strip() == "b"

    def test_custom_indent_string(self):
        lines = _format("select a, b from t", trailing_commas=True, indent_string="  ").text.split("\n")
        assert not lines[1].startswith("\t")
        assert lines[1].startswith("  ")
        assert lines[1].strip() == "b"

    def test_break_join_on_sections(self):
        sql = "select a from t inner join u on t.id = u.id"
        plain = _format(sql).text.split("\n")
        broken = _format(sql, break_join_on_sections=True).text.split("\n")
        assert not any(line.strip().startswith("ON ") for line in plain)
        assert any(line.startswith("\t") and line.strip().startswith("ON ") for line in broken)


class TestErrors:
    def test_malformed_sql_reports_errors(self):
        result = _format("SELECT a FROM t WHERE (b = 1")
        assert result.had_errors is True
        assert "SELECT" in result.text

    def test_valid_sql_reports_no_errors(self):
        assert _format("SELECT a FROM t WHERE (b = 1)").had_errors is False


class TestConstruction:
    def test_options_copied_on_construction(self):
        options = FormatterOptions()
        engine = SqlFormattingEngine(options)
        options.uppercase_keywords = False
        assert engine.format("select 1").text.startswith("SELECT")

    def test_unknown_dialect_falls_back_to_generic(self):
        engine = SqlFormattingEngine(FormatterOptions(), "no-such-dialect")
        assert engine.dialect is None
        assert engine.format("select 1").had_errors is False

    def test_build_engine_from_settings(self):
        settings = AppSettings(dialect="")
        settings.options.spaces_per_tab = 2
        engine = build_engine(settings)
        assert engine.dialect is None
        assert engine.options.spaces_per_tab == 2
