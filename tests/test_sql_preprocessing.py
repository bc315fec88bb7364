"""Tests for statement splitting, regex fixes and output formatting."""

import logging

import pytest
import sqlglot.errors

from dorislift.services.sql_conversion.utils.sql_preprocessing import (
    apply_regex_fixes,
    format_sql_file_content,
    normalize_sql_content,
    split_statements,
    strip_leading_comments,
    write_converted_sql_file,
)

logger = logging.getLogger("test")


def test_normalize_strips_bom_and_crlf():
    assert normalize_sql_content("\ufeffSELECT 1;\r\nSELECT 2;\r") == "SELECT 1;\nSELECT 2;\n"


def test_split_ignores_semicolons_in_strings():
    content = "SELECT 'a;b' FROM t;\nSELECT 2;\n"
    statements = split_statements(content, "spark")

    assert [s["sql"] for s in statements] == ["SELECT 'a;b' FROM t", "SELECT 2"]
    assert [s["index"] for s in statements] == [1, 2]
    assert [s["line"] for s in statements] == [1, 2]


def test_split_reports_first_token_line():
    content = "\n\nSELECT 1\nFROM t;\n\n\nSELECT 2"
    statements = split_statements(content, "spark")

    assert statements[0]["line"] == 3
    assert statements[1]["line"] == 7
    assert statements[1]["sql"] == "SELECT 2"


def test_split_drops_comment_only_chunks():
    statements = split_statements("SELECT 1;\n-- trailing note\n", "spark")
    assert len(statements) == 1


def test_split_empty_content():
    assert split_statements("", "spark") == []
    assert split_statements(";;", "spark") == []


def test_split_unterminated_string_raises():
    with pytest.raises(sqlglot.errors.TokenError):
        split_statements("SELECT 'open", "spark")


def test_apply_regex_fixes_in_order_with_flags():
    fixes = [
        {"name": "lower", "regex": "foo", "replacement": "bar", "flags": "IGNORECASE"},
        {"name": "chain", "regex": "bar", "replacement": "baz"},
        {"name": "empty"},
    ]
    assert apply_regex_fixes("SELECT FOO", fixes, logger) == "SELECT baz"


def test_apply_regex_fixes_skips_invalid_pattern():
    fixes = [{"name": "broken", "regex": "(", "replacement": ""}]
    assert apply_regex_fixes("SELECT 1", fixes, logger) == "SELECT 1"


def test_format_terminates_statements_but_not_comments():
    content = format_sql_file_content(["SELECT 1", "-- note\n-- more", "SELECT 2;", "   "])
    assert content == "SELECT 1;\n\n-- note\n-- more\n\nSELECT 2;\n"


def test_format_empty():
    assert format_sql_file_content([]) == ""


def test_write_converted_sql_file(tmp_path):
    out = tmp_path / "nested" / "a.sql"
    result = write_converted_sql_file(str(out), ["SELECT 1"], logger, "a.sql")

    assert result == {"status": "success"}
    assert out.read_text(encoding="utf-8") == "SELECT 1;\n"


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("CLEAR CACHE", "CLEAR CACHE"),
        ("-- refresh\n  REFRESH TABLE t", "REFRESH TABLE t"),
        ("/* a */ /* b\n c */\n-- d\nSET x=1", "SET x=1"),
        ("SELECT 1 -- trailing", "SELECT 1 -- trailing"),
    ],
)
def test_strip_leading_comments(sql, expected):
    assert strip_leading_comments(sql) == expected
