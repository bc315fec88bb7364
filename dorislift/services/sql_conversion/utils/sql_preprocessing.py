"""
SQL content splitting, regex cleanup and file-writing utilities.

This module provides functions to:
- Normalise raw SQL file content (BOM, line endings).
- Split SQL content into individual statements with the source dialect's
  tokenizer, so that ``;`` inside string literals or comments never splits.
- Apply configuration-driven regex fixes to generated SQL strings.
- Write lists of converted SQL statements to an output file.
"""
import re
from typing import Dict, List

from sqlglot.dialects.dialect import Dialect
from sqlglot.tokens import TokenType

from dorislift.utils.file_utils import write_file_content
from .regex_utils import re_flags


def normalize_sql_content(content: str) -> str:
    """Strip a UTF-8 BOM and normalise line endings to ``\\n``."""
    if content.startswith('\ufeff'):
        content = content[1:]
    return content.replace('\r\n', '\n').replace('\r', '\n')


def split_statements(content: str, dialect: str) -> List[Dict]:
    """
    Split *content* into statements using the tokenizer of *dialect*.

    Returns a list of ``{"index", "line", "sql"}`` dicts (index is 1-based,
    line is the line of the statement's first token). Chunks that contain no
    tokens (blank or comment-only) are dropped. Raises
    ``sqlglot.errors.TokenError`` for content that cannot be tokenized.
    """
    tokens = Dialect.get_or_raise(dialect).tokenize(content)

    statements: List[Dict] = []
    chunk_start = 0
    first_token = None

    def _flush(end: int):
        if first_token is None:
            return
        text = content[chunk_start:end].strip()
        if text:
            statements.append({"index": len(statements) + 1, "line": first_token.line, "sql": text})

    for token in tokens:
        if token.token_type == TokenType.SEMICOLON:
            _flush(token.start)
            chunk_start = token.end + 1
            first_token = None
        elif first_token is None:
            first_token = token

    _flush(len(content))
    return statements


_LEADING_COMMENTS_RE = re.compile(r"\A(?:\s+|--[^\n]*(?:\n|\Z)|/\*.*?\*/)*", re.DOTALL)


def strip_leading_comments(sql: str) -> str:
    """Drop whitespace and ``--`` / ``/* */`` comments before the first keyword."""
    return _LEADING_COMMENTS_RE.sub("", sql, count=1)


def apply_regex_fixes(sql: str, fixes: List[Dict], logger) -> str:
    """
    Apply ``{"name", "regex", "replacement", "flags"}`` fixes in order.

    Args:
        sql: Generated SQL statement
        fixes: Fix definitions (usually ``cleanup_fixes`` from function_rules.json)
        logger: Logger instance

    Returns:
        SQL with every matching fix applied
    """
    for fix in fixes or []:
        regex_pattern = fix.get('regex', '')
        if not regex_pattern:
            continue
        replacement_str = fix.get('replacement', '')
        fix_name = fix.get('name', 'Unnamed Rule')
        try:
            new_sql = re.sub(regex_pattern, replacement_str, sql, flags=re_flags(fix.get('flags', '')))
        except re.error as rex:
            logger.error("Invalid regex in cleanup fix '%s': %s", fix_name, rex)
            continue
        if new_sql != sql:
            logger.debug("Applied cleanup fix '%s'", fix_name)
            sql = new_sql
    return sql


def format_sql_file_content(converted_statements: List[str]) -> str:
    """Join statements so each one ends with ``;`` and the file ends with one newline."""
    output_content = []
    for stmt in converted_statements:
        stmt_cleaned = normalize_sql_content(stmt).strip()
        if not stmt_cleaned:
            continue
        # Comment-only blocks (error markers) must not receive a terminator.
        is_comment_only = all(line.lstrip().startswith('--') for line in stmt_cleaned.splitlines() if line.strip())
        if not is_comment_only and not stmt_cleaned.endswith(';'):
            stmt_cleaned += ';'
        output_content.append(stmt_cleaned)

    return '\n\n'.join(output_content) + '\n' if output_content else ''


def write_converted_sql_file(output_file: str, converted_statements: List[str],
                           logger, original_file: str) -> Dict:
    """
    Write converted SQL statements to output file.

    Args:
        output_file: Path to output file
        converted_statements: List of converted SQL statements
        logger: Logger instance
        original_file: Original source file path

    Returns:
        Dictionary with status and any error messages
    """
    try:
        write_file_content(output_file, format_sql_file_content(converted_statements))

        logger.info(f"Successfully wrote {len(converted_statements)} statement(s) to: {output_file} (from {original_file})")
        return {"status": "success"}

    except OSError as e:
        logger.error(f"Error writing output file {output_file}: {e}")
        return {"status": "error", "error_message": str(e)}
