"""In-memory transpilation of SQL text between dialects.

``transpile_sql`` is the single-string operation (source dialect, target
dialect, optional pretty flag); ``transpile_batch`` converts many independent
queries and reports per-item failures instead of raising.
"""
from typing import Any, Dict, List, Optional

import sqlglot
import sqlglot.errors
from sqlglot.errors import ErrorLevel

from dorislift.utils.logger import setup_logger
from .errors import TranspileError
from .utils.dialect_utils import require_dialect
from .utils.result_formatter import create_result_dictionary, summarize_status
from .converters.declarative.statement_converter import StatementConverter

logger = setup_logger('transpiler')


def _parse_statements(sql: str, read_dialect: str) -> list:
    try:
        return [stmt for stmt in sqlglot.parse(sql, read=read_dialect) if stmt is not None]
    except sqlglot.errors.SqlglotError as e:
        raise TranspileError(f"Failed to parse SQL as {read_dialect}: {e}", sql=sql) from e


def transpile_sql(sql: str, source_dialect: str = "spark", target_dialect: str = "doris", *,
                  pretty: bool = False, strict: bool = False, apply_rules: bool = True,
                  converter: Optional[StatementConverter] = None) -> List[str]:
    """
    Convert *sql* (one or more ``;``-separated statements) from *source_dialect*
    to *target_dialect*.

    Args:
        sql: Source SQL text.
        source_dialect / target_dialect: Dialect names known to the registry.
        pretty: Emit formatted, multi-line SQL.
        strict: Raise when the target dialect cannot express a construct.
        apply_rules: Route statements through the rule-based converters;
            when False only sqlglot's own dialect translation is used.
        converter: Reuse an existing ``StatementConverter`` (batch callers).

    Returns:
        One string per output statement.

    Raises:
        UnsupportedDialectError: unknown dialect name.
        TranspileError: the SQL cannot be parsed or generated.
    """
    read_dialect = require_dialect(source_dialect)
    write_dialect = require_dialect(target_dialect)

    if not sql or not sql.strip():
        return []

    statements = _parse_statements(sql, read_dialect)

    if not apply_rules:
        try:
            return [
                stmt.sql(
                    dialect=write_dialect,
                    pretty=pretty,
                    unsupported_level=ErrorLevel.RAISE if strict else ErrorLevel.WARN,
                )
                for stmt in statements
            ]
        except sqlglot.errors.SqlglotError as e:
            raise TranspileError(f"Failed to generate {write_dialect} SQL: {e}", sql=sql) from e

    converter = converter or StatementConverter(source_dialect, target_dialect, pretty=pretty, strict=strict)
    converted: List[str] = []
    for stmt in statements:
        try:
            parts, logs = converter.convert_statement(stmt)
        except sqlglot.errors.SqlglotError as e:
            raise TranspileError(f"Failed to generate {write_dialect} SQL: {e}", sql=stmt.sql(dialect=read_dialect)) from e

        errors = [log['details'] for log in logs if log.get('action') == 'error']
        if errors:
            raise TranspileError("; ".join(errors), sql=stmt.sql(dialect=read_dialect))
        converted.extend(parts)

    return converted


def transpile_batch(items: List[Any], source_dialect: str = "spark", target_dialect: str = "doris", *,
                    pretty: bool = False, strict: bool = False) -> Dict[str, Any]:
    """
    Convert each item independently; a failing item is logged and reported,
    never raised.

    Args:
        items: ``{"id": ..., "sql": ...}`` dicts or bare SQL strings (id = list index).

    Returns:
        Result dictionary with ``stats`` (total/converted/failed) and per-item ``results``.
    """
    require_dialect(source_dialect)
    require_dialect(target_dialect)
    converter = StatementConverter(source_dialect, target_dialect, pretty=pretty, strict=strict)

    results = []
    stats = {"total": len(items), "converted": 0, "failed": 0}

    for index, item in enumerate(items):
        if isinstance(item, dict):
            item_id = item.get("id", index)
            sql = item.get("sql") or ""
        else:
            item_id, sql = index, str(item)

        try:
            converted_sql = transpile_sql(sql, source_dialect, target_dialect, pretty=pretty, strict=strict,
                                          converter=converter)
            results.append({"id": item_id, "status": "success", "converted_sql": converted_sql, "error": None})
            stats["converted"] += 1
        except TranspileError as e:
            logger.error(f"Batch item {item_id} failed: {e}")
            results.append({"id": item_id, "status": "error", "converted_sql": [], "error": str(e)})
            stats["failed"] += 1
        except Exception as e:
            logger.error(f"Unexpected error converting batch item {item_id}: {e}", exc_info=True)
            results.append({"id": item_id, "status": "error", "converted_sql": [], "error": str(e)})
            stats["failed"] += 1

    status = summarize_status(stats["converted"], stats["failed"])
    message = f"Converted {stats['converted']} of {stats['total']} item(s) from {source_dialect} to {target_dialect}."
    logger.info(message)
    return create_result_dictionary(status, message, stats, results)
