"""
SQLGlot dialect utilities for SQL conversion.
Handles mapping between user-facing dialect names and their SQLGlot dialects.
"""
from ..errors import UnsupportedDialectError

_DIALECT_MAP = {
    'spark': 'spark',
    'sparksql': 'spark',
    'spark2': 'spark2',
    'hive': 'hive',
    'databricks': 'databricks',
    'doris': 'doris',
    'mysql': 'mysql',
    'starrocks': 'starrocks',
    'postgresql': 'postgres',
    'postgres': 'postgres',
    'trino': 'trino',
    'presto': 'presto',
    'bigquery': 'bigquery',
    'snowflake': 'snowflake',
    'oracle': 'oracle',
}


def get_sqlglot_dialect(source_type: str):
    """
    Get the appropriate SQLGlot dialect for parsing.

    Args:
        source_type: Database type (e.g., 'spark', 'sparksql', 'doris')

    Returns:
        SQLGlot dialect string or None when the name is unknown
    """
    if not source_type:
        return None
    return _DIALECT_MAP.get(source_type.strip().lower())


def require_dialect(source_type: str) -> str:
    """Like :func:`get_sqlglot_dialect` but raises for unknown names."""
    dialect = get_sqlglot_dialect(source_type)
    if dialect is None:
        raise UnsupportedDialectError(
            f"Unsupported dialect '{source_type}'. Supported: {', '.join(list_supported_dialects())}"
        )
    return dialect


def list_supported_dialects() -> list[str]:
    return sorted(_DIALECT_MAP)


def dialect_pair_key(source_type: str, target_type: str) -> str:
    """Return ``<source>_<target>`` with aliases folded (``sparksql`` -> ``spark``)."""
    return f"{require_dialect(source_type)}_{require_dialect(target_type)}"
