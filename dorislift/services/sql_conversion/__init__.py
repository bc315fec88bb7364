"""
SQL Conversion Package - SparkSQL to Apache Doris conversion.

Main Components:
    - transpile_sql / transpile_batch: in-memory conversion of SQL text
    - ConversionOrchestrator: converts a directory tree of *.sql files
    - StatementConverter: routes each statement to the DDL handler or the
      function rewriter + sqlglot generator
    - Utils: dialect registry, statement splitting, manual review log, etc.

Usage:
    from dorislift.services.sql_conversion import ConversionOrchestrator, transpile_sql

    transpile_sql("SELECT shiftleft(a, 2) FROM t", "spark", "doris")

    orchestrator = ConversionOrchestrator("spark", "doris", generate_cleanup=True)
    result = orchestrator.convert("source_files/")
"""

from .errors import TranspileError, UnsupportedDialectError
from .transpiler import transpile_sql, transpile_batch
from .orchestrator import ConversionOrchestrator

__all__ = [
    'ConversionOrchestrator',
    'transpile_sql',
    'transpile_batch',
    'TranspileError',
    'UnsupportedDialectError',
]
