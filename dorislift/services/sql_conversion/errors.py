"""Exceptions raised by the SQL conversion layer."""


class TranspileError(Exception):
    """A statement could not be parsed or generated for the target dialect."""

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql


class UnsupportedDialectError(ValueError):
    """The requested dialect name is not known to the registry."""
