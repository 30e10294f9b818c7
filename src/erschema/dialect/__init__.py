"""Database dialects."""

from erschema.dialect.base import Dialect
from erschema.dialect.mysql import MySQLDialect
from erschema.dialect.oracle import OracleDialect
from erschema.dialect.postgres import PostgresDialect
from erschema.dialect.sql import SQLGenerator
from erschema.dialect.sqlite import SQLiteDialect
from erschema.exceptions import ElementNotFoundError

_DIALECTS: dict[str, type[Dialect]] = {
    d.unique_name.lower(): d for d in (MySQLDialect, PostgresDialect, OracleDialect, SQLiteDialect)
}
# Common spellings, including SQLAlchemy backend names
_ALIASES = {"postgres": "postgresql", "mariadb": "mysql"}


def available_dialects() -> list[str]:
    """Unique names of all known dialects."""
    return [d.unique_name for d in _DIALECTS.values()]


def get_dialect(name: str) -> Dialect:
    """Create the dialect with the given unique name (case-insensitive).

    SQLAlchemy backend names such as ``postgresql`` or ``sqlite`` are accepted too.

    Raises:
        ElementNotFoundError: If no dialect has that name
    """
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    dialect_class = _DIALECTS.get(key)
    if dialect_class is None:
        raise ElementNotFoundError("Dialect", name, available_dialects())
    return dialect_class()


__all__ = [
    "Dialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLGenerator",
    "SQLiteDialect",
    "available_dialects",
    "get_dialect",
]
