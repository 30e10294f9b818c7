"""SQLite: lower-folded identifiers, limited ALTER TABLE support."""

from __future__ import annotations

from typing import ClassVar

from erschema.core.types import ChangeEvent, ChangeOperation, DataType, IndexType, NameCasing
from erschema.dialect.base import Dialect
from erschema.dialect.sql import SQLGenerator
from erschema.reverse.strategy import ReverseEngineeringStrategy


class SQLiteReverseEngineeringStrategy(ReverseEngineeringStrategy):
    """SQLite reports ``main`` plus attached databases as schemas."""


class SQLiteSQLGenerator(SQLGenerator):
    """SQLite can neither alter constraints nor change column definitions in place."""

    unsupported = frozenset(
        {
            ChangeOperation.CHANGE_TABLE_COMMENT,
            ChangeOperation.ADD_RELATION,
            ChangeOperation.REMOVE_RELATION,
            ChangeOperation.CHANGE_RELATION,
            ChangeOperation.CHANGE_ATTRIBUTE,
            ChangeOperation.ADD_PRIMARY_KEY,
            ChangeOperation.REMOVE_PRIMARY_KEY,
        }
    )
    inline_foreign_keys = True
    supports_comments = False

    def supports_event(self, event: ChangeEvent) -> bool:
        if not super().supports_event(event):
            return False
        if event.operation == ChangeOperation.CHANGE_INDEX:
            types = {(event.before or {}).get("index_type"), (event.after or {}).get("index_type")}
            return IndexType.PRIMARY_KEY not in types
        return True


class SQLiteDialect(Dialect):
    """SQLite 3.35 and later."""

    unique_name = "SQLite"
    casing = NameCasing.LOWERCASE
    max_name_length = 128
    quote_pairs = (('"', '"'), ("`", "`"), ("[", "]"))
    default_driver = "sqlite"
    sqlglot_dialect = "sqlite"
    data_types = (
        DataType(name="INTEGER", aliases=("INT", "SMALLINT", "TINYINT", "MEDIUMINT")),
        DataType(name="BIGINT"),
        DataType(name="REAL", aliases=("DOUBLE", "DOUBLE_PRECISION", "FLOAT")),
        DataType(name="NUMERIC", aliases=("DECIMAL",), supports_size=True, supports_fraction=True),
        DataType(name="TEXT", aliases=("CLOB",)),
        DataType(name="VARCHAR", aliases=("NVARCHAR",), supports_size=True),
        DataType(name="CHAR", aliases=("NCHAR",), supports_size=True),
        DataType(name="BLOB"),
        DataType(name="BOOLEAN"),
        DataType(name="DATE"),
        DataType(name="DATETIME"),
        DataType(name="TIMESTAMP"),
        DataType(name="TIME"),
    )
    family_types: ClassVar[dict[str, str]] = {
        "TIMESTAMP": "DATETIME",
        "DATE": "DATE",
        "TIME": "TIME",
        "BOOLEAN": "BOOLEAN",
        "BIGINT": "BIGINT",
        "INTEGER": "INTEGER",
        "DECIMAL": "NUMERIC",
        "FLOAT": "REAL",
        "BINARY": "BLOB",
        "TEXT": "TEXT",
        "STRING": "VARCHAR",
    }

    def get_reverse_engineering_strategy(self) -> SQLiteReverseEngineeringStrategy:
        return SQLiteReverseEngineeringStrategy(self)

    def create_sql_generator(self) -> SQLiteSQLGenerator:
        return SQLiteSQLGenerator(self)
