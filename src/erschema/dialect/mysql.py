"""MySQL: upper-folded identifiers of at most 64 characters, backtick quoting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from erschema.core.types import ChangeEvent, DataType, NameCasing
from erschema.dialect.base import Dialect
from erschema.dialect.sql import SQLGenerator, quote_literal
from erschema.reverse.strategy import ReverseEngineeringStrategy

if TYPE_CHECKING:
    from erschema.model.model import Model


class MySQLReverseEngineeringStrategy(ReverseEngineeringStrategy):
    """MySQL databases are schemas; the server's own are hidden."""

    system_schemas = frozenset({"information_schema", "mysql", "performance_schema", "sys"})
    autoincrement_extra = "AUTO_INCREMENT"


class MySQLSQLGenerator(SQLGenerator):
    """MySQL flavored DDL."""

    def comment_statement(self, table: str, comment: str | None) -> str:
        return f"ALTER TABLE {table} COMMENT = {quote_literal(comment or '')}"

    def drop_index_statement(self, table: str, index: dict[str, Any]) -> str:
        return f"DROP INDEX {index['name']} ON {table}"

    def add_primary_key_statement(
        self, table: str, index: dict[str, Any], columns: list[str]
    ) -> str:
        return f"ALTER TABLE {table} ADD PRIMARY KEY ({', '.join(columns)})"

    def drop_primary_key_statement(self, table: str, index: dict[str, Any]) -> str:
        return f"ALTER TABLE {table} DROP PRIMARY KEY"

    def drop_foreign_key_statement(self, table: str, relation: dict[str, Any]) -> str:
        return f"ALTER TABLE {table} DROP FOREIGN KEY {relation['name']}"

    def render_rename_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        old, new = (event.before or {})["name"], (event.after or {})["name"]
        return [f"RENAME TABLE {old} TO {new}"]

    def render_change_attribute(self, event: ChangeEvent, model: Model | None) -> list[str]:
        before, after = event.before or {}, event.after or {}
        definition = self.column_definition(after, model)
        return [f"ALTER TABLE {event.details['table']} CHANGE {before['name']} {definition}"]


class MySQLDialect(Dialect):
    """MySQL 5.7 / 8.x."""

    unique_name = "MySQL"
    casing = NameCasing.UPPERCASE
    max_name_length = 64
    quote_pairs = (("`", "`"), ('"', '"'))
    default_driver = "mysql+pymysql"
    sqlglot_dialect = "mysql"
    data_types = (
        DataType(name="VARCHAR", supports_size=True),
        DataType(name="CHAR", supports_size=True),
        DataType(name="TINYTEXT"),
        DataType(name="TEXT"),
        DataType(name="MEDIUMTEXT"),
        DataType(name="LONGTEXT"),
        DataType(name="TINYINT", supports_extra=True),
        DataType(name="SMALLINT", supports_extra=True),
        DataType(name="MEDIUMINT", supports_extra=True),
        DataType(name="INT", aliases=("INTEGER",), supports_extra=True),
        DataType(name="BIGINT", supports_extra=True),
        DataType(name="DECIMAL", aliases=("NUMERIC",), supports_size=True, supports_fraction=True),
        DataType(name="FLOAT"),
        DataType(name="DOUBLE", aliases=("REAL", "DOUBLE PRECISION")),
        DataType(name="BIT", supports_size=True),
        DataType(name="BOOLEAN", aliases=("BOOL",)),
        DataType(name="DATE"),
        DataType(name="DATETIME"),
        DataType(name="TIMESTAMP"),
        DataType(name="TIME"),
        DataType(name="YEAR"),
        DataType(name="BINARY", supports_size=True),
        DataType(name="VARBINARY", supports_size=True),
        DataType(name="TINYBLOB"),
        DataType(name="BLOB"),
        DataType(name="MEDIUMBLOB"),
        DataType(name="LONGBLOB"),
        DataType(name="ENUM", supports_extra=True),
        DataType(name="SET", supports_extra=True),
        DataType(name="JSON"),
    )
    family_types: ClassVar[dict[str, str]] = {
        "TIMESTAMP": "DATETIME",
        "DATE": "DATE",
        "TIME": "TIME",
        "BOOLEAN": "BOOLEAN",
        "BIGINT": "BIGINT",
        "INTEGER": "INT",
        "DECIMAL": "DECIMAL",
        "FLOAT": "DOUBLE",
        "BINARY": "BLOB",
        "TEXT": "TEXT",
        "STRING": "VARCHAR",
    }

    def get_reverse_engineering_strategy(self) -> MySQLReverseEngineeringStrategy:
        return MySQLReverseEngineeringStrategy(self)

    def create_sql_generator(self) -> MySQLSQLGenerator:
        return MySQLSQLGenerator(self)
