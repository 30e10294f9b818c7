"""Oracle: upper-folded identifiers of at most 30 characters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from erschema.core.types import CascadeType, DataType, NameCasing
from erschema.dialect.base import Dialect
from erschema.dialect.sql import SQLGenerator
from erschema.reverse.strategy import ReverseEngineeringStrategy

if TYPE_CHECKING:
    from erschema.model.model import Model


class OracleReverseEngineeringStrategy(ReverseEngineeringStrategy):
    """Oracle users are schemas; the dictionary owners are hidden."""

    system_schemas = frozenset(
        {"sys", "system", "outln", "xdb", "dbsnmp", "appqossys", "ctxsys", "mdsys", "ordsys"}
    )


class OracleSQLGenerator(SQLGenerator):
    """Oracle flavored DDL."""

    def add_column_statement(self, table: str, definition: str) -> str:
        return f"ALTER TABLE {table} ADD ({definition})"

    def alter_column_statements(
        self,
        table: str,
        before: dict[str, Any],
        after: dict[str, Any],
        model: Model | None,
    ) -> list[str]:
        definition = f"{after['name']} {self.type_definition(after, model)}"
        if after.get("default_value") is not None:
            definition += f" DEFAULT {after['default_value']}"
        if after.get("nullable", True) != before.get("nullable", True):
            definition += " NULL" if after.get("nullable", True) else " NOT NULL"
        return [f"ALTER TABLE {table} MODIFY ({definition})"]

    def referential_actions(self, on_delete: str, on_update: str) -> str:
        # Oracle knows ON DELETE CASCADE / SET NULL only and no ON UPDATE clause
        if on_delete in (CascadeType.CASCADE, CascadeType.SET_NULL):
            return f" ON DELETE {CascadeType(on_delete).sql}"
        return ""


class OracleDialect(Dialect):
    """Oracle 11g and later."""

    unique_name = "Oracle"
    casing = NameCasing.UPPERCASE
    max_name_length = 30
    default_driver = "oracle+oracledb"
    sqlglot_dialect = "oracle"
    fallback_type = "VARCHAR2"
    data_types = (
        DataType(name="VARCHAR2", aliases=("VARCHAR",), supports_size=True),
        DataType(name="NVARCHAR2", supports_size=True),
        DataType(name="CHAR", supports_size=True),
        DataType(name="NCHAR", supports_size=True),
        DataType(
            name="NUMBER",
            aliases=("NUMERIC", "DECIMAL"),
            supports_size=True,
            supports_fraction=True,
        ),
        DataType(name="INTEGER", aliases=("INT", "SMALLINT")),
        DataType(name="FLOAT", supports_size=True),
        DataType(name="BINARY_FLOAT"),
        DataType(name="BINARY_DOUBLE", aliases=("DOUBLE_PRECISION",)),
        DataType(name="DATE"),
        DataType(name="TIMESTAMP"),
        DataType(name="CLOB"),
        DataType(name="NCLOB"),
        DataType(name="BLOB"),
        DataType(name="RAW", supports_size=True),
        DataType(name="LONG"),
    )
    family_types: ClassVar[dict[str, str]] = {
        "TIMESTAMP": "TIMESTAMP",
        "DATE": "DATE",
        "TIME": "TIMESTAMP",
        "BOOLEAN": "NUMBER",
        "BIGINT": "NUMBER",
        "INTEGER": "INTEGER",
        "DECIMAL": "NUMBER",
        "FLOAT": "BINARY_DOUBLE",
        "BINARY": "BLOB",
        "TEXT": "CLOB",
        "STRING": "VARCHAR2",
    }

    def get_reverse_engineering_strategy(self) -> OracleReverseEngineeringStrategy:
        return OracleReverseEngineeringStrategy(self)

    def create_sql_generator(self) -> OracleSQLGenerator:
        return OracleSQLGenerator(self)
