"""PostgreSQL: lower-folded identifiers of at most 63 characters."""

from __future__ import annotations

from typing import ClassVar

from erschema.core.types import DataType, NameCasing
from erschema.dialect.base import Dialect
from erschema.reverse.strategy import ReverseEngineeringStrategy


class PostgresReverseEngineeringStrategy(ReverseEngineeringStrategy):
    """Catalog schemas of PostgreSQL itself are hidden."""

    system_schemas = frozenset({"information_schema", "pg_catalog", "pg_toast"})


class PostgresDialect(Dialect):
    """PostgreSQL 12 and later."""

    unique_name = "PostgreSQL"
    casing = NameCasing.LOWERCASE
    max_name_length = 63
    default_driver = "postgresql+psycopg"
    sqlglot_dialect = "postgres"
    data_types = (
        DataType(name="VARCHAR", aliases=("CHARACTER VARYING",), supports_size=True),
        DataType(name="CHAR", aliases=("CHARACTER", "BPCHAR"), supports_size=True),
        DataType(name="TEXT"),
        DataType(name="SMALLINT", aliases=("INT2",)),
        DataType(name="INTEGER", aliases=("INT", "INT4")),
        DataType(name="BIGINT", aliases=("INT8",)),
        DataType(name="SERIAL"),
        DataType(name="BIGSERIAL"),
        DataType(name="NUMERIC", aliases=("DECIMAL",), supports_size=True, supports_fraction=True),
        DataType(name="REAL", aliases=("FLOAT4",)),
        DataType(name="DOUBLE PRECISION", aliases=("DOUBLE_PRECISION", "FLOAT8", "FLOAT")),
        DataType(name="BOOLEAN", aliases=("BOOL",)),
        DataType(name="DATE"),
        DataType(name="TIMESTAMP", aliases=("TIMESTAMP WITHOUT TIME ZONE",)),
        DataType(name="TIME"),
        DataType(name="INTERVAL"),
        DataType(name="BYTEA"),
        DataType(name="UUID"),
        DataType(name="JSON"),
        DataType(name="JSONB"),
    )
    family_types: ClassVar[dict[str, str]] = {
        "TIMESTAMP": "TIMESTAMP",
        "DATE": "DATE",
        "TIME": "TIME",
        "BOOLEAN": "BOOLEAN",
        "BIGINT": "BIGINT",
        "INTEGER": "INTEGER",
        "DECIMAL": "NUMERIC",
        "FLOAT": "DOUBLE PRECISION",
        "BINARY": "BYTEA",
        "TEXT": "TEXT",
        "STRING": "VARCHAR",
    }

    def get_reverse_engineering_strategy(self) -> PostgresReverseEngineeringStrategy:
        return PostgresReverseEngineeringStrategy(self)
