"""Shared test fixtures for erschema."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import DECIMAL, VARCHAR, create_engine, text

from erschema.core.types import IndexType
from erschema.dialect import MySQLDialect, OracleDialect, PostgresDialect, SQLiteDialect
from erschema.exceptions import CatalogError
from erschema.model import Attribute, Index, Model, Relation, Table
from erschema.tracker import HistoryModificationTracker


def _pymysql_available() -> bool:
    """Check if PyMySQL is installed."""
    try:
        import pymysql  # noqa: F401

        return True
    except ImportError:
        return False


@pytest.fixture
def mysql_url() -> str:
    """Get a MySQL URL from the environment, skipping when no server is configured."""
    if not _pymysql_available():
        pytest.skip("PyMySQL not installed (install with: pip install erschema[mysql])")
    url = os.environ.get("TEST_MYSQL_URL")
    if not url:
        pytest.skip("TEST_MYSQL_URL not set")
    return url


# === Fake catalog ===


class FakeCatalogSession:
    """In-memory CatalogSession serving Inspector shaped metadata.

    ``schemas`` maps schema name to ``{"tables": {...}, "views": {...}}``; each
    table entry holds ``columns``, ``pk``, ``indexes``, ``unique``, ``fks`` and
    ``comment``. Method names listed in ``fail_on`` raise CatalogError.
    """

    def __init__(self, default_schema: str, schemas: dict[str, dict[str, Any]]) -> None:
        self.default_schema = default_schema
        self.schemas = schemas
        self.fail_on: set[str] = set()
        self.closed = False

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise CatalogError(f"{method} failed: lost contact with the catalog")

    def _table(self, table: str, schema: str | None) -> dict[str, Any]:
        return self.schemas[schema or self.default_schema]["tables"][table]

    def execute_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        self._check("execute_query")
        return []

    def get_schema_names(self) -> list[str]:
        self._check("get_schema_names")
        return list(self.schemas)

    def get_default_schema_name(self) -> str | None:
        return self.default_schema

    def get_table_names(self, schema: str | None = None) -> list[str]:
        self._check("get_table_names")
        return list(self.schemas[schema or self.default_schema]["tables"])

    def get_view_names(self, schema: str | None = None) -> list[str]:
        self._check("get_view_names")
        return list(self.schemas[schema or self.default_schema].get("views", {}))

    def get_columns(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        self._check("get_columns")
        return self._table(table, schema)["columns"]

    def get_pk_constraint(self, table: str, schema: str | None = None) -> dict[str, Any]:
        self._check("get_pk_constraint")
        return self._table(table, schema).get("pk", {"constrained_columns": [], "name": None})

    def get_indexes(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        self._check("get_indexes")
        return self._table(table, schema).get("indexes", [])

    def get_unique_constraints(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        self._check("get_unique_constraints")
        return self._table(table, schema).get("unique", [])

    def get_foreign_keys(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        self._check("get_foreign_keys")
        return self._table(table, schema).get("fks", [])

    def get_table_comment(self, table: str, schema: str | None = None) -> dict[str, Any]:
        self._check("get_table_comment")
        return self._table(table, schema).get("comment", {"text": None})

    def get_view_definition(self, view: str, schema: str | None = None) -> str | None:
        self._check("get_view_definition")
        return self.schemas[schema or self.default_schema]["views"][view]

    def close(self) -> None:
        self.closed = True


def _column(name: str, column_type: Any, nullable: bool = True, **extra: Any) -> dict[str, Any]:
    column = {
        "name": name,
        "type": column_type,
        "nullable": nullable,
        "default": None,
        "autoincrement": False,
        "comment": None,
    }
    column.update(extra)
    return column


@pytest.fixture
def mysql_catalog() -> FakeCatalogSession:
    """MySQL catalog ``mogwai`` with table1, table2, view1 and FK1 (table1 -> table2)."""
    return FakeCatalogSession(
        "mogwai",
        {
            "information_schema": {"tables": {}, "views": {}},
            "mogwai": {
                "tables": {
                    "table1": {
                        "columns": [
                            _column("tb2_1", VARCHAR(20), nullable=False),
                            _column("tb2_2", VARCHAR(100)),
                            _column("tb2_3", DECIMAL(20, 5), nullable=False),
                        ],
                        "indexes": [{"name": "FK1", "column_names": ["tb2_1"], "unique": False}],
                        "fks": [
                            {
                                "name": "FK1",
                                "constrained_columns": ["tb2_1"],
                                "referred_schema": None,
                                "referred_table": "table2",
                                "referred_columns": ["tb3_1"],
                                "options": {"ondelete": "CASCADE"},
                            }
                        ],
                    },
                    "table2": {
                        "columns": [
                            _column("tb3_1", VARCHAR(20), nullable=False),
                            _column("tb3_2", VARCHAR(100)),
                            _column("tb3_3", DECIMAL(20, 5)),
                        ],
                        "pk": {"constrained_columns": ["tb3_1"], "name": None},
                        "comment": {"text": "Lookup values"},
                    },
                },
                "views": {
                    "view1": (
                        "select `mogwai`.`table1`.`tb2_1` AS `tb2_1`,"
                        "`mogwai`.`table1`.`tb2_2` AS `tb2_2` from `mogwai`.`table1`"
                    ),
                },
            },
            "mysql": {"tables": {}, "views": {}},
        },
    )


# === Dialects and models ===


@pytest.fixture
def mysql() -> MySQLDialect:
    return MySQLDialect()


@pytest.fixture
def postgres() -> PostgresDialect:
    return PostgresDialect()


@pytest.fixture
def oracle() -> OracleDialect:
    return OracleDialect()


@pytest.fixture
def sqlite() -> SQLiteDialect:
    return SQLiteDialect()


def build_table(
    name: str,
    *columns: str,
    pk: list[str] | None = None,
    datatype: str = "INT",
) -> Table:
    """Detached table with one attribute per column name and an optional primary key."""
    keys = pk or []
    attributes = [Attribute(c, datatype, nullable=c not in keys) for c in columns]
    table = Table(name, attributes=attributes)
    if pk:
        table.create_primary_key(f"PK_{name}", [table.attributes.find_by_name(c) for c in pk])
    return table


@pytest.fixture
def table_factory() -> Callable[..., Table]:
    """Factory building detached tables: ``table_factory("orders", "id", "cust_id", pk=["id"])``."""
    return build_table


@pytest.fixture
def history() -> HistoryModificationTracker:
    return HistoryModificationTracker()


@pytest.fixture
def model(mysql: MySQLDialect, history: HistoryModificationTracker) -> Model:
    """Empty MySQL model journaling into the ``history`` fixture."""
    return Model(mysql, history)


@pytest.fixture
def shop_model(model: Model) -> Model:
    """MySQL model with customer(id PK), orders(id PK, cust_id) and FK1 orders -> customer."""
    customer = model.add_table(build_table("customer", "id", pk=["id"]))
    orders = model.add_table(build_table("orders", "id", "cust_id", pk=["id"]))
    model.add_relation(
        Relation(
            "FK1",
            importing_table=orders,
            exporting_table=customer,
            mapping={
                customer.primary_key.expressions[0]: orders.attributes.find_by_name("cust_id")
            },
        )
    )
    return model


def unique_index(name: str, table: Table, *columns: str) -> Index:
    """Detached unique index over attributes of an attached table."""
    index = Index(name, IndexType.UNIQUE)
    for column in columns:
        index.add_attribute(table.attributes.find_by_name(column))
    return index


@pytest.fixture
def index_factory() -> Callable[..., Index]:
    return unique_index


# === Real SQLite database ===


SHOP_DDL = [
    "CREATE TABLE customer ("
    " id INTEGER NOT NULL,"
    " name VARCHAR(50) NOT NULL,"
    " email VARCHAR(120),"
    " CONSTRAINT pk_customer PRIMARY KEY (id),"
    " CONSTRAINT uq_customer_email UNIQUE (email))",
    "CREATE TABLE orders ("
    " id INTEGER NOT NULL,"
    " customer_id INTEGER NOT NULL,"
    " total NUMERIC(10, 2),"
    " note TEXT,"
    " CONSTRAINT pk_orders PRIMARY KEY (id),"
    " CONSTRAINT fk_orders_customer FOREIGN KEY (customer_id)"
    " REFERENCES customer (id) ON DELETE CASCADE)",
    "CREATE INDEX ix_orders_customer ON orders (customer_id)",
    "CREATE VIEW big_orders AS SELECT id, customer_id, total FROM orders WHERE total > 100",
]


@pytest.fixture
def sqlite_db_url(tmp_path: Path) -> Generator[str, None, None]:
    """SQLite database file with customer, orders, an index, a foreign key and a view."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in SHOP_DDL:
            conn.execute(text(statement))
    engine.dispose()
    yield url

