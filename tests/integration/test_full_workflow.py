"""Integration tests for the full erschema workflow."""

import pytest
from sqlalchemy import create_engine, text

from erschema import (
    Attribute,
    Index,
    Model,
    Relation,
    SQLiteDialect,
    StatementModificationTracker,
    Table,
    reverse_engineer,
)
from erschema.exceptions import VetoError
from erschema.tracker import load_journal, replay_journal


def run_script(url: str, statements: list[str]) -> None:
    """Execute DDL statements in one transaction."""
    engine = create_engine(url)
    with engine.begin() as conn:
        for statement in statements:
            conn.execute(text(statement))
    engine.dispose()


class TestFullWorkflow:
    """Reverse engineer, edit with a statement tracker, apply and read back."""

    def test_reverse_edit_apply(self, sqlite_db_url: str):
        dialect = SQLiteDialect()

        # 1. Read the database
        model = reverse_engineer(dialect, sqlite_db_url)
        assert model.tables.names() == ["customer", "orders"]
        journal = model.modification_tracker.dump_json()

        # 2. The journal rebuilds the same model
        copy = replay_journal(load_journal(journal), Model(SQLiteDialect()))
        assert copy.describe() == model.describe()

        # 3. Edit through a statement tracker
        tracker = StatementModificationTracker(model)
        model.modification_tracker = tracker

        payment = Table(
            "Payment",
            attributes=[
                Attribute("id", "INTEGER", nullable=False),
                Attribute("order_id", "INTEGER", nullable=False),
                Attribute("amount", "NUMERIC", size=10, fraction=2),
            ],
        )
        payment.create_primary_key("pk_payment", [payment.attributes[0]])
        model.add_table(payment)
        index = Index("ix_payment_order")
        index.add_attribute(payment.attributes.find_by_name("order_id"))
        model.add_index_to_table(payment, index)
        model.rename_attribute(payment.attributes.find_by_name("amount"), "paid_amount")
        model.add_attribute_to_table(payment, Attribute("method", "VARCHAR", size=20))

        # 4. SQLite cannot add a foreign key to an existing table
        orders = model.tables.find_by_name("orders")
        with pytest.raises(VetoError):
            model.add_relation(
                Relation(
                    "fk_payment_order",
                    importing_table=payment,
                    exporting_table=orders,
                    mapping={orders.primary_key.expressions[0]: payment.attributes[1]},
                )
            )
        assert model.relations.names() == ["fk_orders_customer"]

        assert tracker.statements == [
            "CREATE TABLE payment (id INTEGER NOT NULL, order_id INTEGER NOT NULL, "
            "amount NUMERIC(10,2), CONSTRAINT pk_payment PRIMARY KEY (id))",
            "CREATE INDEX ix_payment_order ON payment (order_id)",
            "ALTER TABLE payment RENAME COLUMN amount TO paid_amount",
            "ALTER TABLE payment ADD method VARCHAR(20)",
        ]

        # 5. Apply the script and read the database again
        run_script(sqlite_db_url, tracker.statements)
        updated = reverse_engineer(dialect, sqlite_db_url)

        table = updated.tables.find_by_name("payment")
        assert table.attributes.names() == ["id", "order_id", "paid_amount", "method"]
        assert table.indexes.find_by_name("ix_payment_order") is not None
        assert [e.name for e in table.primary_key.expressions] == ["id"]
        assert updated.describe().tables[2] == model.describe().tables[2]

    def test_script_recreates_database(self, sqlite_db_url: str, tmp_path):
        """The create script of a reversed model builds an equal database."""
        dialect = SQLiteDialect()
        model = reverse_engineer(dialect, sqlite_db_url)
        copy_url = f"sqlite:///{tmp_path / 'copy.db'}"

        run_script(copy_url, dialect.create_sql_generator().create_script(model))
        copy = reverse_engineer(dialect, copy_url)

        assert copy.describe() == model.describe()
