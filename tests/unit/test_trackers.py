"""Tests for modification trackers."""

import pytest
from pydantic import ValidationError

from erschema.core.types import CascadeType, ChangeEvent, ChangeOperation, IndexType
from erschema.exceptions import VetoError
from erschema.model import Attribute, Index, Model, Relation, Table
from erschema.tracker import (
    HistoryModificationTracker,
    ModelModificationTracker,
    StatementModificationTracker,
    VetoingModificationTracker,
    dump_journal,
    load_journal,
)


def relate(model, name, importing, exporting, column, **options):
    mapping = {exporting.primary_key.expressions[0]: importing.attributes.find_by_name(column)}
    return model.add_relation(
        Relation(
            name, importing_table=importing, exporting_table=exporting, mapping=mapping, **options
        )
    )


class TestHistoryTracker:
    """Tests for HistoryModificationTracker."""

    def test_journals_accepted_changes(self, shop_model, history):
        assert [e.operation for e in history.journal] == [
            ChangeOperation.ADD_TABLE,
            ChangeOperation.ADD_TABLE,
            ChangeOperation.ADD_RELATION,
        ]
        assert len(history) == 3

    def test_journal_is_a_copy(self, shop_model, history):
        history.journal.clear()
        assert len(history) == 3

    def test_events_carry_ids(self, shop_model, history):
        relation = shop_model.relations[0]
        event = history.journal[-1]
        assert event.subject_id == relation.system_id
        assert event.table_id == shop_model.tables.find_by_name("orders").system_id
        assert event.details["columns"] == ["CUST_ID"]
        assert event.details["referenced_columns"] == ["ID"]

    def test_journaled_events_are_frozen(self, shop_model, history):
        event = history.journal[0]
        with pytest.raises(ValidationError):
            event.subject_id = "someone-else"
        assert history.journal[0].subject_id == shop_model.tables[0].system_id

    def test_clear(self, shop_model, history):
        history.clear()
        assert history.journal == []

    def test_empty_tracker_is_kept(self, mysql):
        """An empty journal is still a tracker worth keeping."""
        tracker = HistoryModificationTracker()
        model = Model(mysql, tracker)
        assert model.modification_tracker is tracker
        model.add_table(Table("t"))
        assert len(tracker) == 1

    def test_dump_and_load(self, shop_model, history):
        data = history.dump_json(indent=2)
        events = load_journal(data)
        assert events == history.journal
        assert all(isinstance(e, ChangeEvent) for e in events)
        assert load_journal(dump_journal(events)) == events

    def test_load_rejects_garbage(self):
        with pytest.raises(ValidationError):
            load_journal('[{"operation": "explode_table"}]')


class TestVetoingTracker:
    """Tests for vetoes and their rollback guarantee."""

    def test_vetoed_rename_changes_nothing(self, mysql, history):
        tracker = VetoingModificationTracker(history, [ChangeOperation.RENAME_TABLE])
        model = Model(mysql, tracker)
        table = model.add_table(Table("t"))
        history.clear()

        with pytest.raises(VetoError) as exc_info:
            model.rename_table(table, "X")

        assert exc_info.value.operation == "rename_table"
        assert table.name == "T"
        assert history.journal == []

    def test_other_operations_pass(self, mysql, history):
        tracker = VetoingModificationTracker(history, [ChangeOperation.RENAME_TABLE])
        model = Model(mysql, tracker)
        table = model.add_table(Table("t"))
        model.change_table_comment(table, "kept")
        assert len(history) == 2

    def test_read_only(self, mysql):
        model = Model(mysql, VetoingModificationTracker(read_only=True, reason="frozen"))
        with pytest.raises(VetoError, match="frozen"):
            model.add_table(Table("t"))
        assert len(model.tables) == 0

    def test_read_only_wins_over_taken_name(self, shop_model, history):
        """The tracker is asked before the proposal is validated."""
        shop_model.modification_tracker = VetoingModificationTracker(history, read_only=True)
        customer = shop_model.tables.find_by_name("customer")
        with pytest.raises(VetoError):
            shop_model.rename_table(customer, "Orders")
        with pytest.raises(VetoError):
            shop_model.add_table(Table("ORDERS"))
        assert customer.name == "CUSTOMER"
        assert len(history) == 3

    def test_read_only_wins_over_invalid_proposals(self, shop_model):
        shop_model.modification_tracker = VetoingModificationTracker(read_only=True)
        orders = shop_model.tables.find_by_name("orders")
        with pytest.raises(VetoError):
            shop_model.add_attribute_to_table(orders, Attribute("bad name", "NOT_A_TYPE"))
        with pytest.raises(VetoError):
            shop_model.remove_attribute_from_table(orders, orders.attributes[1])
        with pytest.raises(VetoError):
            shop_model.delete(shop_model.tables.find_by_name("customer"))
        assert orders.attributes.names() == ["ID", "CUST_ID"]
        assert len(shop_model.tables) == 2

    def test_vetoed_event_carries_stored_name(self, mysql):
        seen = []

        class RefuseAll(ModelModificationTracker):
            def check(self, event):
                seen.append(event)
                raise VetoError(event.operation.value, "refused")

        model = Model(mysql, RefuseAll())
        with pytest.raises(VetoError):
            model.add_table(Table("customer"))
        with pytest.raises(VetoError):
            model.add_table(Table("bad name"))
        assert [e.details["table"] for e in seen] == ["CUSTOMER", "bad name"]

    def test_group_veto_keeps_relations(self, shop_model, history):
        """Vetoing a cascaded relation removal refuses the table removal too."""
        shop_model.modification_tracker = VetoingModificationTracker(
            history, [ChangeOperation.REMOVE_RELATION]
        )
        customer = shop_model.tables.find_by_name("customer")
        with pytest.raises(VetoError):
            shop_model.remove_table(customer)
        assert customer in shop_model.tables
        assert len(shop_model.relations) == 1
        assert len(history) == 3

    def test_capability_hook_override(self, shop_model):
        class NoDrops(HistoryModificationTracker):
            def remove_table(self, event):
                raise VetoError(event.operation.value, "tables are never dropped here")

        tracker = NoDrops()
        shop_model.modification_tracker = tracker
        orders = shop_model.tables.find_by_name("orders")
        shop_model.rename_table(orders, "purchase")
        with pytest.raises(VetoError):
            shop_model.remove_table(orders)
        assert [e.operation for e in tracker.journal] == [ChangeOperation.RENAME_TABLE]

    def test_check_override(self, shop_model):
        """Hooks defer to check, so one override guards every operation."""

        class CustomerIsFrozen(ModelModificationTracker):
            def check(self, event):
                if event.details.get("table") == "CUSTOMER":
                    raise VetoError(event.operation.value, "customer is frozen")

        shop_model.modification_tracker = CustomerIsFrozen()
        customer = shop_model.tables.find_by_name("customer")
        with pytest.raises(VetoError):
            shop_model.add_attribute_to_table(customer, Attribute("email", "VARCHAR", size=80))
        with pytest.raises(VetoError):
            shop_model.change_table_comment(customer, "nope")
        shop_model.add_attribute_to_table(
            shop_model.tables.find_by_name("orders"), Attribute("note", "TEXT")
        )
        assert customer.attributes.names() == ["ID"]


@pytest.fixture
def mysql_script(mysql):
    model = Model(mysql)
    tracker = StatementModificationTracker(model)
    model.modification_tracker = tracker
    return model, tracker


class TestStatementTracker:
    """Tests for StatementModificationTracker."""

    def test_requires_dialect(self):
        with pytest.raises(ValueError):
            StatementModificationTracker(Model())

    def test_mysql_session(self, mysql_script, table_factory):
        model, tracker = mysql_script
        customer = model.add_table(table_factory("customer", "id", "name", pk=["id"]))
        model.rename_table(customer, "client")
        email = model.add_attribute_to_table(customer, Attribute("email", "VARCHAR", size=120))
        model.change_table_comment(customer, "Buyers")
        orders = model.add_table(table_factory("orders", "id", "cust_id", pk=["id"]))
        relation = relate(
            model, "fk1", orders, customer, "cust_id", on_delete=CascadeType.CASCADE
        )
        model.remove_relation(relation)

        name = customer.attributes.find_by_name("name")
        template = name.copy()
        template.datatype = "VARCHAR"
        template.size = 50
        template.nullable = False
        model.change_attribute(name, template)
        model.remove_attribute_from_table(customer, email)

        assert tracker.statements == [
            "CREATE TABLE CUSTOMER (ID INT NOT NULL, NAME INT, "
            "CONSTRAINT PK_CUSTOMER PRIMARY KEY (ID))",
            "RENAME TABLE CUSTOMER TO CLIENT",
            "ALTER TABLE CLIENT ADD EMAIL VARCHAR(120)",
            "ALTER TABLE CLIENT COMMENT = 'Buyers'",
            "CREATE TABLE ORDERS (ID INT NOT NULL, CUST_ID INT, "
            "CONSTRAINT PK_ORDERS PRIMARY KEY (ID))",
            "ALTER TABLE ORDERS ADD CONSTRAINT FK1 FOREIGN KEY (CUST_ID) "
            "REFERENCES CLIENT (ID) ON DELETE CASCADE",
            "ALTER TABLE ORDERS DROP FOREIGN KEY FK1",
            "ALTER TABLE CLIENT CHANGE NAME NAME VARCHAR(50) NOT NULL",
            "ALTER TABLE CLIENT DROP COLUMN EMAIL",
        ]

    def test_mysql_indexes(self, mysql_script, table_factory, index_factory):
        model, tracker = mysql_script
        customer = model.add_table(table_factory("customer", "id", "email"))
        index = model.add_index_to_table(customer, index_factory("ux_email", customer, "email"))
        model.remove_index(customer, index)
        pk = Index("pk_customer", IndexType.PRIMARY_KEY)
        pk.add_attribute(customer.attributes.find_by_name("id"))
        model.add_index_to_table(customer, pk)
        model.remove_index(customer, pk)
        assert tracker.statements[1:] == [
            "CREATE UNIQUE INDEX UX_EMAIL ON CUSTOMER (EMAIL)",
            "DROP INDEX UX_EMAIL ON CUSTOMER",
            "ALTER TABLE CUSTOMER ADD PRIMARY KEY (ID)",
            "ALTER TABLE CUSTOMER DROP PRIMARY KEY",
        ]

    def test_script(self, mysql_script):
        model, tracker = mysql_script
        table = model.add_table(Table("t", attributes=[Attribute("id", "INT")]))
        model.rename_table(table, "u")
        assert tracker.script() == "CREATE TABLE T (ID INT);\nRENAME TABLE T TO U;"
        tracker.clear()
        assert tracker.statements == []

    def test_postgres_session(self, postgres, table_factory):
        model = Model(postgres)
        tracker = StatementModificationTracker(model)
        model.modification_tracker = tracker
        customer = model.add_table(table_factory("Customer", "id", "name", pk=["id"]))
        model.rename_table(customer, "client")
        model.change_table_comment(customer, "It's them")
        name = customer.attributes.find_by_name("name")
        template = name.copy()
        template.datatype = "VARCHAR"
        template.size = 50
        template.nullable = False
        template.default_value = "'n/a'"
        model.change_attribute(name, template)
        model.rename_attribute(name, "full_name")

        assert tracker.statements == [
            "CREATE TABLE customer (id INTEGER NOT NULL, name INTEGER, "
            "CONSTRAINT pk_customer PRIMARY KEY (id))",
            "ALTER TABLE customer RENAME TO client",
            "COMMENT ON TABLE client IS 'It''s them'",
            "ALTER TABLE client ALTER COLUMN name TYPE VARCHAR(50)",
            "ALTER TABLE client ALTER COLUMN name SET DEFAULT 'n/a'",
            "ALTER TABLE client ALTER COLUMN name SET NOT NULL",
            "ALTER TABLE client RENAME COLUMN name TO full_name",
        ]

    def test_oracle_session(self, oracle, table_factory):
        model = Model(oracle)
        tracker = StatementModificationTracker(model)
        model.modification_tracker = tracker
        customer = model.add_table(table_factory("customer", "id", pk=["id"]))
        orders = model.add_table(table_factory("orders", "id", "cust_id", pk=["id"]))
        tracker.clear()

        note = model.add_attribute_to_table(orders, Attribute("note", "VARCHAR", size=200))
        template = note.copy()
        template.nullable = False
        model.change_attribute(note, template)
        relate(
            model,
            "fk1",
            orders,
            customer,
            "cust_id",
            on_delete=CascadeType.SET_NULL,
            on_update=CascadeType.CASCADE,
        )

        assert tracker.statements == [
            "ALTER TABLE ORDERS ADD (NOTE VARCHAR2(200))",
            "ALTER TABLE ORDERS MODIFY (NOTE VARCHAR2(200) NOT NULL)",
            "ALTER TABLE ORDERS ADD CONSTRAINT FK1 FOREIGN KEY (CUST_ID) "
            "REFERENCES CUSTOMER (ID) ON DELETE SET NULL",
        ]

    def test_sqlite_vetoes_what_it_cannot_express(self, sqlite, table_factory):
        model = Model(sqlite)
        tracker = StatementModificationTracker(model)
        model.modification_tracker = tracker
        customer = model.add_table(table_factory("customer", "id", pk=["id"]))
        orders = model.add_table(table_factory("orders", "id", "cust_id", pk=["id"]))
        before = tracker.statements

        with pytest.raises(VetoError, match="SQLite"):
            relate(model, "fk1", orders, customer, "cust_id")
        with pytest.raises(VetoError):
            model.change_table_comment(orders, "no comments in SQLite")

        assert len(model.relations) == 0
        assert orders.comment is None
        assert tracker.statements == before

    def test_sqlite_index_changes(self, sqlite, table_factory, index_factory):
        model = Model(sqlite)
        tracker = StatementModificationTracker(model)
        model.modification_tracker = tracker
        customer = model.add_table(table_factory("customer", "id", "email", pk=["id"]))
        index = model.add_index_to_table(customer, index_factory("ux_email", customer, "email"))
        template = index.copy()
        template.name = "ux_customer_email"
        model.change_index(index, template)
        assert tracker.statements[-2:] == [
            "DROP INDEX ux_email",
            "CREATE UNIQUE INDEX ux_customer_email ON customer (email)",
        ]

        pk_template = customer.primary_key.copy()
        pk_template.name = "pk_customer_id"
        with pytest.raises(VetoError):
            model.change_index(customer.primary_key, pk_template)

    def test_explicit_generator(self, mysql, postgres):
        """A model can be scripted for another dialect."""
        model = Model(mysql)
        tracker = StatementModificationTracker(model, postgres.create_sql_generator())
        model.modification_tracker = tracker
        model.add_table(Table("t", attributes=[Attribute("id", "INT")]))
        assert tracker.statements == ["CREATE TABLE T (ID INTEGER)"]
