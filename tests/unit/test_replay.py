"""Tests for journal replay."""

import pytest

from erschema.core.types import CascadeType, ChangeEvent, ChangeOperation, IndexType
from erschema.dialect import MySQLDialect
from erschema.exceptions import ElementAlreadyExistsError, ElementNotFoundError
from erschema.model import Attribute, Domain, Index, Model, Relation, SubjectArea, View
from erschema.tracker import (
    HistoryModificationTracker,
    apply_event,
    load_journal,
    replay_journal,
)


def replayed(history):
    """Serialize the journal, read it back and replay it into a fresh MySQL model."""
    events = load_journal(history.dump_json())
    return replay_journal(events, Model(MySQLDialect(), HistoryModificationTracker()))


class TestReplay:
    """Replaying a journal rebuilds an equal model."""

    def test_edit_session(self, model, history, table_factory):
        a = model.add_table(table_factory("A", "id", "v", pk=["id"]))
        b = model.add_table(table_factory("B", "id", "a_id", pk=["id"]))
        r = model.add_relation(
            Relation(
                "r",
                importing_table=b,
                exporting_table=a,
                mapping={a.primary_key.expressions[0]: b.attributes.find_by_name("a_id")},
            )
        )
        model.rename_table(a, "A2")
        model.remove_attribute_from_table(a, a.attributes.find_by_name("v"))

        copy = replayed(history)

        assert copy.describe() == model.describe()
        assert copy.tables.names() == ["A2", "B"]
        assert copy.tables.find_by_name("A2").system_id == a.system_id
        assert copy.relations.find_by_name("r").system_id == r.system_id
        assert copy.relations[0].resolve_mapping()

    def test_replay_journals_the_same_changes(self, shop_model, history):
        copy = replayed(history)
        original = [(e.operation, e.subject_id, e.after) for e in history.journal]
        repeated = [(e.operation, e.subject_id, e.after) for e in copy.modification_tracker.journal]
        assert repeated == original

    def test_cascaded_table_removal(self, shop_model, history):
        """Relations journaled ahead of a removed table are replayed on their own."""
        shop_model.remove_table(shop_model.tables.find_by_name("customer"))
        copy = replayed(history)
        assert copy.tables.names() == ["ORDERS"]
        assert len(copy.relations) == 0

    def test_every_entity_kind(self, shop_model, history):
        customer = shop_model.tables.find_by_name("customer")
        orders = shop_model.tables.find_by_name("orders")

        money = shop_model.add_domain(Domain("money", "DECIMAL", size=12, fraction=2))
        total = shop_model.add_attribute_to_table(orders, Attribute("total", domain=money))
        shop_model.change_table_comment(orders, "Placed orders")

        note = shop_model.add_attribute_to_table(orders, Attribute("note", "TEXT"))
        template = note.copy()
        template.name = "remark"
        template.nullable = False
        shop_model.change_attribute(note, template)
        shop_model.rename_attribute(note, "remarks")

        index = Index("ix_total")
        index.add_attribute(total)
        shop_model.add_index_to_table(orders, index)
        index_template = index.copy()
        index_template.index_type = IndexType.UNIQUE
        shop_model.change_index(index, index_template)

        relation = shop_model.relations[0]
        relation_template = relation.copy()
        relation_template.on_delete = CascadeType.CASCADE
        shop_model.change_relation(relation, relation_template)

        view = shop_model.add_view(View("v_totals", sql="SELECT id, total FROM orders"))
        area = shop_model.add_subject_area(
            SubjectArea("sales", tables=[customer, orders], views=[view])
        )
        shop_model.add_subject_area(SubjectArea("archive", tables=[orders]))
        shop_model.remove_subject_area(area)
        shop_model.remove_view(view)
        shop_model.remove_index(orders, index)
        shop_model.remove_attribute_from_table(orders, total)
        shop_model.remove_domain(money)
        shop_model.remove_index(orders, orders.primary_key)

        copy = replayed(history)

        info = copy.describe()
        assert info == shop_model.describe()
        assert info.tables[1].comment == "Placed orders"
        assert info.tables[1].attributes[-1].name == "REMARKS"
        assert info.relations[0].on_delete == CascadeType.CASCADE
        assert [a.name for a in info.subject_areas] == ["ARCHIVE"]

    def test_views_and_domains_keep_their_ids(self, model, history):
        view = model.add_view(View("v", sql="SELECT 1 AS one"))
        domain = model.add_domain(Domain("code", "CHAR", size=3))
        copy = replayed(history)
        assert copy.views.find_by_id(view.system_id).attributes == ["one"]
        assert copy.domains.find_by_id(domain.system_id).size == 3


class TestApplyEvent:
    """Tests for applying single events."""

    def test_unknown_table(self):
        event = ChangeEvent(
            operation=ChangeOperation.RENAME_TABLE,
            subject_id="missing",
            table_id="missing",
            after={"name": "X"},
        )
        with pytest.raises(ElementNotFoundError):
            apply_event(event, Model(MySQLDialect()))

    def test_unknown_view(self):
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_VIEW, subject_id="missing", before={"name": "V"}
        )
        with pytest.raises(ElementNotFoundError, match="View 'V'"):
            apply_event(event, Model(MySQLDialect()))

    def test_unknown_attribute(self, shop_model):
        orders = shop_model.tables.find_by_name("orders")
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_ATTRIBUTE,
            subject_id="missing",
            table_id=orders.system_id,
            before={"name": "GONE"},
        )
        with pytest.raises(ElementNotFoundError):
            apply_event(event, shop_model)

    def test_replay_goes_through_validation(self, shop_model, history):
        """A journal that does not fit the target model fails like a direct call."""
        events = history.journal
        with pytest.raises(ElementAlreadyExistsError):
            replay_journal(events + events[:1], Model(MySQLDialect()))
