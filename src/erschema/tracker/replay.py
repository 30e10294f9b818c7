"""Replay a history journal against a model."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from erschema.core.types import ChangeEvent, ChangeOperation
from erschema.exceptions import ElementNotFoundError
from erschema.model.attribute import Attribute, Domain
from erschema.model.index import Index
from erschema.model.relation import Relation
from erschema.model.table import Table
from erschema.model.view import SubjectArea, View

if TYPE_CHECKING:
    from erschema.model.model import Model

logger = logging.getLogger(__name__)


def _table(model: Model, table_id: str | None) -> Table:
    table = model.tables.find_by_id(table_id) if table_id else None
    if table is None:
        raise ElementNotFoundError("Table", table_id or "", model.tables.names())
    return table


def _attribute(table: Table, attribute_id: str) -> Attribute:
    attribute = table.attributes.find_by_id(attribute_id)
    if attribute is None:
        raise ElementNotFoundError("Attribute", attribute_id, table.attributes.names())
    return attribute


def _index(table: Table, index_id: str) -> Index:
    index = table.indexes.find_by_id(index_id)
    if index is None:
        raise ElementNotFoundError("Index", index_id, table.indexes.names())
    return index


def _relation(model: Model, relation_id: str) -> Relation:
    relation = model.relations.find_by_id(relation_id)
    if relation is None:
        raise ElementNotFoundError("Relation", relation_id, model.relations.names())
    return relation


def apply_event(event: ChangeEvent, model: Model) -> None:
    """Apply one journaled change through the model's mutation protocol.

    Elements are rebuilt from the event's images with their original system
    ids, so a replayed model matches the source id for id.

    Raises:
        ElementNotFoundError: If the event refers to an element the model lacks
    """
    op = event.operation
    before, after = event.before or {}, event.after or {}

    if op == ChangeOperation.ADD_TABLE:
        model.add_table(Table.from_dict(after))
    elif op == ChangeOperation.REMOVE_TABLE:
        model.remove_table(_table(model, event.subject_id))
    elif op == ChangeOperation.RENAME_TABLE:
        model.rename_table(_table(model, event.subject_id), after["name"])
    elif op == ChangeOperation.CHANGE_TABLE_COMMENT:
        model.change_table_comment(_table(model, event.subject_id), after.get("comment"))
    elif op == ChangeOperation.ADD_RELATION:
        model.add_relation(Relation.from_dict(after))
    elif op == ChangeOperation.REMOVE_RELATION:
        model.remove_relation(_relation(model, event.subject_id))
    elif op == ChangeOperation.CHANGE_RELATION:
        model.change_relation(_relation(model, event.subject_id), Relation.from_dict(after))
    elif op == ChangeOperation.ADD_ATTRIBUTE:
        model.add_attribute_to_table(_table(model, event.table_id), Attribute.from_dict(after))
    elif op == ChangeOperation.REMOVE_ATTRIBUTE:
        table = _table(model, event.table_id)
        model.remove_attribute_from_table(table, _attribute(table, event.subject_id))
    elif op == ChangeOperation.RENAME_ATTRIBUTE:
        table = _table(model, event.table_id)
        model.rename_attribute(_attribute(table, event.subject_id), after["name"])
    elif op == ChangeOperation.CHANGE_ATTRIBUTE:
        table = _table(model, event.table_id)
        model.change_attribute(_attribute(table, event.subject_id), Attribute.from_dict(after))
    elif op in (ChangeOperation.ADD_INDEX, ChangeOperation.ADD_PRIMARY_KEY):
        model.add_index_to_table(_table(model, event.table_id), Index.from_dict(after))
    elif op in (ChangeOperation.REMOVE_INDEX, ChangeOperation.REMOVE_PRIMARY_KEY):
        table = _table(model, event.table_id)
        model.remove_index(table, _index(table, event.subject_id))
    elif op == ChangeOperation.CHANGE_INDEX:
        table = _table(model, event.table_id)
        model.change_index(_index(table, event.subject_id), Index.from_dict(after))
    elif op == ChangeOperation.ADD_VIEW:
        model.add_view(View.from_dict(after))
    elif op == ChangeOperation.REMOVE_VIEW:
        view = model.views.find_by_id(event.subject_id)
        if view is None:
            raise ElementNotFoundError("View", before.get("name", event.subject_id))
        model.remove_view(view)
    elif op == ChangeOperation.ADD_DOMAIN:
        model.add_domain(Domain.from_dict(after))
    elif op == ChangeOperation.REMOVE_DOMAIN:
        domain = model.domains.find_by_id(event.subject_id)
        if domain is None:
            raise ElementNotFoundError("Domain", before.get("name", event.subject_id))
        model.remove_domain(domain)
    elif op == ChangeOperation.ADD_SUBJECT_AREA:
        model.add_subject_area(SubjectArea.from_dict(after))
    elif op == ChangeOperation.REMOVE_SUBJECT_AREA:
        area = model.subject_areas.find_by_id(event.subject_id)
        if area is None:
            raise ElementNotFoundError("SubjectArea", before.get("name", event.subject_id))
        model.remove_subject_area(area)


def replay_journal(events: Iterable[ChangeEvent], model: Model) -> Model:
    """Apply ``events`` in order to ``model`` and return it.

    Events a removal cascades into (the relations journaled ahead of a removed
    table) are applied individually, so the cascade finds nothing left to do.
    """
    count = 0
    for event in events:
        apply_event(event, model)
        count += 1
    logger.debug(f"Replayed {count} journal events")
    return model
