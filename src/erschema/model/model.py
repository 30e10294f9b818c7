"""The Model aggregate: single mutation entry point of a schema.

Every mutation follows the same protocol:

1. Describe the proposal as one or more :class:`ChangeEvent` records and let
   the modification tracker verify them; a :class:`VetoError` aborts here, so a
   read-only tracker refuses a proposal before its names are even checked.
2. Validate the proposal against the dialect and the model invariants
   (InvalidNameError, ElementAlreadyExistsError, CannotDeleteError, ...).
3. Apply the change.
4. Hand the events to the tracker for recording.

Events carry names in their stored form whenever the dialect accepts them.
Only the subject's own membership is checked ahead of step 1, since the events
are built from it. A failure in steps 1 or 2 leaves both the model and the
tracker's journal exactly as they were.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from erschema.core.types import (
    AttributeInfo,
    ChangeEvent,
    ChangeOperation,
    DomainInfo,
    IndexInfo,
    ModelInfo,
    RecentlyUsedConnection,
    RelationInfo,
    SubjectAreaInfo,
    TableInfo,
    ViewInfo,
)
from erschema.exceptions import (
    CannotDeleteError,
    ConnectionRefusedError,
    ElementAlreadyExistsError,
    ElementNotFoundError,
    InvalidAttributeError,
    InvalidNameError,
    InvalidRelationError,
    UnsupportedOperationError,
)
from erschema.model.attribute import Attribute, Domain, DomainList
from erschema.model.index import Index
from erschema.model.item import ModelItem
from erschema.model.naming import check_name, check_name_and_existence
from erschema.model.relation import Relation, RelationList
from erschema.model.table import Table, TableList
from erschema.model.view import SubjectArea, SubjectAreaList, View, ViewList
from erschema.tracker.base import EmptyModelModificationTracker, ModelModificationTracker

if TYPE_CHECKING:
    from erschema.catalog.session import SQLAlchemyCatalogSession
    from erschema.dialect.base import Dialect

logger = logging.getLogger(__name__)


class ModelProperties(dict[str, str]):
    """Connection metadata of a model; unknown keys are kept but ignored."""

    DRIVER = "DRIVER"
    URL = "URL"
    USER = "USER"
    PASSWORD = "PASSWORD"

    def get_property(self, key: str) -> str | None:
        return self.get(key)

    def set_property(self, key: str, value: str | None) -> None:
        """Set ``key``; None removes it."""
        if value is None:
            self.pop(key, None)
        else:
            self[key] = value


class Model:
    """A database schema: tables, relations, views, domains and subject areas.

    Read through the entity lists (``tables``, ``relations``, ...); change only
    through the methods of this class so the modification tracker sees every
    mutation.
    """

    PROPERTY_DRIVER = ModelProperties.DRIVER
    PROPERTY_URL = ModelProperties.URL
    PROPERTY_USER = ModelProperties.USER
    PROPERTY_PASSWORD = ModelProperties.PASSWORD

    def __init__(
        self,
        dialect: Dialect | None = None,
        modification_tracker: ModelModificationTracker | None = None,
    ) -> None:
        """Initialize an empty model.

        Args:
            dialect: Name and datatype policy; without one names are taken verbatim
            modification_tracker: Observer of all mutations (default: accept, record nothing)
        """
        self.dialect = dialect
        self.tables = TableList(owner=self)
        self.relations = RelationList(owner=self)
        self.views = ViewList(owner=self)
        self.domains = DomainList(owner=self)
        self.subject_areas = SubjectAreaList(owner=self)
        self.properties = ModelProperties()
        self.modification_tracker: ModelModificationTracker = (
            modification_tracker
            if modification_tracker is not None
            else EmptyModelModificationTracker()
        )

    def __repr__(self) -> str:
        dialect = self.dialect.unique_name if self.dialect else None
        return f"Model(dialect={dialect!r}, tables={len(self.tables)})"

    # ------------------------------------------------------------------
    # Protocol helpers
    # ------------------------------------------------------------------

    def _commit(
        self,
        events: list[ChangeEvent],
        apply: Callable[[], None],
        validate: Callable[[], None] | None = None,
    ) -> None:
        self.modification_tracker.verify_all(events)
        if validate is not None:
            validate()
        apply()
        for event in events:
            self.modification_tracker.record(event)
            logger.debug(f"Applied {event.operation.value} on {event.subject_id}")

    def _require_table(self, table: Table | None) -> Table:
        if table is None or self.tables.find_by_id(table.system_id) is None:
            name = table.name if table is not None else ""
            raise ElementNotFoundError("Table", name, self.tables.names())
        return table

    def _require_member(self, items: Any, item: ModelItem) -> None:
        if item not in items:
            raise ElementNotFoundError(item.kind, getattr(item, "name", ""), items.names())

    def _require_detached(self, item: ModelItem, owner: Any) -> None:
        """Raise if ``item`` already belongs to an owner other than ``owner``."""
        current = item.owner
        if current is None or current is owner:
            return
        scope = f"table '{current.name}'" if isinstance(current, Table) else "another model"
        raise ElementAlreadyExistsError(item.kind, getattr(item, "name", ""), scope)

    def _proposed_name(self, name: str) -> str:
        """Stored form of ``name`` for change events; the name as given if the dialect rejects it.

        The rejection itself is raised by the validation step, after the tracker.
        """
        try:
            return check_name(name, self.dialect)
        except InvalidNameError:
            return name

    def _check_member_names(self, items: Iterable[Any], kind: str, scope: str) -> list[str]:
        """Checked names of a detached table's members, unique among themselves."""
        names: list[str] = []
        seen: set[str] = set()
        for item in items:
            name = check_name(item.name, self.dialect)
            key = self.dialect.normalize(name) if self.dialect else name
            if key in seen:
                raise ElementAlreadyExistsError(kind, name, f"table '{scope}'")
            seen.add(key)
            names.append(name)
        return names

    def _check_data_type_name(self, datatype: str) -> None:
        if self.dialect is not None and self.dialect.find_data_type(datatype) is None:
            available = [t.name for t in self.dialect.get_data_types()]
            raise ElementNotFoundError("DataType", datatype, available)

    def _check_datatype(self, attribute: Attribute) -> None:
        """An attribute is typed by exactly one of a dialect datatype and a model domain.

        Raises:
            InvalidAttributeError: If it has neither or both
            ElementNotFoundError: If the dialect lacks the datatype or the model the domain
        """
        if attribute.domain_id:
            if attribute.datatype:
                raise InvalidAttributeError(
                    attribute.name, "give either a datatype or a domain, not both"
                )
            if self.domains.find_by_id(attribute.domain_id) is None:
                raise ElementNotFoundError("Domain", attribute.domain_id, self.domains.names())
            return
        if not attribute.datatype:
            raise InvalidAttributeError(attribute.name, "a datatype or a domain is required")
        self._check_data_type_name(attribute.datatype)

    @staticmethod
    def _check_expressions(table: Table, index: Index) -> None:
        for expression in index.expressions:
            attribute_id = expression.attribute_id
            if attribute_id is not None and table.attributes.find_by_id(attribute_id) is None:
                raise ElementNotFoundError("Attribute", attribute_id, table.attributes.names())

    @staticmethod
    def _expression_names(table: Table, index: Index) -> list[str]:
        names = []
        for expression in index.expressions:
            attribute = (
                table.attributes.find_by_id(expression.attribute_id)
                if expression.attribute_id
                else None
            )
            names.append(attribute.name if attribute is not None else expression.name)
        return names

    def _validate_relation(self, relation: Relation, name: str) -> None:
        """Endpoints are members, keys cover one unique index, values are importing attributes."""
        importing = (
            self.tables.find_by_id(relation.importing_table_id)
            if relation.importing_table_id
            else None
        )
        exporting = (
            self.tables.find_by_id(relation.exporting_table_id)
            if relation.exporting_table_id
            else None
        )
        if importing is None:
            raise InvalidRelationError(name, "importing table is not part of the model")
        if exporting is None:
            raise InvalidRelationError(name, "exporting table is not part of the model")
        if not relation.mapping:
            raise InvalidRelationError(name, "mapping is empty")

        index: Index | None = None
        for expression_id, attribute_id in relation.mapping.items():
            expression = exporting.indexes.find_expression_by_id(expression_id)
            if expression is None:
                raise InvalidRelationError(
                    name, f"mapping key is not an index expression of table '{exporting.name}'"
                )
            if index is None:
                index = expression.owner
            elif expression.owner != index:
                raise InvalidRelationError(name, "mapping keys belong to more than one index")
            if importing.attributes.find_by_id(attribute_id) is None:
                raise InvalidRelationError(
                    name, f"mapping value is not an attribute of table '{importing.name}'"
                )
        if index is None or not index.is_unique:
            raise InvalidRelationError(
                name, f"referenced index of '{exporting.name}' is neither primary key nor unique"
            )
        if len(relation.mapping) != len(index.expressions):
            raise InvalidRelationError(
                name,
                f"mapping has {len(relation.mapping)} entries but index '{index.name}' "
                f"has {len(index.expressions)} expressions",
            )

    def relation_details(self, relation: Relation) -> dict[str, Any]:
        """Table and column names of a relation, resolved through this model."""
        importing = (
            self.tables.find_by_id(relation.importing_table_id)
            if relation.importing_table_id
            else None
        )
        exporting = (
            self.tables.find_by_id(relation.exporting_table_id)
            if relation.exporting_table_id
            else None
        )
        columns, referenced = [], []
        for expression_id, attribute_id in relation.mapping.items():
            expression = (
                exporting.indexes.find_expression_by_id(expression_id) if exporting else None
            )
            attribute = importing.attributes.find_by_id(attribute_id) if importing else None
            referenced.append(expression.name if expression is not None else expression_id)
            columns.append(attribute.name if attribute is not None else attribute_id)
        return {
            "importing_table": importing.name if importing else None,
            "exporting_table": exporting.name if exporting else None,
            "columns": columns,
            "referenced_columns": referenced,
        }

    # ------------------------------------------------------------------
    # Name policy (OwnedModelItemVerifier)
    # ------------------------------------------------------------------

    def check_name(self, name: str) -> str:
        """Validate ``name`` with the model's dialect and return its stored form."""
        return check_name(name, self.dialect)

    def check_name_already_exists(self, sender: ModelItem, name: str) -> None:
        """Raise if an element other than ``sender`` in the sender's scope uses ``name``.

        Raises:
            ElementAlreadyExistsError: On a collision under dialect normalization
        """
        scopes: dict[type, Any] = {
            Table: self.tables,
            Relation: self.relations,
            View: self.views,
            Domain: self.domains,
            SubjectArea: self.subject_areas,
        }
        items = scopes.get(type(sender))
        scope = None
        if items is None and isinstance(sender, Attribute | Index) and sender.owner is not None:
            table = sender.owner
            items = table.attributes if isinstance(sender, Attribute) else table.indexes
            scope = f"table '{table.name}'"
        if items is None:
            return
        check_name_and_existence(items, name, self.dialect, sender.kind, scope, exclude=sender)

    def check_if_used_as_foreign_key(self, table: Table, attribute: Attribute) -> bool:
        """Whether the attribute of ``table`` with ``attribute``'s id is a foreign-key attribute."""
        real = table.attributes.find_by_id(attribute.system_id)
        return real is not None and self.relations.is_foreign_key_attribute(real)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def add_table(self, table: Table) -> Table:
        """Add a table; its own name and all member names are normalized.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If a name violates the dialect's rules
            ElementAlreadyExistsError: If the name is taken, two members collide, or the
                table belongs to another model
            ElementNotFoundError: If a datatype, an attribute's domain or an index attribute
                is unknown
            InvalidAttributeError: If an attribute has neither or both of datatype and domain
        """
        name = self._proposed_name(table.name)
        attribute_names = [self._proposed_name(a.name) for a in table.attributes]
        index_names = [self._proposed_name(i.name) for i in table.indexes]
        snapshot = table.to_dict()
        snapshot["name"] = name
        for data, attribute_name in zip(snapshot["attributes"], attribute_names, strict=True):
            data["name"] = attribute_name
        for data, index_name in zip(snapshot["indexes"], index_names, strict=True):
            data["name"] = index_name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_TABLE,
            subject_id=table.system_id,
            table_id=table.system_id,
            after=snapshot,
            details={"table": name},
        )

        def validate() -> None:
            if table in self.tables:
                raise ElementAlreadyExistsError("Table", table.name)
            self._require_detached(table, self)
            check_name_and_existence(self.tables, table.name, self.dialect, "Table")
            self._check_member_names(table.attributes, "Attribute", name)
            self._check_member_names(table.indexes, "Index", name)
            for attribute in table.attributes:
                self._check_datatype(attribute)
            for index in table.indexes:
                self._check_expressions(table, index)

        def apply() -> None:
            table.name = name
            for attribute, attribute_name in zip(table.attributes, attribute_names, strict=True):
                attribute.name = attribute_name
            for index, index_name in zip(table.indexes, index_names, strict=True):
                index.name = index_name
            table.owner = self
            self.tables.add(table)

        self._commit([event], apply, validate)
        return table

    def remove_table(self, table: Table) -> None:
        """Remove a table, every relation touching it, and its subject-area memberships.

        The relation removals are journaled ahead of the table removal; the
        tracker vets the whole group before anything changes.
        """
        self._remove_table(table, cascade=True)

    def _remove_table(self, table: Table, cascade: bool) -> None:
        self._require_table(table)
        relations = self.relations.find_by_table(table)
        events = [
            ChangeEvent(
                operation=ChangeOperation.REMOVE_RELATION,
                subject_id=r.system_id,
                table_id=r.importing_table_id,
                before=r.to_dict(),
                details=self.relation_details(r),
            )
            for r in relations
        ]
        events.append(
            ChangeEvent(
                operation=ChangeOperation.REMOVE_TABLE,
                subject_id=table.system_id,
                table_id=table.system_id,
                affected_ids=[r.system_id for r in relations],
                before=table.to_dict(),
                details={"table": table.name},
            )
        )

        def validate() -> None:
            if not cascade and self.relations.is_table_in_use(table):
                raise CannotDeleteError("Table", table.name, "table is used by relations")

        def apply() -> None:
            for relation in self.relations.remove_by_table(table):
                relation.owner = None
            self.subject_areas.remove_table(table)
            self.tables.remove(table)
            table.owner = None

        self._commit(events, apply, validate)

    def rename_table(self, table: Table, new_name: str) -> None:
        """Rename a table.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If another table uses the name
        """
        self._require_table(table)
        name = self._proposed_name(new_name)
        event = ChangeEvent(
            operation=ChangeOperation.RENAME_TABLE,
            subject_id=table.system_id,
            table_id=table.system_id,
            before={"name": table.name},
            after={"name": name},
            details={"table": table.name},
        )

        def validate() -> None:
            check_name_and_existence(self.tables, new_name, self.dialect, "Table", exclude=table)

        def apply() -> None:
            table.name = name

        self._commit([event], apply, validate)

    def change_table_comment(self, table: Table, comment: str | None) -> None:
        self._require_table(table)
        event = ChangeEvent(
            operation=ChangeOperation.CHANGE_TABLE_COMMENT,
            subject_id=table.system_id,
            table_id=table.system_id,
            before={"comment": table.comment},
            after={"comment": comment},
            details={"table": table.name},
        )

        def apply() -> None:
            table.comment = comment

        self._commit([event], apply)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def add_relation(self, relation: Relation) -> Relation:
        """Add a foreign-key relation.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If another relation uses the name, or the relation
                belongs to another model
            InvalidRelationError: If endpoints or mapping do not match the model
        """
        name = self._proposed_name(relation.name)
        snapshot = relation.to_dict()
        snapshot["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_RELATION,
            subject_id=relation.system_id,
            table_id=relation.importing_table_id,
            affected_ids=[relation.importing_table_id or "", relation.exporting_table_id or ""],
            after=snapshot,
            details=self.relation_details(relation),
        )

        def validate() -> None:
            if relation in self.relations:
                raise ElementAlreadyExistsError("Relation", relation.name)
            self._require_detached(relation, self)
            check_name_and_existence(self.relations, relation.name, self.dialect, "Relation")
            self._validate_relation(relation, name)

        def apply() -> None:
            relation.name = name
            relation.owner = self
            self.relations.add(relation)

        self._commit([event], apply, validate)
        return relation

    def remove_relation(self, relation: Relation) -> None:
        self._require_member(self.relations, relation)
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_RELATION,
            subject_id=relation.system_id,
            table_id=relation.importing_table_id,
            before=relation.to_dict(),
            details=self.relation_details(relation),
        )

        def apply() -> None:
            self.relations.remove(relation)
            relation.owner = None

        self._commit([event], apply)

    def change_relation(self, relation: Relation, template: Relation) -> None:
        """Restore every mutable field of ``relation`` from ``template``.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the template's name
            ElementAlreadyExistsError: If another relation uses that name
            InvalidRelationError: If the template's endpoints or mapping do not match the model
        """
        self._require_member(self.relations, relation)
        name = self._proposed_name(template.name)
        after = template.to_dict()
        after["id"] = relation.system_id
        after["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.CHANGE_RELATION,
            subject_id=relation.system_id,
            table_id=relation.importing_table_id,
            before=relation.to_dict(),
            after=after,
            details={
                "before": self.relation_details(relation),
                "after": self.relation_details(template),
            },
        )

        def validate() -> None:
            check_name_and_existence(
                self.relations, template.name, self.dialect, "Relation", exclude=relation
            )
            self._validate_relation(template, name)

        def apply() -> None:
            relation.restore_from(template)
            relation.name = name

        self._commit([event], apply, validate)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def add_attribute_to_table(self, table: Table, attribute: Attribute) -> Attribute:
        """Append an attribute to a table.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If the table already has an attribute of that name, or
                the attribute belongs to another table
            ElementNotFoundError: If the datatype or the domain is unknown
            InvalidAttributeError: If the attribute has neither or both of datatype and domain
        """
        self._require_table(table)
        name = self._proposed_name(attribute.name)
        snapshot = attribute.to_dict()
        snapshot["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_ATTRIBUTE,
            subject_id=attribute.system_id,
            table_id=table.system_id,
            after=snapshot,
            details={"table": table.name},
        )

        def validate() -> None:
            self._require_detached(attribute, table)
            check_name_and_existence(
                table.attributes, attribute.name, self.dialect, "Attribute", f"table '{table.name}'"
            )
            self._check_datatype(attribute)

        def apply() -> None:
            attribute.name = name
            table.add_attribute(attribute)

        self._commit([event], apply, validate)
        return attribute

    def remove_attribute_from_table(self, table: Table, attribute: Attribute) -> None:
        """Remove an attribute; index expressions on it go too, emptied indexes are dropped.

        Raises:
            VetoError: If the tracker refuses
            CannotDeleteError: If the attribute takes part in a relation mapping
        """
        self._require_table(table)
        self._require_member(table.attributes, attribute)
        affected = table.indexes.find_by_attribute(attribute)
        dropped = [
            i for i in affected if all(e.attribute_id == attribute.system_id for e in i.expressions)
        ]
        shrunk = [i for i in affected if i not in dropped]
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_ATTRIBUTE,
            subject_id=attribute.system_id,
            table_id=table.system_id,
            affected_ids=[i.system_id for i in affected],
            before=attribute.to_dict(),
            details={
                "table": table.name,
                "dropped_indexes": [i.name for i in dropped],
                "shrunk_indexes": [i.name for i in shrunk],
            },
        )

        def validate() -> None:
            if self.relations.is_foreign_key_attribute(attribute):
                raise CannotDeleteError(
                    "Attribute", attribute.name, "it is a foreign-key attribute of a relation"
                )
            if self.relations.is_referenced_attribute(attribute):
                raise CannotDeleteError(
                    "Attribute", attribute.name, "it is referenced by a relation's key"
                )

        def apply() -> None:
            for index in shrunk:
                for expression in index.expressions:
                    if expression.attribute_id == attribute.system_id:
                        index.expressions.remove(expression)
            for index in dropped:
                table.indexes.remove(index)
            table.attributes.remove(attribute)
            attribute.owner = None

        self._commit([event], apply, validate)

    def rename_attribute(self, attribute: Attribute, new_name: str) -> None:
        """Rename an attribute.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If a sibling attribute uses the name
        """
        table = self._require_table(attribute.owner)
        name = self._proposed_name(new_name)
        after = attribute.to_dict()
        after["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.RENAME_ATTRIBUTE,
            subject_id=attribute.system_id,
            table_id=table.system_id,
            before=attribute.to_dict(),
            after=after,
            details={"table": table.name},
        )

        def validate() -> None:
            check_name_and_existence(
                table.attributes,
                new_name,
                self.dialect,
                "Attribute",
                f"table '{table.name}'",
                exclude=attribute,
            )

        def apply() -> None:
            attribute.name = name

        self._commit([event], apply, validate)

    def change_attribute(self, attribute: Attribute, template: Attribute) -> None:
        """Restore every mutable field of ``attribute`` from ``template``.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the template's name
            ElementAlreadyExistsError: If a sibling attribute uses that name
            ElementNotFoundError: If the template's datatype or domain is unknown
            InvalidAttributeError: If the template has neither or both of datatype and domain
        """
        table = self._require_table(attribute.owner)
        name = self._proposed_name(template.name)
        after = template.to_dict()
        after["id"] = attribute.system_id
        after["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.CHANGE_ATTRIBUTE,
            subject_id=attribute.system_id,
            table_id=table.system_id,
            before=attribute.to_dict(),
            after=after,
            details={"table": table.name},
        )

        def validate() -> None:
            check_name_and_existence(
                table.attributes,
                template.name,
                self.dialect,
                "Attribute",
                f"table '{table.name}'",
                exclude=attribute,
            )
            self._check_datatype(template)

        def apply() -> None:
            attribute.restore_from(template)
            attribute.name = name

        self._commit([event], apply, validate)

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def add_index_to_table(self, table: Table, index: Index) -> Index:
        """Add an index; primary keys are announced as their own operation.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If the name is taken, the table already has a primary
                key, or the index belongs to another table
            ElementNotFoundError: If an expression refers to an attribute of another table
        """
        self._require_table(table)
        name = self._proposed_name(index.name)
        snapshot = index.to_dict()
        snapshot["name"] = name
        operation = (
            ChangeOperation.ADD_PRIMARY_KEY if index.is_primary_key else ChangeOperation.ADD_INDEX
        )
        event = ChangeEvent(
            operation=operation,
            subject_id=index.system_id,
            table_id=table.system_id,
            after=snapshot,
            details={"table": table.name, "columns": self._expression_names(table, index)},
        )

        def validate() -> None:
            if index in table.indexes:
                raise ElementAlreadyExistsError("Index", index.name, f"table '{table.name}'")
            self._require_detached(index, table)
            check_name_and_existence(
                table.indexes, index.name, self.dialect, "Index", f"table '{table.name}'"
            )
            if index.is_primary_key and table.primary_key is not None:
                raise ElementAlreadyExistsError("Primary key", table.primary_key.name, table.name)
            self._check_expressions(table, index)

        def apply() -> None:
            index.name = name
            table.add_index(index)

        self._commit([event], apply, validate)
        return index

    def remove_index(self, table: Table, index: Index) -> None:
        """Remove an index.

        Raises:
            VetoError: If the tracker refuses
            CannotDeleteError: If a relation maps onto the index
        """
        self._require_table(table)
        self._require_member(table.indexes, index)
        operation = (
            ChangeOperation.REMOVE_PRIMARY_KEY
            if index.is_primary_key
            else ChangeOperation.REMOVE_INDEX
        )
        event = ChangeEvent(
            operation=operation,
            subject_id=index.system_id,
            table_id=table.system_id,
            before=index.to_dict(),
            details={"table": table.name, "columns": self._expression_names(table, index)},
        )

        def validate() -> None:
            if self.relations.is_index_in_use(index):
                raise CannotDeleteError("Index", index.name, "it is referenced by a relation")

        def apply() -> None:
            table.indexes.remove(index)
            index.owner = None

        self._commit([event], apply, validate)

    def change_index(self, index: Index, template: Index) -> None:
        """Restore name, type and expressions of ``index`` from ``template``.

        Expressions keep the template's system ids, so a template made with
        ``index.copy()`` leaves relations on the index intact.

        Raises:
            VetoError: If the tracker refuses
            InvalidNameError: If the dialect rejects the template's name
            ElementAlreadyExistsError: If the name is taken or a second primary key would result
            ElementNotFoundError: If an expression refers to an attribute of another table
            CannotDeleteError: If a relation mapping would lose its key expressions
        """
        table = self._require_table(index.owner)
        name = self._proposed_name(template.name)
        after = template.to_dict()
        after["id"] = index.system_id
        after["name"] = name
        operation_details = {
            "table": table.name,
            "before_columns": self._expression_names(table, index),
            "after_columns": self._expression_names(table, template),
        }
        event = ChangeEvent(
            operation=ChangeOperation.CHANGE_INDEX,
            subject_id=index.system_id,
            table_id=table.system_id,
            before=index.to_dict(),
            after=after,
            details=operation_details,
        )

        def validate() -> None:
            check_name_and_existence(
                table.indexes,
                template.name,
                self.dialect,
                "Index",
                f"table '{table.name}'",
                exclude=index,
            )
            current_pk = table.primary_key
            if template.is_primary_key and current_pk is not None and current_pk != index:
                raise ElementAlreadyExistsError("Primary key", current_pk.name, table.name)
            self._check_expressions(table, template)
            expression_ids = {e.system_id for e in template.expressions}
            own_ids = {e.system_id for e in index.expressions}
            for relation in self.relations:
                keys = set(relation.mapping)
                if not keys & own_ids:
                    continue
                if keys != expression_ids or not template.is_unique:
                    raise CannotDeleteError(
                        "Index",
                        index.name,
                        f"relation '{relation.name}' maps onto its expressions",
                    )

        def apply() -> None:
            index.restore_from(template)
            index.name = name

        self._commit([event], apply, validate)

    # ------------------------------------------------------------------
    # Views, domains, subject areas
    # ------------------------------------------------------------------

    def add_view(self, view: View) -> View:
        name = self._proposed_name(view.name)
        snapshot = view.to_dict()
        snapshot["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_VIEW, subject_id=view.system_id, after=snapshot
        )

        def validate() -> None:
            if view in self.views:
                raise ElementAlreadyExistsError("View", view.name)
            self._require_detached(view, self)
            check_name_and_existence(self.views, view.name, self.dialect, "View")

        def apply() -> None:
            view.name = name
            view.owner = self
            self.views.add(view)

        self._commit([event], apply, validate)
        return view

    def remove_view(self, view: View) -> None:
        """Remove a view and its subject-area memberships."""
        self._require_member(self.views, view)
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_VIEW, subject_id=view.system_id, before=view.to_dict()
        )

        def apply() -> None:
            self.subject_areas.remove_view(view)
            self.views.remove(view)
            view.owner = None

        self._commit([event], apply)

    def add_domain(self, domain: Domain) -> Domain:
        """Add a reusable datatype specification.

        Raises:
            ElementNotFoundError: If the dialect does not know the datatype
        """
        name = self._proposed_name(domain.name)
        snapshot = domain.to_dict()
        snapshot["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_DOMAIN, subject_id=domain.system_id, after=snapshot
        )

        def validate() -> None:
            if domain in self.domains:
                raise ElementAlreadyExistsError("Domain", domain.name)
            self._require_detached(domain, self)
            check_name_and_existence(self.domains, domain.name, self.dialect, "Domain")
            self._check_data_type_name(domain.datatype)

        def apply() -> None:
            domain.name = name
            domain.owner = self
            self.domains.add(domain)

        self._commit([event], apply, validate)
        return domain

    def remove_domain(self, domain: Domain) -> None:
        """Remove a domain.

        Raises:
            CannotDeleteError: If an attribute is typed by it
        """
        self._require_member(self.domains, domain)
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_DOMAIN,
            subject_id=domain.system_id,
            before=domain.to_dict(),
        )

        def validate() -> None:
            for table in self.tables:
                users = table.attributes.find_by_domain(domain)
                if users:
                    raise CannotDeleteError(
                        "Domain", domain.name, f"attribute '{table.name}.{users[0].name}' uses it"
                    )

        def apply() -> None:
            self.domains.remove(domain)
            domain.owner = None

        self._commit([event], apply, validate)

    def add_subject_area(self, area: SubjectArea) -> SubjectArea:
        """Add a subject area; its members must be tables and views of this model."""
        name = self._proposed_name(area.name)
        snapshot = area.to_dict()
        snapshot["name"] = name
        event = ChangeEvent(
            operation=ChangeOperation.ADD_SUBJECT_AREA, subject_id=area.system_id, after=snapshot
        )

        def validate() -> None:
            if area in self.subject_areas:
                raise ElementAlreadyExistsError("SubjectArea", area.name)
            self._require_detached(area, self)
            check_name_and_existence(self.subject_areas, area.name, self.dialect, "SubjectArea")
            for table_id in area.table_ids:
                if self.tables.find_by_id(table_id) is None:
                    raise ElementNotFoundError("Table", table_id, self.tables.names())
            for view_id in area.view_ids:
                if self.views.find_by_id(view_id) is None:
                    raise ElementNotFoundError("View", view_id, self.views.names())

        def apply() -> None:
            area.name = name
            area.owner = self
            self.subject_areas.add(area)

        self._commit([event], apply, validate)
        return area

    def remove_subject_area(self, area: SubjectArea) -> None:
        self._require_member(self.subject_areas, area)
        event = ChangeEvent(
            operation=ChangeOperation.REMOVE_SUBJECT_AREA,
            subject_id=area.system_id,
            before=area.to_dict(),
        )

        def apply() -> None:
            self.subject_areas.remove(area)
            area.owner = None

        self._commit([event], apply)

    # ------------------------------------------------------------------
    # Generic delete
    # ------------------------------------------------------------------

    def delete(self, item: ModelItem) -> None:
        """Remove a table that no relation uses, or a relation.

        Raises:
            CannotDeleteError: If the table is used by relations
            UnsupportedOperationError: For any other kind of element
        """
        if isinstance(item, Table):
            self._remove_table(item, cascade=False)
            return
        if isinstance(item, Relation):
            self.remove_relation(item)
            return
        raise UnsupportedOperationError(item)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def create_connection(self) -> SQLAlchemyCatalogSession:
        """Open a catalog session from the model's connection properties.

        Raises:
            ConnectionRefusedError: If no URL is configured or the database is unreachable
            DriverUnavailableError: If the driver is not installed
            AuthFailedError: If the credentials are rejected
        """
        if self.dialect is None:
            raise ValueError("The model has no dialect to connect with")
        url = self.properties.get_property(ModelProperties.URL)
        if not url:
            raise ConnectionRefusedError("No connection URL configured in the model properties.")
        return self.dialect.create_connection(
            self.properties.get_property(ModelProperties.DRIVER),
            url,
            self.properties.get_property(ModelProperties.USER),
            self.properties.get_property(ModelProperties.PASSWORD),
        )

    def create_connection_history_entry(self) -> RecentlyUsedConnection:
        """Record of the current connection for a host's recently-used list."""
        return RecentlyUsedConnection(
            dialect=self.dialect.unique_name if self.dialect else "",
            url=self.properties.get_property(ModelProperties.URL),
            user=self.properties.get_property(ModelProperties.USER),
        )

    # ------------------------------------------------------------------
    # Structural description
    # ------------------------------------------------------------------

    def describe(self) -> ModelInfo:
        """Structure of the model without system ids, e.g. for comparisons and JSON output."""
        tables = []
        total_attributes = 0
        for table in self.tables:
            attributes = []
            for a in table.attributes:
                domain = a.domain
                attributes.append(
                    AttributeInfo(
                        name=a.name,
                        datatype=a.datatype,
                        domain=domain.name if domain else None,
                        size=a.size,
                        fraction=a.fraction,
                        scale=a.scale,
                        nullable=a.nullable,
                        default_value=a.default_value,
                        extra=a.extra,
                    )
                )
            total_attributes += len(attributes)
            indexes = [
                IndexInfo(
                    name=i.name,
                    index_type=i.index_type,
                    expressions=self._expression_names(table, i),
                )
                for i in table.indexes
            ]
            tables.append(
                TableInfo(
                    name=table.name, comment=table.comment, attributes=attributes, indexes=indexes
                )
            )

        relations = []
        for r in self.relations:
            names = self.relation_details(r)
            relations.append(
                RelationInfo(
                    name=r.name,
                    importing_table=names["importing_table"] or "",
                    exporting_table=names["exporting_table"] or "",
                    on_delete=r.on_delete,
                    on_update=r.on_update,
                    mapping=list(zip(names["referenced_columns"], names["columns"], strict=True)),
                )
            )

        areas = []
        for area in self.subject_areas:
            area_tables = [self.tables.find_by_id(i) for i in area.table_ids]
            area_views = [self.views.find_by_id(i) for i in area.view_ids]
            areas.append(
                SubjectAreaInfo(
                    name=area.name,
                    tables=[t.name for t in area_tables if t is not None],
                    views=[v.name for v in area_views if v is not None],
                )
            )

        return ModelInfo(
            dialect=self.dialect.unique_name if self.dialect else None,
            tables=tables,
            relations=relations,
            views=[
                ViewInfo(name=v.name, sql=v.sql, attributes=list(v.attributes)) for v in self.views
            ],
            domains=[
                DomainInfo(
                    name=d.name,
                    datatype=d.datatype,
                    size=d.size,
                    fraction=d.fraction,
                    scale=d.scale,
                )
                for d in self.domains
            ],
            subject_areas=areas,
            total_tables=len(tables),
            total_attributes=total_attributes,
        )
