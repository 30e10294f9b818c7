"""Foreign-key relations between tables.

A relation never owns what it points at. It stores the system ids of its two
tables and, per mapped column, the id of the exporting index expression and of
the importing attribute. Everything is resolved through the owning model on
access, so removing a table is a sweep over the relation list.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from erschema.core.types import CascadeType
from erschema.model.item import ModelItem, OwnedItemList

if TYPE_CHECKING:
    from erschema.model.attribute import Attribute
    from erschema.model.index import Index, IndexExpression
    from erschema.model.table import Table


class Relation(ModelItem):
    """Directed foreign-key edge from an importing to an exporting table."""

    kind = "Relation"

    def __init__(
        self,
        name: str,
        importing_table: Table | str | None = None,
        exporting_table: Table | str | None = None,
        mapping: dict[IndexExpression, Attribute] | dict[str, str] | None = None,
        on_delete: CascadeType = CascadeType.NO_ACTION,
        on_update: CascadeType = CascadeType.NO_ACTION,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.importing_table_id = _as_id(importing_table)
        self.exporting_table_id = _as_id(exporting_table)
        self.on_delete = CascadeType(on_delete)
        self.on_update = CascadeType(on_update)
        self.mapping: dict[str, str] = {}
        for key, value in (mapping or {}).items():
            self.mapping[_as_id(key)] = _as_id(value)  # type: ignore[index]

    @property
    def model(self) -> Any:
        """The owning model."""
        return self.owner

    @property
    def importing_table(self) -> Table | None:
        """Table holding the foreign-key attributes."""
        if self.owner is None or self.importing_table_id is None:
            return None
        return self.owner.tables.find_by_id(self.importing_table_id)

    @property
    def exporting_table(self) -> Table | None:
        """Table whose primary or unique index is referenced."""
        if self.owner is None or self.exporting_table_id is None:
            return None
        return self.owner.tables.find_by_id(self.exporting_table_id)

    @property
    def referenced_index(self) -> Index | None:
        """Index of the exporting table the mapping keys belong to."""
        table = self.exporting_table
        if table is None or not self.mapping:
            return None
        first = next(iter(self.mapping))
        expression = table.indexes.find_expression_by_id(first)
        return expression.owner if expression is not None else None

    def resolve_mapping(self) -> dict[IndexExpression, Attribute]:
        """Mapping with ids resolved to live objects; unresolvable entries are left out."""
        exporting = self.exporting_table
        importing = self.importing_table
        if exporting is None or importing is None:
            return {}
        result: dict[IndexExpression, Attribute] = {}
        for expression_id, attribute_id in self.mapping.items():
            expression = exporting.indexes.find_expression_by_id(expression_id)
            attribute = importing.attributes.find_by_id(attribute_id)
            if expression is not None and attribute is not None:
                result[expression] = attribute
        return result

    def uses_table(self, table: Table) -> bool:
        """Whether ``table`` is one of the endpoints."""
        return table.system_id in (self.importing_table_id, self.exporting_table_id)

    def restore_from(self, template: Relation) -> None:
        """Copy every mutable field from ``template``; the system id is kept."""
        self.name = template.name
        self.importing_table_id = template.importing_table_id
        self.exporting_table_id = template.exporting_table_id
        self.on_delete = template.on_delete
        self.on_update = template.on_update
        self.mapping = dict(template.mapping)

    def copy(self) -> Relation:
        """Detached copy with the same system id, usable as a change template."""
        return Relation.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "importing_table_id": self.importing_table_id,
            "exporting_table_id": self.exporting_table_id,
            "on_delete": self.on_delete.value,
            "on_update": self.on_update.value,
            "mapping": [[key, value] for key, value in self.mapping.items()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relation:
        """Rebuild a relation from ``to_dict`` output, keeping its system id."""
        return cls(
            name=data["name"],
            importing_table=data.get("importing_table_id"),
            exporting_table=data.get("exporting_table_id"),
            mapping={key: value for key, value in data.get("mapping", [])},
            on_delete=CascadeType(data.get("on_delete", CascadeType.NO_ACTION)),
            on_update=CascadeType(data.get("on_update", CascadeType.NO_ACTION)),
            system_id=data.get("id"),
        )


def _as_id(value: ModelItem | str | None) -> str | None:
    if isinstance(value, ModelItem):
        return value.system_id
    return value


class RelationList(OwnedItemList[Relation]):
    """Relations of a model, with the reverse lookups integrity checks need."""

    def find_by_table(self, table: Table) -> list[Relation]:
        """Relations having ``table`` as importing or exporting table."""
        return [r for r in self if r.uses_table(table)]

    def is_table_in_use(self, table: Table) -> bool:
        """Whether any relation touches ``table``."""
        return any(r.uses_table(table) for r in self)

    def is_foreign_key_attribute(self, attribute: Attribute) -> bool:
        """Whether ``attribute`` is the importing side of any mapping."""
        return any(attribute.system_id in r.mapping.values() for r in self)

    def is_referenced_attribute(self, attribute: Attribute) -> bool:
        """Whether ``attribute`` is referenced by the key expression of any mapping."""
        table = attribute.owner
        if table is None:
            return False
        for relation in self:
            if relation.exporting_table_id != table.system_id:
                continue
            for expression_id in relation.mapping:
                expression = table.indexes.find_expression_by_id(expression_id)
                if expression is not None and expression.attribute_id == attribute.system_id:
                    return True
        return False

    def is_index_in_use(self, index: Index) -> bool:
        """Whether any mapping key is an expression of ``index``."""
        expression_ids = {e.system_id for e in index.expressions}
        return any(expression_ids.intersection(r.mapping) for r in self)

    def remove_by_table(self, table: Table) -> list[Relation]:
        """Remove every relation touching ``table`` and return them."""
        removed = self.find_by_table(table)
        for relation in removed:
            self.remove(relation)
        return removed
