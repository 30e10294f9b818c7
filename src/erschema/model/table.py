"""Tables: ordered attributes plus indexes, at most one of them a primary key."""

from __future__ import annotations

from typing import Any

from erschema.core.types import IndexType
from erschema.exceptions import ElementAlreadyExistsError
from erschema.model.attribute import Attribute, AttributeList
from erschema.model.index import Index, IndexList
from erschema.model.item import ModelItem, OwnedItemList
from erschema.model.naming import check_name_and_existence


class Table(ModelItem):
    """A table of the model.

    Tables can be assembled while detached (``add_attribute``/``add_index``)
    and then handed to :meth:`Model.add_table`. Once a table belongs to a
    model, change it through the model so the modification tracker sees it.
    """

    kind = "Table"

    def __init__(
        self,
        name: str,
        comment: str | None = None,
        attributes: list[Attribute] | None = None,
        indexes: list[Index] | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.comment = comment
        self.attributes = AttributeList(owner=self)
        self.indexes = IndexList(owner=self)
        for attribute in attributes or []:
            self.add_attribute(attribute)
        for index in indexes or []:
            self.add_index(index)

    @property
    def model(self) -> Any:
        """The owning model."""
        return self.owner

    @property
    def primary_key(self) -> Index | None:
        """The primary-key index, if any."""
        return self.indexes.find_primary_key()

    def add_attribute(self, attribute: Attribute) -> Attribute:
        """Append an attribute, checking its name against the dialect and siblings.

        Raises:
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If the table already has an attribute of that name, or
                the attribute belongs to another table
        """
        if attribute.owner is not None and attribute.owner is not self:
            raise ElementAlreadyExistsError(
                "Attribute", attribute.name, f"table '{attribute.owner.name}'"
            )
        attribute.name = check_name_and_existence(
            self.attributes, attribute.name, self.dialect, "Attribute", f"table '{self.name}'"
        )
        attribute.owner = self
        self.attributes.add(attribute)
        return attribute

    def add_index(self, index: Index) -> Index:
        """Append an index; a table accepts only one primary key.

        Raises:
            InvalidNameError: If the dialect rejects the name
            ElementAlreadyExistsError: If the name is taken, a primary key already exists, or
                the index belongs to another table
        """
        if index.owner is not None and index.owner is not self:
            raise ElementAlreadyExistsError("Index", index.name, f"table '{index.owner.name}'")
        index.name = check_name_and_existence(
            self.indexes, index.name, self.dialect, "Index", f"table '{self.name}'"
        )
        if index.is_primary_key and self.primary_key is not None:
            raise ElementAlreadyExistsError("Primary key", self.primary_key.name, self.name)
        index.owner = self
        self.indexes.add(index)
        return index

    def create_primary_key(self, name: str, attributes: list[Attribute]) -> Index:
        """Convenience: build and add a primary key over ``attributes``."""
        index = Index(name, IndexType.PRIMARY_KEY)
        for attribute in attributes:
            index.add_attribute(attribute)
        return self.add_index(index)

    def restore_from(self, template: Table) -> None:
        """Copy name and comment from ``template``."""
        self.name = template.name
        self.comment = template.comment

    def copy(self) -> Table:
        """Detached deep copy with the same system ids."""
        return Table.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "comment": self.comment,
            "attributes": [a.to_dict() for a in self.attributes],
            "indexes": [i.to_dict() for i in self.indexes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Table:
        """Rebuild a table from ``to_dict`` output, keeping all system ids."""
        table = cls(data["name"], comment=data.get("comment"), system_id=data.get("id"))
        for attribute in data.get("attributes", []):
            table.add_attribute(Attribute.from_dict(attribute))
        for index in data.get("indexes", []):
            table.add_index(Index.from_dict(index))
        return table


class TableList(OwnedItemList[Table]):
    """Tables of a model."""
