"""Table indexes and their ordered expressions."""

from __future__ import annotations

from typing import Any

from erschema.core.types import IndexType
from erschema.model.attribute import Attribute
from erschema.model.item import ModelItem, OwnedItemList


class IndexExpression(ModelItem):
    """One entry of an index: an attribute of the owning table or a literal expression."""

    kind = "IndexExpression"

    def __init__(
        self,
        attribute: Attribute | str | None = None,
        expression: str | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        if (attribute is None) == (expression is None):
            raise ValueError("An index expression needs exactly one of attribute or expression")
        self.attribute_id = attribute.system_id if isinstance(attribute, Attribute) else attribute
        self.expression = expression

    @property
    def index(self) -> Index | None:
        """The owning index."""
        return self.owner

    @property
    def attribute(self) -> Attribute | None:
        """Referenced attribute, resolved through the owning table."""
        if self.attribute_id is None or self.owner is None or self.owner.owner is None:
            return None
        return self.owner.owner.attributes.find_by_id(self.attribute_id)

    @property
    def name(self) -> str:
        """Attribute name, or the literal expression."""
        attribute = self.attribute
        if attribute is not None:
            return attribute.name
        return self.expression or self.attribute_id or ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "attribute_id": self.attribute_id,
            "expression": self.expression,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexExpression:
        """Rebuild an expression from ``to_dict`` output, keeping its system id."""
        return cls(
            attribute=data.get("attribute_id"),
            expression=data.get("expression"),
            system_id=data.get("id"),
        )


class IndexExpressionList(OwnedItemList[IndexExpression]):
    """Ordered expressions of an index."""

    def find_by_attribute(self, attribute: Attribute) -> IndexExpression | None:
        """Expression referencing ``attribute``."""
        for expression in self:
            if expression.attribute_id == attribute.system_id:
                return expression
        return None

    def find_by_attribute_name(self, name: str) -> IndexExpression | None:
        """Expression whose referenced attribute has the given name."""
        for expression in self:
            attribute = expression.attribute
            if attribute is not None and self._normalize(attribute.name) == self._normalize(name):
                return expression
        return None


class Index(ModelItem):
    """A named index of a table."""

    kind = "Index"

    def __init__(
        self,
        name: str,
        index_type: IndexType = IndexType.NON_UNIQUE,
        expressions: list[IndexExpression] | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.index_type = IndexType(index_type)
        self.expressions = IndexExpressionList(owner=self)
        for expression in expressions or []:
            self._attach(expression)

    @property
    def table(self) -> Any:
        """The owning table."""
        return self.owner

    @property
    def is_primary_key(self) -> bool:
        return self.index_type == IndexType.PRIMARY_KEY

    @property
    def is_unique(self) -> bool:
        """Primary keys and unique indexes."""
        return self.index_type in (IndexType.PRIMARY_KEY, IndexType.UNIQUE)

    def _attach(self, expression: IndexExpression) -> IndexExpression:
        expression.owner = self
        self.expressions.add(expression)
        return expression

    def add_attribute(self, attribute: Attribute) -> IndexExpression:
        """Append an expression referencing ``attribute``."""
        return self._attach(IndexExpression(attribute=attribute))

    def add_expression(self, expression: str) -> IndexExpression:
        """Append a literal expression."""
        return self._attach(IndexExpression(expression=expression))

    def attribute_ids(self) -> list[str | None]:
        """Referenced attribute ids in expression order (None for literals)."""
        return [e.attribute_id for e in self.expressions]

    def restore_from(self, template: Index) -> None:
        """Copy name, type and expressions from ``template``; the system id is kept."""
        self.name = template.name
        self.index_type = template.index_type
        self.expressions = IndexExpressionList(owner=self)
        for expression in template.expressions:
            self._attach(IndexExpression.from_dict(expression.to_dict()))

    def copy(self) -> Index:
        """Detached copy with the same system ids, usable as a change template."""
        return Index.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "index_type": self.index_type.value,
            "expressions": [e.to_dict() for e in self.expressions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Index:
        """Rebuild an index from ``to_dict`` output, keeping its system ids."""
        return cls(
            name=data["name"],
            index_type=IndexType(data.get("index_type", IndexType.NON_UNIQUE)),
            expressions=[IndexExpression.from_dict(e) for e in data.get("expressions", [])],
            system_id=data.get("id"),
        )


class IndexList(OwnedItemList[Index]):
    """Ordered indexes of a table."""

    def find_primary_key(self) -> Index | None:
        """The primary-key index, if any."""
        for index in self:
            if index.is_primary_key:
                return index
        return None

    def find_expression_by_id(self, system_id: str) -> IndexExpression | None:
        """Search every index for the expression with ``system_id``."""
        for index in self:
            expression = index.expressions.find_by_id(system_id)
            if expression is not None:
                return expression
        return None

    def find_by_attribute(self, attribute: Attribute) -> list[Index]:
        """Indexes with an expression referencing ``attribute``."""
        return [i for i in self if i.expressions.find_by_attribute(attribute) is not None]
