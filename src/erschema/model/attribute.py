"""Attributes (table columns) and reusable datatype domains."""

from __future__ import annotations

from typing import Any

from erschema.model.item import ModelItem, OwnedItemList


class Domain(ModelItem):
    """A named, reusable datatype specification."""

    kind = "Domain"

    def __init__(
        self,
        name: str,
        datatype: str,
        size: int | None = None,
        fraction: int | None = None,
        scale: int | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.datatype = datatype
        self.size = size
        self.fraction = fraction
        self.scale = scale

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "datatype": self.datatype,
            "size": self.size,
            "fraction": self.fraction,
            "scale": self.scale,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Domain:
        """Rebuild a domain from ``to_dict`` output, keeping its system id."""
        return cls(
            name=data["name"],
            datatype=data["datatype"],
            size=data.get("size"),
            fraction=data.get("fraction"),
            scale=data.get("scale"),
            system_id=data.get("id"),
        )


class DomainList(OwnedItemList[Domain]):
    """Domains of a model."""


class Attribute(ModelItem):
    """A column of a table.

    The datatype is either given directly by name or resolved through a
    :class:`Domain` of the owning model.
    """

    kind = "Attribute"

    def __init__(
        self,
        name: str,
        datatype: str | None = None,
        *,
        domain: Domain | str | None = None,
        size: int | None = None,
        fraction: int | None = None,
        scale: int | None = None,
        nullable: bool = True,
        default_value: str | None = None,
        extra: str | None = None,
        comment: str | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.datatype = datatype
        self.domain_id = domain.system_id if isinstance(domain, Domain) else domain
        self.size = size
        self.fraction = fraction
        self.scale = scale
        self.nullable = nullable
        self.default_value = default_value
        self.extra = extra
        self.comment = comment

    @property
    def table(self) -> Any:
        """The owning table."""
        return self.owner

    @property
    def domain(self) -> Domain | None:
        """The domain this attribute is typed by, resolved through the owning model."""
        if self.domain_id is None or self.owner is None or self.owner.owner is None:
            return None
        return self.owner.owner.domains.find_by_id(self.domain_id)

    def resolve_type(self) -> tuple[str | None, int | None, int | None, int | None]:
        """Effective (datatype, size, fraction, scale), following the domain if set."""
        domain = self.domain
        if domain is not None:
            return domain.datatype, domain.size, domain.fraction, domain.scale
        return self.datatype, self.size, self.fraction, self.scale

    def restore_from(self, template: Attribute) -> None:
        """Copy every mutable field from ``template``; the system id is kept."""
        self.name = template.name
        self.datatype = template.datatype
        self.domain_id = template.domain_id
        self.size = template.size
        self.fraction = template.fraction
        self.scale = template.scale
        self.nullable = template.nullable
        self.default_value = template.default_value
        self.extra = template.extra
        self.comment = template.comment

    def copy(self) -> Attribute:
        """Detached copy with the same system id, usable as a change template."""
        return Attribute.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "datatype": self.datatype,
            "domain_id": self.domain_id,
            "size": self.size,
            "fraction": self.fraction,
            "scale": self.scale,
            "nullable": self.nullable,
            "default_value": self.default_value,
            "extra": self.extra,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attribute:
        """Rebuild an attribute from ``to_dict`` output, keeping its system id."""
        return cls(
            name=data["name"],
            datatype=data.get("datatype"),
            domain=data.get("domain_id"),
            size=data.get("size"),
            fraction=data.get("fraction"),
            scale=data.get("scale"),
            nullable=data.get("nullable", True),
            default_value=data.get("default_value"),
            extra=data.get("extra"),
            comment=data.get("comment"),
            system_id=data.get("id"),
        )


class AttributeList(OwnedItemList[Attribute]):
    """Ordered attributes of a table."""

    def find_by_domain(self, domain: Domain) -> list[Attribute]:
        """Attributes typed by ``domain``."""
        return [a for a in self if a.domain_id == domain.system_id]
