"""Core types and value objects for erschema.

Everything here is a plain enum or a pydantic model, so it can be serialized
to JSON for journals, CLI output and host applications.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


def generate_uuid() -> str:
    """Generate a new system id."""
    return str(uuid4())


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class IndexType(StrEnum):
    """Kinds of table indexes."""

    PRIMARY_KEY = "PRIMARY_KEY"
    UNIQUE = "UNIQUE"
    NON_UNIQUE = "NON_UNIQUE"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid index type values."""
        return [t.value for t in cls]


class CascadeType(StrEnum):
    """Referential actions of a relation on delete and on update."""

    CASCADE = "CASCADE"
    SET_NULL = "SET_NULL"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO_ACTION"
    SET_DEFAULT = "SET_DEFAULT"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid cascade values."""
        return [c.value for c in cls]

    @classmethod
    def from_sql(cls, clause: str | None) -> CascadeType:
        """Map a catalog referential action ("SET NULL", "cascade", ...) to a CascadeType."""
        if not clause:
            return cls.NO_ACTION
        try:
            return cls(clause.strip().upper().replace(" ", "_"))
        except ValueError:
            return cls.NO_ACTION

    @property
    def sql(self) -> str:
        """SQL spelling of the action."""
        return self.value.replace("_", " ")


class NameCasing(StrEnum):
    """How a dialect folds identifiers before storing them."""

    UPPERCASE = "UPPERCASE"
    LOWERCASE = "LOWERCASE"
    PRESERVE = "PRESERVE"


class TableNaming(StrEnum):
    """Naming mode used by reverse engineering."""

    STANDARD = "STANDARD"  # raw catalog name
    INCLUDE_SCHEMA = "INCLUDE_SCHEMA"  # schema-qualified name


class ChangeOperation(StrEnum):
    """Every kind of model mutation a modification tracker can see."""

    ADD_TABLE = "add_table"
    REMOVE_TABLE = "remove_table"
    RENAME_TABLE = "rename_table"
    CHANGE_TABLE_COMMENT = "change_table_comment"
    ADD_RELATION = "add_relation"
    REMOVE_RELATION = "remove_relation"
    CHANGE_RELATION = "change_relation"
    ADD_ATTRIBUTE = "add_attribute_to_table"
    REMOVE_ATTRIBUTE = "remove_attribute_from_table"
    RENAME_ATTRIBUTE = "rename_attribute"
    CHANGE_ATTRIBUTE = "change_attribute"
    ADD_INDEX = "add_index_to_table"
    ADD_PRIMARY_KEY = "add_primary_key_to_table"
    REMOVE_INDEX = "remove_index_from_table"
    REMOVE_PRIMARY_KEY = "remove_primary_key_from_table"
    CHANGE_INDEX = "change_index"
    ADD_VIEW = "add_view"
    REMOVE_VIEW = "remove_view"
    ADD_DOMAIN = "add_domain"
    REMOVE_DOMAIN = "remove_domain"
    ADD_SUBJECT_AREA = "add_subject_area"
    REMOVE_SUBJECT_AREA = "remove_subject_area"

    @classmethod
    def values(cls) -> list[str]:
        """Return all operation values."""
        return [o.value for o in cls]


class DataType(BaseModel):
    """A datatype of a dialect's closed catalog.

    The ``supports_*`` flags declare which attribute properties are meaningful
    for the type, e.g. VARCHAR has a size, DECIMAL a size and a fraction.
    """

    name: str
    aliases: tuple[str, ...] = ()
    supports_size: bool = False
    supports_fraction: bool = False
    supports_scale: bool = False
    supports_extra: bool = False

    model_config = {"frozen": True}

    def matches(self, type_name: str) -> bool:
        """Check whether a catalog type name denotes this datatype."""
        candidate = type_name.strip().upper()
        return candidate == self.name or candidate in self.aliases

    def create_type_definition(
        self,
        size: int | None = None,
        fraction: int | None = None,
        scale: int | None = None,
    ) -> str:
        """Render the type for DDL, e.g. ``VARCHAR(20)`` or ``DECIMAL(20,5)``."""
        if self.supports_size and size is not None:
            if self.supports_fraction and fraction is not None:
                return f"{self.name}({size},{fraction})"
            return f"{self.name}({size})"
        return self.name


class ChangeEvent(BaseModel):
    """One accepted model mutation, as journaled by the history tracker.

    ``before`` and ``after`` hold the pre- and post-image of the changed element
    (``to_dict()`` snapshots, system ids included). ``details`` carries names
    resolved at the time of the change so the event can be rendered as SQL
    without the model.
    """

    id: str = Field(default_factory=generate_uuid)
    timestamp: datetime = Field(default_factory=utc_now)
    operation: ChangeOperation
    subject_id: str
    table_id: str | None = None
    affected_ids: list[str] = Field(default_factory=list)
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class SchemaEntry(BaseModel):
    """A schema (or catalog) reported by a live database."""

    catalog_name: str | None = None
    schema_name: str | None = None

    @property
    def display_name(self) -> str:
        """Human readable name."""
        return self.schema_name or self.catalog_name or ""


class TableEntry(BaseModel):
    """A table or view reported by a live database."""

    name: str
    schema_name: str | None = None
    catalog_name: str | None = None
    table_type: str = "TABLE"


class ReverseEngineeringOptions(BaseModel):
    """Options for a reverse-engineering run."""

    table_naming: TableNaming = Field(
        default=TableNaming.STANDARD, description="STANDARD or INCLUDE_SCHEMA"
    )
    schemas: list[SchemaEntry] = Field(
        default_factory=list, description="Schemas to read; empty means all"
    )
    table_entries: list[TableEntry] = Field(
        default_factory=list, description="Tables to read; empty means all in the schemas"
    )
    skip_views: bool = Field(default=False, description="Do not import views")


class RecentlyUsedConnection(BaseModel):
    """Connection history entry a host can persist."""

    dialect: str
    url: str | None = None
    user: str | None = None

    model_config = {"frozen": True}


# === Structural descriptions (output format, no system ids) ===


class AttributeInfo(BaseModel):
    """Information about an attribute."""

    name: str
    datatype: str | None
    domain: str | None = None
    size: int | None = None
    fraction: int | None = None
    scale: int | None = None
    nullable: bool = True
    default_value: str | None = None
    extra: str | None = None


class IndexInfo(BaseModel):
    """Information about an index; expressions are attribute names or literals."""

    name: str
    index_type: IndexType
    expressions: list[str]


class TableInfo(BaseModel):
    """Information about a table."""

    name: str
    comment: str | None = None
    attributes: list[AttributeInfo]
    indexes: list[IndexInfo] = Field(default_factory=list)


class RelationInfo(BaseModel):
    """Information about a relation; mapping pairs are (exporting, importing) names."""

    name: str
    importing_table: str
    exporting_table: str
    on_delete: CascadeType
    on_update: CascadeType
    mapping: list[tuple[str, str]]


class ViewInfo(BaseModel):
    """Information about a view."""

    name: str
    sql: str | None = None
    attributes: list[str] = Field(default_factory=list)


class DomainInfo(BaseModel):
    """Information about a domain."""

    name: str
    datatype: str
    size: int | None = None
    fraction: int | None = None
    scale: int | None = None


class SubjectAreaInfo(BaseModel):
    """Information about a subject area."""

    name: str
    tables: list[str] = Field(default_factory=list)
    views: list[str] = Field(default_factory=list)


class ModelInfo(BaseModel):
    """Full structural description of a model."""

    dialect: str | None
    tables: list[TableInfo]
    relations: list[RelationInfo] = Field(default_factory=list)
    views: list[ViewInfo] = Field(default_factory=list)
    domains: list[DomainInfo] = Field(default_factory=list)
    subject_areas: list[SubjectAreaInfo] = Field(default_factory=list)
    total_tables: int
    total_attributes: int
