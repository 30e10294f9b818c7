"""Core value types for erschema."""

from erschema.core.types import (
    CascadeType,
    ChangeEvent,
    ChangeOperation,
    DataType,
    IndexType,
    ModelInfo,
    NameCasing,
    RecentlyUsedConnection,
    ReverseEngineeringOptions,
    SchemaEntry,
    TableEntry,
    TableNaming,
)

__all__ = [
    "CascadeType",
    "ChangeEvent",
    "ChangeOperation",
    "DataType",
    "IndexType",
    "ModelInfo",
    "NameCasing",
    "RecentlyUsedConnection",
    "ReverseEngineeringOptions",
    "SchemaEntry",
    "TableEntry",
    "TableNaming",
]
