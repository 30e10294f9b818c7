"""Custom exceptions for erschema.

Every error carries an actionable message plus a JSON-serializable context,
so that hosts can show it to a user or log it as structured data.
"""

from __future__ import annotations

from typing import Any


class ERSchemaError(Exception):
    """Base exception for all erschema errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


# === Validation Errors ===


class InvalidNameError(ERSchemaError):
    """Identifier violates the rules of the current dialect."""

    def __init__(self, name: str, reason: str) -> None:
        message = f"Invalid name '{name}': {reason}"
        super().__init__(message, {"name": name, "reason": reason})
        self.name = name
        self.reason = reason


class ElementAlreadyExistsError(ERSchemaError):
    """Name collides with an existing element under dialect normalization."""

    def __init__(self, kind: str, name: str, scope: str | None = None) -> None:
        where = f" in {scope}" if scope else ""
        message = (
            f"{kind} '{name}' already exists{where}. "
            f"Names are compared after dialect normalization; choose a different name."
        )
        super().__init__(message, {"kind": kind, "name": name, "scope": scope})
        self.kind = kind
        self.name = name
        self.scope = scope


class ElementNotFoundError(ERSchemaError):
    """Element is not a member of the model or table it was looked up in."""

    def __init__(self, kind: str, name: str, available: list[str] | None = None) -> None:
        available = available or []
        if available:
            message = f"{kind} '{name}' not found. Available: {', '.join(available)}"
        else:
            message = f"{kind} '{name}' not found."
        super().__init__(message, {"kind": kind, "name": name, "available": available})
        self.kind = kind
        self.name = name
        self.available = available


class InvalidAttributeError(ERSchemaError):
    """Attribute is not typed by exactly one of a datatype and a domain."""

    def __init__(self, attribute_name: str, reason: str) -> None:
        message = f"Invalid attribute '{attribute_name}': {reason}"
        super().__init__(message, {"attribute_name": attribute_name, "reason": reason})
        self.attribute_name = attribute_name
        self.reason = reason


class InvalidRelationError(ERSchemaError):
    """Relation endpoints or mapping do not match the model."""

    def __init__(self, relation_name: str, reason: str) -> None:
        message = f"Invalid relation '{relation_name}': {reason}"
        super().__init__(message, {"relation_name": relation_name, "reason": reason})
        self.relation_name = relation_name
        self.reason = reason


class CannotDeleteError(ERSchemaError):
    """Deletion would violate referential integrity."""

    def __init__(self, kind: str, name: str, reason: str) -> None:
        message = f"Cannot delete {kind} '{name}': {reason}"
        super().__init__(message, {"kind": kind, "name": name, "reason": reason})
        self.kind = kind
        self.name = name
        self.reason = reason


class VetoError(ERSchemaError):
    """A modification tracker refused the change."""

    def __init__(self, operation: str, reason: str) -> None:
        message = f"Modification '{operation}' was vetoed: {reason}"
        super().__init__(message, {"operation": operation, "reason": reason})
        self.operation = operation
        self.reason = reason


class UnsupportedOperationError(ERSchemaError):
    """Generic delete was called with an element kind the model does not handle."""

    def __init__(self, element: object) -> None:
        kind = type(element).__name__
        message = f"Unknown element {kind}: only tables and relations can be deleted generically."
        super().__init__(message, {"kind": kind})
        self.element = element


# === Catalog Errors ===


class CatalogError(ERSchemaError):
    """Reading catalog metadata failed."""

    pass


class CatalogConnectionError(CatalogError):
    """Base class for failures of the catalog session itself."""

    pass


class DriverUnavailableError(CatalogConnectionError):
    """The requested database driver is not installed."""

    def __init__(self, driver: str, detail: str | None = None) -> None:
        message = f"Database driver '{driver}' is not available."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message, {"driver": driver})
        self.driver = driver


class ConnectionRefusedError(CatalogConnectionError):  # noqa: A001
    """The database did not accept the connection."""

    pass


class AuthFailedError(CatalogConnectionError):
    """The database rejected the supplied credentials."""

    pass


class ConnectionLostError(CatalogConnectionError):
    """The catalog session dropped while reading metadata."""

    pass
