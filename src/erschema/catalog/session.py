"""Catalog sessions: the read-only view of a live database used by reverse engineering.

The pipeline depends only on the :class:`CatalogSession` protocol. The
SQLAlchemy implementation reads metadata through the reflection Inspector and
translates driver errors into the erschema error taxonomy.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.engine import Inspector, make_url
from sqlalchemy.exc import (
    ArgumentError,
    DBAPIError,
    DisconnectionError,
    NoSuchModuleError,
    OperationalError,
    SQLAlchemyError,
)

from erschema.exceptions import (
    AuthFailedError,
    CatalogError,
    ConnectionLostError,
    ConnectionRefusedError,
    DriverUnavailableError,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Fragments of driver messages that indicate rejected credentials
_AUTH_FAILURE_HINTS = (
    "access denied",
    "authentication failed",
    "password authentication",
    "invalid username/password",
    "ora-01017",
    "login failed",
)


@runtime_checkable
class CatalogSession(Protocol):
    """Minimal catalog abstraction consumed by reverse engineering.

    Metadata methods return SQLAlchemy Inspector shaped dictionaries.
    """

    def execute_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        ...

    def get_schema_names(self) -> list[str]:
        ...

    def get_default_schema_name(self) -> str | None:
        ...

    def get_table_names(self, schema: str | None = None) -> list[str]:
        ...

    def get_view_names(self, schema: str | None = None) -> list[str]:
        ...

    def get_columns(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        ...

    def get_pk_constraint(self, table: str, schema: str | None = None) -> dict[str, Any]:
        ...

    def get_indexes(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        ...

    def get_unique_constraints(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        ...

    def get_foreign_keys(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        ...

    def get_table_comment(self, table: str, schema: str | None = None) -> dict[str, Any]:
        ...

    def get_view_definition(self, view: str, schema: str | None = None) -> str | None:
        ...

    def close(self) -> None:
        ...


def _is_auth_failure(error: BaseException) -> bool:
    message = str(error).lower()
    return any(hint in message for hint in _AUTH_FAILURE_HINTS)


def open_catalog_session(
    url: str,
    driver: str | None = None,
    default_driver: str | None = None,
    user: str | None = None,
    password: str | None = None,
    echo: bool = False,
) -> SQLAlchemyCatalogSession:
    """Create an engine for ``url`` and verify that it connects.

    Args:
        url: SQLAlchemy database URL
        driver: Driver name that replaces the URL's driver
        default_driver: Driver name used when the URL names none
        user: User name overriding the URL's
        password: Password overriding the URL's
        echo: Whether to echo SQL statements (for debugging)

    Raises:
        DriverUnavailableError: If the driver is unknown or not installed
        ConnectionRefusedError: If the URL is malformed or the database unreachable
        AuthFailedError: If the credentials are rejected
    """
    try:
        url_obj = make_url(url)
    except ArgumentError as e:
        raise ConnectionRefusedError(f"Malformed database URL: {e}", {"url": url}) from e

    if driver:
        url_obj = url_obj.set(drivername=driver)
    elif default_driver and "+" not in url_obj.drivername:
        url_obj = url_obj.set(drivername=default_driver)
    if user is not None:
        url_obj = url_obj.set(username=user)
    if password is not None:
        url_obj = url_obj.set(password=password)

    try:
        engine = create_engine(url_obj, echo=echo, pool_pre_ping=True)
    except (NoSuchModuleError, ImportError) as e:
        raise DriverUnavailableError(url_obj.drivername, str(e)) from e

    session = SQLAlchemyCatalogSession(engine)
    try:
        session.test_connection()
    except CatalogError:
        session.close()
        raise
    logger.info(f"Opened catalog session for {url_obj.render_as_string(hide_password=True)}")
    return session


class SQLAlchemyCatalogSession:
    """Catalog session backed by a SQLAlchemy engine and its reflection Inspector."""

    def __init__(self, engine: Engine) -> None:
        """Initialize the session.

        Args:
            engine: SQLAlchemy engine to read from
        """
        self._engine: Engine | None = engine
        self._inspector: Inspector | None = None

    @property
    def engine(self) -> Engine:
        """The underlying engine."""
        if self._engine is None:
            raise ConnectionLostError("Catalog session is closed.")
        return self._engine

    @property
    def dialect_name(self) -> str:
        """SQLAlchemy dialect name, e.g. ``mysql``."""
        return self.engine.dialect.name

    @property
    def inspector(self) -> Inspector:
        """Lazily created reflection inspector."""
        if self._inspector is None:
            self._inspector = self._call(lambda: inspect(self.engine))
        return self._inspector

    def _call(self, operation: Callable[[], R]) -> R:
        """Run a catalog operation, translating SQLAlchemy errors."""
        try:
            return operation()
        except DisconnectionError as e:
            raise ConnectionLostError(f"Catalog connection lost: {e}") from e
        except OperationalError as e:
            if e.connection_invalidated:
                raise ConnectionLostError(f"Catalog connection lost: {e}") from e
            if _is_auth_failure(e):
                raise AuthFailedError(f"Authentication failed: {e.orig or e}") from e
            raise ConnectionRefusedError(f"Database not reachable: {e.orig or e}") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                raise ConnectionLostError(f"Catalog connection lost: {e}") from e
            raise CatalogError(f"Failed to read catalog metadata: {e}") from e
        except SQLAlchemyError as e:
            raise CatalogError(f"Failed to read catalog metadata: {e}") from e

    def test_connection(self) -> bool:
        """Check that the database accepts connections.

        Raises:
            AuthFailedError: If the credentials are rejected
            ConnectionRefusedError: If the database cannot be reached
        """

        def ping() -> bool:
            with self.engine.connect():
                return True

        return self._call(ping)

    def execute_query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a query and return its rows as dictionaries."""

        def run() -> list[dict[str, Any]]:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql), params or {})
                return [dict(row) for row in result.mappings().all()]

        return self._call(run)

    def get_schema_names(self) -> list[str]:
        return self._call(lambda: self.inspector.get_schema_names())

    def get_default_schema_name(self) -> str | None:
        return self._call(lambda: self.inspector.default_schema_name)

    def get_table_names(self, schema: str | None = None) -> list[str]:
        return self._call(lambda: self.inspector.get_table_names(schema=schema))

    def get_view_names(self, schema: str | None = None) -> list[str]:
        return self._call(lambda: self.inspector.get_view_names(schema=schema))

    def get_columns(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        return self._call(lambda: self.inspector.get_columns(table, schema=schema))

    def get_pk_constraint(self, table: str, schema: str | None = None) -> dict[str, Any]:
        return self._call(lambda: self.inspector.get_pk_constraint(table, schema=schema)) or {}

    def get_indexes(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        return self._call(lambda: self.inspector.get_indexes(table, schema=schema)) or []

    def get_unique_constraints(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        def read() -> list[dict[str, Any]]:
            try:
                return self.inspector.get_unique_constraints(table, schema=schema)
            except NotImplementedError:
                return []

        return self._call(read) or []

    def get_foreign_keys(self, table: str, schema: str | None = None) -> list[dict[str, Any]]:
        return self._call(lambda: self.inspector.get_foreign_keys(table, schema=schema)) or []

    def get_table_comment(self, table: str, schema: str | None = None) -> dict[str, Any]:
        def read() -> dict[str, Any]:
            try:
                return self.inspector.get_table_comment(table, schema=schema)
            except NotImplementedError:
                return {"text": None}

        return self._call(read) or {"text": None}

    def get_view_definition(self, view: str, schema: str | None = None) -> str | None:
        return self._call(lambda: self.inspector.get_view_definition(view, schema=schema))

    def close(self) -> None:
        """Release the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._inspector = None

    def __enter__(self) -> SQLAlchemyCatalogSession:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
