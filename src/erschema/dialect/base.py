"""Dialect base class: identifier policy, datatype catalog and factories per database flavor."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from erschema.core.types import DataType, NameCasing
from erschema.exceptions import InvalidNameError

if TYPE_CHECKING:
    from erschema.catalog.session import SQLAlchemyCatalogSession
    from erschema.dialect.sql import SQLGenerator
    from erschema.reverse.strategy import ReverseEngineeringStrategy


# Keyword families used to find the closest datatype for an unknown catalog type.
# Checked in order; the first family with a keyword contained in the type name wins.
TYPE_FAMILIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("TIMESTAMP", ("TIMESTAMP", "DATETIME")),
    ("DATE", ("DATE",)),
    ("TIME", ("TIME",)),
    ("BOOLEAN", ("BOOL", "BIT")),
    ("BIGINT", ("BIGINT", "INT8", "LONG")),
    ("INTEGER", ("INT", "SERIAL")),
    ("DECIMAL", ("NUMERIC", "DECIMAL", "NUMBER", "MONEY")),
    ("FLOAT", ("DOUBLE", "FLOAT", "REAL")),
    ("BINARY", ("BLOB", "BINARY", "BYTEA", "RAW", "IMAGE")),
    ("TEXT", ("TEXT", "CLOB")),
    ("STRING", ("CHAR", "STRING", "ENUM", "SET", "UUID", "JSON")),
)

_PARAMS_RE = re.compile(r"\(.*\)")


class Dialect(ABC):
    """Policy object for one database flavor.

    Subclasses declare the identifier rules (casing, length, allowed
    characters), the closed datatype catalog and the driver used to open
    catalog sessions, and provide the reverse-engineering strategy.

    Two names are equal exactly when their normalized forms are equal.
    """

    unique_name: ClassVar[str]
    casing: ClassVar[NameCasing] = NameCasing.UPPERCASE
    max_name_length: ClassVar[int] = 128
    name_pattern: ClassVar[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_$#]*$")
    quote_pairs: ClassVar[tuple[tuple[str, str], ...]] = (('"', '"'),)
    schema_separator: ClassVar[str] = "."
    default_driver: ClassVar[str]
    sqlglot_dialect: ClassVar[str | None] = None
    data_types: ClassVar[tuple[DataType, ...]] = ()
    # Datatype name chosen for each family of TYPE_FAMILIES
    family_types: ClassVar[dict[str, str]] = {}
    fallback_type: ClassVar[str] = "VARCHAR"

    def get_unique_name(self) -> str:
        """Stable dialect identifier, e.g. ``MySQL``."""
        return self.unique_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Dialect) and other.unique_name == self.unique_name

    def __hash__(self) -> int:
        return hash(self.unique_name)

    # ------------------------------------------------------------------
    # Identifiers
    # ------------------------------------------------------------------

    def _unquote(self, part: str) -> str:
        part = part.strip()
        for opening, closing in self.quote_pairs:
            if len(part) >= 2 and part.startswith(opening) and part.endswith(closing):
                return part[len(opening) : -len(closing)]
        return part

    def _fold(self, part: str) -> str:
        if self.casing == NameCasing.UPPERCASE:
            return part.upper()
        if self.casing == NameCasing.LOWERCASE:
            return part.lower()
        return part

    def _split(self, name: str) -> list[str]:
        return name.split(self.schema_separator)

    def normalize(self, name: str) -> str:
        """Comparison key of ``name``: quotes stripped and case folded, no validation."""
        return self.schema_separator.join(self._fold(self._unquote(p)) for p in self._split(name))

    def check_name(self, name: str) -> str:
        """Validate ``name`` and return it as it must be stored.

        A name may be qualified by one schema (``schema.table``); each part is
        checked on its own.

        Raises:
            InvalidNameError: If the name is empty, too long, or uses forbidden characters
        """
        if name is None or not str(name).strip():
            raise InvalidNameError(str(name), "name must not be empty")
        parts = self._split(str(name))
        if len(parts) > 2:
            raise InvalidNameError(name, "at most one schema qualifier is allowed")
        checked = []
        for raw in parts:
            part = self._unquote(raw)
            if not part:
                raise InvalidNameError(name, "name part must not be empty")
            if len(part) > self.max_name_length:
                raise InvalidNameError(
                    name,
                    f"{self.unique_name} identifiers are limited to "
                    f"{self.max_name_length} characters",
                )
            if not self.name_pattern.match(part):
                raise InvalidNameError(
                    name,
                    "only letters, digits, '_', '$' and '#' are allowed, "
                    "starting with a letter or '_'",
                )
            checked.append(self._fold(part))
        return self.schema_separator.join(checked)

    # ------------------------------------------------------------------
    # Datatypes
    # ------------------------------------------------------------------

    def get_data_types(self) -> list[DataType]:
        """The closed datatype catalog of this flavor."""
        return list(self.data_types)

    def find_data_type(self, type_name: str) -> DataType | None:
        """Exact lookup by datatype name or alias (parameters like ``(20)`` are ignored)."""
        candidate = _PARAMS_RE.sub("", type_name).strip().upper()
        for data_type in self.data_types:
            if data_type.matches(candidate):
                return data_type
        return None

    def find_closest_data_type(self, type_name: str) -> DataType:
        """Best matching datatype for a catalog type this flavor does not list."""
        exact = self.find_data_type(type_name)
        if exact is not None:
            return exact
        candidate = type_name.upper()
        for family, keywords in TYPE_FAMILIES:
            if any(keyword in candidate for keyword in keywords):
                target = self.family_types.get(family)
                if target is not None:
                    data_type = self.find_data_type(target)
                    if data_type is not None:
                        return data_type
        fallback = self.find_data_type(self.fallback_type)
        if fallback is None:
            raise LookupError(f"{self.unique_name} declares no fallback datatype")
        return fallback

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @abstractmethod
    def get_reverse_engineering_strategy(self) -> ReverseEngineeringStrategy:
        """Strategy reading a live catalog of this flavor into a model."""
        raise NotImplementedError

    def create_sql_generator(self) -> SQLGenerator:
        """Forward-engineering SQL renderer for this flavor."""
        from erschema.dialect.sql import SQLGenerator

        return SQLGenerator(self)

    def create_connection(
        self,
        driver: str | None,
        url: str,
        user: str | None = None,
        password: str | None = None,
    ) -> SQLAlchemyCatalogSession:
        """Open a catalog session.

        Args:
            driver: SQLAlchemy driver name; when omitted and the URL names none,
                the dialect's default driver is used
            url: SQLAlchemy database URL
            user: User name overriding the one in the URL
            password: Password overriding the one in the URL

        Raises:
            DriverUnavailableError: If the driver is not installed
            ConnectionRefusedError: If the database cannot be reached
            AuthFailedError: If the credentials are rejected
        """
        from erschema.catalog.session import open_catalog_session

        return open_catalog_session(
            url,
            driver=driver,
            default_driver=self.default_driver,
            user=user,
            password=password,
        )
