"""Views and subject areas."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

import sqlglot
from sqlglot.errors import ParseError, TokenError

from erschema.model.item import ModelItem, OwnedItemList

if TYPE_CHECKING:
    from erschema.model.table import Table

_CREATE_VIEW_RE = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:TEMP(?:ORARY)?\s+)?VIEW\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?.+?\s+AS\s+",
    re.IGNORECASE | re.DOTALL,
)


def strip_create_view(sql: str) -> str:
    """The query of a view definition, without a leading ``CREATE VIEW .. AS``."""
    return _CREATE_VIEW_RE.sub("", sql, count=1).strip()


def derive_view_attributes(sql: str, read: str | None = None) -> list[str]:
    """Column names of a SELECT statement, in select-list order.

    Returns an empty list when the statement cannot be parsed.
    """
    try:
        parsed = sqlglot.parse_one(sql, read=read)
    except (ParseError, TokenError):
        return []
    # CREATE VIEW ... AS SELECT, as some catalogs report view definitions
    if isinstance(parsed, sqlglot.exp.Create):
        parsed = parsed.expression
    if parsed is None or not isinstance(parsed, sqlglot.exp.Query):
        return []
    return [e.alias_or_name for e in parsed.selects]


class View(ModelItem):
    """A named SQL query with an ordered attribute list."""

    kind = "View"

    def __init__(
        self,
        name: str,
        sql: str | None = None,
        attributes: list[str] | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.sql = sql
        if attributes is None and sql:
            attributes = derive_view_attributes(sql)
        self.attributes: list[str] = list(attributes or [])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "sql": self.sql,
            "attributes": list(self.attributes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> View:
        """Rebuild a view from ``to_dict`` output, keeping its system id."""
        return cls(
            name=data["name"],
            sql=data.get("sql"),
            attributes=data.get("attributes", []),
            system_id=data.get("id"),
        )


class ViewList(OwnedItemList[View]):
    """Views of a model."""


class SubjectArea(ModelItem):
    """Diagram-level grouping of tables and views; no effect on the schema."""

    kind = "SubjectArea"

    def __init__(
        self,
        name: str,
        tables: list[Table] | None = None,
        views: list[View] | None = None,
        system_id: str | None = None,
    ) -> None:
        super().__init__(system_id)
        self.name = name
        self.table_ids: list[str] = [t.system_id for t in tables or []]
        self.view_ids: list[str] = [v.system_id for v in views or []]

    def contains_table(self, table: Table) -> bool:
        return table.system_id in self.table_ids

    def remove_table(self, table: Table) -> None:
        """Drop ``table`` from the area; no-op if it is not a member."""
        if table.system_id in self.table_ids:
            self.table_ids.remove(table.system_id)

    def remove_view(self, view: View) -> None:
        """Drop ``view`` from the area; no-op if it is not a member."""
        if view.system_id in self.view_ids:
            self.view_ids.remove(view.system_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.system_id,
            "name": self.name,
            "table_ids": list(self.table_ids),
            "view_ids": list(self.view_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubjectArea:
        """Rebuild a subject area from ``to_dict`` output, keeping its system id."""
        area = cls(name=data["name"], system_id=data.get("id"))
        area.table_ids = list(data.get("table_ids", []))
        area.view_ids = list(data.get("view_ids", []))
        return area


class SubjectAreaList(OwnedItemList[SubjectArea]):
    """Subject areas of a model."""

    def remove_table(self, table: Table) -> None:
        """Remove ``table`` from every subject area."""
        for area in self:
            area.remove_table(table)

    def remove_view(self, view: View) -> None:
        """Remove ``view`` from every subject area."""
        for area in self:
            area.remove_view(view)
