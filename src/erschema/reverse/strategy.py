"""Reverse engineering: read a live catalog into a model through the normal mutation protocol.

The run goes table by table (columns, then primary key, then secondary and
unique indexes), then resolves foreign keys once every index exists, then
reads views. Non-fatal problems are reported through the notifier and the
offending element is skipped; catalog failures abort the run and leave what
was already applied in place.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from erschema.core.types import (
    CascadeType,
    IndexType,
    ReverseEngineeringOptions,
    SchemaEntry,
    TableEntry,
    TableNaming,
)
from erschema.exceptions import CatalogError, InvalidNameError
from erschema.model.attribute import Attribute
from erschema.model.index import Index
from erschema.model.relation import Relation
from erschema.model.table import Table
from erschema.model.view import View, derive_view_attributes, strip_create_view
from erschema.reverse.notifier import MessageKey, ReverseEngineeringNotifier

if TYPE_CHECKING:
    from erschema.catalog.session import CatalogSession
    from erschema.dialect.base import Dialect
    from erschema.model.model import Model
    from erschema.reverse.connector import WorldConnector

logger = logging.getLogger(__name__)


@dataclass
class _ImportedTable:
    """A catalog table entry and the model table created for it."""

    entry: TableEntry
    table: Table


@dataclass
class ReverseEngineeringResult:
    """Counts of what a run added to the model."""

    tables: list[str] = field(default_factory=list)
    relations: list[str] = field(default_factory=list)
    views: list[str] = field(default_factory=list)
    cancelled: bool = False


class ReverseEngineeringStrategy:
    """Flavor-neutral pipeline; dialects override the catalog specific parts."""

    # Schemas never offered for reverse engineering
    system_schemas: ClassVar[frozenset[str]] = frozenset()
    # Value of Attribute.extra for auto-increment columns, if the flavor has one
    autoincrement_extra: ClassVar[str | None] = None

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    # ------------------------------------------------------------------
    # Catalog enumeration
    # ------------------------------------------------------------------

    def get_schema_entries(self, session: CatalogSession) -> list[SchemaEntry]:
        """Schemas of the catalog, system schemas left out."""
        names = session.get_schema_names()
        return [
            SchemaEntry(schema_name=name)
            for name in names
            if name.lower() not in self.system_schemas
        ]

    def get_tables_for_schemas(
        self, session: CatalogSession, schemas: list[SchemaEntry]
    ) -> list[TableEntry]:
        """Tables and views of ``schemas``; the default schema if none are given."""
        if not schemas:
            schemas = [SchemaEntry(schema_name=session.get_default_schema_name())]
        entries = []
        for schema in schemas:
            for name in session.get_table_names(schema.schema_name):
                entries.append(
                    TableEntry(
                        name=name,
                        schema_name=schema.schema_name,
                        catalog_name=schema.catalog_name,
                        table_type="TABLE",
                    )
                )
            for name in session.get_view_names(schema.schema_name):
                entries.append(
                    TableEntry(
                        name=name,
                        schema_name=schema.schema_name,
                        catalog_name=schema.catalog_name,
                        table_type="VIEW",
                    )
                )
        return entries

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def table_name(self, name: str, schema: str | None, options: ReverseEngineeringOptions) -> str:
        """Model name of a catalog table under the configured naming mode."""
        if options.table_naming == TableNaming.INCLUDE_SCHEMA and schema:
            return f"{schema}{self.dialect.schema_separator}{name}"
        return name

    def _checked_name(
        self, kind: str, name: str, notifier: ReverseEngineeringNotifier
    ) -> str | None:
        try:
            return self.dialect.check_name(name)
        except InvalidNameError as e:
            notifier.notify_message(MessageKey.INVALID_NAME, kind, name, e.reason)
            return None

    def generated_name(self, prefix: str, table_name: str, suffix: str = "") -> str:
        """Name for an unnamed catalog constraint, cut to fit the dialect's identifier limit."""
        room = self.dialect.max_name_length - len(prefix) - len(suffix) - 1
        return f"{prefix}_{table_name[:room]}{suffix}"

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def catalog_type_name(self, column: dict[str, Any]) -> str:
        """Datatype name of a reflected column, from its SQLAlchemy type class."""
        column_type = column.get("type")
        if column_type is None:
            return self.dialect.fallback_type
        if isinstance(column_type, str):
            return column_type.upper()
        return type(column_type).__name__.upper()

    def create_attribute(
        self,
        table_name: str,
        column: dict[str, Any],
        notifier: ReverseEngineeringNotifier,
    ) -> Attribute:
        """Build an attribute from an Inspector column dictionary."""
        type_name = self.catalog_type_name(column)
        data_type = self.dialect.find_data_type(type_name)
        if data_type is None:
            data_type = self.dialect.find_closest_data_type(type_name)
            notifier.notify_message(
                MessageKey.TYPE_NOT_FOUND, table_name, column["name"], type_name, data_type.name
            )
        column_type = column.get("type")
        size = fraction = None
        if data_type.supports_size:
            size = getattr(column_type, "length", None)
            if size is None:
                size = getattr(column_type, "precision", None)
        if data_type.supports_fraction:
            fraction = getattr(column_type, "scale", None)
        extra = None
        if column.get("autoincrement") is True and self.autoincrement_extra:
            extra = self.autoincrement_extra
        default = column.get("default")
        return Attribute(
            column["name"],
            data_type.name,
            size=size,
            fraction=fraction,
            nullable=bool(column.get("nullable", True)),
            default_value=str(default) if default is not None else None,
            extra=extra,
            comment=column.get("comment"),
        )

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def reverse_engineer_table(
        self,
        model: Model,
        session: CatalogSession,
        entry: TableEntry,
        options: ReverseEngineeringOptions,
        notifier: ReverseEngineeringNotifier,
    ) -> Table | None:
        """Read one table with its columns and add it; None if it was skipped."""
        raw_name = self.table_name(entry.name, entry.schema_name, options)
        notifier.notify_message(MessageKey.ENGINEERING_TABLE, raw_name)
        name = self._checked_name("Table", raw_name, notifier)
        if name is None:
            return None
        if model.tables.find_by_name(name) is not None:
            notifier.notify_message(MessageKey.NAME_COLLISION, "Table", name)
            return None

        comment = session.get_table_comment(entry.name, entry.schema_name).get("text")
        table = Table(name, comment=comment)
        for column in session.get_columns(entry.name, entry.schema_name):
            column_name = self._checked_name("Attribute", column["name"], notifier)
            if column_name is None:
                continue
            if table.attributes.find_by_name(column_name) is not None:
                notifier.notify_message(MessageKey.NAME_COLLISION, "Attribute", column_name)
                continue
            attribute = self.create_attribute(name, column, notifier)
            attribute.name = column_name
            table.add_attribute(attribute)
        model.add_table(table)
        return table

    def _build_index(
        self,
        table: Table,
        name: str,
        index_type: IndexType,
        columns: list[str | None],
        expressions: list[str] | None = None,
    ) -> Index:
        index = Index(name, index_type)
        for position, column in enumerate(columns):
            attribute = table.attributes.find_by_name(column) if column else None
            if attribute is not None:
                index.add_attribute(attribute)
            elif column:
                index.add_expression(column)
            elif expressions and position < len(expressions) and expressions[position]:
                index.add_expression(expressions[position])
        return index

    def reverse_engineer_indexes(
        self,
        model: Model,
        session: CatalogSession,
        imported: _ImportedTable,
        notifier: ReverseEngineeringNotifier,
    ) -> None:
        """Add primary key first, then secondary indexes and unique constraints."""
        entry, table = imported.entry, imported.table

        pk = session.get_pk_constraint(entry.name, entry.schema_name)
        pk_columns = pk.get("constrained_columns") or []
        if pk_columns:
            raw_name = pk.get("name") or self.generated_name("PK", entry.name)
            pk_name = self._checked_name("Index", raw_name, notifier)
            if pk_name is not None:
                notifier.notify_message(MessageKey.ENGINEERING_INDEX, table.name, pk_name)
                index = self._build_index(table, pk_name, IndexType.PRIMARY_KEY, pk_columns)
                model.add_index_to_table(table, index)

        candidates: list[tuple[str, IndexType, list[str | None], list[str] | None]] = []
        for info in session.get_indexes(entry.name, entry.schema_name):
            if not info.get("name"):
                continue
            index_type = IndexType.UNIQUE if info.get("unique") else IndexType.NON_UNIQUE
            columns = list(info.get("column_names") or [])
            candidates.append((info["name"], index_type, columns, info.get("expressions")))
        for info in session.get_unique_constraints(entry.name, entry.schema_name):
            if not info.get("name"):
                continue
            candidates.append(
                (info["name"], IndexType.UNIQUE, list(info.get("column_names") or []), None)
            )

        for raw_name, index_type, columns, expressions in candidates:
            name = self._checked_name("Index", raw_name, notifier)
            if name is None:
                continue
            if table.indexes.find_by_name(name) is not None:
                # MySQL and PostgreSQL report unique constraints as indexes too
                continue
            notifier.notify_message(MessageKey.ENGINEERING_INDEX, table.name, name)
            index = self._build_index(table, name, index_type, columns, expressions)
            if len(index.expressions) == 0:
                continue
            model.add_index_to_table(table, index)

    def find_referenced_index(self, table: Table, columns: list[str]) -> Index | None:
        """Primary or unique index of ``table`` covering exactly ``columns``."""
        wanted = sorted(self.dialect.normalize(c) for c in columns)
        ordered = sorted(table.indexes, key=lambda i: not i.is_primary_key)
        for index in ordered:
            if not index.is_unique:
                continue
            names = sorted(self.dialect.normalize(e.name) for e in index.expressions)
            if names == wanted:
                return index
        return None

    def reverse_engineer_relations(
        self,
        model: Model,
        session: CatalogSession,
        imported: _ImportedTable,
        options: ReverseEngineeringOptions,
        notifier: ReverseEngineeringNotifier,
        cancel_event: threading.Event | None = None,
    ) -> list[Relation]:
        """Resolve and add the foreign keys of one table."""
        entry, importing = imported.entry, imported.table
        added = []
        for counter, fk in enumerate(session.get_foreign_keys(entry.name, entry.schema_name), 1):
            if cancel_event is not None and cancel_event.is_set():
                break
            raw_name = fk.get("name") or self.generated_name("FK", entry.name, f"_{counter}")
            notifier.notify_message(MessageKey.ENGINEERING_RELATION, importing.name, raw_name)
            name = self._checked_name("Relation", raw_name, notifier)
            if name is None:
                continue
            if model.relations.find_by_name(name) is not None:
                notifier.notify_message(MessageKey.NAME_COLLISION, "Relation", name)
                continue

            referred_schema = fk.get("referred_schema") or entry.schema_name
            exporting_name = self.table_name(fk["referred_table"], referred_schema, options)
            exporting = model.tables.find_by_name(exporting_name)
            if exporting is None:
                notifier.notify_message(MessageKey.REFERENCED_TABLE_NOT_FOUND, name, exporting_name)
                continue

            referred_columns = list(fk.get("referred_columns") or [])
            constrained_columns = list(fk.get("constrained_columns") or [])
            index = self.find_referenced_index(exporting, referred_columns)
            if index is None:
                notifier.notify_message(
                    MessageKey.REFERENCED_INDEX_NOT_FOUND,
                    name,
                    exporting.name,
                    ", ".join(referred_columns),
                )
                continue

            mapping = {}
            for referred, constrained in zip(referred_columns, constrained_columns, strict=False):
                expression = index.expressions.find_by_attribute_name(referred)
                attribute = importing.attributes.find_by_name(constrained)
                if expression is None or attribute is None:
                    break
                mapping[expression] = attribute
            if len(mapping) != len(index.expressions):
                notifier.notify_message(
                    MessageKey.REFERENCED_INDEX_NOT_FOUND,
                    name,
                    exporting.name,
                    ", ".join(referred_columns),
                )
                continue

            fk_options = fk.get("options") or {}
            relation = Relation(
                name,
                importing_table=importing,
                exporting_table=exporting,
                mapping=mapping,
                on_delete=CascadeType.from_sql(fk_options.get("ondelete")),
                on_update=CascadeType.from_sql(fk_options.get("onupdate")),
            )
            model.add_relation(relation)
            added.append(relation)
        return added

    def reverse_engineer_view(
        self,
        model: Model,
        session: CatalogSession,
        entry: TableEntry,
        options: ReverseEngineeringOptions,
        notifier: ReverseEngineeringNotifier,
    ) -> View | None:
        """Read one view and add it; None if it was skipped."""
        raw_name = self.table_name(entry.name, entry.schema_name, options)
        notifier.notify_message(MessageKey.ENGINEERING_VIEW, raw_name)
        name = self._checked_name("View", raw_name, notifier)
        if name is None:
            return None
        if model.views.find_by_name(name) is not None:
            notifier.notify_message(MessageKey.NAME_COLLISION, "View", name)
            return None
        sql = session.get_view_definition(entry.name, entry.schema_name)
        if sql:
            sql = strip_create_view(sql)
        attributes = derive_view_attributes(sql, read=self.dialect.sqlglot_dialect) if sql else []
        view = View(name, sql=sql, attributes=attributes)
        model.add_view(view)
        return view

    def update_model_from_connection(
        self,
        model: Model,
        connector: WorldConnector,
        session: CatalogSession,
        options: ReverseEngineeringOptions,
        notifier: ReverseEngineeringNotifier,
        cancel_event: threading.Event | None = None,
    ) -> ReverseEngineeringResult:
        """Populate ``model`` from ``session``.

        Args:
            model: Model to add to; its dialect should be this strategy's dialect
            connector: Host hooks for status text and exception reporting
            session: Open catalog session
            options: Naming mode, schema filter, table allow-list, view switch
            notifier: Receives progress messages and warnings
            cancel_event: Checked between tables and between relations

        Returns:
            What was added

        Raises:
            CatalogError: If catalog metadata cannot be read; earlier steps stay applied
            VetoError: If the model's tracker refuses a change
        """
        result = ReverseEngineeringResult()
        try:
            entries = list(options.table_entries)
            if not entries:
                schemas = list(options.schemas) or self.get_schema_entries(session)
                for schema in schemas:
                    notifier.notify_message(
                        MessageKey.GETTING_SCHEMA_INFORMATION, schema.display_name
                    )
                entries = self.get_tables_for_schemas(session, schemas)

            imported: list[_ImportedTable] = []
            for entry in entries:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break
                if entry.table_type.upper() != "TABLE":
                    continue
                table = self.reverse_engineer_table(model, session, entry, options, notifier)
                if table is None:
                    continue
                imported.append(_ImportedTable(entry, table))
                result.tables.append(table.name)
                self.reverse_engineer_indexes(model, session, imported[-1], notifier)
                connector.set_status_text(f"Table {table.name} imported")

            for item in imported:
                if cancel_event is not None and cancel_event.is_set():
                    result.cancelled = True
                    break
                relations = self.reverse_engineer_relations(
                    model, session, item, options, notifier, cancel_event
                )
                result.relations.extend(r.name for r in relations)

            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
            if not options.skip_views and not result.cancelled:
                for entry in entries:
                    if cancel_event is not None and cancel_event.is_set():
                        result.cancelled = True
                        break
                    if entry.table_type.upper() != "VIEW":
                        continue
                    view = self.reverse_engineer_view(model, session, entry, options, notifier)
                    if view is not None:
                        result.views.append(view.name)
        except CatalogError as e:
            logger.error(f"Catalog read failed after {len(result.tables)} tables: {e}")
            connector.notify_about_exception(e)
            raise

        if result.cancelled:
            notifier.notify_message(MessageKey.CANCELLED)
        notifier.notify_message(
            MessageKey.FINISHED,
            str(len(result.tables)),
            str(len(result.relations)),
            str(len(result.views)),
        )
        return result
