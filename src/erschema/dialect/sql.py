"""Forward engineering: render journaled change events and whole models as DDL.

The base generator speaks ANSI-style DDL. Dialects override the statements
whose syntax differs and list the operations they cannot express at all in
``unsupported``; the statement tracker vetoes those.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from erschema.core.types import CascadeType, ChangeEvent, ChangeOperation, IndexType

if TYPE_CHECKING:
    from erschema.dialect.base import Dialect
    from erschema.model.model import Model


def quote_literal(value: str) -> str:
    """Render ``value`` as a SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


class SQLGenerator:
    """Renders change events and models as SQL statements for one dialect."""

    unsupported: ClassVar[frozenset[ChangeOperation]] = frozenset()
    # Render foreign keys inside CREATE TABLE instead of ALTER TABLE (create_script only)
    inline_foreign_keys: ClassVar[bool] = False
    supports_comments: ClassVar[bool] = True

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def supports(self, operation: ChangeOperation) -> bool:
        """Whether events of ``operation`` can be rendered."""
        return operation not in self.unsupported

    def supports_event(self, event: ChangeEvent) -> bool:
        """Whether this particular event can be rendered."""
        return self.supports(event.operation)

    def render(self, event: ChangeEvent, model: Model | None = None) -> list[str]:
        """Render one event as an ordered list of statements.

        Raises:
            NotImplementedError: If the operation is unsupported by this dialect
        """
        if not self.supports_event(event):
            raise NotImplementedError(
                f"{self.dialect.unique_name} cannot render '{event.operation.value}'"
            )
        handler: Callable[[ChangeEvent, Model | None], list[str]] = getattr(
            self, f"render_{event.operation.value}"
        )
        return handler(event, model)

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def type_definition(self, attribute: dict[str, Any], model: Model | None) -> str:
        """Datatype of an attribute snapshot, following its domain when the model has it."""
        datatype = attribute.get("datatype")
        size = attribute.get("size")
        fraction = attribute.get("fraction")
        scale = attribute.get("scale")
        domain_id = attribute.get("domain_id")
        if domain_id and model is not None:
            domain = model.domains.find_by_id(domain_id)
            if domain is not None:
                datatype, size, fraction, scale = (
                    domain.datatype,
                    domain.size,
                    domain.fraction,
                    domain.scale,
                )
        if not datatype:
            return self.dialect.fallback_type
        data_type = self.dialect.find_data_type(datatype)
        if data_type is None:
            return datatype
        return data_type.create_type_definition(size, fraction, scale)

    def column_definition(self, attribute: dict[str, Any], model: Model | None) -> str:
        """Column clause of CREATE TABLE / ADD COLUMN."""
        parts = [attribute["name"], self.type_definition(attribute, model)]
        if attribute.get("default_value") is not None:
            parts.append(f"DEFAULT {attribute['default_value']}")
        if not attribute.get("nullable", True):
            parts.append("NOT NULL")
        if attribute.get("extra"):
            parts.append(attribute["extra"])
        return " ".join(parts)

    @staticmethod
    def index_columns(index: dict[str, Any], attributes: list[dict[str, Any]]) -> list[str]:
        """Column names (or literal expressions) of an index snapshot."""
        names = {a["id"]: a["name"] for a in attributes}
        columns = []
        for expression in index.get("expressions", []):
            attribute_id = expression.get("attribute_id")
            if attribute_id is not None:
                columns.append(names.get(attribute_id, attribute_id))
            else:
                columns.append(expression.get("expression") or "")
        return columns

    def referential_actions(self, on_delete: str, on_update: str) -> str:
        """ON DELETE / ON UPDATE clauses; NO ACTION is the default and is left out."""
        clauses = []
        if on_delete != CascadeType.NO_ACTION:
            clauses.append(f" ON DELETE {CascadeType(on_delete).sql}")
        if on_update != CascadeType.NO_ACTION:
            clauses.append(f" ON UPDATE {CascadeType(on_update).sql}")
        return "".join(clauses)

    def foreign_key_clause(self, relation: dict[str, Any], names: dict[str, Any]) -> str:
        """``CONSTRAINT .. FOREIGN KEY .. REFERENCES ..`` body."""
        return (
            f"CONSTRAINT {relation['name']} FOREIGN KEY ({', '.join(names['columns'])}) "
            f"REFERENCES {names['exporting_table']} ({', '.join(names['referenced_columns'])})"
            + self.referential_actions(relation["on_delete"], relation["on_update"])
        )

    def create_table_statements(
        self,
        table: dict[str, Any],
        model: Model | None,
        foreign_keys: list[str] | None = None,
    ) -> list[str]:
        """CREATE TABLE plus secondary indexes and comment of a table snapshot."""
        attributes = table.get("attributes", [])
        parts = [self.column_definition(a, model) for a in attributes]
        secondary = []
        for index in table.get("indexes", []):
            columns = self.index_columns(index, attributes)
            if index["index_type"] == IndexType.PRIMARY_KEY:
                parts.append(f"CONSTRAINT {index['name']} PRIMARY KEY ({', '.join(columns)})")
            else:
                secondary.append(self.create_index_statement(table["name"], index, columns))
        parts.extend(foreign_keys or [])
        statements = [f"CREATE TABLE {table['name']} ({', '.join(parts)})"]
        statements.extend(secondary)
        if table.get("comment") and self.supports_comments:
            statements.append(self.comment_statement(table["name"], table["comment"]))
        return statements

    def create_index_statement(self, table: str, index: dict[str, Any], columns: list[str]) -> str:
        unique = "UNIQUE " if index["index_type"] == IndexType.UNIQUE else ""
        return f"CREATE {unique}INDEX {index['name']} ON {table} ({', '.join(columns)})"

    def add_primary_key_statement(
        self, table: str, index: dict[str, Any], columns: list[str]
    ) -> str:
        return (
            f"ALTER TABLE {table} ADD CONSTRAINT {index['name']} "
            f"PRIMARY KEY ({', '.join(columns)})"
        )

    def drop_index_statement(self, table: str, index: dict[str, Any]) -> str:
        return f"DROP INDEX {index['name']}"

    def drop_primary_key_statement(self, table: str, index: dict[str, Any]) -> str:
        return f"ALTER TABLE {table} DROP CONSTRAINT {index['name']}"

    def drop_foreign_key_statement(self, table: str, relation: dict[str, Any]) -> str:
        return f"ALTER TABLE {table} DROP CONSTRAINT {relation['name']}"

    def comment_statement(self, table: str, comment: str | None) -> str:
        return f"COMMENT ON TABLE {table} IS {quote_literal(comment or '')}"

    def add_column_statement(self, table: str, definition: str) -> str:
        return f"ALTER TABLE {table} ADD {definition}"

    def rename_column_statement(self, table: str, old: str, new: str) -> str:
        return f"ALTER TABLE {table} RENAME COLUMN {old} TO {new}"

    def alter_column_statements(
        self,
        table: str,
        before: dict[str, Any],
        after: dict[str, Any],
        model: Model | None,
    ) -> list[str]:
        """Statements turning column ``before`` into ``after`` (same name)."""
        column = after["name"]
        statements = [
            f"ALTER TABLE {table} ALTER COLUMN {column} TYPE {self.type_definition(after, model)}"
        ]
        if after.get("default_value") != before.get("default_value"):
            if after.get("default_value") is None:
                statements.append(f"ALTER TABLE {table} ALTER COLUMN {column} DROP DEFAULT")
            else:
                statements.append(
                    f"ALTER TABLE {table} ALTER COLUMN {column} "
                    f"SET DEFAULT {after['default_value']}"
                )
        if after.get("nullable", True) != before.get("nullable", True):
            action = "DROP NOT NULL" if after.get("nullable", True) else "SET NOT NULL"
            statements.append(f"ALTER TABLE {table} ALTER COLUMN {column} {action}")
        return statements

    # ------------------------------------------------------------------
    # Event renderers, one per ChangeOperation
    # ------------------------------------------------------------------

    def render_add_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return self.create_table_statements(event.after or {}, model)

    def render_remove_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [f"DROP TABLE {(event.before or {})['name']}"]

    def render_rename_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        old, new = (event.before or {})["name"], (event.after or {})["name"]
        return [f"ALTER TABLE {old} RENAME TO {new}"]

    def render_change_table_comment(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [self.comment_statement(event.details["table"], (event.after or {}).get("comment"))]

    def render_add_attribute_to_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        definition = self.column_definition(event.after or {}, model)
        return [self.add_column_statement(event.details["table"], definition)]

    def render_remove_attribute_from_table(
        self, event: ChangeEvent, model: Model | None
    ) -> list[str]:
        return [f"ALTER TABLE {event.details['table']} DROP COLUMN {(event.before or {})['name']}"]

    def render_rename_attribute(self, event: ChangeEvent, model: Model | None) -> list[str]:
        old, new = (event.before or {})["name"], (event.after or {})["name"]
        return [self.rename_column_statement(event.details["table"], old, new)]

    def render_change_attribute(self, event: ChangeEvent, model: Model | None) -> list[str]:
        table = event.details["table"]
        before, after = event.before or {}, event.after or {}
        statements = []
        if before["name"] != after["name"]:
            statements.append(self.rename_column_statement(table, before["name"], after["name"]))
        statements.extend(self.alter_column_statements(table, before, after, model))
        return statements

    def render_add_index_to_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [
            self.create_index_statement(
                event.details["table"], event.after or {}, event.details["columns"]
            )
        ]

    def render_add_primary_key_to_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [
            self.add_primary_key_statement(
                event.details["table"], event.after or {}, event.details["columns"]
            )
        ]

    def render_remove_index_from_table(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [self.drop_index_statement(event.details["table"], event.before or {})]

    def render_remove_primary_key_from_table(
        self, event: ChangeEvent, model: Model | None
    ) -> list[str]:
        return [self.drop_primary_key_statement(event.details["table"], event.before or {})]

    def render_change_index(self, event: ChangeEvent, model: Model | None) -> list[str]:
        table = event.details["table"]
        before, after = event.before or {}, event.after or {}
        if before["index_type"] == IndexType.PRIMARY_KEY:
            statements = [self.drop_primary_key_statement(table, before)]
        else:
            statements = [self.drop_index_statement(table, before)]
        if after["index_type"] == IndexType.PRIMARY_KEY:
            statements.append(
                self.add_primary_key_statement(table, after, event.details["after_columns"])
            )
        else:
            statements.append(
                self.create_index_statement(table, after, event.details["after_columns"])
            )
        return statements

    def render_add_relation(self, event: ChangeEvent, model: Model | None) -> list[str]:
        names = event.details
        return [
            f"ALTER TABLE {names['importing_table']} ADD "
            + self.foreign_key_clause(event.after or {}, names)
        ]

    def render_remove_relation(self, event: ChangeEvent, model: Model | None) -> list[str]:
        table = event.details["importing_table"]
        return [self.drop_foreign_key_statement(table, event.before or {})]

    def render_change_relation(self, event: ChangeEvent, model: Model | None) -> list[str]:
        before_names, after_names = event.details["before"], event.details["after"]
        return [
            self.drop_foreign_key_statement(before_names["importing_table"], event.before or {}),
            f"ALTER TABLE {after_names['importing_table']} ADD "
            + self.foreign_key_clause(event.after or {}, after_names),
        ]

    def render_add_view(self, event: ChangeEvent, model: Model | None) -> list[str]:
        view = event.after or {}
        return [f"CREATE VIEW {view['name']} AS {view.get('sql') or ''}".rstrip()]

    def render_remove_view(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return [f"DROP VIEW {(event.before or {})['name']}"]

    def render_add_domain(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return []

    def render_remove_domain(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return []

    def render_add_subject_area(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return []

    def render_remove_subject_area(self, event: ChangeEvent, model: Model | None) -> list[str]:
        return []

    # ------------------------------------------------------------------
    # Whole model
    # ------------------------------------------------------------------

    def create_script(self, model: Model) -> list[str]:
        """Statements creating every table, relation and view of ``model``."""
        statements: list[str] = []
        for table in model.tables:
            inline = []
            if self.inline_foreign_keys:
                for relation in model.relations:
                    if relation.importing_table_id == table.system_id:
                        inline.append(
                            self.foreign_key_clause(
                                relation.to_dict(), model.relation_details(relation)
                            )
                        )
            statements.extend(self.create_table_statements(table.to_dict(), model, inline))
        if not self.inline_foreign_keys:
            for relation in model.relations:
                names = model.relation_details(relation)
                statements.append(
                    f"ALTER TABLE {names['importing_table']} ADD "
                    + self.foreign_key_clause(relation.to_dict(), names)
                )
        for view in model.views:
            statements.append(f"CREATE VIEW {view.name} AS {view.sql or ''}".rstrip())
        return statements
