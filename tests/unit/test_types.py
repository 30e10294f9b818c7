"""Tests for core types and exceptions."""

import json

from erschema.core.types import (
    CascadeType,
    ChangeEvent,
    ChangeOperation,
    DataType,
    IndexType,
    ReverseEngineeringOptions,
    SchemaEntry,
    TableNaming,
)
from erschema.exceptions import (
    AuthFailedError,
    CatalogConnectionError,
    CatalogError,
    ElementAlreadyExistsError,
    ElementNotFoundError,
    ERSchemaError,
    VetoError,
)
from erschema.tracker import ModelModificationTracker


class TestIndexType:
    """Tests for IndexType enum."""

    def test_all_types_exist(self):
        """All index kinds should exist."""
        assert IndexType.values() == ["PRIMARY_KEY", "UNIQUE", "NON_UNIQUE"]

    def test_from_string(self):
        assert IndexType("UNIQUE") == IndexType.UNIQUE


class TestCascadeType:
    """Tests for CascadeType enum."""

    def test_from_sql(self):
        """Catalog spellings map to cascade types."""
        assert CascadeType.from_sql("CASCADE") == CascadeType.CASCADE
        assert CascadeType.from_sql("set null") == CascadeType.SET_NULL
        assert CascadeType.from_sql(" SET DEFAULT ") == CascadeType.SET_DEFAULT

    def test_from_sql_defaults_to_no_action(self):
        """Missing or unknown clauses mean NO ACTION."""
        assert CascadeType.from_sql(None) == CascadeType.NO_ACTION
        assert CascadeType.from_sql("") == CascadeType.NO_ACTION
        assert CascadeType.from_sql("DEFERRABLE") == CascadeType.NO_ACTION

    def test_sql_spelling(self):
        assert CascadeType.SET_NULL.sql == "SET NULL"
        assert CascadeType.NO_ACTION.sql == "NO ACTION"


class TestChangeOperation:
    """Tests for ChangeOperation enum."""

    def test_every_operation_has_a_tracker_hook(self):
        """Trackers dispatch on the operation value, so each needs a method of that name."""
        for operation in ChangeOperation:
            assert callable(getattr(ModelModificationTracker, operation.value))

    def test_operation_count(self):
        assert len(ChangeOperation.values()) == 22


class TestDataType:
    """Tests for DataType model."""

    def test_matches_name_and_alias(self):
        data_type = DataType(name="INT", aliases=("INTEGER",))
        assert data_type.matches("int")
        assert data_type.matches("INTEGER")
        assert not data_type.matches("BIGINT")

    def test_type_definition_with_size(self):
        varchar = DataType(name="VARCHAR", supports_size=True)
        assert varchar.create_type_definition(20) == "VARCHAR(20)"
        assert varchar.create_type_definition() == "VARCHAR"

    def test_type_definition_with_fraction(self):
        decimal = DataType(name="DECIMAL", supports_size=True, supports_fraction=True)
        assert decimal.create_type_definition(20, 5) == "DECIMAL(20,5)"
        assert decimal.create_type_definition(20) == "DECIMAL(20)"

    def test_size_ignored_when_unsupported(self):
        assert DataType(name="TEXT").create_type_definition(200) == "TEXT"


class TestChangeEvent:
    """Tests for ChangeEvent model."""

    def test_defaults(self):
        """Events get an id, a timestamp and empty collections."""
        event = ChangeEvent(operation=ChangeOperation.ADD_TABLE, subject_id="t1")
        assert event.id
        assert event.timestamp is not None
        assert event.affected_ids == []
        assert event.details == {}
        assert event.before is None

    def test_json_round_trip(self):
        event = ChangeEvent(
            operation=ChangeOperation.RENAME_TABLE,
            subject_id="t1",
            table_id="t1",
            before={"name": "A"},
            after={"name": "B"},
            details={"table": "A"},
        )
        restored = ChangeEvent.model_validate_json(event.model_dump_json())
        assert restored == event
        assert restored.operation is ChangeOperation.RENAME_TABLE


class TestReverseEngineeringOptions:
    """Tests for ReverseEngineeringOptions model."""

    def test_defaults(self):
        options = ReverseEngineeringOptions()
        assert options.table_naming == TableNaming.STANDARD
        assert options.schemas == []
        assert options.table_entries == []
        assert options.skip_views is False

    def test_schema_display_name(self):
        assert SchemaEntry(schema_name="shop").display_name == "shop"
        assert SchemaEntry(catalog_name="main").display_name == "main"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_to_dict_is_json_serializable(self):
        error = ElementAlreadyExistsError("Table", "CUSTOMER", None)
        data = error.to_dict()
        assert data["error"] == "ElementAlreadyExistsError"
        assert "already exists" in data["message"]
        assert data["context"] == {"kind": "Table", "name": "CUSTOMER", "scope": None}
        json.dumps(data)

    def test_not_found_lists_alternatives(self):
        error = ElementNotFoundError("Dialect", "DB2", ["MySQL", "SQLite"])
        assert "Available: MySQL, SQLite" in str(error)

    def test_veto_message(self):
        error = VetoError("rename_table", "renames are frozen")
        assert error.operation == "rename_table"
        assert "vetoed" in str(error)

    def test_hierarchy(self):
        assert issubclass(AuthFailedError, CatalogConnectionError)
        assert issubclass(CatalogConnectionError, CatalogError)
        assert issubclass(CatalogError, ERSchemaError)
