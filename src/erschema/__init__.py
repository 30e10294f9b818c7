"""erschema - Entity-relationship schema model with tracked, replayable modifications.

A dialect-aware in-memory model of a relational schema (tables, attributes,
indexes, relations, views, domains, subject areas). Every change goes through
the Model and is announced to a modification tracker that may veto it; the
history tracker journals accepted changes so they can be replayed or rendered
as SQL. Models can be populated from a live database by reverse engineering.

Example:
    from erschema import Attribute, Model, MySQLDialect, Table
    from erschema import HistoryModificationTracker

    model = Model(MySQLDialect())
    model.modification_tracker = HistoryModificationTracker(model)

    customer = Table("Customer", attributes=[Attribute("id", "INT", nullable=False)])
    model.add_table(customer)
    model.tables.find_by_name("customer")  # -> customer, stored as CUSTOMER

    # Populate a model from a database
    from erschema import get_dialect, reverse_engineer

    model = reverse_engineer(get_dialect("sqlite"), "sqlite:///./shop.db")
"""

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
from erschema.dialect import (
    Dialect,
    MySQLDialect,
    OracleDialect,
    PostgresDialect,
    SQLGenerator,
    SQLiteDialect,
    available_dialects,
    get_dialect,
)
from erschema.exceptions import (
    AuthFailedError,
    CannotDeleteError,
    CatalogConnectionError,
    CatalogError,
    ConnectionLostError,
    ConnectionRefusedError,
    DriverUnavailableError,
    ElementAlreadyExistsError,
    ElementNotFoundError,
    ERSchemaError,
    InvalidAttributeError,
    InvalidNameError,
    InvalidRelationError,
    UnsupportedOperationError,
    VetoError,
)
from erschema.model import (
    Attribute,
    Domain,
    Index,
    IndexExpression,
    Model,
    ModelProperties,
    Relation,
    SubjectArea,
    Table,
    View,
)
from erschema.reverse import (
    CollectingReverseEngineeringNotifier,
    HeadlessWorldConnector,
    LoggingReverseEngineeringNotifier,
    MessageKey,
    ReverseEngineeringStrategy,
    reverse_engineer,
)
from erschema.tracker import (
    EmptyModelModificationTracker,
    HistoryModificationTracker,
    ModelModificationTracker,
    StatementModificationTracker,
    VetoingModificationTracker,
    dump_journal,
    load_journal,
    replay_journal,
)

__version__ = "0.1.0"

__all__ = [
    # Model
    "Model",
    "ModelProperties",
    "Table",
    "Attribute",
    "Domain",
    "Index",
    "IndexExpression",
    "Relation",
    "View",
    "SubjectArea",
    # Types
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
    # Dialects
    "Dialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SQLGenerator",
    "available_dialects",
    "get_dialect",
    # Trackers
    "ModelModificationTracker",
    "EmptyModelModificationTracker",
    "HistoryModificationTracker",
    "StatementModificationTracker",
    "VetoingModificationTracker",
    "dump_journal",
    "load_journal",
    "replay_journal",
    # Reverse engineering
    "reverse_engineer",
    "ReverseEngineeringStrategy",
    "HeadlessWorldConnector",
    "LoggingReverseEngineeringNotifier",
    "CollectingReverseEngineeringNotifier",
    "MessageKey",
    # Exceptions
    "ERSchemaError",
    "InvalidNameError",
    "ElementAlreadyExistsError",
    "ElementNotFoundError",
    "InvalidAttributeError",
    "InvalidRelationError",
    "CannotDeleteError",
    "VetoError",
    "UnsupportedOperationError",
    "CatalogError",
    "CatalogConnectionError",
    "ConnectionRefusedError",
    "AuthFailedError",
    "DriverUnavailableError",
    "ConnectionLostError",
]
