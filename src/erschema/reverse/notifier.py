"""Progress and warning channel of the reverse-engineering pipeline."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class MessageKey(StrEnum):
    """Resource keys of reverse-engineering messages."""

    GETTING_SCHEMA_INFORMATION = "getting_schema_information"
    ENGINEERING_TABLE = "engineering_table"
    ENGINEERING_INDEX = "engineering_index"
    ENGINEERING_RELATION = "engineering_relation"
    ENGINEERING_VIEW = "engineering_view"
    TYPE_NOT_FOUND = "type_not_found"
    NAME_COLLISION = "name_collision"
    INVALID_NAME = "invalid_name"
    REFERENCED_TABLE_NOT_FOUND = "referenced_table_not_found"
    REFERENCED_INDEX_NOT_FOUND = "referenced_index_not_found"
    CANCELLED = "cancelled"
    FINISHED = "finished"

    @property
    def is_warning(self) -> bool:
        """Whether the message reports a skipped or substituted element."""
        return self in _WARNINGS


_WARNINGS = frozenset(
    {
        MessageKey.TYPE_NOT_FOUND,
        MessageKey.NAME_COLLISION,
        MessageKey.INVALID_NAME,
        MessageKey.REFERENCED_TABLE_NOT_FOUND,
        MessageKey.REFERENCED_INDEX_NOT_FOUND,
    }
)

# Human readable templates; positional arguments are filled in order
MESSAGES: dict[MessageKey, str] = {
    MessageKey.GETTING_SCHEMA_INFORMATION: "Reading schema {0}",
    MessageKey.ENGINEERING_TABLE: "Reading table {0}",
    MessageKey.ENGINEERING_INDEX: "Reading index {1} of table {0}",
    MessageKey.ENGINEERING_RELATION: "Reading relation {1} of table {0}",
    MessageKey.ENGINEERING_VIEW: "Reading view {0}",
    MessageKey.TYPE_NOT_FOUND: "Type {2} of column {0}.{1} not found, using {3}",
    MessageKey.NAME_COLLISION: "{0} {1} collides with an existing name and was skipped",
    MessageKey.INVALID_NAME: "{0} {1} has an invalid name and was skipped: {2}",
    MessageKey.REFERENCED_TABLE_NOT_FOUND: "Relation {0}: referenced table {1} not found",
    MessageKey.REFERENCED_INDEX_NOT_FOUND: "Relation {0}: no unique index of {1} matches {2}",
    MessageKey.CANCELLED: "Reverse engineering cancelled",
    MessageKey.FINISHED: "Reverse engineering finished: {0} tables, {1} relations, {2} views",
}


def format_message(key: MessageKey, *args: str) -> str:
    """Render a message for display."""
    template = MESSAGES.get(key)
    if template is None:
        return " ".join([key.value, *args])
    try:
        return template.format(*args)
    except IndexError:
        return " ".join([key.value, *args])


@runtime_checkable
class ReverseEngineeringNotifier(Protocol):
    """Receives progress and warning messages of a reverse-engineering run."""

    def notify_message(self, key: MessageKey, *args: str) -> None:
        ...


class LoggingReverseEngineeringNotifier:
    """Forwards every message to the logger; warnings at WARNING, progress at INFO."""

    def notify_message(self, key: MessageKey, *args: str) -> None:
        message = format_message(key, *args)
        if key.is_warning:
            logger.warning(message)
        else:
            logger.info(message)


class CollectingReverseEngineeringNotifier(LoggingReverseEngineeringNotifier):
    """Logs like its parent and keeps every message for later inspection."""

    def __init__(self) -> None:
        self.messages: list[tuple[MessageKey, tuple[str, ...]]] = []

    def notify_message(self, key: MessageKey, *args: str) -> None:
        self.messages.append((key, args))
        super().notify_message(key, *args)

    def warnings(self) -> list[tuple[MessageKey, tuple[str, ...]]]:
        """Only the warning messages."""
        return [(key, args) for key, args in self.messages if key.is_warning]
