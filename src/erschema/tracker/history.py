"""Append-only journal of accepted changes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from erschema.core.types import ChangeEvent
from erschema.tracker.base import ModelModificationTracker

if TYPE_CHECKING:
    from erschema.model.model import Model

logger = logging.getLogger(__name__)

_JOURNAL_ADAPTER = TypeAdapter(list[ChangeEvent])


def dump_journal(events: list[ChangeEvent], indent: int | None = None) -> str:
    """Serialize events to a JSON array."""
    return _JOURNAL_ADAPTER.dump_json(events, indent=indent).decode()


def load_journal(data: str | bytes) -> list[ChangeEvent]:
    """Parse a JSON array written by :func:`dump_journal`.

    Raises:
        pydantic.ValidationError: If the data is not a valid journal
    """
    return _JOURNAL_ADAPTER.validate_json(data)


class HistoryModificationTracker(ModelModificationTracker):
    """Journals every accepted change.

    The journal is the forward-engineering source of truth: replaying it
    against an empty model with the same dialect rebuilds the current state.
    """

    def __init__(self, model: Model | None = None) -> None:
        """Initialize the tracker.

        Args:
            model: The model being tracked, kept for callers that need it
        """
        self.model = model
        self._journal: list[ChangeEvent] = []

    @property
    def journal(self) -> list[ChangeEvent]:
        """Accepted events in order (a copy)."""
        return list(self._journal)

    def __len__(self) -> int:
        return len(self._journal)

    def record(self, event: ChangeEvent) -> None:
        logger.debug(f"Journaled {event.operation.value} of {event.subject_id}")
        self._journal.append(event)

    def clear(self) -> None:
        """Forget all events, e.g. after a script has been applied to the database."""
        self._journal.clear()

    def dump_json(self, indent: int | None = None) -> str:
        """The journal as JSON."""
        return dump_journal(self._journal, indent=indent)
