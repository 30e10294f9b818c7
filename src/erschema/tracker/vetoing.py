"""Tracker decorator refusing selected operations, e.g. for read-only workspaces."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from erschema.core.types import ChangeEvent, ChangeOperation
from erschema.exceptions import VetoError
from erschema.tracker.base import EmptyModelModificationTracker, ModelModificationTracker

logger = logging.getLogger(__name__)


class VetoingModificationTracker(ModelModificationTracker):
    """Vetoes a set of operations and delegates everything else to ``inner``."""

    def __init__(
        self,
        inner: ModelModificationTracker | None = None,
        operations: Iterable[ChangeOperation] | None = None,
        read_only: bool = False,
        reason: str = "the workspace is read-only",
    ) -> None:
        """Initialize the tracker.

        Args:
            inner: Tracker that sees accepted changes (default: accept, record nothing)
            operations: Operations to refuse; ignored when ``read_only``
            read_only: Refuse every operation
            reason: Text carried by the VetoError
        """
        self.inner = inner if inner is not None else EmptyModelModificationTracker()
        self.vetoed = frozenset(ChangeOperation) if read_only else frozenset(operations or ())
        self.reason = reason

    def verify(self, event: ChangeEvent) -> None:
        if event.operation in self.vetoed:
            logger.info(f"Vetoed {event.operation.value}: {self.reason}")
            raise VetoError(event.operation.value, self.reason)
        self.inner.verify(event)

    def record(self, event: ChangeEvent) -> None:
        self.inner.record(event)
