"""Tracker that turns accepted changes into a dialect specific SQL script."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from erschema.core.types import ChangeEvent
from erschema.exceptions import VetoError
from erschema.tracker.base import ModelModificationTracker

if TYPE_CHECKING:
    from erschema.dialect.sql import SQLGenerator
    from erschema.model.model import Model

logger = logging.getLogger(__name__)


class StatementModificationTracker(ModelModificationTracker):
    """Appends the SQL of every accepted change to an ordered script.

    Changes the dialect's generator cannot express are vetoed, so the model
    never gets ahead of the script.
    """

    def __init__(self, model: Model, generator: SQLGenerator | None = None) -> None:
        """Initialize the tracker.

        Args:
            model: The model being tracked; its dialect provides the generator
            generator: Explicit generator, e.g. for a different target dialect
        """
        if generator is None:
            if model.dialect is None:
                raise ValueError("A statement tracker needs a model with a dialect")
            generator = model.dialect.create_sql_generator()
        self.model = model
        self.generator = generator
        self._statements: list[str] = []

    @property
    def statements(self) -> list[str]:
        """Rendered statements in order (a copy)."""
        return list(self._statements)

    def check(self, event: ChangeEvent) -> None:
        if not self.generator.supports_event(event):
            reason = f"{self.generator.dialect.unique_name} cannot express this change in SQL"
            logger.info(f"Vetoed {event.operation.value}: {reason}")
            raise VetoError(event.operation.value, reason)

    def record(self, event: ChangeEvent) -> None:
        self._statements.extend(self.generator.render(event, self.model))

    def script(self, terminator: str = ";") -> str:
        """The statements joined into one script."""
        return "\n".join(f"{s}{terminator}" for s in self._statements)

    def clear(self) -> None:
        self._statements.clear()
