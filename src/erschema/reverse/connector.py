"""Host capabilities used by the pipeline and the model lifecycle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from erschema.dialect.base import Dialect
    from erschema.model.model import Model

logger = logging.getLogger(__name__)


@runtime_checkable
class WorldConnector(Protocol):
    """Policy hooks a host application supplies; no UI is assumed."""

    def create_new_model(self, dialect: Dialect | None = None) -> Model:
        ...

    def initialize_loaded_model(self, model: Model) -> None:
        ...

    def notify_about_exception(self, error: Exception) -> None:
        ...

    def set_status_text(self, text: str) -> None:
        ...

    def supports_classpath_editor(self) -> bool:
        ...

    def supports_connection_editor(self) -> bool:
        ...

    def supports_exit_application(self) -> bool:
        ...

    def supports_preferences(self) -> bool:
        ...

    def supports_repositories(self) -> bool:
        ...


class HeadlessWorldConnector:
    """Connector for scripts, the CLI and tests.

    New and loaded models get a history tracker; exceptions are logged and
    re-raised, status text goes to the log.
    """

    def create_new_model(self, dialect: Dialect | None = None) -> Model:
        from erschema.model.model import Model
        from erschema.tracker.history import HistoryModificationTracker

        model = Model(dialect=dialect)
        model.modification_tracker = HistoryModificationTracker(model)
        return model

    def initialize_loaded_model(self, model: Model) -> None:
        from erschema.tracker.history import HistoryModificationTracker

        model.modification_tracker = HistoryModificationTracker(model)

    def notify_about_exception(self, error: Exception) -> None:
        logger.error(f"Reverse engineering failed: {error}")
        raise error

    def set_status_text(self, text: str) -> None:
        logger.info(text)

    def supports_classpath_editor(self) -> bool:
        return False

    def supports_connection_editor(self) -> bool:
        return False

    def supports_exit_application(self) -> bool:
        return False

    def supports_preferences(self) -> bool:
        return False

    def supports_repositories(self) -> bool:
        return False
