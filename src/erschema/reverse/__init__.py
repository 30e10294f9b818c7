"""Reverse engineering: populate a model from a live database catalog."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from erschema.core.types import ReverseEngineeringOptions
from erschema.model.model import Model, ModelProperties
from erschema.reverse.connector import HeadlessWorldConnector, WorldConnector
from erschema.reverse.notifier import (
    CollectingReverseEngineeringNotifier,
    LoggingReverseEngineeringNotifier,
    MessageKey,
    ReverseEngineeringNotifier,
)
from erschema.reverse.strategy import ReverseEngineeringResult, ReverseEngineeringStrategy

if TYPE_CHECKING:
    from erschema.dialect.base import Dialect

logger = logging.getLogger(__name__)


def reverse_engineer(
    dialect: Dialect,
    url: str,
    user: str | None = None,
    password: str | None = None,
    driver: str | None = None,
    options: ReverseEngineeringOptions | None = None,
    connector: WorldConnector | None = None,
    notifier: ReverseEngineeringNotifier | None = None,
    cancel_event: threading.Event | None = None,
) -> Model:
    """Connect, read the catalog into a new model and close the session.

    The model comes from ``connector.create_new_model`` (a history tracker by
    default) and carries the connection properties it was read from.

    Raises:
        DriverUnavailableError: If the driver is not installed
        ConnectionRefusedError: If the database cannot be reached
        AuthFailedError: If the credentials are rejected
        CatalogError: If metadata cannot be read
    """
    connector = connector or HeadlessWorldConnector()
    notifier = notifier or LoggingReverseEngineeringNotifier()
    options = options or ReverseEngineeringOptions()

    model = connector.create_new_model(dialect)
    model.dialect = dialect
    model.properties.set_property(ModelProperties.DRIVER, driver)
    model.properties.set_property(ModelProperties.URL, url)
    model.properties.set_property(ModelProperties.USER, user)
    model.properties.set_property(ModelProperties.PASSWORD, password)

    strategy = dialect.get_reverse_engineering_strategy()
    with dialect.create_connection(driver, url, user, password) as session:
        result = strategy.update_model_from_connection(
            model, connector, session, options, notifier, cancel_event
        )
    logger.info(
        f"Reverse engineered {len(result.tables)} tables, {len(result.relations)} relations "
        f"and {len(result.views)} views"
    )
    return model


__all__ = [
    "CollectingReverseEngineeringNotifier",
    "HeadlessWorldConnector",
    "LoggingReverseEngineeringNotifier",
    "MessageKey",
    "ReverseEngineeringNotifier",
    "ReverseEngineeringResult",
    "ReverseEngineeringStrategy",
    "WorldConnector",
    "reverse_engineer",
]
