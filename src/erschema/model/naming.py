"""Name validation and uniqueness checks shared by the model and its tables.

Every uniqueness decision goes through the dialect, so two names collide
exactly when their normalized forms are equal.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from erschema.exceptions import ElementAlreadyExistsError

if TYPE_CHECKING:
    from erschema.dialect.base import Dialect
    from erschema.model.item import ModelItem


def check_name(name: str, dialect: Dialect | None) -> str:
    """Validate ``name`` and return it in stored form.

    Raises:
        InvalidNameError: If the dialect rejects the name
    """
    if dialect is None:
        return name
    return dialect.check_name(name)


def find_conflict(
    items: Iterable[Any],
    name: str,
    dialect: Dialect | None,
    exclude: ModelItem | None = None,
) -> Any:
    """Return the item of ``items`` whose name equals ``name`` after normalization."""
    normalize = dialect.normalize if dialect is not None else (lambda value: value)
    wanted = normalize(name)
    for item in items:
        if exclude is not None and item.system_id == exclude.system_id:
            continue
        if normalize(item.name) == wanted:
            return item
    return None


def check_existence(
    items: Iterable[Any],
    name: str,
    dialect: Dialect | None,
    kind: str,
    scope: str | None = None,
    exclude: ModelItem | None = None,
) -> None:
    """Raise if another item already uses ``name``.

    Raises:
        ElementAlreadyExistsError: On a collision under dialect normalization
    """
    if find_conflict(items, name, dialect, exclude) is not None:
        raise ElementAlreadyExistsError(kind, name, scope)


def check_name_and_existence(
    items: Iterable[Any],
    name: str,
    dialect: Dialect | None,
    kind: str,
    scope: str | None = None,
    exclude: ModelItem | None = None,
) -> str:
    """Validate ``name``, check it is free in ``items`` and return its stored form."""
    normalized = check_name(name, dialect)
    check_existence(items, normalized, dialect, kind, scope, exclude)
    return normalized
