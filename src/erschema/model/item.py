"""Base identity and ordered, owner-aware collections for schema elements."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Generic, TypeVar

from erschema.core.types import generate_uuid


class ModelItem:
    """Base class of every schema element.

    Identity is the system id, assigned once at creation and never changed.
    Equality and hashing use it, so a renamed element is still the same element.
    """

    kind = "Element"

    def __init__(self, system_id: str | None = None) -> None:
        self._system_id = system_id or generate_uuid()
        self.owner: Any = None

    @property
    def system_id(self) -> str:
        """Opaque, immutable identifier."""
        return self._system_id

    @property
    def dialect(self) -> Any:
        """Dialect of the model this element belongs to, if attached."""
        owner = self.owner
        return owner.dialect if owner is not None else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModelItem):
            return NotImplemented
        return type(self) is type(other) and self._system_id == other._system_id

    def __hash__(self) -> int:
        return hash(self._system_id)

    def __repr__(self) -> str:
        name = getattr(self, "name", None)
        return f"{type(self).__name__}(name={name!r}, system_id={self._system_id!r})"


T = TypeVar("T", bound=ModelItem)


class OwnedItemList(Generic[T]):
    """Insertion-ordered collection of model items with O(1) lookup by system id.

    Name lookups compare dialect-normalized names, using the dialect of the
    list's owner. ``add`` does not check uniqueness; owners do that at
    mutation time.
    """

    def __init__(self, owner: Any = None, items: Iterable[T] | None = None) -> None:
        self._owner = owner
        self._items: dict[str, T] = {}
        for item in items or ():
            self.add(item)

    def _normalize(self, name: str) -> str:
        dialect = getattr(self._owner, "dialect", None)
        if dialect is None:
            return name
        return dialect.normalize(name)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: object) -> bool:
        return isinstance(item, ModelItem) and item.system_id in self._items

    def __getitem__(self, position: int) -> T:
        return list(self._items.values())[position]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items.values())!r})"

    def find_by_id(self, system_id: str) -> T | None:
        """Find an item by its system id."""
        return self._items.get(system_id)

    def find_by_name(self, name: str) -> T | None:
        """Find an item whose name equals ``name`` under dialect normalization."""
        wanted = self._normalize(name)
        for item in self._items.values():
            if self._normalize(item.name) == wanted:  # type: ignore[attr-defined]
                return item
        return None

    def add(self, item: T) -> None:
        """Append an item."""
        self._items[item.system_id] = item

    def remove(self, item: T) -> None:
        """Remove an item by identity; no-op if absent."""
        self._items.pop(item.system_id, None)

    def remove_by_id(self, system_id: str) -> None:
        """Remove the item with the given system id; no-op if absent."""
        self._items.pop(system_id, None)

    def names(self) -> list[str]:
        """Names of all items, in order."""
        return [item.name for item in self._items.values()]  # type: ignore[attr-defined]

    def to_list(self) -> list[T]:
        """Items as a plain list."""
        return list(self._items.values())

    def clear(self) -> None:
        """Remove all items."""
        self._items.clear()
