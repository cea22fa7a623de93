from __future__ import annotations

import logging
from typing import Generic, Iterable, Iterator, TypeVar

from .errors import ChainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Chain(Generic[T]):
    """Ordered, owned sequence of same-type nodes.

    Entities of one type, binary graphics data lines and proprietary data
    lines all use this one container. A node may only be freed once it is
    the tail; use ``detach`` first to split off its successors.
    """

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: list[T] = list(items)

    def append(self, item: T) -> T:
        self._items.append(item)
        return item

    def extend(self, items: Iterable[T]) -> None:
        self._items.extend(items)

    def last(self) -> T | None:
        if not self._items:
            return None
        return self._items[-1]

    def next_of(self, item: T) -> T | None:
        index = self._index(item)
        if index + 1 < len(self._items):
            return self._items[index + 1]
        return None

    def detach(self, item: T) -> "Chain[T]":
        index = self._index(item)
        tail = Chain(self._items[index + 1 :])
        del self._items[index + 1 :]
        return tail

    def free(self, item: T) -> None:
        index = self._index(item)
        if index != len(self._items) - 1:
            raise ChainError("cannot free a chain node that still links to a successor; detach it first")
        del self._items[index]

    def free_all(self) -> int:
        count = len(self._items)
        if count == 0:
            logger.warning("free_all called on an empty chain")
            return 0
        # Tail first, so every node is detached when it goes.
        while self._items:
            self.free(self._items[-1])
        return count

    def copy(self) -> "Chain[T]":
        return Chain(self._items)

    def _index(self, item: T) -> int:
        for index in range(len(self._items) - 1, -1, -1):
            if self._items[index] is item:
                return index
        raise ChainError(f"node is not part of this chain: {item!r}")

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __setitem__(self, index: int, item: T) -> None:
        self._items[index] = item

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Chain):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Chain({self._items!r})"
