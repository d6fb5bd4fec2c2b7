"""Bounded, lock-protected top-K collection."""

from __future__ import annotations

from bisect import insort
from operator import attrgetter
from threading import Lock
from typing import Any, Callable, Generic, TypeVar

from ..errors import InvariantViolation

T = TypeVar("T")


class TopKSelector(Generic[T]):
    """Keep the ``capacity`` records with the smallest rank key.

    Members are kept sorted ascending by rank key, so the current worst is
    always the last element. Equal rank keys compete in arrival order: a
    newcomer whose key equals the worst is discarded, so which of several tied
    records survives depends on thread scheduling.
    """

    def __init__(
        self,
        capacity: int,
        rank_key: Callable[[T], Any] = attrgetter("rank_key"),
        display_key: Callable[[T], Any] = attrgetter("display_key"),
    ) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError("capacity must be a positive integer")
        self._capacity = capacity
        self._rank_key = rank_key
        self._display_key = display_key
        self._members: list[T] = []
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def offer(self, record: T) -> bool:
        """Insert ``record`` if it ranks among the best seen so far."""

        rank = self._rank_key(record)
        with self._lock:
            if len(self._members) < self._capacity:
                insort(self._members, record, key=self._rank_key)
            elif rank < self._rank_key(self._members[-1]):
                self._members.pop()
                insort(self._members, record, key=self._rank_key)
            else:
                return False
            if len(self._members) > self._capacity:
                raise InvariantViolation(
                    f"TopKSelector holds {len(self._members)} > {self._capacity} records"
                )
            return True

    def snapshot(self) -> list[T]:
        """Members ordered by display key, ties broken by rank key."""

        with self._lock:
            members = list(self._members)
        return sorted(members, key=lambda item: (self._display_key(item), self._rank_key(item)))

    def ranked(self) -> list[T]:
        with self._lock:
            return list(self._members)

    def worst_rank(self) -> Any | None:
        with self._lock:
            return self._rank_key(self._members[-1]) if self._members else None

    def is_full(self) -> bool:
        with self._lock:
            return len(self._members) >= self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)


__all__ = ["TopKSelector"]
