"""FIFO of listing batches bridging the paginator thread and the drain loop."""

from __future__ import annotations

import time
from collections import deque
from threading import Condition, Event

import structlog

from ..errors import InvariantViolation
from .models import Batch


class BatchQueue:
    """Queue plus producer-done flag guarded by one condition variable.

    The consumer peeks the head, processes it completely, then pops it; the
    head therefore stays visible while its details are in flight.
    """

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self._items: deque[Batch] = deque()
        self._cond = Condition()
        self._closed = False
        self.logger = logger or structlog.get_logger("parallel_accounts.queue")

    def enqueue(self, batch: Batch) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("Cannot enqueue onto a closed BatchQueue")
            self._items.append(batch)
            self._cond.notify_all()

    def peek_front(self) -> Batch | None:
        with self._cond:
            return self._items[0] if self._items else None

    def pop_front(self, expected: Batch | None = None) -> Batch:
        with self._cond:
            if not self._items:
                raise InvariantViolation("pop_front called on an empty BatchQueue")
            head = self._items[0]
            if expected is not None and head is not expected:
                raise InvariantViolation(
                    f"pop_front expected batch {expected.sequence}, head is {head.sequence}"
                )
            self._items.popleft()
            self._cond.notify_all()
            return head

    def is_empty(self) -> bool:
        # Lock-free hint for loop conditions; callers re-check.
        return not self._items

    def close(self) -> None:
        """Mark the producer as done. Only the first call has an effect."""

        with self._cond:
            if self._closed:
                self.logger.warning("queue_already_closed")
                return
            self._closed = True
            self._cond.notify_all()

    @property
    def is_closed(self) -> bool:
        with self._cond:
            return self._closed

    def is_drained(self) -> bool:
        """Producer finished and every batch has been popped."""

        with self._cond:
            return self._closed and not self._items

    def wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def wait_for_batch(
        self,
        timeout: float | None = None,
        cancel: Event | None = None,
        poll_interval: float = 0.5,
    ) -> Batch | None:
        """Block until a batch is at the head and return it without popping.

        Returns ``None`` when the queue is drained, ``cancel`` is set or
        ``timeout`` elapses. ``poll_interval`` bounds each individual wait so a
        cancel event set without ``wake()`` is still noticed.
        """

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                if cancel is not None and cancel.is_set():
                    return None
                if self._items:
                    return self._items[0]
                if self._closed:
                    return None
                wait_for = poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    wait_for = min(wait_for, remaining)
                self._cond.wait(wait_for)

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


__all__ = ["BatchQueue"]
