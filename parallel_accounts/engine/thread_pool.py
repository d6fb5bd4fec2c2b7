"""Thread pool bookkeeping for the paginator and detail workers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator


class ThreadPoolManager:
    """Hand out named, lazily created executors and shut them down together."""

    def __init__(self, default_workers: int = 8, prefix: str = "accounts") -> None:
        if default_workers < 1:
            raise ValueError("default_workers must be >= 1")
        self.default_workers = default_workers
        self.prefix = prefix
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, name: str, max_workers: int | None = None) -> ThreadPoolExecutor:
        with self._lock:
            if name not in self._executors:
                workers = max_workers or self.default_workers
                self._executors[name] = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix=f"{self.prefix}-{name}"
                )
            return self._executors[name]

    @contextmanager
    def scoped(self, name: str, max_workers: int) -> Iterator[ThreadPoolExecutor]:
        """Executor living for one ``with`` block, sized to the work at hand."""

        executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix=f"{self.prefix}-{name}"
        )
        try:
            yield executor
        finally:
            executor.shutdown(wait=True)

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            executors = list(self._executors.values())
            self._executors.clear()
        for executor in executors:
            executor.shutdown(wait=wait, cancel_futures=True)


__all__ = ["ThreadPoolManager"]
