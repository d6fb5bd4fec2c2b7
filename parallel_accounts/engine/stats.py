"""Per-run counters shared by the producer and the detail workers."""

from __future__ import annotations

from threading import Lock

SUMMARY_FIELDS = (
    "pages",
    "listing_failures",
    "truncated",
    "ids_seen",
    "detail_failures",
    "malformed_payloads",
    "invalid_records",
    "offered",
    "accepted",
    "cancelled_ids",
)


class RunStats:
    """Thread-safe counter bag; ``as_dict`` always carries every summary field."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._counts: dict[str, int] = dict.fromkeys(SUMMARY_FIELDS, 0)

    def increment(self, name: str, amount: int = 1) -> None:
        if name not in self._counts:
            raise KeyError(name)
        with self._lock:
            self._counts[name] += amount

    def mark(self, name: str) -> None:
        """Set a flag-style field to 1."""

        if name not in self._counts:
            raise KeyError(name)
        with self._lock:
            self._counts[name] = 1

    def __getitem__(self, name: str) -> int:
        with self._lock:
            return self._counts[name]

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    @property
    def failures(self) -> int:
        with self._lock:
            return (
                self._counts["listing_failures"]
                + self._counts["detail_failures"]
                + self._counts["malformed_payloads"]
            )


__all__ = ["RunStats", "SUMMARY_FIELDS"]
