"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from rich.console import Console
from rich.status import Status

from ..engine import RunStats


class ProgressActivity:
    """Indeterminate activity indicator using Rich Status spinner."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self.console = console or Console()
        self._status: Status | None = None

    def start(self, message: str) -> None:
        if not self.enabled or self._status is not None:
            return
        self._status = self.console.status(message)
        self._status.start()

    def update(self, message: str) -> None:
        if self._status is not None:
            self._status.update(message)

    def close(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


class PipelineProgress:
    """Spinner fed by the drain loop after each finished batch."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.activity = ProgressActivity(enabled=enabled, console=console)
        self.batches = 0
        self.last_message = ""

    def __enter__(self) -> "PipelineProgress":
        self.activity.start("Fetching account listing…")
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.activity.close()

    def __call__(self, stats: RunStats) -> None:
        self.batches += 1
        counts = stats.as_dict()
        self.last_message = (
            f"batches {self.batches} · ids {counts['ids_seen']} · "
            f"accepted {counts['accepted']} · failed "
            f"{counts['detail_failures'] + counts['malformed_payloads']}"
        )
        self.activity.update(self.last_message)


__all__ = ["PipelineProgress", "ProgressActivity"]
