"""Serial producer walking the listing cursor chain."""

from __future__ import annotations

from dataclasses import replace
from threading import Event
from typing import Iterator

import structlog

from ..errors import ListingError, MalformedPayloadError
from .batch_queue import BatchQueue
from .models import Batch
from .service import ListingClient
from .stats import RunStats


class Paginator:
    """Follow listing cursors one call at a time and feed the batch queue.

    Each cursor comes from the previous response, so there is nothing to
    parallelise here. A failed or undecodable listing page ends pagination
    early; the run summary records it as ``truncated``.
    """

    def __init__(
        self,
        client: ListingClient,
        queue: BatchQueue,
        stats: RunStats | None = None,
        cancel: Event | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.client = client
        self.queue = queue
        self.stats = stats or RunStats()
        self.cancel = cancel or Event()
        self.logger = logger or structlog.get_logger("parallel_accounts.paginator")
        self._started = False

    def iter_batches(self) -> Iterator[Batch]:
        if self._started:
            raise RuntimeError("Paginator can only be iterated once")
        self._started = True
        return self._walk()

    def _walk(self) -> Iterator[Batch]:
        cursor: str | None = None
        sequence = 0
        while True:
            if self.cancel.is_set():
                self.logger.info("pagination_cancelled", pages=sequence)
                return
            try:
                batch = self.client.list_ids(cursor)
            except (ListingError, MalformedPayloadError) as exc:
                self.logger.error(
                    "listing_failed",
                    page=sequence,
                    cursor=cursor,
                    error=str(exc),
                )
                self.stats.increment("listing_failures")
                self.stats.mark("truncated")
                return
            batch = replace(batch, sequence=sequence)
            self.stats.increment("pages")
            self.stats.increment("ids_seen", len(batch.ids))
            yield batch
            if batch.is_last:
                return
            cursor = batch.token
            sequence += 1

    def run(self) -> int:
        """Push every batch onto the queue, then close it. Returns pages enqueued."""

        self.logger.info("pagination_started")
        pages = 0
        try:
            for batch in self.iter_batches():
                self.queue.enqueue(batch)
                pages += 1
                self.logger.debug(
                    "page_enqueued",
                    page=batch.sequence,
                    ids=len(batch.ids),
                    has_next=not batch.is_last,
                )
        finally:
            self.queue.close()
            self.logger.info("pagination_finished", pages=pages)
        return pages


__all__ = ["Paginator"]
