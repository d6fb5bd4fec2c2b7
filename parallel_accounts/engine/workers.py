"""Parallel detail fetching for one listing batch at a time."""

from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextlib import nullcontext
from dataclasses import dataclass
from threading import Event, Lock
from typing import Callable

import structlog

from ..errors import DetailFetchError, MalformedPayloadError
from .models import AccountRecord, Batch
from .selector import TopKSelector
from .service import DetailClient
from .stats import RunStats
from .thread_pool import ThreadPoolManager

RecordPredicate = Callable[[AccountRecord], bool]


@dataclass
class BatchOutcome:
    """Tally for one processed batch."""

    sequence: int
    attempted: int = 0
    accepted: int = 0
    failed: int = 0
    invalid: int = 0
    cancelled: int = 0


class DetailWorkerPool:
    """Fetch, validate and offer every identifier of a batch concurrently.

    ``process_batch`` returns only once every task of the batch has finished
    or been cancelled, which is what lets the drain loop pop the batch
    afterwards. ``predicate`` decides which records reach the selector.
    """

    def __init__(
        self,
        client: DetailClient,
        selector: TopKSelector,
        thread_pool: ThreadPoolManager,
        max_workers: int | None = None,
        stats: RunStats | None = None,
        cancel: Event | None = None,
        logger: structlog.BoundLogger | None = None,
        predicate: RecordPredicate = AccountRecord.has_valid_number,
    ) -> None:
        self.client = client
        self.selector = selector
        self.thread_pool = thread_pool
        self.max_workers = max_workers
        self.stats = stats or RunStats()
        self.cancel = cancel or Event()
        self.logger = logger or structlog.get_logger("parallel_accounts.workers")
        self.predicate = predicate

    def process_batch(self, batch: Batch, deadline: float | None = None) -> BatchOutcome:
        """Run every identifier of ``batch`` and wait for all of them.

        ``deadline`` is a ``time.monotonic()`` instant. Once it passes the
        shared cancel event is set, tasks that have not started are cancelled
        and only the calls already in flight are awaited.
        """

        outcome = BatchOutcome(sequence=batch.sequence)
        if not batch.ids:
            return outcome
        self.logger.debug("batch_started", batch=batch.sequence, ids=len(batch.ids))
        tally_lock = Lock()

        if self.max_workers is None:
            # one worker per identifier, torn down with the batch
            executor_ctx = self.thread_pool.scoped("detail", len(batch.ids))
        else:
            executor_ctx = nullcontext(self.thread_pool.get("detail", self.max_workers))

        with executor_ctx as executor:
            futures = self._submit_all(executor, batch, outcome, tally_lock)
            timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
            done, pending = wait(futures, timeout=timeout)
            if pending:
                self.logger.warning(
                    "batch_deadline_expired", batch=batch.sequence, pending=len(pending)
                )
                self.cancel.set()
                for future in pending:
                    future.cancel()
                done, _ = wait(futures)
            for future in done:
                if future.cancelled():
                    with tally_lock:
                        outcome.cancelled += 1
                    self.stats.increment("cancelled_ids")
                    continue
                # selector invariant breaches abort the run
                future.result()

        self.logger.info(
            "batch_finished",
            batch=batch.sequence,
            attempted=outcome.attempted,
            accepted=outcome.accepted,
            failed=outcome.failed,
            invalid=outcome.invalid,
            cancelled=outcome.cancelled,
        )
        return outcome

    def _submit_all(
        self,
        executor: ThreadPoolExecutor,
        batch: Batch,
        outcome: BatchOutcome,
        tally_lock: Lock,
    ) -> list[Future[None]]:
        return [
            executor.submit(self._process_one, identifier, batch.sequence, outcome, tally_lock)
            for identifier in batch.ids
        ]

    def _process_one(
        self, identifier: str, sequence: int, outcome: BatchOutcome, tally_lock: Lock
    ) -> None:
        if self.cancel.is_set():
            with tally_lock:
                outcome.cancelled += 1
            self.stats.increment("cancelled_ids")
            return
        with tally_lock:
            outcome.attempted += 1
        try:
            record = self.client.get_account(identifier)
        except DetailFetchError as exc:
            self.logger.warning("detail_failed", batch=sequence, id=identifier, error=str(exc))
            self.stats.increment("detail_failures")
            with tally_lock:
                outcome.failed += 1
            return
        except MalformedPayloadError as exc:
            self.logger.warning("detail_malformed", batch=sequence, id=identifier, error=str(exc))
            self.stats.increment("malformed_payloads")
            with tally_lock:
                outcome.failed += 1
            return
        except Exception as exc:  # noqa: BLE001
            self.logger.error("detail_error", batch=sequence, id=identifier, error=str(exc))
            self.stats.increment("detail_failures")
            with tally_lock:
                outcome.failed += 1
            return

        if not self.predicate(record):
            self.logger.debug("record_invalid", id=record.id, number=record.number)
            self.stats.increment("invalid_records")
            with tally_lock:
                outcome.invalid += 1
            return

        self.stats.increment("offered")
        if self.selector.offer(record):
            self.stats.increment("accepted")
            with tally_lock:
                outcome.accepted += 1
            self.logger.debug("record_accepted", id=record.id, age=record.age)


__all__ = ["BatchOutcome", "DetailWorkerPool", "RecordPredicate"]
