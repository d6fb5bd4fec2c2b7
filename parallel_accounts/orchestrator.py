"""Pipeline driver: paginator thread, drain loop, final ordering."""

from __future__ import annotations

import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from threading import Event
from typing import Callable

from .config import GlobalConfig
from .engine import (
    AccountRecord,
    AccountService,
    BatchQueue,
    DetailClient,
    DetailWorkerPool,
    ListingClient,
    RecordPredicate,
    Paginator,
    RunStats,
    ThreadPoolManager,
    TopKSelector,
)
from .logging_conf import component_logger


@dataclass(slots=True)
class RunResult:
    """Outcome of one pipeline run."""

    records: list[AccountRecord]
    elapsed_ms: float
    summary: dict[str, int] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def failures(self) -> int:
        return (
            self.summary.get("listing_failures", 0)
            + self.summary.get("detail_failures", 0)
            + self.summary.get("malformed_payloads", 0)
        )


ProgressCallback = Callable[[RunStats], None]


class Orchestrator:
    """Wire the paginator, queue, worker pool and selector for a single run.

    The paginator runs on its own thread while the calling thread drains the
    queue one batch at a time; batch N+1 is never started before batch N is
    finished. ``cancel()`` (or ``run_timeout``, which is also enforced while a
    batch is in progress) stops both sides and leaves the selector in its last
    consistent state. ``predicate`` defaults to the phone-number check.
    """

    def __init__(
        self,
        config: GlobalConfig,
        listing_client: ListingClient | None = None,
        detail_client: DetailClient | None = None,
        thread_pool: ThreadPoolManager | None = None,
        predicate: RecordPredicate | None = None,
    ) -> None:
        self.config = config
        self.predicate = predicate or AccountRecord.has_valid_number
        self._service: AccountService | None = None
        if listing_client is None or detail_client is None:
            self._service = AccountService(config.endpoint)
        self.listing_client = listing_client or self._service
        self.detail_client = detail_client or self._service
        self.thread_pool = thread_pool or ThreadPoolManager(
            config.pipeline.max_detail_workers or 8
        )
        self.logger = component_logger("orchestrator")
        self._cancel = Event()
        self._queue: BatchQueue | None = None

    def cancel(self) -> None:
        self._cancel.set()
        if self._queue is not None:
            self._queue.wake()

    def close(self) -> None:
        self.thread_pool.shutdown()
        if self._service is not None:
            self._service.close()

    def run(self, on_progress: ProgressCallback | None = None) -> RunResult:
        pipeline_cfg = self.config.pipeline
        self._cancel.clear()
        stats = RunStats()
        queue = BatchQueue(logger=component_logger("queue"))
        self._queue = queue
        selector: TopKSelector[AccountRecord] = TopKSelector(pipeline_cfg.result_count)
        paginator = Paginator(
            self.listing_client,
            queue,
            stats=stats,
            cancel=self._cancel,
            logger=component_logger("paginator"),
        )
        workers = DetailWorkerPool(
            self.detail_client,
            selector,
            self.thread_pool,
            max_workers=pipeline_cfg.max_detail_workers,
            stats=stats,
            cancel=self._cancel,
            logger=component_logger("workers"),
            predicate=self.predicate,
        )

        started = time.perf_counter()
        deadline = (
            None if pipeline_cfg.run_timeout is None else time.monotonic() + pipeline_cfg.run_timeout
        )
        producer: Future[int] = self.thread_pool.get("paginator", max_workers=1).submit(
            paginator.run
        )
        timed_out = False
        clean_exit = False
        try:
            while True:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    timed_out = True
                    break
                batch = queue.wait_for_batch(
                    timeout=remaining,
                    cancel=self._cancel,
                    poll_interval=pipeline_cfg.queue_poll_interval,
                )
                if batch is None:
                    if self._cancel.is_set() or queue.is_drained():
                        break
                    continue
                workers.process_batch(batch, deadline=deadline)
                queue.pop_front(batch)
                if on_progress is not None:
                    on_progress(stats)
            clean_exit = not timed_out
        finally:
            if not clean_exit or self._cancel.is_set():
                self._cancel.set()
                queue.wake()
                self.logger.warning(
                    "run_cancelled",
                    timed_out=timed_out,
                    pending_batches=len(queue),
                )
        # Re-raises anything unexpected from the producer; it has either
        # finished or stops before its next listing call once cancelled.
        producer.result()

        records = selector.snapshot()
        elapsed_ms = (time.perf_counter() - started) * 1000
        cancelled = self._cancel.is_set()
        summary = stats.as_dict()
        self.logger.info(
            "run_finished",
            elapsed_ms=round(elapsed_ms, 1),
            results=len(records),
            cancelled=cancelled,
            **summary,
        )
        return RunResult(records=records, elapsed_ms=elapsed_ms, summary=summary, cancelled=cancelled)


def run_pipeline(config: GlobalConfig, **kwargs) -> RunResult:
    """Run once with a fresh orchestrator and release its resources."""

    orchestrator = Orchestrator(config, **kwargs)
    try:
        return orchestrator.run()
    finally:
        orchestrator.close()


__all__ = ["Orchestrator", "RunResult", "run_pipeline"]
