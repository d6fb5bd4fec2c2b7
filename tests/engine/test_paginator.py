from __future__ import annotations

from threading import Event

import pytest

from parallel_accounts.engine import BatchQueue, Paginator, RunStats
from parallel_accounts.errors import MalformedPayloadError


def _drain(queue: BatchQueue) -> list:
    batches = []
    while not queue.is_empty():
        batch = queue.peek_front()
        batches.append(queue.pop_front(batch))
    return batches


def test_paginator_follows_cursors_and_closes_queue(scenario_a_service) -> None:
    queue = BatchQueue()
    stats = RunStats()
    pages = Paginator(scenario_a_service, queue, stats=stats).run()

    assert pages == 2
    assert scenario_a_service.listing_calls == [None, "t2"]
    assert queue.is_closed
    batches = _drain(queue)
    assert [batch.ids for batch in batches] == [("1", "2", "3"), ("4", "5")]
    assert [batch.sequence for batch in batches] == [0, 1]
    assert batches[0].token == "t2"
    assert batches[1].is_last
    assert stats["pages"] == 2
    assert stats["ids_seen"] == 5
    assert stats["truncated"] == 0


def test_empty_token_ends_pagination(fake_service) -> None:
    service = fake_service(pages={None: (["1"], "")}, details={})
    queue = BatchQueue()
    assert Paginator(service, queue).run() == 1
    assert service.listing_calls == [None]


def test_listing_failure_truncates_and_is_counted(fake_service) -> None:
    # second page missing -> ListingError
    service = fake_service(pages={None: (["1", "2"], "next")}, details={})
    queue = BatchQueue()
    stats = RunStats()
    assert Paginator(service, queue, stats=stats).run() == 1
    assert queue.is_closed
    assert stats["listing_failures"] == 1
    assert stats["truncated"] == 1
    assert [batch.ids for batch in _drain(queue)] == [("1", "2")]


def test_malformed_listing_is_treated_as_failure(fake_service) -> None:
    service = fake_service(pages={None: MalformedPayloadError("bad json")}, details={})
    queue = BatchQueue()
    stats = RunStats()
    assert Paginator(service, queue, stats=stats).run() == 0
    assert queue.is_drained()
    assert stats["listing_failures"] == 1


def test_iter_batches_is_lazy_and_not_restartable(scenario_a_service) -> None:
    paginator = Paginator(scenario_a_service, BatchQueue())
    iterator = paginator.iter_batches()
    assert scenario_a_service.listing_calls == []
    first = next(iterator)
    assert first.ids == ("1", "2", "3")
    assert scenario_a_service.listing_calls == [None]
    with pytest.raises(RuntimeError):
        paginator.iter_batches()


def test_cancel_stops_before_next_call(scenario_a_service) -> None:
    cancel = Event()
    cancel.set()
    queue = BatchQueue()
    assert Paginator(scenario_a_service, queue, cancel=cancel).run() == 0
    assert scenario_a_service.listing_calls == []
    assert queue.is_drained()


def test_unexpected_error_still_closes_queue(fake_service) -> None:
    service = fake_service(pages={None: KeyError("boom")}, details={})
    queue = BatchQueue()
    with pytest.raises(KeyError):
        Paginator(service, queue).run()
    assert queue.is_closed
