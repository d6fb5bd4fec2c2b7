"""Shared fixtures: an in-memory account service and config factories."""

from __future__ import annotations

import json
import time
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable

import pytest

from parallel_accounts.config import ConfigLocator, ConfigRepository, GlobalConfig
from parallel_accounts.engine import AccountRecord, Batch, Parser
from parallel_accounts.errors import DetailFetchError, ListingError

VALID_NUMBER = "(555) 555-5555"
INVALID_NUMBER = "555-55"


def account(identifier: int, age: int, *, name: str | None = None, number: str = VALID_NUMBER) -> dict[str, Any]:
    return {
        "id": identifier,
        "name": name or f"User {identifier:02d}",
        "age": age,
        "number": number,
        "photo": None,
        "bio": None,
    }


class FakeAccountService:
    """Listing + detail collaborator driven by plain dicts.

    ``pages`` maps a cursor (``None`` for the first page) to ``(ids, next)``.
    ``details`` maps an id to an account dict, or to an exception instance
    which is raised when that id is fetched.
    """

    def __init__(
        self,
        pages: dict[str | None, tuple[list[str], str | None]],
        details: dict[str, Any],
        detail_delay: float = 0.0,
        listing_delay: float = 0.0,
    ) -> None:
        self.pages = pages
        self.details = details
        self.detail_delay = detail_delay
        self.listing_delay = listing_delay
        self.listing_calls: list[str | None] = []
        self.listing_times: list[float] = []
        # (id, start, end) per detail call
        self.detail_calls: list[tuple[str, float, float]] = []
        self.parser = Parser()
        self._lock = Lock()

    def list_ids(self, cursor: str | None = None) -> Batch:
        with self._lock:
            self.listing_calls.append(cursor)
            self.listing_times.append(time.monotonic())
        if self.listing_delay:
            time.sleep(self.listing_delay)
        page = self.pages.get(cursor)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise ListingError(f"list?token={cursor}", "Listing call failed", status_code=500)
        ids, token = page
        return Batch(ids=tuple(ids), token=token)

    def get_account(self, identifier: str) -> AccountRecord:
        started = time.monotonic()
        try:
            if self.detail_delay:
                time.sleep(self.detail_delay)
            payload = self.details.get(identifier)
            if isinstance(payload, Exception):
                raise payload
            return self.parser.parse_account(json.dumps(payload))
        finally:
            with self._lock:
                self.detail_calls.append((identifier, started, time.monotonic()))

    @property
    def fetched_ids(self) -> set[str]:
        with self._lock:
            return {identifier for identifier, _, _ in self.detail_calls}


@pytest.fixture
def fake_service() -> Callable[..., FakeAccountService]:
    return FakeAccountService


@pytest.fixture
def scenario_a_service() -> FakeAccountService:
    return FakeAccountService(
        pages={
            None: (["1", "2", "3"], "t2"),
            "t2": (["4", "5"], None),
        },
        details={
            "1": account(1, 30),
            "2": account(2, 25, number=INVALID_NUMBER),
            "3": account(3, 40),
            "4": account(4, 20),
            "5": account(5, 50),
        },
    )


@pytest.fixture
def failing_detail() -> Callable[[str], DetailFetchError]:
    def _build(identifier: str) -> DetailFetchError:
        return DetailFetchError(f"detail/{identifier}", "Detail call failed")

    return _build


@pytest.fixture
def make_config() -> Callable[..., GlobalConfig]:
    def _builder(**pipeline: Any) -> GlobalConfig:
        pipeline.setdefault("queue_poll_interval", 0.05)
        return GlobalConfig.model_validate({"pipeline": pipeline})

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("PARALLEL_ACCOUNTS_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
