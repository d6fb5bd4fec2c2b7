"""Client for the account listing/detail web service."""

from __future__ import annotations

from typing import Protocol

import structlog

from ..config import EndpointConfig
from ..errors import DetailFetchError, FetchError, ListingError
from .fetcher import Fetcher
from .models import AccountRecord, Batch
from .parser import Parser


class ListingClient(Protocol):
    def list_ids(self, cursor: str | None = None) -> Batch: ...


class DetailClient(Protocol):
    def get_account(self, identifier: str) -> AccountRecord: ...


class AccountService:
    """Both collaborator calls over one HTTP client.

    ``list_ids`` raises ``ListingError`` and ``get_account`` raises
    ``DetailFetchError`` for network failures; undecodable bodies surface as
    ``MalformedPayloadError`` from either.
    """

    def __init__(
        self,
        endpoint: EndpointConfig,
        fetcher: Fetcher | None = None,
        parser: Parser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.logger = logger or structlog.get_logger("parallel_accounts.service")
        self.fetcher = fetcher or Fetcher(endpoint, logger=self.logger)
        self.parser = parser or Parser()

    def close(self) -> None:
        self.fetcher.close()

    def list_ids(self, cursor: str | None = None) -> Batch:
        url = self.endpoint.list_url(cursor)
        try:
            response = self.fetcher.get(url)
        except FetchError as exc:
            raise ListingError(exc.url, "Listing call failed", status_code=exc.status_code) from exc
        return self.parser.parse_listing(response.text)

    def get_account(self, identifier: str) -> AccountRecord:
        url = self.endpoint.detail_url(identifier)
        try:
            response = self.fetcher.get(url)
        except FetchError as exc:
            raise DetailFetchError(exc.url, "Detail call failed", status_code=exc.status_code) from exc
        return self.parser.parse_account(response.text)


__all__ = ["AccountService", "DetailClient", "ListingClient"]
