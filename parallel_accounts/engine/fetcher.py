"""HTTP fetching shared by the listing and detail calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

import httpx
import structlog

from ..config import EndpointConfig
from ..errors import FetchError


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Thin wrapper over a shared ``httpx.Client``.

    One instance is shared by the paginator thread and every detail worker;
    ``httpx.Client`` is safe to use from several threads at once.
    """

    def __init__(
        self,
        endpoint: EndpointConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.logger = logger or structlog.get_logger("parallel_accounts.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=endpoint.timeout,
            headers={"Accept": "application/json", **endpoint.headers},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get(self, url: str) -> FetchResponse:
        """GET ``url`` once; no retries.

        Raises ``FetchError`` on transport errors and failure statuses.
        """

        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.debug("fetch_error", url=url, error=str(exc))
            raise FetchError(url, f"Request failed ({type(exc).__name__})") from exc
        if self._is_failure(response):
            raise FetchError(
                url,
                f"Unexpected status {response.status_code}",
                status_code=response.status_code,
            )
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
            raw=response,
        )

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return status_code >= 400


__all__ = ["Fetcher", "FetchResponse"]
