"""Exception hierarchy shared by the pipeline components."""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for errors raised by parallel-accounts."""


class FetchError(PipelineError):
    """A remote call failed (transport error or failure status)."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status_code = status_code


class ListingError(FetchError):
    """A listing page could not be retrieved."""


class DetailFetchError(FetchError):
    """An account detail could not be retrieved."""


class MalformedPayloadError(PipelineError, ValueError):
    """The service answered with a body that does not decode into the expected shape."""


class InvariantViolation(PipelineError, AssertionError):
    """Internal bookkeeping broke a structural invariant; the run cannot continue."""


__all__ = [
    "DetailFetchError",
    "FetchError",
    "InvariantViolation",
    "ListingError",
    "MalformedPayloadError",
    "PipelineError",
]
