"""Engine components: listing → batch queue → detail workers → top-K selection."""

from .batch_queue import BatchQueue
from .fetcher import FetchResponse, Fetcher
from .models import AccountRecord, Batch, has_valid_number
from .paginator import Paginator
from .parser import Parser
from .selector import TopKSelector
from .service import AccountService, DetailClient, ListingClient
from .stats import RunStats, SUMMARY_FIELDS
from .thread_pool import ThreadPoolManager
from .workers import BatchOutcome, DetailWorkerPool, RecordPredicate

__all__ = [
    "AccountRecord",
    "AccountService",
    "Batch",
    "BatchOutcome",
    "BatchQueue",
    "DetailClient",
    "DetailWorkerPool",
    "FetchResponse",
    "Fetcher",
    "ListingClient",
    "Paginator",
    "Parser",
    "RecordPredicate",
    "RunStats",
    "SUMMARY_FIELDS",
    "ThreadPoolManager",
    "TopKSelector",
    "has_valid_number",
]
