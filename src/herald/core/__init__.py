"""核心业务逻辑."""

from herald.core.ingest import FeedIngestor
from herald.core.outcome import FetchOutcome, IngestError
from herald.core.reconciler import ArticleReconciler
from herald.core.store import FeedStore, UpsertResult

__all__ = [
    "ArticleReconciler",
    "FeedIngestor",
    "FeedStore",
    "FetchOutcome",
    "IngestError",
    "UpsertResult",
]
