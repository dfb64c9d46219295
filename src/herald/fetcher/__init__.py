"""订阅源下载与解析模块."""

from herald.fetcher.client import FeedDocumentFetcher, FeedResponse
from herald.fetcher.parser import (
    FeedDocumentParser,
    FeedParseError,
    NormalizedEntry,
    ParsedFeed,
    RejectedEntry,
)

__all__ = [
    "FeedDocumentFetcher",
    "FeedDocumentParser",
    "FeedParseError",
    "FeedResponse",
    "NormalizedEntry",
    "ParsedFeed",
    "RejectedEntry",
]
