"""数据模型."""

from herald.models.article import Article
from herald.models.database import init_db
from herald.models.feed import Feed, UserFeed

__all__ = [
    "Article",
    "Feed",
    "UserFeed",
    "init_db",
]
