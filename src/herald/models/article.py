"""Article 文章模型."""

import uuid
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from herald.models.types import UTCDateTime, utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


class Article(SQLModel, table=True):
    """由订阅条目生成的文章，(feed_id, guid) 唯一."""

    __tablename__ = "articles"  # type: ignore[assignment]
    __table_args__ = (UniqueConstraint("feed_id", "guid", name="uq_articles_feed_guid"),)

    id: str = Field(default_factory=_new_id, primary_key=True)
    feed_id: str = Field(foreign_key="feeds.id", index=True, description="关联 Feed")
    title: str = Field(description="标题")
    url: str = Field(description="原文链接")
    author: str | None = Field(default=None, description="作者")
    summary: str | None = Field(default=None, description="摘要")
    content: str | None = Field(default=None, description="正文内容")
    published_at: datetime | None = Field(
        default=None, sa_type=UTCDateTime, index=True, description="发布时间"
    )
    guid: str | None = Field(default=None, description="条目标识（去重键）")
    created_at: datetime = Field(
        default_factory=utc_now, sa_type=UTCDateTime, description="入库时间"
    )


# 重新抓取时覆盖的字段
REFRESH_FIELDS = ("title", "url", "author", "summary", "content", "published_at")
