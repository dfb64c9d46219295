"""Feed 订阅源模型."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from herald.models.types import UTCDateTime, utc_now


def _new_id() -> str:
    return str(uuid.uuid4())


class Feed(SQLModel, table=True):
    """RSS/Atom 订阅源."""

    __tablename__ = "feeds"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str = Field(description="Feed 标题（初始为 URL，抓取后更新）")
    url: str = Field(unique=True, index=True, description="Feed URL")
    site_url: str | None = Field(default=None, description="网站 URL")
    description: str | None = Field(default=None, description="Feed 描述")
    topic_id: str | None = Field(default=None, description="所属主题")
    is_curated: bool = Field(default=False, description="是否为精选源")
    last_fetched_at: datetime | None = Field(
        default=None, sa_type=UTCDateTime, description="最近一次成功抓取并解析的时间"
    )
    created_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)


class UserFeed(SQLModel, table=True):
    """用户订阅关系."""

    __tablename__ = "user_feeds"  # type: ignore[assignment]

    user_id: str = Field(primary_key=True, description="用户 ID")
    feed_id: str = Field(foreign_key="feeds.id", primary_key=True)
    added_at: datetime = Field(default_factory=utc_now, sa_type=UTCDateTime)
