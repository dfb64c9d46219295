"""订阅源与文章存储."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from herald.fetcher.parser import NormalizedEntry
from herald.models.article import REFRESH_FIELDS, Article
from herald.models.feed import Feed, UserFeed
from herald.models.types import utc_now

logger = logging.getLogger(__name__)


class FeedValidationError(ValueError):
    """订阅参数不合法."""


@dataclass
class UpsertResult:
    """文章写入结果."""

    article: Article
    created: bool


def _insert_for(session: AsyncSession) -> Any:
    """按方言选择支持 ON CONFLICT 的 insert 构造."""
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert
    if dialect == "postgresql":
        return postgresql.insert
    msg = f"不支持的数据库方言: {dialect}"
    raise RuntimeError(msg)


class FeedStore:
    """
    存储访问层.

    每次调用都打开独立的会话，可被并发任务安全共享。
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_feeds_with_subscribers(self) -> list[Feed]:
        """获取至少有一个订阅者的 Feed."""
        subscribed = select(UserFeed.feed_id).distinct()
        stmt = select(Feed).where(Feed.id.in_(subscribed)).order_by(Feed.title.asc())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_user_feeds(self, user_id: str) -> list[Feed]:
        """获取用户订阅的 Feed."""
        stmt = (
            select(Feed)
            .join(UserFeed, UserFeed.feed_id == Feed.id)
            .where(UserFeed.user_id == user_id)
            .order_by(Feed.title.asc())
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_feed(self, feed_id: str) -> Feed | None:
        async with self._session_factory() as session:
            return await session.get(Feed, feed_id)

    async def subscribe(self, user_id: str, url: str) -> tuple[Feed, bool]:
        """
        订阅 Feed.

        相同 URL 复用已有 Feed；新 Feed 先以 URL 作为标题，抓取后再更新。

        Returns:
            (Feed, 是否新建)
        """
        url = url.strip()
        if not url:
            msg = "URL 不能为空"
            raise FeedValidationError(msg)

        async with self._session_factory() as session:
            result = await session.execute(select(Feed).where(Feed.url == url))
            feed = result.scalar_one_or_none()
            is_new = feed is None
            if feed is None:
                feed = Feed(title=url, url=url)
                session.add(feed)
                await session.flush()
                logger.info(f"新建 Feed: {url} ({feed.id})")

            subscription = await session.get(UserFeed, (user_id, feed.id))
            if subscription is None:
                session.add(UserFeed(user_id=user_id, feed_id=feed.id))

            await session.commit()
            await session.refresh(feed)
            return feed, is_new

    async def unsubscribe(self, user_id: str, feed_id: str) -> bool:
        """取消订阅（不删除 Feed 本身）."""
        stmt = delete(UserFeed).where(
            UserFeed.user_id == user_id, UserFeed.feed_id == feed_id
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0

    async def upsert_article(
        self,
        feed_id: str,
        entry: NormalizedEntry,
        guid: str | None,
    ) -> UpsertResult:
        """
        写入文章.

        guid 存在时以 (feed_id, guid) 为键原子地插入或更新刷新字段，
        id 和 created_at 保持不变；guid 为空时直接插入。
        """
        new_id = str(uuid.uuid4())
        values = {
            "id": new_id,
            "feed_id": feed_id,
            "title": entry.title,
            "url": entry.link,
            "author": entry.author,
            "summary": entry.summary,
            "content": entry.content,
            "published_at": entry.published_at,
            "guid": guid,
            "created_at": utc_now(),
        }

        async with self._session_factory() as session:
            insert = _insert_for(session)
            stmt = insert(Article.__table__).values(**values)
            if guid is not None:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["feed_id", "guid"],
                    set_={name: stmt.excluded[name] for name in REFRESH_FIELDS},
                )
            stmt = stmt.returning(*Article.__table__.columns)

            result = await session.execute(stmt)
            row = result.one()
            await session.commit()

        article = Article(**row._asdict())
        return UpsertResult(article=article, created=article.id == new_id)

    async def update_last_fetched(self, feed_id: str, now: datetime | None = None) -> None:
        """更新 Feed 的最近抓取时间."""
        now = now or utc_now()
        stmt = (
            update(Feed)
            .where(Feed.id == feed_id)
            .values(last_fetched_at=now, updated_at=now)
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def refresh_feed_metadata(
        self,
        feed_id: str,
        title: str | None,
        site_url: str | None,
        description: str | None,
    ) -> bool:
        """
        用抓取到的元数据补全 Feed.

        标题仅在仍为 URL 时替换，site_url/description 仅在为空时填充。
        """
        async with self._session_factory() as session:
            feed = await session.get(Feed, feed_id)
            if feed is None:
                return False

            changed = False
            if title and feed.title == feed.url:
                feed.title = title
                changed = True
            if site_url and not feed.site_url:
                feed.site_url = site_url
                changed = True
            if description and not feed.description:
                feed.description = description
                changed = True

            if changed:
                feed.updated_at = utc_now()
                await session.commit()
            return changed

    async def list_feed_articles(self, feed_id: str, limit: int = 50) -> list[Article]:
        """按发布时间倒序获取 Feed 下的文章."""
        stmt = (
            select(Article)
            .where(Article.feed_id == feed_id)
            .order_by(Article.published_at.desc().nulls_last(), Article.created_at.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count_feed_articles(self, feed_id: str) -> int:
        stmt = select(func.count()).select_from(Article).where(Article.feed_id == feed_id)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())
