"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import herald.models  # noqa: F401
from herald.core.ingest import FeedIngestor
from herald.core.store import FeedStore
from herald.fetcher.client import FeedDocumentFetcher
from herald.models.database import create_session_factory
from herald.models.feed import Feed
from tests.documents import FeedServer


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """创建测试用的文件数据库."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield create_session_factory(engine)

    await engine.dispose()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> FeedStore:
    return FeedStore(session_factory)


@pytest.fixture
def feed_server() -> FeedServer:
    return FeedServer()


@pytest_asyncio.fixture
async def fetcher(feed_server: FeedServer) -> AsyncGenerator[FeedDocumentFetcher, None]:
    client = FeedDocumentFetcher(
        timeout_seconds=5,
        transport=httpx.MockTransport(feed_server.handle),
    )
    yield client
    await client.close()


@pytest.fixture
def ingestor(
    store: FeedStore, fetcher: FeedDocumentFetcher
) -> Generator[FeedIngestor, None, None]:
    feed_ingestor = FeedIngestor(store, fetcher)
    yield feed_ingestor
    feed_ingestor.parser.close()


@pytest_asyncio.fixture
async def subscribed_feed(store: FeedStore) -> Feed:
    """创建一个有订阅者的 Feed."""
    feed, _ = await store.subscribe("user-1", "https://example.com/feed.xml")
    return feed
