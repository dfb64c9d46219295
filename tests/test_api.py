"""测试 HTTP API 端点."""

from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from herald.core.ingest import FeedIngestor
from herald.core.store import FeedStore
from herald.main import app
from herald.scheduler.feed_scheduler import FeedScheduler
from tests.documents import FeedServer, rss_document, rss_item

USER = {"X-User-Id": "user-1"}


@pytest_asyncio.fixture
async def client(
    store: FeedStore, ingestor: FeedIngestor
) -> AsyncGenerator[AsyncClient, None]:
    """创建测试客户端（不运行 lifespan，直接注入依赖）."""
    app.state.store = store
    app.state.ingestor = ingestor
    app.state.scheduler = FeedScheduler(ingestor, store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.store = None
    app.state.ingestor = None
    app.state.scheduler = None


class TestHealth:
    """测试基础端点."""

    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestFeedsEndpoint:
    """测试 /api/feeds 端点."""

    async def test_requires_user_header(self, client: AsyncClient) -> None:
        """缺少用户标识返回 401."""
        response = await client.get("/api/feeds")
        assert response.status_code == 401

    async def test_subscribe_and_list(self, client: AsyncClient) -> None:
        """订阅后出现在列表中，重复订阅复用 Feed."""
        first = await client.post(
            "/api/feeds", json={"url": "https://a.com/rss"}, headers=USER
        )
        assert first.status_code == 200
        assert first.json()["is_new"] is True

        second = await client.post(
            "/api/feeds",
            json={"url": "https://a.com/rss"},
            headers={"X-User-Id": "user-2"},
        )
        assert second.json()["is_new"] is False
        assert second.json()["feed"]["id"] == first.json()["feed"]["id"]

        listing = await client.get("/api/feeds", headers=USER)
        data = listing.json()
        assert data["total"] == 1
        assert data["items"][0]["url"] == "https://a.com/rss"

    async def test_subscribe_empty_url(self, client: AsyncClient) -> None:
        """空 URL 返回 400."""
        response = await client.post("/api/feeds", json={"url": " "}, headers=USER)
        assert response.status_code == 400

    async def test_unsubscribe(self, client: AsyncClient) -> None:
        """取消订阅."""
        created = await client.post(
            "/api/feeds", json={"url": "https://a.com/rss"}, headers=USER
        )
        feed_id = created.json()["feed"]["id"]

        response = await client.delete(f"/api/feeds/{feed_id}", headers=USER)
        assert response.status_code == 200
        assert response.json() == {"success": True}

        listing = await client.get("/api/feeds", headers=USER)
        assert listing.json()["total"] == 0


class TestFetchEndpoint:
    """测试 /api/fetch 端点."""

    async def test_manual_refresh_returns_outcomes(
        self, client: AsyncClient, feed_server: FeedServer
    ) -> None:
        """手动刷新返回每个 Feed 的结果，失败的 Feed 不掩盖其他结果."""
        await client.post("/api/feeds", json={"url": "https://a.com/rss"}, headers=USER)
        await client.post("/api/feeds", json={"url": "https://b.com/rss"}, headers=USER)
        feed_server.serve(
            "https://a.com/rss",
            rss_document([rss_item(guid="1", link="https://a.com/1")]),
        )
        feed_server.timeout("https://b.com/rss")

        response = await client.post("/api/fetch", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["failed"] == 1
        kinds = sorted(
            error["kind"] for item in data["items"] for error in item["errors"]
        )
        assert kinds == ["transport"]
        assert sum(item["articles_fetched"] for item in data["items"]) == 1

    async def test_manual_refresh_survives_malformed_url(
        self, client: AsyncClient, feed_server: FeedServer
    ) -> None:
        """URL 不合法的 Feed 不会让手动刷新整体失败."""
        await client.post("/api/feeds", json={"url": "https://a.com/rss"}, headers=USER)
        await client.post(
            "/api/feeds", json={"url": "http://example.com:99x/rss"}, headers=USER
        )
        feed_server.serve(
            "https://a.com/rss",
            rss_document([rss_item(guid="1", link="https://a.com/1")]),
        )

        response = await client.post("/api/fetch", headers=USER)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["failed"] == 1
        assert sum(item["articles_fetched"] for item in data["items"]) == 1

    async def test_articles_of_unknown_feed(self, client: AsyncClient) -> None:
        """不存在的 Feed 查询文章返回 404."""
        response = await client.get("/api/feeds/missing/articles")
        assert response.status_code == 404

    async def test_refresh_single_feed(
        self, client: AsyncClient, feed_server: FeedServer
    ) -> None:
        """刷新单个 Feed，文章可以查询."""
        created = await client.post(
            "/api/feeds", json={"url": "https://a.com/rss"}, headers=USER
        )
        feed_id = created.json()["feed"]["id"]
        feed_server.serve(
            "https://a.com/rss",
            rss_document([rss_item(guid="1", title="Hello", link="https://a.com/1")]),
        )

        response = await client.post(f"/api/fetch/{feed_id}")
        assert response.status_code == 200
        assert response.json()["articles_fetched"] == 1

        articles = await client.get(f"/api/feeds/{feed_id}/articles")
        data = articles.json()
        assert data["total"] == 1
        assert [a["title"] for a in data["items"]] == ["Hello"]

    async def test_refresh_unknown_feed(self, client: AsyncClient) -> None:
        """不存在的 Feed 返回 404."""
        response = await client.post("/api/fetch/missing")
        assert response.status_code == 404

    async def test_status(self, client: AsyncClient) -> None:
        """调度器状态."""
        response = await client.get("/api/fetch/status")
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["started"] is False
        assert data["interval_minutes"] == 15
        assert data["last_cycle"] is None
