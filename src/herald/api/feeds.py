"""Feed 订阅 API."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from herald.api.deps import get_store, get_user_id
from herald.core.store import FeedStore, FeedValidationError
from herald.models.feed import Feed

router = APIRouter(prefix="/api/feeds", tags=["feeds"])


class SubscribeRequest(BaseModel):
    """订阅请求."""

    url: str


def _feed_to_dict(feed: Feed) -> dict:
    return {
        "id": feed.id,
        "title": feed.title,
        "url": feed.url,
        "site_url": feed.site_url,
        "description": feed.description,
        "topic_id": feed.topic_id,
        "is_curated": feed.is_curated,
        "last_fetched_at": (
            feed.last_fetched_at.isoformat() if feed.last_fetched_at else None
        ),
        "created_at": feed.created_at.isoformat(),
        "updated_at": feed.updated_at.isoformat(),
    }


@router.get("")
async def list_feeds(
    user_id: str = Depends(get_user_id),
    store: FeedStore = Depends(get_store),
) -> dict:
    """获取当前用户的订阅列表."""
    feeds = await store.list_user_feeds(user_id)
    return {
        "total": len(feeds),
        "items": [_feed_to_dict(feed) for feed in feeds],
    }


@router.post("")
async def subscribe_feed(
    payload: SubscribeRequest,
    user_id: str = Depends(get_user_id),
    store: FeedStore = Depends(get_store),
) -> dict:
    """订阅 Feed，URL 已存在时复用."""
    try:
        feed, is_new = await store.subscribe(user_id, payload.url)
    except FeedValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return {"feed": _feed_to_dict(feed), "is_new": is_new}


@router.delete("/{feed_id}")
async def unsubscribe_feed(
    feed_id: str,
    user_id: str = Depends(get_user_id),
    store: FeedStore = Depends(get_store),
) -> dict:
    """取消订阅."""
    await store.unsubscribe(user_id, feed_id)
    return {"success": True}


@router.get("/{feed_id}/articles")
async def list_feed_articles(
    feed_id: str,
    limit: int = 50,
    store: FeedStore = Depends(get_store),
) -> dict:
    """获取 Feed 下的文章."""
    feed = await store.get_feed(feed_id)
    if not feed:
        raise HTTPException(status_code=404, detail="Feed 不存在")

    articles = await store.list_feed_articles(feed_id, limit)
    return {
        "feed_id": feed_id,
        "total": await store.count_feed_articles(feed_id),
        "items": [
            {
                "id": a.id,
                "title": a.title,
                "url": a.url,
                "author": a.author,
                "summary": a.summary,
                "published_at": a.published_at.isoformat() if a.published_at else None,
                "guid": a.guid,
                "created_at": a.created_at.isoformat(),
            }
            for a in articles
        ],
    }
