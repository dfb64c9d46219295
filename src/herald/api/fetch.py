"""手动抓取 API."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from herald.api.deps import get_ingestor, get_scheduler, get_store, get_user_id
from herald.core.ingest import FeedIngestor
from herald.core.store import FeedStore
from herald.scheduler.feed_scheduler import FeedScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fetch", tags=["fetch"])


@router.post("")
async def fetch_user_feeds(
    user_id: str = Depends(get_user_id),
    ingestor: FeedIngestor = Depends(get_ingestor),
) -> dict:
    """立即抓取当前用户订阅的所有 Feed."""
    try:
        outcomes = await ingestor.fetch_all_user_feeds(user_id)
    except Exception as e:
        logger.exception(f"获取用户 {user_id} 的订阅失败: {e}")
        raise HTTPException(status_code=503, detail="获取订阅列表失败") from e

    return {
        "total": len(outcomes),
        "failed": sum(1 for o in outcomes if o.failed),
        "items": [o.to_dict() for o in outcomes],
    }


@router.post("/{feed_id}")
async def fetch_single_feed(
    feed_id: str,
    store: FeedStore = Depends(get_store),
    ingestor: FeedIngestor = Depends(get_ingestor),
) -> dict:
    """立即抓取单个 Feed."""
    feed = await store.get_feed(feed_id)
    if not feed:
        raise HTTPException(status_code=404, detail="Feed 不存在")

    outcome = await ingestor.ingest_feed(feed.id, feed.url)
    return outcome.to_dict()


@router.get("/status")
async def get_fetch_status(
    scheduler: FeedScheduler = Depends(get_scheduler),
) -> dict:
    """获取调度器状态和最近一轮结果."""
    report = scheduler.last_report
    return {
        "state": scheduler.state,
        "started": scheduler.started,
        "interval_minutes": scheduler.interval_minutes,
        "last_cycle": report.to_dict() if report else None,
    }
