"""API 依赖."""

from fastapi import Header, HTTPException, Request

from herald.core.ingest import FeedIngestor
from herald.core.store import FeedStore
from herald.scheduler.feed_scheduler import FeedScheduler


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """从请求头获取用户 ID（认证由上游负责）."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="缺少 X-User-Id 请求头")
    return x_user_id


def _app_state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="服务尚未初始化")
    return value


def get_store(request: Request) -> FeedStore:
    return _app_state(request, "store")  # type: ignore[return-value]


def get_ingestor(request: Request) -> FeedIngestor:
    return _app_state(request, "ingestor")  # type: ignore[return-value]


def get_scheduler(request: Request) -> FeedScheduler:
    return _app_state(request, "scheduler")  # type: ignore[return-value]
