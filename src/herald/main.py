"""Herald 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from herald.api import feeds, fetch
from herald.config import get_settings
from herald.core.ingest import FeedIngestor
from herald.core.store import FeedStore
from herald.fetcher.client import FeedDocumentFetcher
from herald.fetcher.parser import FeedDocumentParser
from herald.models.database import close_db, init_db
from herald.scheduler import FeedScheduler

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    app_settings = get_settings()

    # 启动时初始化
    logger.info("正在初始化数据库...")
    session_factory = await init_db(app_settings.database_url)

    store = FeedStore(session_factory)
    fetcher = FeedDocumentFetcher(
        timeout_seconds=app_settings.fetch_timeout_seconds,
        user_agent=app_settings.fetch_user_agent,
    )
    parser = FeedDocumentParser()
    ingestor = FeedIngestor.from_settings(store, fetcher, app_settings, parser)
    scheduler = FeedScheduler.from_settings(ingestor, store, app_settings)

    app.state.store = store
    app.state.ingestor = ingestor
    app.state.scheduler = scheduler

    logger.info("正在启动定时任务...")
    scheduler.start()

    logger.info("Herald 启动完成！")
    yield

    # 关闭时清理
    logger.info("正在关闭...")
    scheduler.shutdown()
    await fetcher.close()
    parser.close()
    await close_db()
    logger.info("Herald 已关闭")


app = FastAPI(
    title="Herald",
    description="RSS/Atom 订阅源抓取与文章去重服务",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应该限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(feeds.router)
app.include_router(fetch.router)


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "Herald",
        "version": "0.1.0",
        "description": "RSS/Atom 订阅源抓取服务",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "herald.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
