"""定时抓取调度器."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from herald.config import Settings
from herald.core.ingest import FeedIngestor
from herald.core.outcome import FetchOutcome
from herald.core.store import FeedStore
from herald.models.feed import Feed
from herald.models.types import utc_now

logger = logging.getLogger(__name__)

SchedulerState = Literal["idle", "running"]

CYCLE_JOB_ID = "feed_cycle"
INITIAL_JOB_ID = "feed_cycle_initial"


@dataclass
class CycleReport:
    """一轮抓取的汇总."""

    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    outcomes: list[FetchOutcome] = field(default_factory=list)
    enumeration_error: str | None = None

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.fetched)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.failed)

    @property
    def feed_ids(self) -> list[str]:
        return [o.feed_id for o in self.outcomes]

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "feeds": len(self.outcomes),
            "succeeded": self.succeeded,
            "failed": self.failed,
            "enumeration_error": self.enumeration_error,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


class FeedScheduler:
    """
    按固定间隔抓取所有有订阅者的 Feed.

    状态只有 idle 和 running。run_cycle() 可以直接调用，便于手动触发和测试。
    """

    def __init__(
        self,
        ingestor: FeedIngestor,
        store: FeedStore,
        interval_minutes: int = 15,
        concurrency: int = 4,
        run_on_start: bool = True,
    ) -> None:
        self.ingestor = ingestor
        self.store = store
        self.interval_minutes = interval_minutes
        self.concurrency = max(1, concurrency)
        self.run_on_start = run_on_start
        self.last_report: CycleReport | None = None
        self._state: SchedulerState = "idle"
        self._scheduler: AsyncIOScheduler | None = None

    @classmethod
    def from_settings(
        cls,
        ingestor: FeedIngestor,
        store: FeedStore,
        settings: Settings,
    ) -> "FeedScheduler":
        return cls(
            ingestor,
            store,
            interval_minutes=settings.fetch_interval_minutes,
            concurrency=settings.fetch_concurrency,
            run_on_start=settings.fetch_on_startup,
        )

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def started(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """启动定时任务，需在事件循环中调用."""
        if self._scheduler is not None:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_cycle,
            "interval",
            minutes=self.interval_minutes,
            id=CYCLE_JOB_ID,
            name="订阅源定时抓取",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

        if self.run_on_start:
            # 启动时立即执行一次
            self._scheduler.add_job(
                self.run_cycle,
                "date",
                id=INITIAL_JOB_ID,
                name="初始抓取",
            )

        self._scheduler.start()
        logger.info(f"抓取调度器已启动，间隔: {self.interval_minutes} 分钟")

    def shutdown(self) -> None:
        """关闭调度器，不等待正在运行的任务."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("抓取调度器已关闭")

    async def run_cycle(self) -> CycleReport:
        """执行一轮抓取."""
        report = CycleReport()
        self._state = "running"
        logger.info("开始定时抓取")

        try:
            try:
                feeds = await self.store.list_feeds_with_subscribers()
            except Exception as e:
                # 本轮放弃，下一次调度重试
                logger.exception(f"获取活跃 Feed 失败: {e}")
                report.enumeration_error = str(e)
                return report

            if not feeds:
                logger.info("没有需要抓取的 Feed")
                return report

            logger.info(f"本轮待抓取 Feed: {len(feeds)} 个")
            report.outcomes = await self._ingest_all(feeds)

            logger.info(
                f"定时抓取完成: 成功={report.succeeded}, 失败={report.failed}"
            )
            return report
        finally:
            report.completed_at = utc_now()
            self.last_report = report
            self._state = "idle"

    async def _ingest_all(self, feeds: list[Feed]) -> list[FetchOutcome]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def ingest_with_semaphore(feed: Feed) -> FetchOutcome:
            async with semaphore:
                return await self.ingestor.ingest_feed(feed.id, feed.url)

        results = await asyncio.gather(
            *(ingest_with_semaphore(feed) for feed in feeds),
            return_exceptions=True,
        )

        outcomes: list[FetchOutcome] = []
        for feed, result in zip(feeds, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Feed 抓取异常: {feed.title} ({feed.id}) - {result!r}"
                )
                outcomes.append(FetchOutcome.from_exception(feed.id, result))
                continue

            self._log_outcome(feed, result)
            outcomes.append(result)

        return outcomes

    def _log_outcome(self, feed: Feed, outcome: FetchOutcome) -> None:
        if outcome.skipped:
            logger.info(f"Feed 正在抓取中，跳过: {feed.title} ({feed.id})")
            return

        if outcome.failed:
            logger.error(
                f"Feed 抓取失败: {feed.title} ({feed.id}) - "
                f"{'; '.join(outcome.messages)}"
            )
            return

        logger.info(
            f"Feed 抓取完成: {feed.title} ({feed.id}), "
            f"文章数={outcome.articles_fetched}, 错误数={len(outcome.errors)}"
        )
        for error in outcome.errors:
            logger.warning(f"Feed {feed.id} 非致命错误: {error.message}")
