"""单个 Feed 的抓取流程：下载 -> 解析 -> 逐条对账."""

import logging

from herald.config import Settings
from herald.core.outcome import FetchOutcome
from herald.core.reconciler import ArticleReconciler
from herald.core.store import FeedStore
from herald.fetcher.client import FeedDocumentFetcher
from herald.fetcher.parser import (
    FeedDocumentParser,
    FeedParseError,
    NormalizedEntry,
    ParsedFeed,
    RejectedEntry,
)
from herald.models.types import utc_now

logger = logging.getLogger(__name__)


class FeedIngestor:
    """Feed 抓取任务执行器."""

    def __init__(
        self,
        store: FeedStore,
        fetcher: FeedDocumentFetcher,
        parser: FeedDocumentParser | None = None,
        fingerprint_missing_guid: bool = True,
        skip_inflight: bool = False,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.parser = parser or FeedDocumentParser()
        self.reconciler = ArticleReconciler(store, fingerprint_missing_guid)
        self.skip_inflight = skip_inflight
        self._inflight: set[str] = set()

    @classmethod
    def from_settings(
        cls,
        store: FeedStore,
        fetcher: FeedDocumentFetcher,
        settings: Settings,
        parser: FeedDocumentParser | None = None,
    ) -> "FeedIngestor":
        return cls(
            store,
            fetcher,
            parser,
            fingerprint_missing_guid=settings.fingerprint_missing_guid,
            skip_inflight=settings.skip_inflight_feeds,
        )

    def is_inflight(self, feed_id: str) -> bool:
        return feed_id in self._inflight

    async def ingest_feed(self, feed_id: str, url: str) -> FetchOutcome:
        """
        抓取单个 Feed.

        下载或解析失败时整个 Feed 放弃，只记录一条错误；单个条目的
        失败只记录错误并继续处理后续条目。总是返回 FetchOutcome。
        """
        if self.skip_inflight and feed_id in self._inflight:
            logger.info(f"Feed {feed_id} 正在抓取中，跳过")
            outcome = FetchOutcome(feed_id=feed_id, skipped=True)
            outcome.completed_at = utc_now()
            return outcome

        self._inflight.add(feed_id)
        try:
            return await self._ingest(feed_id, url)
        finally:
            self._inflight.discard(feed_id)

    async def _ingest(self, feed_id: str, url: str) -> FetchOutcome:
        outcome = FetchOutcome(feed_id=feed_id)

        parsed = await self._fetch_and_parse(feed_id, url, outcome)
        if parsed is None:
            outcome.completed_at = utc_now()
            return outcome

        outcome.fetched = True

        try:
            await self.store.refresh_feed_metadata(
                feed_id, parsed.title, parsed.site_url, parsed.description
            )
        except Exception as e:
            logger.exception(f"更新 Feed {feed_id} 元数据失败: {e}")
            outcome.add_error("storage", f"更新 Feed 元数据失败: {e}")

        # 按源文档顺序处理
        items: list[NormalizedEntry | RejectedEntry] = [
            *parsed.entries,
            *parsed.rejected,
        ]
        items.sort(key=lambda item: item.index)

        for item in items:
            if isinstance(item, RejectedEntry):
                logger.warning(f"Feed {feed_id}: {item.reason}")
                outcome.add_error(
                    "entry_validation",
                    item.reason,
                    entry_index=item.index,
                    entry_id=item.entry_id,
                )
                continue
            await self._reconcile_entry(feed_id, item, outcome)

        # 只要下载和解析成功就更新，不论单条是否失败
        try:
            await self.store.update_last_fetched(feed_id, utc_now())
        except Exception as e:
            logger.exception(f"更新 Feed {feed_id} 抓取时间失败: {e}")
            outcome.add_error("storage", f"更新抓取时间失败: {e}")

        outcome.completed_at = utc_now()
        return outcome

    async def _fetch_and_parse(
        self,
        feed_id: str,
        url: str,
        outcome: FetchOutcome,
    ) -> ParsedFeed | None:
        response = await self.fetcher.fetch(url)
        if not response.success or response.content is None:
            error = response.error or "下载失败"
            logger.error(f"Feed {feed_id} 下载失败 ({url}): {error}")
            outcome.add_error("transport", f"Feed 下载失败: {error}")
            return None

        try:
            return await self.parser.parse_async(response.content)
        except FeedParseError as e:
            logger.error(f"Feed {feed_id} 解析失败 ({url}): {e}")
            outcome.add_error("parse", f"Feed 解析失败: {e}")
            return None

    async def _reconcile_entry(
        self,
        feed_id: str,
        entry: NormalizedEntry,
        outcome: FetchOutcome,
    ) -> None:
        try:
            result = await self.reconciler.reconcile(feed_id, entry)
        except Exception as e:
            logger.warning(f"Feed {feed_id} 条目 #{entry.index} 写入失败: {e}")
            outcome.add_error(
                "storage",
                f"写入文章 '{entry.title}' (条目 #{entry.index}) 失败: {e}",
                entry_index=entry.index,
                entry_id=entry.guid,
            )
            return

        outcome.articles_fetched += 1
        if result.created:
            outcome.created += 1
        else:
            outcome.updated += 1

    async def fetch_all_user_feeds(self, user_id: str) -> list[FetchOutcome]:
        """
        手动刷新用户订阅的所有 Feed.

        单个 Feed 失败不影响其他 Feed；获取订阅列表失败时异常向上抛出。
        """
        feeds = await self.store.list_user_feeds(user_id)
        outcomes: list[FetchOutcome] = []

        for feed in feeds:
            try:
                outcome = await self.ingest_feed(feed.id, feed.url)
            except Exception as e:
                logger.exception(f"Feed 抓取异常: {feed.title} ({feed.id}) - {e!r}")
                outcomes.append(FetchOutcome.from_exception(feed.id, e))
                continue

            if outcome.failed:
                logger.error(
                    f"Feed 抓取失败: {feed.title} ({feed.id}) - "
                    f"{'; '.join(outcome.messages)}"
                )
            else:
                logger.info(
                    f"Feed 抓取完成: {feed.title} ({feed.id}), "
                    f"文章数={outcome.articles_fetched}"
                )
            outcomes.append(outcome)

        return outcomes
