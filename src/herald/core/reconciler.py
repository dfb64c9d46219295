"""条目与已存文章的对账."""

from herald.core.store import FeedStore, UpsertResult
from herald.fetcher.parser import NormalizedEntry
from herald.utils.hashing import entry_fingerprint


class ArticleReconciler:
    """
    把标准化条目写成文章.

    去重键优先使用条目原生 guid；缺失时可退化为 link+title 指纹，
    关闭指纹时无 guid 的条目每次都会新建。冲突处理完全交给存储层的
    原子 upsert，不做先读后写。
    """

    def __init__(self, store: FeedStore, fingerprint_missing_guid: bool = True) -> None:
        self.store = store
        self.fingerprint_missing_guid = fingerprint_missing_guid

    def dedup_key(self, entry: NormalizedEntry) -> str | None:
        if entry.guid:
            return entry.guid
        if self.fingerprint_missing_guid:
            return entry_fingerprint(entry.link, entry.title)
        return None

    async def reconcile(self, feed_id: str, entry: NormalizedEntry) -> UpsertResult:
        return await self.store.upsert_article(feed_id, entry, self.dedup_key(entry))
