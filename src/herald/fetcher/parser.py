"""RSS/Atom 文档解析适配器."""

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

import feedparser
from pydantic import BaseModel, Field

DEFAULT_TITLE = "Untitled"


class FeedParseError(Exception):
    """文档无法识别为 RSS 或 Atom."""


class NormalizedEntry(BaseModel):
    """标准化后的订阅条目."""

    index: int = Field(description="条目在源文档中的位置（从 1 开始）")
    title: str = DEFAULT_TITLE
    link: str
    author: str | None = None
    summary: str | None = None
    content: str | None = None
    published_at: datetime | None = None
    guid: str | None = None


class RejectedEntry(BaseModel):
    """因缺少链接被丢弃的条目."""

    index: int
    entry_id: str | None = None
    title: str | None = None
    reason: str


class ParsedFeed(BaseModel):
    """解析结果."""

    version: str
    title: str | None = None
    site_url: str | None = None
    description: str | None = None
    entries: list[NormalizedEntry] = Field(default_factory=list)
    rejected: list[RejectedEntry] = Field(default_factory=list)


def _to_datetime(value: time.struct_time | None) -> datetime | None:
    """feedparser 的 UTC struct_time 转为 datetime."""
    if not value:
        return None
    return datetime(*value[:6], tzinfo=UTC)


def _is_web_url(value: str) -> bool:
    parts = urlparse(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _entry_link(entry: Any) -> str | None:
    """
    取条目的原文链接.

    优先使用 rel="alternate" 的 <link>。feedparser 会把没有 <link> 的
    条目的 id 或 guid 填进 entry.link，所以 entry.link 只在是 http(s) 地址时采用。
    """
    links = [item for item in entry.get("links") or [] if item.get("href")]
    for item in links:
        if item.get("rel", "alternate") == "alternate":
            return item["href"]

    link = entry.get("link")
    if link and _is_web_url(link):
        return link

    for item in links:
        if item.get("rel") != "enclosure":
            return item["href"]
    return None


def _first_author(entry: Any) -> str | None:
    authors = entry.get("authors") or []
    for author in authors:
        name = author.get("name")
        if name:
            return name
    return entry.get("author") or None


def _first_content(entry: Any) -> str | None:
    contents = entry.get("content") or []
    if contents:
        return contents[0].get("value")
    return None


def _own_summary(entry: Any, content: str | None) -> str | None:
    """只取条目自身的摘要，不要 feedparser 从正文复制过来的值."""
    summary = entry.get("summary")
    if summary is None:
        return None
    if "summary_detail" not in entry and summary == content:
        return None
    return summary


class FeedDocumentParser:
    """使用 feedparser 将原始字节转换为标准化条目."""

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=2)

    async def parse_async(self, content: bytes) -> ParsedFeed:
        """
        异步解析.

        feedparser 是同步库，这里用线程池包装成异步。
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.parse, content)

    def close(self) -> None:
        """释放解析线程池."""
        self._executor.shutdown(wait=False)

    def parse(self, content: bytes) -> ParsedFeed:
        """解析文档，无法识别格式时抛出 FeedParseError."""
        # 保留原始 HTML，不做清洗和相对链接解析
        parsed = feedparser.parse(
            content, sanitize_html=False, resolve_relative_uris=False
        )

        # 只看 version，bozo 的文档只要能识别格式仍然接受
        version = parsed.get("version")
        if not version:
            cause = parsed.get("bozo_exception")
            detail = f": {cause}" if cause else ""
            msg = f"无法识别为 RSS 或 Atom 文档{detail}"
            raise FeedParseError(msg)

        feed_info = parsed.get("feed", {})
        result = ParsedFeed(
            version=version,
            title=feed_info.get("title") or None,
            site_url=feed_info.get("link") or None,
            description=feed_info.get("subtitle") or None,
        )

        for index, entry in enumerate(parsed.get("entries", []), 1):
            entry_id = entry.get("id") or None
            title = entry.get("title") or None

            link = _entry_link(entry)
            if not link:
                label = entry_id or title or f"#{index}"
                result.rejected.append(
                    RejectedEntry(
                        index=index,
                        entry_id=entry_id,
                        title=title,
                        reason=f"条目 #{index} ({label}) 缺少链接，已跳过",
                    )
                )
                continue

            published = entry.get("published_parsed") or entry.get("updated_parsed")
            content = _first_content(entry)

            result.entries.append(
                NormalizedEntry(
                    index=index,
                    title=title or DEFAULT_TITLE,
                    link=link,
                    author=_first_author(entry),
                    summary=_own_summary(entry, content),
                    content=content,
                    published_at=_to_datetime(published),
                    guid=entry_id,
                )
            )

        return result
