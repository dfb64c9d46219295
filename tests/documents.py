"""测试用的订阅源文档和模拟 HTTP 服务."""

from collections.abc import Callable

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


def rss_item(
    guid: str | None = None,
    title: str | None = "Item",
    link: str | None = "https://example.com/item",
    pub_date: str | None = None,
    description: str | None = None,
) -> str:
    """生成 RSS <item> 片段，guid 不作为链接."""
    parts = ["<item>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if link is not None:
        parts.append(f"<link>{link}</link>")
    if guid is not None:
        parts.append(f'<guid isPermaLink="false">{guid}</guid>')
    if pub_date is not None:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if description is not None:
        parts.append(f"<description>{description}</description>")
    parts.append("</item>")
    return "".join(parts)


def rss_document(items: list[str], title: str = "Example Feed") -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title>"
        "<link>https://example.com/</link>"
        "<description>Example description</description>"
        f"{''.join(items)}"
        "</channel></rss>"
    ).encode()


def atom_entry(
    entry_id: str,
    title: str | None = "Entry",
    link: str | None = "https://example.com/entry",
    published: str | None = None,
    updated: str | None = None,
    author: str | None = None,
    summary: str | None = None,
    content: str | None = None,
) -> str:
    parts = ["<entry>", f"<id>{entry_id}</id>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if link is not None:
        parts.append(f'<link rel="alternate" href="{link}"/>')
    if published is not None:
        parts.append(f"<published>{published}</published>")
    if updated is not None:
        parts.append(f"<updated>{updated}</updated>")
    if author is not None:
        parts.append(f"<author><name>{author}</name></author>")
    if summary is not None:
        parts.append(f"<summary>{summary}</summary>")
    if content is not None:
        parts.append(f'<content type="html"><![CDATA[{content}]]></content>')
    parts.append("</entry>")
    return "".join(parts)


def atom_document(entries: list[str], title: str = "Atom Feed") -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        f"<title>{title}</title>"
        '<link rel="alternate" href="https://atom.example.com/"/>'
        "<id>urn:example:feed</id>"
        "<updated>2024-01-01T00:00:00Z</updated>"
        f"{''.join(entries)}"
        "</feed>"
    ).encode()


class FeedServer:
    """按 URL 返回预设响应的模拟服务器."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def serve(self, url: str, content: bytes, status_code: int = 200) -> None:
        self.routes[url] = lambda request: httpx.Response(status_code, content=content)

    def timeout(self, url: str) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        self.routes[url] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404)
        return handler(request)

