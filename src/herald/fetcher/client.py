"""订阅源文档下载器."""

import asyncio

import httpx
from pydantic import BaseModel

from herald.config import DEFAULT_USER_AGENT


class FeedResponse(BaseModel):
    """订阅源下载结果."""

    success: bool
    content: bytes | None = None
    status_code: int | None = None
    error: str | None = None


class FeedDocumentFetcher:
    """使用 httpx 下载 RSS/Atom 文档，不做重试."""

    def __init__(
        self,
        timeout_seconds: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "FeedDocumentFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    async def fetch(self, url: str) -> FeedResponse:
        """
        下载指定 URL 的订阅源文档.

        超时、网络错误、非法 URL 和非 2xx 状态码都返回 success=False。
        httpx 的超时只限制单次读写，整个请求另由 asyncio.timeout 限制。
        """
        try:
            async with asyncio.timeout(self._timeout):
                response = await self._client.get(url)
        except TimeoutError:
            return FeedResponse(
                success=False, error=f"请求超时: 超过 {self._timeout} 秒"
            )
        except httpx.TimeoutException as e:
            return FeedResponse(success=False, error=f"请求超时: {e!r}")
        except httpx.InvalidURL as e:
            return FeedResponse(success=False, error=f"URL 不合法: {e}")
        except httpx.HTTPError as e:
            return FeedResponse(success=False, error=f"网络错误: {e!r}")

        if not response.is_success:
            return FeedResponse(
                success=False,
                status_code=response.status_code,
                error=f"HTTP 状态码异常: {response.status_code}",
            )

        return FeedResponse(
            success=True,
            content=response.content,
            status_code=response.status_code,
        )
