"""抓取结果与错误记录."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from herald.models.types import utc_now

ErrorKind = Literal["transport", "parse", "entry_validation", "storage"]


class IngestError(BaseModel):
    """单条非致命或单 Feed 致命错误."""

    kind: ErrorKind
    feed_id: str
    message: str
    entry_index: int | None = None
    entry_id: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class FetchOutcome:
    """单个 Feed 的抓取结果."""

    feed_id: str
    articles_fetched: int = 0
    created: int = 0
    updated: int = 0
    errors: list[IngestError] = field(default_factory=list)
    fetched: bool = False  # 下载和解析阶段是否成功
    skipped: bool = False  # 同一 Feed 已在抓取中
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None

    @classmethod
    def from_exception(cls, feed_id: str, exc: BaseException) -> "FetchOutcome":
        """任务抛出意外异常时，记为该 Feed 的下载失败."""
        outcome = cls(feed_id=feed_id)
        outcome.add_error("transport", f"Feed 抓取异常: {exc!r}")
        outcome.completed_at = utc_now()
        return outcome

    @property
    def failed(self) -> bool:
        """下载或解析失败（整个 Feed 未处理）."""
        return not self.fetched and not self.skipped

    @property
    def messages(self) -> list[str]:
        return [error.message for error in self.errors]

    def add_error(
        self,
        kind: ErrorKind,
        message: str,
        entry_index: int | None = None,
        entry_id: str | None = None,
    ) -> IngestError:
        error = IngestError(
            kind=kind,
            feed_id=self.feed_id,
            message=message,
            entry_index=entry_index,
            entry_id=entry_id,
        )
        self.errors.append(error)
        return error

    def to_dict(self) -> dict:
        return {
            "feed_id": self.feed_id,
            "articles_fetched": self.articles_fetched,
            "created": self.created,
            "updated": self.updated,
            "fetched": self.fetched,
            "skipped": self.skipped,
            "errors": [error.model_dump() for error in self.errors],
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }
