"""定时任务."""

from herald.scheduler.feed_scheduler import CycleReport, FeedScheduler

__all__ = [
    "CycleReport",
    "FeedScheduler",
]
