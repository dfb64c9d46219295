"""应用配置管理."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "Herald-RSS-Reader/1.0 (https://github.com/herald-rss)"


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 应用配置
    database_url: str = "sqlite+aiosqlite:///./herald.db"

    # 订阅源抓取配置
    fetch_interval_minutes: int = 15
    fetch_timeout_seconds: int = 30
    fetch_user_agent: str = DEFAULT_USER_AGENT
    fetch_concurrency: int = 4
    fetch_on_startup: bool = True

    # 无 guid 的条目使用 link+title 指纹去重
    fingerprint_missing_guid: bool = True
    # 同一 Feed 正在抓取时跳过重复抓取
    skip_inflight_feeds: bool = False


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
