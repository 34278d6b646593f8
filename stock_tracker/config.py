"""
行情缓存服务配置模块
支持从环境变量读取配置，自动检测 Docker 容器环境并启用服务发现
"""

import os
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stock_tracker.models.schemas import FetchWindow


def _is_docker() -> bool:
    """检测当前是否运行在 Docker 容器内"""
    return (
        os.path.exists("/.dockerenv")
        or os.environ.get("DOCKER_CONTAINER", "").lower() in ("1", "true", "yes")
    )


def _default_mongo_host() -> str:
    """Docker 环境使用服务名 'mongodb'，本地使用 'localhost'"""
    return "mongodb" if _is_docker() else "localhost"


class StockTrackerSettings(BaseSettings):
    """行情缓存服务配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── 基础配置 ──────────────────────────────────────────
    HOST: str = Field(default="127.0.0.1")
    PORT: int = Field(default=3030)
    DEBUG: bool = Field(default=False)
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"]
    )

    # ── MongoDB 配置（支持服务发现） ───────────────────────
    MONGODB_HOST: str = Field(default_factory=_default_mongo_host)
    MONGODB_PORT: int = Field(default=27017)
    MONGODB_USERNAME: str = Field(default="")
    MONGODB_PASSWORD: str = Field(default="")
    MONGODB_DATABASE: str = Field(default="stock_tracker")
    MONGODB_AUTH_SOURCE: str = Field(default="admin")
    MONGODB_ENABLED: bool = Field(default=True)
    MONGO_MAX_CONNECTIONS: int = Field(default=50)
    MONGO_MIN_CONNECTIONS: int = Field(default=5)
    MONGO_CONNECT_TIMEOUT_MS: int = Field(default=30000)
    MONGO_SOCKET_TIMEOUT_MS: int = Field(default=60000)
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = Field(default=5000)

    @property
    def MONGO_URI(self) -> str:
        if self.MONGODB_USERNAME and self.MONGODB_PASSWORD:
            return (
                f"mongodb://{self.MONGODB_USERNAME}:{self.MONGODB_PASSWORD}"
                f"@{self.MONGODB_HOST}:{self.MONGODB_PORT}"
                f"/{self.MONGODB_DATABASE}?authSource={self.MONGODB_AUTH_SOURCE}"
            )
        return f"mongodb://{self.MONGODB_HOST}:{self.MONGODB_PORT}/{self.MONGODB_DATABASE}"

    # ── 数据源配置 ─────────────────────────────────────────
    ALPHA_VANTAGE_API_KEY: str = Field(default="")
    ALPHA_VANTAGE_BASE_URL: str = Field(default="https://www.alphavantage.co/query")
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=15.0)

    # ── Cache-Aside 配置 ──────────────────────────────────
    HISTORY_WINDOW_DAYS: int = Field(default=30)     # /historical 查询的回溯天数
    HISTORY_QUERY_LIMIT: int = Field(default=50)     # 命中缓存时的最大返回条数
    # 收盘价无法解析时：zero → 记为 0.0；skip → 丢弃该条记录
    MALFORMED_CLOSE_POLICY: Literal["zero", "skip"] = Field(default="zero")

    # ── 预取队列配置 ──────────────────────────────────────
    PREFETCH_ENABLED: bool = Field(default=True)
    PREFETCH_QUEUE_SIZE: int = Field(default=100)
    PREFETCH_SYMBOLS: List[str] = Field(
        default_factory=lambda: ["AAPL", "GOOGL", "MSFT", "ABNB", "ADBE"]
    )
    # 区间边界（天）：[30, 60] → [now-30d, now] 与 [now-60d, now-30d]
    PREFETCH_INTERVAL_DAYS: List[int] = Field(default_factory=lambda: [30, 60])

    # ── JWT / 认证配置 ─────────────────────────────────────
    JWT_SECRET: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)

    # ── 日志配置 ──────────────────────────────────────────
    LOG_LEVEL: str = Field(default="INFO")

    def prefetch_windows(self, now: datetime) -> List[FetchWindow]:
        """按 symbol × 历史区间生成启动时的预取窗口"""
        bounds = [0] + sorted(self.PREFETCH_INTERVAL_DAYS)
        intervals = [
            (now - timedelta(days=older), now - timedelta(days=newer))
            for newer, older in zip(bounds, bounds[1:])
        ]
        return [
            FetchWindow(symbol=symbol, start=start, end=end)
            for symbol in self.PREFETCH_SYMBOLS
            for start, end in intervals
        ]


@lru_cache
def get_settings() -> StockTrackerSettings:
    """获取全局配置（单例）"""
    return StockTrackerSettings()


settings = get_settings()
