"""
领域数据模型
PricePoint / FetchWindow / Portfolio 等请求、响应与存储共用的结构
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field, field_validator


def to_utc_millis(value: datetime) -> datetime:
    """统一为 UTC 并截断到毫秒精度（与存储层时间戳精度一致）"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


class PricePoint(BaseModel):
    """某个标的在某一时刻的收盘价，自然键 = symbol + timestamp"""
    symbol: str
    timestamp: datetime
    price: float

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return to_utc_millis(value)


class FetchWindow(BaseModel):
    """一次拉取请求的时间窗口（不持久化）"""
    symbol: str
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _normalize_bounds(cls, value: datetime) -> datetime:
        return to_utc_millis(value)


class Stock(BaseModel):
    symbol: str
    quantity: float
    buy_price: float


class Portfolio(BaseModel):
    user_id: str = Field(..., min_length=1)
    stocks: List[Stock] = Field(default_factory=list)
