"""测试公共夹具：内存版存储与数据源替身"""

import os
import sys
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

# 确保仓库根目录在 sys.path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from stock_tracker.layers.acquisition import DailyBar  # noqa: E402
from stock_tracker.models.schemas import PricePoint, to_utc_millis  # noqa: E402


def make_bar(close: str) -> DailyBar:
    return DailyBar.model_validate({
        "1. open": close,
        "2. high": close,
        "3. low": close,
        "4. close": close,
        "5. volume": "1000",
    })


class MemoryStore:
    """HistoricalStore 的内存替身，键为 (symbol, timestamp)"""

    def __init__(self):
        self.rows: Dict[Tuple[str, datetime], float] = {}
        self.upsert_calls = 0

    async def exists(self, symbol: str, start: datetime, end: datetime) -> bool:
        lo, hi = to_utc_millis(start), to_utc_millis(end)
        return any(s == symbol and lo <= ts <= hi for s, ts in self.rows)

    async def query(self, symbol: str, start: datetime, end: datetime, limit: int) -> List[PricePoint]:
        lo, hi = to_utc_millis(start), to_utc_millis(end)
        matched = sorted(
            ((ts, price) for (s, ts), price in self.rows.items() if s == symbol and lo <= ts <= hi),
            reverse=True,
        )
        return [PricePoint(symbol=symbol, timestamp=ts, price=p) for ts, p in matched[:limit]]

    async def upsert_many(self, symbol: str, points: Iterable[Tuple[datetime, float]]) -> int:
        self.upsert_calls += 1
        written = 0
        for ts, price in points:
            self.rows[(symbol, to_utc_millis(ts))] = float(price)
            written += 1
        return written


class FakeProvider:
    """按 symbol 返回固定日线数据的数据源替身"""

    def __init__(self, series: Optional[Dict[str, DailyBar]] = None, error: Optional[Exception] = None):
        self.series = series or {}
        self.error = error
        self.calls: List[str] = []

    async def fetch_daily_series(self, symbol: str) -> Dict[str, DailyBar]:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return dict(self.series)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
