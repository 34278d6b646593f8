"""
Cache-Aside 解析器
先查历史价格存储，未命中时回源数据提供商，标准化后写回存储再返回
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from stock_tracker.config import settings
from stock_tracker.errors import ProviderError, ResolverError, StoreError
from stock_tracker.layers.acquisition import AlphaVantageClient
from stock_tracker.layers.processing import get_processing_layer
from stock_tracker.layers.store import HistoricalStore
from stock_tracker.models.schemas import FetchWindow, PricePoint

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_PROVIDER = "provider"


@dataclass
class ResolveResult:
    points: List[PricePoint]
    source: str


class CacheAsideResolver:
    """
    Cache-Aside 读取 + 回源写回

    同一 symbol 的并发未命中不做合并：每个请求都会各自回源、各自写回。
    写入以自然键覆盖，重复写入结果一致。
    """

    def __init__(
        self,
        store: HistoricalStore,
        provider: AlphaVantageClient,
        query_limit: int = 50,
        malformed_policy: str = "zero",
    ):
        self._store = store
        self._provider = provider
        self._proc = get_processing_layer()
        self.query_limit = query_limit
        self.malformed_policy = malformed_policy

    async def resolve(self, symbol: str, start: datetime, end: datetime) -> ResolveResult:
        """
        获取 [start, end] 内的价格序列

        命中缓存时返回存储中的数据（时间降序，最多 query_limit 条）；
        未命中时返回本次回源得到的全部数据，可能超出请求窗口。
        """
        try:
            if await self._store.exists(symbol, start, end):
                logger.info(f"缓存命中: {symbol}，从数据库读取")
                points = await self._store.query(symbol, start, end, self.query_limit)
                return ResolveResult(points=points, source=SOURCE_CACHE)

            logger.info(f"缓存未命中: {symbol}，从数据提供商拉取")
            points = await self.fetch_and_store(symbol)
            return ResolveResult(points=points, source=SOURCE_PROVIDER)
        except (StoreError, ProviderError) as exc:
            logger.error(f"解析历史数据失败 {symbol}: {exc}")
            raise ResolverError(exc) from exc

    async def fetch_and_store(
        self,
        symbol: str,
        window: Optional[FetchWindow] = None,
    ) -> List[PricePoint]:
        """
        回源 → 标准化 → （可选）窗口过滤 → 写回存储

        按时间升序写入，返回时按时间降序，与命中缓存时的顺序一致。
        """
        series = await self._provider.fetch_daily_series(symbol)
        normalized = self._proc.normalize_daily_series(series, policy=self.malformed_policy)
        if window is not None:
            normalized = self._proc.filter_window(normalized, window.start, window.end)

        await self._store.upsert_many(symbol, normalized)
        return [
            PricePoint(symbol=symbol, timestamp=ts, price=price)
            for ts, price in reversed(normalized)
        ]


def build_resolver(store: HistoricalStore, provider: AlphaVantageClient) -> CacheAsideResolver:
    """按全局配置构建解析器"""
    return CacheAsideResolver(
        store=store,
        provider=provider,
        query_limit=settings.HISTORY_QUERY_LIMIT,
        malformed_policy=settings.MALFORMED_CLOSE_POLICY,
    )
