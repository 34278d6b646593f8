"""
历史价格路由
GET /historical/{symbol}   - 最近 N 天收盘价（Cache-Aside）
"""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends

from stock_tracker.config import settings
from stock_tracker.dependencies import get_resolver
from stock_tracker.models.response import ApiResponse
from stock_tracker.services.resolver import SOURCE_CACHE, CacheAsideResolver

router = APIRouter(prefix="/historical", tags=["历史价格"])


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


@router.get("/{symbol}", response_model=ApiResponse)
async def get_historical(
    symbol: str,
    resolver: CacheAsideResolver = Depends(get_resolver),
):
    """获取最近 HISTORY_WINDOW_DAYS 天的收盘价，未命中缓存时回源并写回"""
    end = _now()
    start = end - timedelta(days=settings.HISTORY_WINDOW_DAYS)
    result = await resolver.resolve(symbol, start, end)
    message = "Data served from cache" if result.source == SOURCE_CACHE else "Data fetched and stored"
    return ApiResponse.ok(
        data={
            "symbol": symbol,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "source": result.source,
            "count": len(result.points),
            "points": [p.model_dump(mode="json") for p in result.points],
        },
        message=message,
    )
