"""
Layer 1 – 数据获取层
调用 Alpha Vantage TIME_SERIES_DAILY 接口，解析为按日期索引的原始日线记录。
本层不做重试与限流，失败直接抛给调用方。
"""

import logging
from typing import Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stock_tracker.config import settings
from stock_tracker.errors import (
    ProviderDecodeError,
    ProviderHttpError,
    ProviderStatusError,
)

logger = logging.getLogger(__name__)

_TIME_SERIES_KEY = "Time Series (Daily)"


class DailyBar(BaseModel):
    """单日原始行情，数值字段保持文本，按需解析"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    open: str = Field(alias="1. open")
    high: str = Field(alias="2. high")
    low: str = Field(alias="3. low")
    close: str = Field(alias="4. close")
    volume: str = Field(alias="5. volume")


class AlphaVantageClient:
    """Alpha Vantage REST API 的轻量封装"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://www.alphavantage.co/query",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_daily_series(self, symbol: str) -> Dict[str, DailyBar]:
        """获取日线时间序列：{ "YYYY-MM-DD": DailyBar }"""
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "apikey": self.api_key,
        }
        logger.info(f"请求数据提供商: {self.base_url}?function=TIME_SERIES_DAILY&symbol={symbol}")
        try:
            response = await self._client.get(self.base_url, params=params)
        except httpx.HTTPError as exc:
            raise ProviderHttpError(f"HTTP request failed for {symbol}: {exc}") from exc

        if not response.is_success:
            raise ProviderStatusError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderDecodeError(f"Failed to parse API response for {symbol}: {exc}") from exc
        return self._parse_payload(symbol, payload)

    @staticmethod
    def _parse_payload(symbol: str, payload) -> Dict[str, DailyBar]:
        if not isinstance(payload, dict):
            raise ProviderDecodeError("Unexpected time series payload format")
        # 无效代码 / 限流提示以 200 返回，正文中只有提示字段
        for notice in ("Error Message", "Note", "Information"):
            if payload.get(notice):
                raise ProviderDecodeError(f"{notice}: {payload[notice]}")

        series = payload.get(_TIME_SERIES_KEY)
        if not isinstance(series, dict):
            raise ProviderDecodeError(f"Missing '{_TIME_SERIES_KEY}' in response for {symbol}")
        try:
            return {day: DailyBar.model_validate(bar) for day, bar in series.items()}
        except ValidationError as exc:
            raise ProviderDecodeError(f"Malformed daily bar for {symbol}: {exc}") from exc


def build_provider_client(client: Optional[httpx.AsyncClient] = None) -> AlphaVantageClient:
    """按全局配置构建数据源客户端"""
    return AlphaVantageClient(
        api_key=settings.ALPHA_VANTAGE_API_KEY,
        base_url=settings.ALPHA_VANTAGE_BASE_URL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        client=client,
    )
