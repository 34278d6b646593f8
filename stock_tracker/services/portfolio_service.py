"""
投资组合服务
按 user_id 存取持仓列表，与价格缓存互不相关
"""

import json
import logging
from typing import Optional

from pymongo.errors import PyMongoError

from stock_tracker.db import PORTFOLIO_COLLECTION, get_mongo_db
from stock_tracker.errors import StoreError, StoreNotFoundError
from stock_tracker.models.schemas import Portfolio, Stock

logger = logging.getLogger(__name__)


class PortfolioService:
    """投资组合增删改查，持仓列表序列化为 JSON 文本存储"""

    def _collection(self):
        db = get_mongo_db()
        if db is None:
            raise StoreError("MongoDB is not available")
        return db[PORTFOLIO_COLLECTION]

    async def add(self, portfolio: Portfolio) -> None:
        stocks_json = json.dumps([s.model_dump() for s in portfolio.stocks])
        try:
            await self._collection().update_one(
                {"user_id": portfolio.user_id},
                {"$set": {"user_id": portfolio.user_id, "stocks": stocks_json}},
                upsert=True,
            )
        except PyMongoError as exc:
            raise StoreError(f"Failed to save portfolio: {exc}") from exc

    async def update(self, portfolio: Portfolio) -> None:
        # 与新增相同：整体覆盖
        await self.add(portfolio)

    async def get(self, user_id: str) -> Portfolio:
        try:
            doc = await self._collection().find_one({"user_id": user_id})
        except PyMongoError as exc:
            raise StoreError(f"Failed to load portfolio: {exc}") from exc
        if not doc:
            raise StoreNotFoundError("Portfolio not found")
        stocks = [Stock(**item) for item in json.loads(doc.get("stocks") or "[]")]
        return Portfolio(user_id=user_id, stocks=stocks)

    async def delete(self, user_id: str) -> None:
        try:
            await self._collection().delete_one({"user_id": user_id})
        except PyMongoError as exc:
            raise StoreError(f"Failed to delete portfolio: {exc}") from exc


# ── 模块级别单例 ──────────────────────────────────────────
_portfolio_service: Optional[PortfolioService] = None


def get_portfolio_service() -> PortfolioService:
    global _portfolio_service
    if _portfolio_service is None:
        _portfolio_service = PortfolioService()
    return _portfolio_service
