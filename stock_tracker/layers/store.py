"""
Layer 2 – 历史价格存储层
MongoDB 持久化的收盘价序列，按 (symbol, timestamp 降序) 组织。
对解析器而言它就是缓存本身，中间不再有其他缓存层。
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from stock_tracker.db import HISTORICAL_COLLECTION, get_mongo_db
from stock_tracker.errors import StoreError
from stock_tracker.models.schemas import PricePoint, to_utc_millis

logger = logging.getLogger(__name__)


def _range_filter(symbol: str, start: datetime, end: datetime) -> dict:
    return {
        "symbol": symbol,
        "timestamp": {"$gte": to_utc_millis(start), "$lte": to_utc_millis(end)},
    }


class HistoricalStore:
    """历史价格存储：范围存在性检查 / 范围查询 / 逐条 upsert"""

    def __init__(self, db_getter: Callable[[], Optional[AsyncIOMotorDatabase]] = get_mongo_db):
        self._db_getter = db_getter

    def _collection(self) -> AsyncIOMotorCollection:
        db = self._db_getter()
        if db is None:
            raise StoreError("MongoDB is not available")
        return db[HISTORICAL_COLLECTION]

    async def exists(self, symbol: str, start: datetime, end: datetime) -> bool:
        """[start, end] 内是否至少存在一条价格记录（不代表覆盖每个交易日）"""
        coll = self._collection()
        try:
            count = await coll.count_documents(_range_filter(symbol, start, end), limit=1)
        except PyMongoError as exc:
            raise StoreError(f"Failed to check data existence for {symbol}: {exc}") from exc
        return count > 0

    async def query(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[PricePoint]:
        """
        按时间降序返回 [start, end] 内最多 limit 条价格

        没有匹配记录时返回空列表，而不是抛出异常。
        """
        coll = self._collection()
        try:
            cursor = (
                coll.find(_range_filter(symbol, start, end), {"_id": 0, "timestamp": 1, "price": 1})
                .sort("timestamp", -1)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)
        except PyMongoError as exc:
            raise StoreError(f"Failed to query historical data for {symbol}: {exc}") from exc

        points = []
        for doc in docs:
            timestamp = doc.get("timestamp")
            price = doc.get("price")
            if timestamp is None or price is None:
                logger.error(f"记录字段缺失: timestamp = {timestamp}, price = {price}")
                continue
            points.append(PricePoint(symbol=symbol, timestamp=timestamp, price=float(price)))
        logger.info(f"查询到 {len(points)} 条历史价格: {symbol}")
        return points

    async def upsert_many(
        self,
        symbol: str,
        points: Iterable[Tuple[datetime, float]],
    ) -> int:
        """
        逐条 upsert 价格（非事务）

        同一 (symbol, timestamp) 后写覆盖先写。中途失败不回滚，
        失败前写入的记录保留，异常信息中包含已写入条数。
        """
        coll = self._collection()
        written = 0
        for timestamp, price in points:
            ts = to_utc_millis(timestamp)
            try:
                await coll.update_one(
                    {"symbol": symbol, "timestamp": ts},
                    {"$set": {"symbol": symbol, "timestamp": ts, "price": float(price)}},
                    upsert=True,
                )
            except PyMongoError as exc:
                raise StoreError(
                    f"Failed to store {symbol} at {ts.isoformat()} "
                    f"after {written} points written: {exc}"
                ) from exc
            written += 1
        logger.info(f"写入 {written} 条历史价格: {symbol}")
        return written
