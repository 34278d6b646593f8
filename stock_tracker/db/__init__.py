"""
数据库连接管理模块
进程内唯一的 MongoDB（异步）客户端，所有组件共享同一连接池
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from stock_tracker.config import settings

logger = logging.getLogger(__name__)

HISTORICAL_COLLECTION = "historical_data"
PORTFOLIO_COLLECTION = "portfolios"

# ── 全局连接实例 ─────────────────────────────────────────
_mongo_client: Optional[AsyncIOMotorClient] = None
_mongo_db: Optional[AsyncIOMotorDatabase] = None


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """创建集合索引：历史价格按 (symbol, timestamp 降序) 唯一，投资组合按 user_id 唯一"""
    await db[HISTORICAL_COLLECTION].create_index(
        [("symbol", ASCENDING), ("timestamp", DESCENDING)],
        unique=True,
        name="uix_symbol_timestamp",
    )
    await db[PORTFOLIO_COLLECTION].create_index(
        [("user_id", ASCENDING)],
        unique=True,
        name="uix_user_id",
    )


async def init_mongodb() -> bool:
    """初始化 MongoDB 异步连接并建立索引，返回是否成功"""
    global _mongo_client, _mongo_db
    if not settings.MONGODB_ENABLED:
        logger.info("MongoDB 未启用，跳过初始化")
        return False
    try:
        _mongo_client = AsyncIOMotorClient(
            settings.MONGO_URI,
            tz_aware=True,
            maxPoolSize=settings.MONGO_MAX_CONNECTIONS,
            minPoolSize=settings.MONGO_MIN_CONNECTIONS,
            serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            connectTimeoutMS=settings.MONGO_CONNECT_TIMEOUT_MS,
            socketTimeoutMS=settings.MONGO_SOCKET_TIMEOUT_MS,
        )
        _mongo_db = _mongo_client[settings.MONGODB_DATABASE]
        await _mongo_client.admin.command("ping")
        await ensure_indexes(_mongo_db)
        logger.info(f"✅ MongoDB 连接成功: {settings.MONGODB_HOST}:{settings.MONGODB_PORT}")
        return True
    except Exception as exc:
        logger.warning(f"⚠️ MongoDB 连接失败（服务将继续以降级模式运行）: {exc}")
        if _mongo_client:
            _mongo_client.close()
        _mongo_client = None
        _mongo_db = None
        return False


async def close_connections():
    """关闭数据库连接"""
    global _mongo_client, _mongo_db
    if _mongo_client:
        _mongo_client.close()
        _mongo_client = None
        _mongo_db = None
        logger.info("MongoDB 连接已关闭")


def get_mongo_db() -> Optional[AsyncIOMotorDatabase]:
    """获取 MongoDB 数据库实例（可能为 None）"""
    return _mongo_db


async def check_health() -> dict:
    """检查数据库连接健康状态"""
    result = {"mongodb": {"status": "disabled"}}
    if _mongo_client:
        try:
            await _mongo_client.admin.command("ping")
            result["mongodb"] = {"status": "healthy", "host": settings.MONGODB_HOST}
        except Exception as exc:
            result["mongodb"] = {"status": "unhealthy", "error": str(exc)}
    elif settings.MONGODB_ENABLED:
        result["mongodb"] = {"status": "disconnected"}
    return result
