"""
Stock Tracker 行情缓存服务
独立 FastAPI 应用程序入口

启动方式:
    uvicorn stock_tracker.main:app --host 127.0.0.1 --port 3030
    python -m stock_tracker.main
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stock_tracker import __version__
from stock_tracker.config import settings
from stock_tracker.db import close_connections, init_mongodb
from stock_tracker.errors import StockTrackerError, status_code_for
from stock_tracker.layers.acquisition import build_provider_client
from stock_tracker.layers.store import HistoricalStore
from stock_tracker.models.response import ApiResponse
from stock_tracker.routers import auth, health, historical, portfolio, prefetch
from stock_tracker.services.prefetch import PrefetchWorker
from stock_tracker.services.resolver import build_resolver

# ── 日志配置 ──────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── 生命周期管理 ──────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用启动/关闭生命周期钩子"""
    logger.info("=" * 60)
    logger.info(f"🚀 Stock Tracker v{__version__} 启动中")
    logger.info(f"   MongoDB   : {settings.MONGODB_HOST}:{settings.MONGODB_PORT}")
    logger.info(f"   Provider  : {settings.ALPHA_VANTAGE_BASE_URL}")
    logger.info("=" * 60)

    # 初始化数据库连接（失败不阻断启动，降级运行）
    mongo_ok = await init_mongodb()
    if not mongo_ok:
        logger.warning("⚠️ MongoDB 不可用，历史价格与投资组合接口将返回错误")
    if not settings.ALPHA_VANTAGE_API_KEY:
        logger.warning("⚠️ ALPHA_VANTAGE_API_KEY 未配置，回源请求将被数据提供商拒绝")

    http_client = httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS)
    provider = build_provider_client(client=http_client)
    resolver = build_resolver(HistoricalStore(), provider)
    worker = PrefetchWorker(resolver, maxsize=settings.PREFETCH_QUEUE_SIZE)

    app.state.resolver = resolver
    app.state.prefetch_worker = worker

    # 预取：消费者常驻后台，生产者单独运行，队列满时只阻塞生产者
    seeder = None
    if settings.PREFETCH_ENABLED and mongo_ok:
        worker.start()
        windows = settings.prefetch_windows(datetime.now(tz=timezone.utc))
        seeder = asyncio.create_task(worker.seed(windows), name="prefetch-seeder")
    else:
        logger.info("预取队列未启动")

    yield

    logger.info("🔄 服务正在关闭...")
    try:
        if seeder is not None and not seeder.done():
            seeder.cancel()
            try:
                await seeder
            except asyncio.CancelledError:
                pass
        if settings.PREFETCH_ENABLED and mongo_ok:
            await worker.stop()
    finally:
        await http_client.aclose()
        await close_connections()
    logger.info("✅ 服务已关闭")


# ── 应用实例 ──────────────────────────────────────────────
app = FastAPI(
    title="Stock Tracker 行情缓存服务",
    description=(
        "日线收盘价缓存服务：\n"
        "- 📈 历史价格 Cache-Aside 读取（MongoDB → Alpha Vantage）\n"
        "- ⏳ 后台预取队列预热缓存\n"
        "- 💼 投资组合存储\n"
        "- 🔐 JWT 令牌签发"
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS 中间件 ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── 请求计时中间件 ─────────────────────────────────────────
@app.middleware("http")
async def add_process_time(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{(time.time() - start) * 1000:.1f}ms"
    return response


# ── 异常处理 ──────────────────────────────────────────────
@app.exception_handler(StockTrackerError)
async def stock_tracker_exception_handler(request: Request, exc: StockTrackerError):
    status_code = status_code_for(exc)
    logger.error(f"请求失败 {request.method} {request.url.path} ({status_code}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.from_exception(exc).model_dump(),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"未处理的异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc), "message": "内部服务错误"},
    )


# ── 注册路由 ──────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(portfolio.router)
app.include_router(historical.router)
app.include_router(prefetch.router)


# ── 根路由 ───────────────────────────────────────────────
@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Stock Tracker",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# ── 直接运行入口 ──────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "stock_tracker.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
