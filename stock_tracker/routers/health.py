"""健康检查路由"""

import time

from fastapi import APIRouter, Request

from stock_tracker import __version__
from stock_tracker.db import check_health

router = APIRouter(tags=["健康检查"])


@router.get("/health")
async def health(request: Request):
    """服务健康检查（含数据库与预取队列状态）"""
    db_health = await check_health()
    worker = getattr(request.app.state, "prefetch_worker", None)
    return {
        "success": True,
        "data": {
            "status": "ok",
            "version": __version__,
            "timestamp": int(time.time()),
            "service": "Stock Tracker",
            "databases": db_health,
            "prefetch": worker.status() if worker else {"state": "disabled"},
        },
        "message": "服务运行正常",
    }


@router.get("/healthz")
async def healthz():
    """Kubernetes 存活检查"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request):
    """Kubernetes 就绪检查"""
    return {"ready": getattr(request.app.state, "resolver", None) is not None}
