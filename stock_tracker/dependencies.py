"""路由依赖：从 app.state 取出启动时构建的共享组件"""

from fastapi import HTTPException, Request, status

from stock_tracker.services.prefetch import PrefetchWorker
from stock_tracker.services.resolver import CacheAsideResolver


def get_resolver(request: Request) -> CacheAsideResolver:
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="服务尚未就绪")
    return resolver


def get_prefetch_worker(request: Request) -> PrefetchWorker:
    worker = getattr(request.app.state, "prefetch_worker", None)
    if worker is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="预取队列未启用")
    return worker
