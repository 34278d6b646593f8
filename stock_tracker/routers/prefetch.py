"""
预取队列路由
POST /prefetch          - 追加预取窗口（队列满时等待）
GET  /prefetch/status   - 队列状态
"""

from fastapi import APIRouter, Depends, HTTPException, status

from stock_tracker.dependencies import get_prefetch_worker
from stock_tracker.models.response import ApiResponse
from stock_tracker.models.schemas import FetchWindow
from stock_tracker.services.prefetch import PrefetchClosedError, PrefetchWorker

router = APIRouter(prefix="/prefetch", tags=["预取队列"])


@router.post("", status_code=status.HTTP_202_ACCEPTED, response_model=ApiResponse)
async def enqueue_prefetch(
    body: FetchWindow,
    worker: PrefetchWorker = Depends(get_prefetch_worker),
):
    """追加一个预取窗口"""
    if body.start > body.end:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="start 不能晚于 end")
    try:
        await worker.enqueue(body)
    except PrefetchClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return ApiResponse.ok(data=body.model_dump(mode="json"), message="Prefetch queued")


@router.get("/status", response_model=ApiResponse)
async def prefetch_status(worker: PrefetchWorker = Depends(get_prefetch_worker)):
    """预取队列状态与计数"""
    return ApiResponse.ok(data=worker.status())
