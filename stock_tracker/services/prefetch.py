"""
预取队列
单一后台消费者从有界 FIFO 队列中取出 (symbol, start, end)，
复用解析器的回源写回流程，在请求之外预热历史价格存储。
"""

import asyncio
import logging
from typing import Iterable, Optional

from stock_tracker.errors import StockTrackerError
from stock_tracker.models.schemas import FetchWindow
from stock_tracker.services.resolver import CacheAsideResolver

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_AWAITING = "awaiting"
STATE_PROCESSING = "processing"
STATE_STOPPED = "stopped"

# 队列关闭标记，排在所有已入队任务之后
_CLOSED = object()


class PrefetchClosedError(RuntimeError):
    """队列已关闭，不再接受新的预取任务"""


class PrefetchWorker:
    """
    预取队列消费者

    - 队列满时 enqueue 阻塞生产者，不丢弃任务
    - 单条任务失败只记录日志，继续处理下一条
    - close() 之后处理完剩余任务即退出；处理中的任务不会被打断
    """

    def __init__(self, resolver: CacheAsideResolver, maxsize: int = 100):
        self._resolver = resolver
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        self.state = STATE_IDLE
        self.processed = 0
        self.failed = 0

    # ── 生产者 ────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    async def enqueue(self, window: FetchWindow) -> None:
        if self._closed:
            raise PrefetchClosedError("Prefetch queue is closed")
        await self._queue.put(window)

    async def seed(self, windows: Iterable[FetchWindow]) -> int:
        """依次入队一组预取窗口，返回入队数量"""
        count = 0
        for window in windows:
            await self.enqueue(window)
            count += 1
        logger.info(f"预取任务入队完成，共 {count} 条")
        return count

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    # ── 消费者 ────────────────────────────────────────────

    async def run(self) -> None:
        logger.info("预取队列消费者已启动")
        while True:
            self.state = STATE_AWAITING
            item = await self._queue.get()
            try:
                if item is _CLOSED:
                    break
                self.state = STATE_PROCESSING
                await self._process(item)
            finally:
                self._queue.task_done()
        self.state = STATE_STOPPED
        logger.info(f"预取队列消费者已退出（成功 {self.processed}，失败 {self.failed}）")

    async def _process(self, window: FetchWindow) -> None:
        try:
            points = await self._resolver.fetch_and_store(window.symbol, window)
        except StockTrackerError as exc:
            self.failed += 1
            logger.error(f"预取失败 {window.symbol} [{window.start} ~ {window.end}]: {exc}")
            return
        except Exception as exc:
            self.failed += 1
            logger.exception(f"预取出现未预期的异常 {window.symbol} [{window.start} ~ {window.end}]: {exc}")
            return
        self.processed += 1
        logger.info(
            f"预取完成 {window.symbol} [{window.start} ~ {window.end}]，写入 {len(points)} 条"
        )

    # ── 生命周期 ──────────────────────────────────────────

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="prefetch-worker")
        return self._task

    async def join(self) -> None:
        """等待当前已入队的任务全部处理完"""
        await self._queue.join()

    async def stop(self) -> None:
        """关闭队列并等待消费者处理完剩余任务后退出"""
        if self._task is not None and self._task.done():
            # 消费者已退出，队列不会再被取空，不能再阻塞在 close() 上
            self._closed = True
        else:
            await self.close()
        if self._task is not None:
            try:
                await self._task
            except Exception as exc:
                logger.error(f"预取队列消费者异常退出: {exc}")
            self.state = STATE_STOPPED

    def status(self) -> dict:
        return {
            "state": self.state,
            "closed": self._closed,
            "pending": self.pending,
            "capacity": self.maxsize,
            "processed": self.processed,
            "failed": self.failed,
        }
