"""
错误类型定义
存储层 / 数据源 / 解析器各自的异常，以及在 HTTP 边界上的状态码映射
"""

from typing import Optional


class StockTrackerError(Exception):
    """服务内所有业务异常的基类"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ── 存储层 ────────────────────────────────────────────────

class StoreError(StockTrackerError):
    """数据库连接或查询失败"""


class StoreNotFoundError(StoreError):
    """请求的记录不存在"""


# ── 数据源 ────────────────────────────────────────────────

class ProviderError(StockTrackerError):
    """数据提供商调用失败"""


class ProviderHttpError(ProviderError):
    """网络传输失败（连接、超时等）"""


class ProviderStatusError(ProviderError):
    """数据提供商返回非 2xx 状态码"""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Failed to fetch data: HTTP {status_code}")
        self.status_code = status_code


class ProviderDecodeError(ProviderError):
    """返回内容无法解析，或为数据提供商的错误/限流提示"""


# ── 解析器 ────────────────────────────────────────────────

class ResolverError(StockTrackerError):
    """包装存储层或数据源异常，保留原始错误信息"""

    def __init__(self, cause: StockTrackerError):
        super().__init__(str(cause))
        self.cause = cause


def status_code_for(exc: Exception) -> int:
    """将异常映射为 HTTP 状态码"""
    if isinstance(exc, ResolverError):
        return status_code_for(exc.cause)
    if isinstance(exc, StoreNotFoundError):
        return 404
    if isinstance(exc, StoreError):
        return 503
    if isinstance(exc, ProviderError):
        return 502
    return 500
