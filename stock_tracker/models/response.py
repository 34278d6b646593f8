"""统一 API 响应模型"""

from typing import Any, Optional
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """标准 API 响应封装"""
    success: bool = True
    data: Optional[Any] = None
    message: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "success") -> "ApiResponse":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, message: str = "failed") -> "ApiResponse":
        return cls(success=False, error=error, message=message)

    @classmethod
    def from_exception(cls, exc: Exception) -> "ApiResponse":
        """错误响应：message 为错误类别（包装异常取其原因），error 为原始错误描述"""
        kind = type(getattr(exc, "cause", None) or exc).__name__
        return cls.fail(error=str(exc), message=kind)
