"""
Web API 数据模型
定义 FastAPI 的响应模型
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(UTC)


class APIResponse(BaseModel):
    """标准 API 响应格式"""

    success: bool = Field(..., description="请求是否成功")
    data: Any | None = Field(None, description="响应数据")
    message: str | None = Field(None, description="响应消息")
    timestamp: datetime = Field(default_factory=_utc_now, description="响应时间戳")
    request_id: str | None = Field(None, description="请求ID，用于追踪")


class ErrorResponse(BaseModel):
    """错误响应格式"""

    success: bool = Field(False, description="请求失败")
    error: str = Field(..., description="错误类型")
    message: str = Field(..., description="错误消息")
    details: dict[str, Any] | None = Field(None, description="详细错误信息")
    timestamp: datetime = Field(default_factory=_utc_now, description="错误时间戳")
    request_id: str | None = Field(None, description="请求ID，用于追踪")


__all__ = ["APIResponse", "ErrorResponse"]
