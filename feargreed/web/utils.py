"""Web相关的工具函数"""

from fastapi import Request

from feargreed.core.services import IndexQueryService
from feargreed.core.tracker import FearGreedTracker


def get_request_id(request: Request) -> str | None:
    """从请求头中获取 X-Request-ID"""
    return request.headers.get("X-Request-ID")


def get_tracker(request: Request) -> FearGreedTracker:
    """返回生命周期中创建的 tracker"""
    return request.app.state.tracker


def get_queries(request: Request) -> IndexQueryService:
    """FastAPI 依赖：查询服务"""
    return get_tracker(request).queries
