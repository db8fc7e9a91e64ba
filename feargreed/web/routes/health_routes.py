"""
健康检查和系统状态路由
"""

from fastapi import APIRouter, Request, Response

from feargreed.core.logging import logger
from feargreed.web.models import APIResponse
from feargreed.web.utils import get_request_id, get_tracker

router = APIRouter()


@router.get("/health", response_model=APIResponse)
async def health_check(request: Request, response: Response) -> APIResponse:
    """
    基础健康检查

    检查存储是否可用，并返回各任务最近一次成功执行的时间
    """
    tracker = get_tracker(request)
    if not tracker.repository.health_check():
        logger.bind(endpoint="/health").error("Health check failed: index store unavailable")
        response.status_code = 503
        return APIResponse(
            success=False,
            data={"status": "unhealthy", "store": False},
            message="存储不可用",
            request_id=get_request_id(request),
        )

    status = await tracker.queries.status()
    return APIResponse(
        success=True,
        data={
            "status": "healthy",
            "store": True,
            "record_count": status.record_count,
            "latest_record_date": status.latest_record_date.isoformat() if status.latest_record_date else None,
            "last_success": {
                job: run.finished_at.isoformat() if run else None for job, run in status.last_success.items()
            },
            "scheduler_enabled": tracker.config.schedule.enabled,
        },
        message="系统健康检查完成",
        request_id=get_request_id(request),
    )
