"""
Fear & Greed 指数 API 路由
提供当日指数、历史查询以及手动触发任务的接口
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from feargreed.core.services import IndexQueryService, IngestOutcome
from feargreed.web.models import APIResponse
from feargreed.web.utils import get_queries, get_request_id

router = APIRouter()

_FAILURE_STATUS = {
    IngestOutcome.TRANSPORT_ERROR: 502,
    IngestOutcome.INCOMPLETE: 502,
    IngestOutcome.STORE_ERROR: 503,
}


@router.get("/today", response_model=APIResponse)
async def get_today(request: Request, queries: IndexQueryService = Depends(get_queries)) -> APIResponse:
    """
    获取当日指数

    当日数据尚未入库时会触发一次按需抓取；仍不可用时返回 404。
    """
    record = await queries.get_or_create_today()
    if record is None:
        raise HTTPException(status_code=404, detail="Today's Fear & Greed index is not available")
    return APIResponse(success=True, data=record.to_row(), request_id=get_request_id(request))


@router.get("/history", response_model=APIResponse)
async def get_history(
    request: Request,
    days: int = Query(7, description="向前天数（包含今天）"),
    queries: IndexQueryService = Depends(get_queries),
) -> APIResponse:
    """获取最近 N 天的指数，按日期升序"""
    records = await queries.get_last_n_days(days)
    return APIResponse(
        success=True,
        data=[record.to_row() for record in records],
        message=f"{len(records)} records",
        request_id=get_request_id(request),
    )


@router.get("/history-by-month", response_model=APIResponse)
async def get_history_by_month(
    request: Request,
    year: int = Query(..., description="年份"),
    month: int = Query(..., description="月份 1-12"),
    queries: IndexQueryService = Depends(get_queries),
) -> APIResponse:
    """获取指定年月的指数，按日期升序"""
    records = await queries.get_by_month(year, month)
    return APIResponse(
        success=True,
        data=[record.to_row() for record in records],
        message=f"{len(records)} records",
        request_id=get_request_id(request),
    )


@router.post("/fetch-now", response_model=APIResponse)
async def fetch_now(
    request: Request,
    response: Response,
    queries: IndexQueryService = Depends(get_queries),
) -> APIResponse:
    """手动触发当日抓取"""
    result = await queries.trigger_fetch()
    if not result.succeeded:
        response.status_code = _FAILURE_STATUS[result.outcome]
    return APIResponse(
        success=result.succeeded,
        data={
            "outcome": result.outcome.value,
            "record_date": result.record_date.isoformat(),
            "record": result.record.to_row() if result.record else None,
        },
        message=result.detail,
        request_id=get_request_id(request),
    )


@router.post("/fetch-history-now", response_model=APIResponse)
async def fetch_history_now(
    request: Request,
    response: Response,
    queries: IndexQueryService = Depends(get_queries),
) -> APIResponse:
    """手动触发历史回填，返回新增条数"""
    result = await queries.trigger_backfill()
    if not result.succeeded:
        response.status_code = _FAILURE_STATUS[result.outcome]
    return APIResponse(
        success=result.succeeded,
        data={
            "batch_id": result.batch_id,
            "outcome": result.outcome.value,
            "saved_count": result.saved_count,
            "already_present": result.already_present,
            "skipped_points": result.skipped_points,
        },
        message=result.detail or f"Saved {result.saved_count} historical records",
        request_id=get_request_id(request),
    )


@router.post("/cleanup-old-data", response_model=APIResponse)
async def cleanup_old_data(
    request: Request,
    before: date | None = Query(None, description="删除该日期之前的数据；默认按保留策略"),
    queries: IndexQueryService = Depends(get_queries),
) -> APIResponse:
    """手动触发过期数据清理"""
    deleted = await queries.trigger_cleanup(before)
    return APIResponse(
        success=True,
        data={"deleted": deleted, "cutoff": before.isoformat() if before else None},
        message=f"Deleted {deleted} records",
        request_id=get_request_id(request),
    )
