"""
FastAPI 应用工厂和配置
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from feargreed import __version__
from feargreed.core.config import ConfigManager, FearGreedConfig
from feargreed.core.exceptions import FearGreedError, InvalidQueryError, StoreError
from feargreed.core.logging import get_logger
from feargreed.core.tracker import FearGreedTracker
from feargreed.web.models import ErrorResponse
from feargreed.web.routes import health_router, index_router, metrics_router
from feargreed.web.utils import get_request_id

logger = get_logger("feargreed.web")


def create_app(config: FearGreedConfig | None = None, tracker: FearGreedTracker | None = None) -> FastAPI:
    """创建 FastAPI 应用实例

    ``tracker`` 由调用方传入时，其生命周期由调用方负责；否则在 lifespan 中按配置创建并关闭。
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """应用生命周期管理"""
        active = tracker or FearGreedTracker(config or ConfigManager().get_config())
        app.state.tracker = active

        if active.config.schedule.enabled:
            active.scheduler.start()
            logger.info("Scheduler started with the web application")

        try:
            yield
        finally:
            if tracker is None:
                await active.close()
            else:
                await active.scheduler.stop()

    app = FastAPI(
        title="Fear & Greed Index Tracker",
        description="Daily Fear & Greed index values with history, month views and maintenance triggers",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    _setup_routes(app)
    _setup_exception_handlers(app)
    return app


def _setup_routes(app: FastAPI) -> None:
    """注册路由"""
    app.include_router(index_router, prefix="/api/fear-greed", tags=["fear-greed"])
    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router)


def _error_response(request: Request, status_code: int, error: str, message: str, details: dict | None) -> JSONResponse:
    payload = ErrorResponse(error=error, message=message, details=details, request_id=get_request_id(request))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _setup_exception_handlers(app: FastAPI) -> None:
    """配置异常处理器"""

    @app.exception_handler(InvalidQueryError)
    async def invalid_query_handler(request: Request, exc: InvalidQueryError) -> JSONResponse:
        """查询参数无效"""
        return _error_response(request, 422, exc.error_code, exc.message, exc.details)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        """存储不可用"""
        logger.bind(error_code=exc.error_code).error("Store failure while serving {}: {}", request.url.path, exc.message)
        return _error_response(request, 503, exc.error_code, exc.message, exc.details)

    @app.exception_handler(FearGreedError)
    async def feargreed_exception_handler(request: Request, exc: FearGreedError) -> JSONResponse:
        """处理其余自定义异常"""
        return _error_response(request, 500, exc.error_code, exc.message, exc.details)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """处理 HTTP 异常"""
        return _error_response(request, exc.status_code, "HTTPException", str(exc.detail), {"status_code": exc.status_code})


# 创建全局应用实例
app = create_app()
