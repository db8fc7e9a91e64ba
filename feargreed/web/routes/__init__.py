"""
Web API 路由模块
"""

from feargreed.web.metrics import router as metrics_router
from feargreed.web.routes.health_routes import router as health_router
from feargreed.web.routes.index_routes import router as index_router

__all__ = ["health_router", "index_router", "metrics_router"]
