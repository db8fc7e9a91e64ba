"""
Web API 模块 - FastAPI 网络服务实现
"""

from feargreed.web.app import create_app
from feargreed.web.models import APIResponse, ErrorResponse

__all__ = ["APIResponse", "ErrorResponse", "create_app"]
