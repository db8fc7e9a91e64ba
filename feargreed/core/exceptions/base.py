"""feargreed核心异常类."""

from __future__ import annotations

from datetime import date
from typing import Any

from feargreed.core.exceptions.codes import ErrorCode


class FearGreedError(Exception):
    """feargreed基础异常类."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """初始化异常.

        Args:
            message: 错误消息
            error_code: 错误代码
            details: 额外详情
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Return a serializable payload representing the error."""

        payload: dict[str, Any] = {"code": self.error_code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class TransportError(FearGreedError):
    """Network failure, timeout or non-2xx answer from the index provider."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if url is not None:
            super_details["url"] = url
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, ErrorCode.TRANSPORT_ERROR.value, super_details)
        self.url = url
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Timeouts, connection errors, 429 and 5xx answers are worth retrying."""

        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class IncompleteSourceDataError(FearGreedError):
    """Payload parsed, but the fields needed for a record are missing."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INCOMPLETE_SOURCE_DATA.value, details)


class DuplicateDateError(FearGreedError):
    """A record for the calendar day already exists in the store."""

    def __init__(self, record_date: date, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["record_date"] = record_date.isoformat()
        super().__init__(
            f"record for {record_date.isoformat()} already exists",
            ErrorCode.DUPLICATE_DATE.value,
            super_details,
        )
        self.record_date = record_date


class StoreError(FearGreedError):
    """存储层不可用或执行失败."""

    def __init__(self, message: str, operation: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if operation:
            super_details["operation"] = operation
        super().__init__(message, ErrorCode.STORE_ERROR.value, super_details)
        self.operation = operation


class InvalidQueryError(FearGreedError):
    """查询参数无效."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        super_details = details or {}
        if field:
            super_details["field"] = field
        super().__init__(message, ErrorCode.INVALID_QUERY.value, super_details)


class ConfigError(FearGreedError):
    """配置文件或环境变量无效."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_ERROR.value, details)
