"""Standardised error codes shared by the CLI, web layer and logs."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Machine readable error codes."""

    GENERAL_ERROR = "GENERAL_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INCOMPLETE_SOURCE_DATA = "INCOMPLETE_SOURCE_DATA"
    DUPLICATE_DATE = "DUPLICATE_DATE"
    STORE_ERROR = "STORE_ERROR"
    INVALID_QUERY = "INVALID_QUERY"
    CONFIG_ERROR = "CONFIG_ERROR"


__all__ = ["ErrorCode"]
