"""Logging utilities for monitoring and debugging."""

from feargreed.core.logging.config import LOG_LEVELS, LogConfig
from feargreed.core.logging.logger import (
    configure_logging,
    current_trace_id,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LOG_LEVELS",
    "LogConfig",
    "configure_logging",
    "current_trace_id",
    "get_logger",
    "log_context",
    "logger",
]
