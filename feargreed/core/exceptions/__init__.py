"""Exception handling module."""

from feargreed.core.exceptions.base import (
    ConfigError,
    DuplicateDateError,
    FearGreedError,
    IncompleteSourceDataError,
    InvalidQueryError,
    StoreError,
    TransportError,
)
from feargreed.core.exceptions.codes import ErrorCode

__all__ = [
    "FearGreedError",
    "TransportError",
    "IncompleteSourceDataError",
    "DuplicateDateError",
    "StoreError",
    "InvalidQueryError",
    "ConfigError",
    "ErrorCode",
]
