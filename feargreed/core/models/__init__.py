"""Domain models."""

from feargreed.core.models.index import INDEX_MAX_VALUE, INDEX_MIN_VALUE, IndexReading, IndexRecord
from feargreed.core.models.source import (
    HistoricalPoint,
    HistoricalSeries,
    RawSourceResponse,
    SourceSnapshot,
    parse_source_timestamp,
)

__all__ = [
    "INDEX_MAX_VALUE",
    "INDEX_MIN_VALUE",
    "HistoricalPoint",
    "HistoricalSeries",
    "IndexReading",
    "IndexRecord",
    "RawSourceResponse",
    "SourceSnapshot",
    "parse_source_timestamp",
]
