"""Ingestion, retention, query and scheduling services."""

from feargreed.core.services.ingestion import (
    DAILY_JOB,
    HISTORY_JOB,
    BackfillResult,
    IngestionPipeline,
    IngestOutcome,
    IngestResult,
)
from feargreed.core.services.normalizer import (
    CURRENT_VALUE_STRATEGIES,
    ExtractionStrategy,
    HistoryExtraction,
    extract_current,
    extract_history,
    truncate_score,
)
from feargreed.core.services.query import IndexQueryService, StoreStatus
from feargreed.core.services.retention import RETENTION_JOB, RetentionSweeper
from feargreed.core.services.scheduler import IngestionScheduler, next_daily_run, next_monthly_run
from feargreed.core.services.source_client import SourceClient

__all__ = [
    "BackfillResult",
    "CURRENT_VALUE_STRATEGIES",
    "DAILY_JOB",
    "ExtractionStrategy",
    "HISTORY_JOB",
    "HistoryExtraction",
    "IndexQueryService",
    "IngestOutcome",
    "IngestResult",
    "IngestionPipeline",
    "IngestionScheduler",
    "RETENTION_JOB",
    "RetentionSweeper",
    "SourceClient",
    "StoreStatus",
    "extract_current",
    "extract_history",
    "next_daily_run",
    "next_monthly_run",
    "truncate_score",
]
