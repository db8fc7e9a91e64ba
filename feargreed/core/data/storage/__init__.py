"""DuckDB storage backend."""

from feargreed.core.data.storage.database import DatabaseManager, RunRecord, month_bounds
from feargreed.core.data.storage.duckdb_factory import DuckDBFactory, DuckDBFactoryConfig

__all__ = ["DatabaseManager", "DuckDBFactory", "DuckDBFactoryConfig", "RunRecord", "month_bounds"]
