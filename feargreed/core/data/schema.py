"""DuckDB schema definitions for the index store."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


@dataclass(frozen=True)
class ColumnDef:
    """Represents a DuckDB table column definition."""

    name: str
    data_type: str
    constraints: Sequence[str] = ()

    def render(self) -> str:
        parts = [self.name, self.data_type, *self.constraints]
        return " ".join(parts)


@dataclass(frozen=True)
class TableSchema:
    """Utility wrapper describing a DuckDB table schema."""

    name: str
    columns: Sequence[ColumnDef]
    primary_key: Sequence[str] = ()
    sequences: Sequence[str] = ()

    def create_ddl(self) -> str:
        column_defs: list[str] = [column.render() for column in self.columns]
        if self.primary_key:
            pk_cols = ", ".join(self.primary_key)
            column_defs.append(f"PRIMARY KEY ({pk_cols})")
        columns_sql = ",\n                ".join(column_defs)
        return f"""
            CREATE TABLE IF NOT EXISTS {self.name} (
                {columns_sql}
            )
            """.strip()

    def ensure(self, conn: DuckDBPyConnection) -> None:
        """Create sequences and the table on the provided connection if missing."""

        for sequence in self.sequences:
            conn.execute(f"CREATE SEQUENCE IF NOT EXISTS {sequence} START 1")
        conn.execute(self.create_ddl())


# Timestamps are stored as naive UTC.
FEAR_GREED_INDEX_TABLE = TableSchema(
    name="fear_greed_index",
    columns=(
        ColumnDef("id", "BIGINT", ("DEFAULT nextval('fear_greed_index_id_seq')", "NOT NULL")),
        ColumnDef("record_date", "DATE", ("NOT NULL", "UNIQUE")),
        ColumnDef("fgi_value", "INTEGER", ("NOT NULL",)),
        ColumnDef("sentiment", "VARCHAR(50)", ("NOT NULL",)),
        ColumnDef("source_timestamp", "TIMESTAMP", ("NOT NULL",)),
        ColumnDef("created_at", "TIMESTAMP", ("NOT NULL",)),
        ColumnDef("updated_at", "TIMESTAMP"),
    ),
    primary_key=("id",),
    sequences=("fear_greed_index_id_seq",),
)

INGESTION_RUNS_TABLE = TableSchema(
    name="ingestion_runs",
    columns=(
        ColumnDef("id", "BIGINT", ("DEFAULT nextval('ingestion_runs_id_seq')", "NOT NULL")),
        ColumnDef("job", "VARCHAR", ("NOT NULL",)),
        ColumnDef("outcome", "VARCHAR", ("NOT NULL",)),
        ColumnDef("detail", "VARCHAR"),
        ColumnDef("affected_rows", "INTEGER", ("NOT NULL", "DEFAULT 0")),
        ColumnDef("started_at", "TIMESTAMP", ("NOT NULL",)),
        ColumnDef("finished_at", "TIMESTAMP", ("NOT NULL",)),
    ),
    primary_key=("id",),
    sequences=("ingestion_runs_id_seq",),
)


def index_tables() -> Sequence[TableSchema]:
    """Return the schemas that make up the index store."""

    return (FEAR_GREED_INDEX_TABLE, INGESTION_RUNS_TABLE)


def ensure_index_tables(conn: DuckDBPyConnection) -> None:
    """Create all index store tables on the provided DuckDB connection."""

    for table in index_tables():
        table.ensure(conn)


def create_index_ddl() -> Iterable[str]:
    """Yield CREATE TABLE statements for the index store."""

    for table in index_tables():
        yield table.create_ddl()


__all__ = [
    "ColumnDef",
    "FEAR_GREED_INDEX_TABLE",
    "INGESTION_RUNS_TABLE",
    "TableSchema",
    "create_index_ddl",
    "ensure_index_tables",
    "index_tables",
]
