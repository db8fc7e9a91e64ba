"""数据库管理器."""

from __future__ import annotations

import calendar
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import duckdb

from feargreed.core.data.schema import ensure_index_tables
from feargreed.core.data.storage.duckdb_factory import DuckDBFactory, DuckDBFactoryConfig
from feargreed.core.exceptions import DuplicateDateError, InvalidQueryError, StoreError
from feargreed.core.models import IndexRecord

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

T = TypeVar("T")

_INDEX_COLUMNS = "id, record_date, fgi_value, sentiment, source_timestamp, created_at, updated_at"


def _to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_naive_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=UTC)


def _row_to_record(row: tuple[Any, ...]) -> IndexRecord:
    return IndexRecord(
        id=row[0],
        record_date=row[1],
        value=row[2],
        label=row[3],
        source_timestamp=_from_naive_utc(row[4]),
        created_at=_from_naive_utc(row[5]),
        updated_at=_from_naive_utc(row[6]),
    )


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first day of the month and the first day of the following month."""

    if not 1 <= month <= 12:
        raise InvalidQueryError(f"month must be within 1-12, got {month}", field="month")
    if not 1 <= year <= 9998:
        raise InvalidQueryError(f"year out of range: {year}", field="year")
    start = date(year, month, 1)
    last_day = calendar.monthrange(year, month)[1]
    return start, date.fromordinal(start.toordinal() + last_day)


@dataclass(slots=True, frozen=True)
class RunRecord:
    """一次调度/手动任务的执行记录."""

    job: str
    outcome: str
    started_at: datetime
    finished_at: datetime
    affected_rows: int = 0
    detail: str | None = None


class DatabaseManager:
    """数据库管理器，提供统一的数据库操作接口.

    DuckDB connections are not safe for concurrent use, so every statement runs
    under ``self._lock``. The lock is held per statement (or per transaction),
    never across a network call.
    """

    def __init__(self, db_path: str | Path = ":memory:", factory: DuckDBFactory | None = None):
        """初始化数据库管理器."""
        self.db_path = str(db_path)
        self._factory = factory or DuckDBFactory(DuckDBFactoryConfig(database=self.db_path))
        self._lock = threading.RLock()
        self.connection: DuckDBPyConnection | None = None
        self._setup()

    def _setup(self) -> None:
        """设置数据库连接和表结构."""
        try:
            self.connection = self._factory.create_connection()
            ensure_index_tables(self.connection)
        except duckdb.Error as exc:
            raise StoreError(f"Failed to open index store at {self.db_path}: {exc}", operation="setup") from exc

    def close(self) -> None:
        """关闭数据库连接."""
        with self._lock:
            if self.connection is not None:
                self.connection.close()
                self.connection = None

    def health_check(self) -> bool:
        """检查数据库连接是否正常."""
        try:
            self._run("health_check", lambda conn: conn.execute("SELECT 1").fetchone())
        except StoreError:
            return False
        return True

    def _run(self, operation: str, fn: Callable[[DuckDBPyConnection], T]) -> T:
        with self._lock:
            if self.connection is None:
                raise StoreError("Index store is closed", operation=operation)
            try:
                return fn(self.connection)
            except duckdb.ConstraintException:
                raise
            except duckdb.Error as exc:
                raise StoreError(f"{operation} failed: {exc}", operation=operation) from exc

    @contextmanager
    def transaction(self, operation: str) -> Iterator[DuckDBPyConnection]:
        """在单个事务中执行多条语句，失败时整体回滚."""
        with self._lock:
            if self.connection is None:
                raise StoreError("Index store is closed", operation=operation)
            conn = self.connection
            try:
                conn.begin()
            except duckdb.Error as exc:
                raise StoreError(f"{operation} failed to begin: {exc}", operation=operation) from exc
            try:
                yield conn
            except duckdb.Error as exc:
                conn.rollback()
                raise StoreError(f"{operation} failed: {exc}", operation=operation) from exc
            except BaseException:
                conn.rollback()
                raise
            else:
                conn.commit()

    # 指数记录操作
    def find_by_id(self, record_id: int) -> IndexRecord | None:
        """按ID查找指数记录."""
        row = self._run(
            "find_by_id",
            lambda conn: conn.execute(f"SELECT {_INDEX_COLUMNS} FROM fear_greed_index WHERE id = ?", [record_id]).fetchone(),
        )
        return _row_to_record(row) if row else None

    def find_by_record_date(self, record_date: date) -> IndexRecord | None:
        """按日期查找指数记录."""
        row = self._run(
            "find_by_record_date",
            lambda conn: conn.execute(
                f"SELECT {_INDEX_COLUMNS} FROM fear_greed_index WHERE record_date = ?",
                [record_date],
            ).fetchone(),
        )
        return _row_to_record(row) if row else None

    def find_since(self, start_date: date) -> list[IndexRecord]:
        """查找 record_date >= start_date 的记录，按日期升序."""
        rows = self._run(
            "find_since",
            lambda conn: conn.execute(
                f"SELECT {_INDEX_COLUMNS} FROM fear_greed_index WHERE record_date >= ? ORDER BY record_date ASC",
                [start_date],
            ).fetchall(),
        )
        return [_row_to_record(row) for row in rows]

    def find_between(self, start_date: date, end_date: date) -> list[IndexRecord]:
        """查找 [start_date, end_date) 区间内的记录，按日期升序."""
        rows = self._run(
            "find_between",
            lambda conn: conn.execute(
                f"SELECT {_INDEX_COLUMNS} FROM fear_greed_index "
                "WHERE record_date >= ? AND record_date < ? ORDER BY record_date ASC",
                [start_date, end_date],
            ).fetchall(),
        )
        return [_row_to_record(row) for row in rows]

    def find_by_month(self, year: int, month: int) -> list[IndexRecord]:
        """查找指定年月的记录，按日期升序."""
        start, end = month_bounds(year, month)
        return self.find_between(start, end)

    def insert_if_absent(self, record: IndexRecord) -> IndexRecord:
        """插入新记录；日期已存在时抛出 DuplicateDateError."""
        created_at = datetime.now(UTC)

        def _insert(conn: DuckDBPyConnection) -> tuple[Any, ...] | None:
            return conn.execute(
                f"""
                INSERT INTO fear_greed_index (record_date, fgi_value, sentiment, source_timestamp, created_at)
                VALUES (?, ?, ?, ?, ?)
                RETURNING {_INDEX_COLUMNS}
                """,
                [
                    record.record_date,
                    record.value,
                    record.label,
                    _to_naive_utc(record.source_timestamp),
                    _to_naive_utc(created_at),
                ],
            ).fetchone()

        try:
            row = self._run("insert_if_absent", _insert)
        except duckdb.ConstraintException as exc:
            raise DuplicateDateError(record.record_date) from exc
        if row is None:
            raise StoreError("insert returned no row", operation="insert_if_absent")
        return _row_to_record(row)

    def delete_before(self, cutoff: date) -> int:
        """删除 record_date < cutoff 的记录，返回删除数量（单事务）."""
        with self.transaction("delete_before") as conn:
            row = conn.execute("SELECT COUNT(*) FROM fear_greed_index WHERE record_date < ?", [cutoff]).fetchone()
            doomed = int(row[0]) if row else 0
            if doomed:
                conn.execute("DELETE FROM fear_greed_index WHERE record_date < ?", [cutoff])
        return doomed

    def count_records(self) -> int:
        """统计记录总数."""
        row = self._run("count_records", lambda conn: conn.execute("SELECT COUNT(*) FROM fear_greed_index").fetchone())
        return int(row[0]) if row else 0

    def latest_record_date(self) -> date | None:
        """获取最新记录日期."""
        row = self._run(
            "latest_record_date",
            lambda conn: conn.execute("SELECT MAX(record_date) FROM fear_greed_index").fetchone(),
        )
        return row[0] if row else None

    # 任务执行记录操作
    def insert_run(self, run: RunRecord) -> None:
        """写入任务执行记录."""
        self._run(
            "insert_run",
            lambda conn: conn.execute(
                """
                INSERT INTO ingestion_runs (job, outcome, detail, affected_rows, started_at, finished_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    run.job,
                    run.outcome,
                    run.detail,
                    run.affected_rows,
                    _to_naive_utc(run.started_at),
                    _to_naive_utc(run.finished_at),
                ],
            ),
        )

    def last_run(self, job: str, outcomes: tuple[str, ...] | None = None) -> RunRecord | None:
        """获取某任务最近一次（可按结果过滤）执行记录."""
        sql = "SELECT job, outcome, started_at, finished_at, affected_rows, detail FROM ingestion_runs WHERE job = ?"
        params: list[Any] = [job]
        if outcomes:
            placeholders = ", ".join("?" for _ in outcomes)
            sql += f" AND outcome IN ({placeholders})"
            params.extend(outcomes)
        sql += " ORDER BY finished_at DESC, id DESC LIMIT 1"
        row = self._run("last_run", lambda conn: conn.execute(sql, params).fetchone())
        if row is None:
            return None
        return RunRecord(
            job=row[0],
            outcome=row[1],
            started_at=_from_naive_utc(row[2]),
            finished_at=_from_naive_utc(row[3]),
            affected_rows=row[4],
            detail=row[5],
        )


__all__ = ["DatabaseManager", "RunRecord", "month_bounds"]
