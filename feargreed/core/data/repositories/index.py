"""指数记录仓储实现."""

from __future__ import annotations

from datetime import date, datetime

from feargreed.core.data.repositories.base import Repository
from feargreed.core.data.storage.database import DatabaseManager, RunRecord
from feargreed.core.models import IndexRecord


class IndexRepository(Repository[IndexRecord]):
    """指数记录仓储实现.

    Records are immutable once a day has a value: ``save`` inserts and raises
    :class:`~feargreed.core.exceptions.DuplicateDateError` when the day is taken.
    """

    def __init__(self, db_manager: DatabaseManager):
        """初始化指数仓储."""
        self.db_manager = db_manager

    async def save(self, entity: IndexRecord) -> IndexRecord:
        """保存指数记录（仅插入）."""
        return self.db_manager.insert_if_absent(entity)

    async def find_by_id(self, entity_id: int) -> IndexRecord | None:
        """根据ID查找指数记录."""
        return self.db_manager.find_by_id(entity_id)

    async def find_by_date(self, record_date: date) -> IndexRecord | None:
        """根据日期查找指数记录."""
        return self.db_manager.find_by_record_date(record_date)

    async def exists_for_date(self, record_date: date) -> bool:
        """检查某日是否已有记录."""
        return self.db_manager.find_by_record_date(record_date) is not None

    async def find_since(self, start_date: date) -> list[IndexRecord]:
        """查找 start_date 及之后的记录，按日期升序."""
        return self.db_manager.find_since(start_date)

    async def find_by_month(self, year: int, month: int) -> list[IndexRecord]:
        """查找指定年月的记录，按日期升序."""
        return self.db_manager.find_by_month(year, month)

    async def delete_before(self, cutoff: date) -> int:
        """删除早于 cutoff 的记录."""
        return self.db_manager.delete_before(cutoff)

    async def count(self) -> int:
        """统计记录总数."""
        return self.db_manager.count_records()

    async def latest_date(self) -> date | None:
        """获取最新记录日期."""
        return self.db_manager.latest_record_date()

    async def record_run(
        self,
        job: str,
        outcome: str,
        *,
        started_at: datetime,
        finished_at: datetime,
        affected_rows: int = 0,
        detail: str | None = None,
    ) -> None:
        """记录一次任务执行."""
        self.db_manager.insert_run(
            RunRecord(
                job=job,
                outcome=outcome,
                started_at=started_at,
                finished_at=finished_at,
                affected_rows=affected_rows,
                detail=detail,
            )
        )

    async def last_run(self, job: str, outcomes: tuple[str, ...] | None = None) -> RunRecord | None:
        """获取某任务最近一次执行记录."""
        return self.db_manager.last_run(job, outcomes)

    def health_check(self) -> bool:
        """检查数据库连接是否正常"""
        return self.db_manager.health_check()

    async def close(self) -> None:
        """关闭数据库连接"""
        self.db_manager.close()
