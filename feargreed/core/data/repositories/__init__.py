"""数据存储仓储模式实现."""

from feargreed.core.data.repositories.base import Repository
from feargreed.core.data.repositories.index import IndexRepository

__all__ = ["IndexRepository", "Repository"]
