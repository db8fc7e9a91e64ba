"""仓储抽象基类."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """仓储抽象基类."""

    @abstractmethod
    async def save(self, entity: T) -> T:
        """保存实体并返回持久化后的版本."""

    @abstractmethod
    async def find_by_id(self, entity_id: int) -> T | None:
        """根据ID查找实体."""

    @abstractmethod
    async def close(self) -> None:
        """释放底层资源."""
