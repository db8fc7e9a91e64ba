"""重试机制实现，包括指数退避重试."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from feargreed.core.exceptions import TransportError

T = TypeVar("T")


class RetryState(Enum):
    """重试状态."""

    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _retryable_transport(exc: BaseException) -> bool:
    return isinstance(exc, TransportError) and exc.retryable


@dataclass
class RetryConfig:
    """重试配置."""

    max_attempts: int = 3  # 最大尝试次数
    base_delay: float = 1.0  # 基础延迟时间(秒)
    max_delay: float = 30.0  # 最大延迟时间(秒)
    exponential_base: float = 2.0  # 指数基数
    jitter: bool = True  # 是否添加随机抖动
    should_retry: Callable[[BaseException], bool] = field(default=_retryable_transport)


class ExponentialBackoffRetry:
    """指数退避重试实现."""

    def __init__(self, config: RetryConfig | None = None, *, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config or RetryConfig()
        self.attempt_count = 0
        self.total_delay = 0.0
        self.state = RetryState.READY
        self.last_exception: Exception | None = None
        self._sleep = sleep

    async def execute(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """执行函数，应用重试逻辑.

        Args:
            func: 要执行的函数
            *args: 函数参数
            **kwargs: 函数关键字参数

        Returns:
            函数返回结果

        Raises:
            Exception: 不可重试或所有尝试都失败时抛出最后的异常
        """
        attempts = 0
        total_delay = 0.0

        while True:
            attempts += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                if not self.config.should_retry(e) or attempts >= self.config.max_attempts:
                    self._publish(RetryState.FAILED, attempts, total_delay, e)
                    raise

                delay = self._calculate_delay(attempts - 1)
                await self._sleep(delay)
                total_delay += delay
            else:
                self._publish(RetryState.COMPLETED, attempts, total_delay, None)
                return result

    def _publish(self, state: RetryState, attempts: int, total_delay: float, exc: Exception | None) -> None:
        # 同一实例可被并发调用，统计只在调用结束时整体写入
        self.state = state
        self.attempt_count = attempts
        self.total_delay = total_delay
        self.last_exception = exc

    def _calculate_delay(self, attempt_number: int) -> float:
        """计算延迟时间.

        Args:
            attempt_number: 重试次数(从0开始)

        Returns:
            延迟时间(秒)
        """
        if attempt_number < 0:
            return 0.0

        delay = self.config.base_delay * (self.config.exponential_base**attempt_number)

        if self.config.jitter:
            jitter_range = min(delay * 0.1, 1.0)  # 最多10%的抖动
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.0, min(delay, self.config.max_delay))

    def get_stats(self) -> dict[str, Any]:
        """获取重试统计信息."""
        return {
            "attempts": self.attempt_count,
            "max_attempts": self.config.max_attempts,
            "total_delay": self.total_delay,
            "state": self.state.value,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }


__all__ = ["ExponentialBackoffRetry", "RetryConfig", "RetryState"]
