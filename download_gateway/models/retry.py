"""
Bounded exponential backoff for idempotent upstream reads.

Delay before attempt k (k >= 2) is ``initial_delay * backoff_multiplier ** (k - 2)``.
With the defaults (4 attempts, 1s, x2) the schedule is 1s, 2s, 4s.

Only `UpstreamTransientError` is retried. Every other exception, including
`asyncio.CancelledError`, leaves the loop immediately.
"""
import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger as l
from pydantic import Field

from .base import FrozenModelBase
from .exceptions import UpstreamTransientError
from .field_types import NonNegativeFloat, PositiveInt

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class RetryPolicy(FrozenModelBase):
    """Process-wide retry configuration."""
    max_attempts: PositiveInt = 4
    """Total attempts, including the first one"""
    initial_delay: NonNegativeFloat = 1.0
    """Seconds to wait before the second attempt"""
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    """Growth factor applied to each following delay"""

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt."""
        if attempt < 2:
            return 0.0
        return self.initial_delay * self.backoff_multiplier ** (attempt - 2)

    def schedule(self) -> list[float]:
        """Every delay the policy can produce, in order."""
        return [self.delay_before(attempt) for attempt in range(2, self.max_attempts + 1)]


class BackoffRetrier:
    """
    Runs an idempotent async operation until it succeeds, fails permanently,
    or exhausts the policy.

    The retrier keeps no per-call state, so one instance is shared by all
    concurrent requests.
    """

    def __init__(self, policy: RetryPolicy, sleep: SleepFunc = asyncio.sleep):
        self.policy = policy
        self._sleep = sleep

    async def execute(self, operation: Callable[[], Awaitable[T]], description: str = "operation") -> T:
        """
        Runs ``operation`` under the retry policy.

        Raises the last `UpstreamTransientError` unchanged once attempts are
        exhausted; any other exception propagates from the attempt that raised it.
        """
        attempt = 1
        while True:
            try:
                return await operation()
            except UpstreamTransientError as e:
                if attempt >= self.policy.max_attempts:
                    l.warning(
                        f"{description}: giving up after {attempt} attempt(s): "
                        f"{type(e).__name__}: {e.message}"
                    )
                    raise
                attempt += 1
                delay = self.policy.delay_before(attempt)
                l.warning(
                    f"{description}: attempt {attempt - 1}/{self.policy.max_attempts} failed "
                    f"({type(e).__name__}: {e.message}), retrying in {delay:.2f}s"
                )
                await self._sleep(delay)
