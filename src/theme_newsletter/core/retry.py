"""Retry policy shared by the search and batch-send call sites."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from theme_newsletter.core.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LINEAR = "linear"
EXPONENTIAL = "exponential"

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with a backoff between attempts.

    `max_attempts` counts the first call. Delays are in seconds:

    * linear: ``base_delay * attempt`` (1s, 2s, ...)
    * exponential: ``base_delay * 2 ** (attempt - 1)`` (1s, 2s, 4s, ...)

    where `attempt` is the 1-based number of the attempt that just failed.
    """

    max_attempts: int
    base_delay: float = 1.0
    strategy: str = LINEAR

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.strategy not in (LINEAR, EXPONENTIAL):
            raise ValueError(f"Unknown backoff strategy: {self.strategy}")

    @classmethod
    def linear(cls, max_attempts: int, base_delay: float = 1.0) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, base_delay=base_delay, strategy=LINEAR)

    @classmethod
    def exponential(cls, max_attempts: int, base_delay: float = 1.0) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, base_delay=base_delay, strategy=EXPONENTIAL)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt."""
        if self.strategy == EXPONENTIAL:
            return self.base_delay * (2 ** (attempt - 1))
        return self.base_delay * attempt

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        retry_if: Callable[[Exception], bool] = lambda e: True,
        sleep: Optional[Sleep] = None,
        label: str = "operation",
        delay_hint: Callable[[Exception], Optional[float]] = lambda e: None,
    ) -> T:
        """Run `operation` until it succeeds or attempts run out.

        Exceptions rejected by `retry_if` propagate unchanged. `delay_hint`
        may return a delay requested by the failure itself (e.g. a
        Retry-After header), which replaces the backoff delay.

        Raises:
            RetryExhaustedError: after the last attempt failed.
        """
        sleep = sleep or asyncio.sleep
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as e:
                if not retry_if(e):
                    raise
                last_error = e
                logger.info("%s attempt %d/%d failed: %s", label, attempt, self.max_attempts, e)
                if attempt < self.max_attempts:
                    hinted = delay_hint(e)
                    await sleep(self.delay_for(attempt) if hinted is None else hinted)

        assert last_error is not None
        raise RetryExhaustedError(self.max_attempts, last_error)
