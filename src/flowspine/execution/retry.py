"""Bounded retry strategies for flaky I/O.

Every fetch against the analytic store or the cache gets a fixed attempt
budget.  When the budget is spent the last error is raised to the caller,
which turns it into an explicit "unavailable" outcome instead of retrying
forever.

Example:
    >>> from flowspine.execution.retry import ConstantBackoff, RetryContext
    >>>
    >>> ctx = RetryContext(ConstantBackoff(max_attempts=3, delay=0.1))
    >>> rows = await ctx.run_async(fetch_rows, query)
    >>> ctx.attempts
    1
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

T = TypeVar("T")


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the attempt following *attempt*."""
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Return True if another attempt may follow attempt number *attempt*.

        Args:
            attempt: Number of attempts made so far (1 = first call failed)
            error: The exception that caused the failure
        """
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Fixed delay between a bounded number of attempts.

    Attributes:
        max_attempts: Total calls allowed, including the first one
        delay: Seconds to wait between attempts
        retry_if: Predicate deciding whether an error is worth retrying
            (``None`` → every error is)
    """

    max_attempts: int = 3
    delay: float = 0.1
    retry_if: Callable[[Exception], bool] | None = None

    def next_delay(self, attempt: int) -> float:
        return self.delay

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        if attempt >= self.max_attempts:
            return False

        if error is not None and self.retry_if is not None:
            return self.retry_if(error)

        return True


@dataclass
class RetryContext:
    """Context tracking retry state for one operation.

    Example:
        >>> ctx = RetryContext(ConstantBackoff(max_attempts=3))
        >>> result = await ctx.run_async(call_api)
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    started_at: datetime = field(default_factory=utcnow, init=False)
    errors: list[tuple[int, Exception, datetime]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    @property
    def elapsed_seconds(self) -> float:
        """Total elapsed time since the context was created."""
        return (utcnow() - self.started_at).total_seconds()

    async def run_async(
        self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any
    ) -> T:
        """Await *func* until it succeeds or the strategy gives up.

        Raises:
            The last exception once no further retry is allowed.
        """
        while True:
            self.attempt += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append((self.attempt, e, utcnow()))

                if not self.strategy.should_retry(self.attempt, e):
                    raise

                delay = self.strategy.next_delay(self.attempt - 1)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                await asyncio.sleep(delay)
