"""Tests for flowspine.execution.retry — bounded constant backoff."""

from __future__ import annotations

import pytest

from flowspine.core.errors import QueryError, ValidationError, is_retryable
from flowspine.execution.retry import ConstantBackoff, RetryContext


class Flaky:
    """Async callable failing a fixed number of times before succeeding."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or QueryError("reset")
        self.calls = 0

    async def __call__(self, value: str = "ok") -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return value


class TestConstantBackoff:
    def test_delay_is_constant(self):
        s = ConstantBackoff(delay=0.1)
        assert s.next_delay(0) == s.next_delay(5) == 0.1

    def test_attempt_budget(self):
        s = ConstantBackoff(max_attempts=3)
        assert s.should_retry(1)
        assert s.should_retry(2)
        assert not s.should_retry(3)

    def test_retry_if_predicate(self):
        s = ConstantBackoff(max_attempts=3, retry_if=is_retryable)
        assert s.should_retry(1, QueryError("x"))
        assert not s.should_retry(1, ValidationError("x"))


class TestRetryContext:
    @pytest.mark.asyncio
    async def test_succeeds_first_try(self):
        fn = Flaky(0)
        ctx = RetryContext(ConstantBackoff(delay=0))
        assert await ctx.run_async(fn, "rows") == "rows"
        assert ctx.attempts == 1

    @pytest.mark.asyncio
    async def test_recovers_within_budget(self):
        fn = Flaky(2)
        ctx = RetryContext(ConstantBackoff(max_attempts=3, delay=0))
        assert await ctx.run_async(fn) == "ok"
        assert ctx.attempts == 3
        assert len(ctx.errors) == 2

    @pytest.mark.asyncio
    async def test_exhaustion_raises_last_error(self):
        fn = Flaky(5)
        ctx = RetryContext(ConstantBackoff(max_attempts=3, delay=0))
        with pytest.raises(QueryError):
            await ctx.run_async(fn)
        assert fn.calls == 3
        assert ctx.attempts == 3

    @pytest.mark.asyncio
    async def test_non_retryable_stops_immediately(self):
        fn = Flaky(5, error=ValidationError("bad"))
        ctx = RetryContext(ConstantBackoff(max_attempts=3, delay=0, retry_if=is_retryable))
        with pytest.raises(ValidationError):
            await ctx.run_async(fn)
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        seen = []
        ctx = RetryContext(
            ConstantBackoff(max_attempts=3, delay=0),
            on_retry=lambda attempt, exc, delay: seen.append((attempt, delay)),
        )
        await ctx.run_async(Flaky(2))
        assert seen == [(1, 0), (2, 0)]
