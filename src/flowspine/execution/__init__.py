"""Concurrency and resilience helpers: async fan-out and bounded retry."""

from flowspine.execution.async_batch import AsyncBatchExecutor, AsyncBatchItem, AsyncBatchResult
from flowspine.execution.retry import ConstantBackoff, RetryContext, RetryStrategy

__all__ = [
    "AsyncBatchExecutor",
    "AsyncBatchItem",
    "AsyncBatchResult",
    "ConstantBackoff",
    "RetryContext",
    "RetryStrategy",
]
