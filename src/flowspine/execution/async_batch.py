"""Async Batch Executor — asyncio fan-out for parallel I/O-bound work.

WHY
───
Building one flow graph needs one query per column plus one per column
pair — 21 queries for six columns.  They are independent, so they are all
issued at once on the event loop and joined with a settle-all barrier:
the batch finishes when every item has either completed or failed, and a
failing item never cancels its siblings.

ARCHITECTURE
────────────
::

    AsyncBatchExecutor
      ├── .add(name, coroutine, params)  ─ enqueue work item
      ├── .run_all()                     ─ asyncio.gather + semaphore
      └── AsyncBatchResult               ─ items in insertion order

Results are read back from ``AsyncBatchResult.items``, which keeps the
order in which items were added regardless of completion order.

Example::

    batch = AsyncBatchExecutor(max_concurrency=16)
    batch.add("labels:solver", fetch, {"query": q1})
    batch.add("pair:solver->builder", fetch, {"query": q2})
    result = await batch.run_all()
    print(result.succeeded, result.failed)  # 2 0
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from flowspine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class AsyncBatchItem:
    """A single item in an async batch."""

    name: str
    handler: Callable[..., Coroutine[Any, Any, Any]]
    params: dict[str, Any] = field(default_factory=dict)
    status: str = "pending"
    result: Any = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Wall-clock duration if both timestamps are set."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class AsyncBatchResult:
    """Aggregate result of running an async batch."""

    batch_id: str
    items: list[AsyncBatchItem]
    started_at: datetime
    completed_at: datetime

    @property
    def succeeded(self) -> int:
        """Number of items that completed successfully."""
        return sum(1 for i in self.items if i.status == "completed")

    @property
    def failed(self) -> int:
        """Number of items that failed."""
        return sum(1 for i in self.items if i.status == "failed")

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the entire batch."""
        return (self.completed_at - self.started_at).total_seconds()

    def results(self) -> list[Any]:
        """Item results in insertion order (``None`` for failed items)."""
        return [i.result for i in self.items]


class AsyncBatchExecutor:
    """Async batch executor with semaphore-bounded concurrency.

    Parameters
    ----------
    max_concurrency : int
        Maximum simultaneous coroutines (default 10).
    """

    def __init__(self, max_concurrency: int = 10) -> None:
        self._max_concurrency = max_concurrency
        self._items: list[AsyncBatchItem] = []
        self._batch_id = str(uuid.uuid4())

    # ── Building ─────────────────────────────────────────────────────

    def add(
        self,
        name: str,
        handler: Callable[..., Coroutine[Any, Any, Any]],
        params: dict[str, Any] | None = None,
    ) -> AsyncBatchExecutor:
        """Add an item to the batch.

        Args:
            name: Human-readable name for this item.
            handler: Async callable ``(params) -> result``.
            params: Dict of parameters passed to the handler.

        Returns:
            ``self`` for fluent chaining.
        """
        self._items.append(
            AsyncBatchItem(
                name=name,
                handler=handler,
                params=params or {},
            )
        )
        return self

    # ── Execution ────────────────────────────────────────────────────

    async def run_all(self) -> AsyncBatchResult:
        """Execute all items concurrently, bounded by ``max_concurrency``.

        Returns:
            :class:`AsyncBatchResult` once every item has settled.
        """
        sem = asyncio.Semaphore(self._max_concurrency)
        started_at = datetime.now(UTC)

        logger.debug(
            "async_batch.start",
            batch_id=self._batch_id,
            items=len(self._items),
            max_concurrency=self._max_concurrency,
        )

        async def _run_one(item: AsyncBatchItem) -> AsyncBatchItem:
            async with sem:
                item.started_at = datetime.now(UTC)
                item.status = "running"
                try:
                    item.result = await item.handler(item.params)
                    item.status = "completed"
                except Exception as e:
                    item.status = "failed"
                    item.error = str(e)
                    logger.warning(
                        "async_batch.item_failed",
                        batch_id=self._batch_id,
                        name=item.name,
                        error=str(e),
                    )
                item.completed_at = datetime.now(UTC)
                return item

        await asyncio.gather(*[_run_one(item) for item in self._items])

        completed_at = datetime.now(UTC)
        result = AsyncBatchResult(
            batch_id=self._batch_id,
            items=self._items,
            started_at=started_at,
            completed_at=completed_at,
        )

        logger.debug(
            "async_batch.complete",
            batch_id=self._batch_id,
            succeeded=result.succeeded,
            failed=result.failed,
            duration_seconds=result.duration_seconds,
        )

        return result

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def item_count(self) -> int:
        """Number of items queued."""
        return len(self._items)

    @property
    def batch_id(self) -> str:
        return self._batch_id
