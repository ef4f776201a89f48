"""
Cache-aside fetcher for planned queries.

Every query of a request goes through :class:`CacheAsideFetcher`: look the
normalized query up in the cache, and on a miss run it against the
analytic store and write the rows back with the request's shared expiry.

Manifesto:
    - **Bounded retry:** store failures get a fixed attempt budget
    - **Explicit outcome:** exhaustion yields ``FetchOutcome.available=False``
      rather than an exception or an empty-but-successful result
    - **Settle-all join:** ``fetch_all`` waits for every query; one failure
      never cancels its siblings
    - **Ordered results:** outcomes come back in the order queries were given

Architecture:
    ::

        fetch_all(queries)
            │  AsyncBatchExecutor (semaphore-bounded gather)
            ▼
        fetch(query) ──► cache.get(key) ── hit ──► FetchOutcome(from_cache)
                              │ miss / read error
                              ▼
                   RetryContext(ConstantBackoff).run_async(
                       to_thread(store.execute, text, params))
                              │ ok                     │ exhausted
                              ▼                        ▼
                   cache.set(key, rows, expire_at)   FetchOutcome(available=False)
                              ▼
                   FetchOutcome(rows)

    Blocking cache and store calls run in worker threads so the event loop
    keeps issuing the rest of the fan-out.

Tags:
    cache-aside, retry, asyncio, fan-out, flow-spine

Doc-Types:
    - API Reference
    - Architecture Guide
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from flowspine.core.cache import CacheBackend
from flowspine.core.errors import is_retryable
from flowspine.core.logging import get_logger
from flowspine.core.store import AnalyticStore
from flowspine.execution.async_batch import AsyncBatchExecutor
from flowspine.execution.retry import ConstantBackoff, RetryContext
from flowspine.flow.planner import PlannedQuery

logger = get_logger(__name__)


@dataclass
class FetchOutcome:
    """Result of fetching one query.

    ``available`` is False only when every attempt failed; ``rows`` is
    then empty and ``error`` carries the last failure.
    """

    query: PlannedQuery
    rows: list[dict[str, Any]] = field(default_factory=list)
    available: bool = True
    from_cache: bool = False
    attempts: int = 0
    error: str | None = None

    @classmethod
    def unavailable(cls, query: PlannedQuery, error: str, attempts: int) -> FetchOutcome:
        return cls(query=query, available=False, attempts=attempts, error=error)


class CacheAsideFetcher:
    """Get-or-compute-and-store over a cache backend and an analytic store.

    One instance serves one request: ``expire_at`` is the absolute expiry
    shared by every entry it writes.
    """

    def __init__(
        self,
        store: AnalyticStore,
        cache: CacheBackend,
        *,
        expire_at: int,
        key_prefix: str = "sql:",
        max_attempts: int = 3,
        retry_delay: float = 0.1,
        max_concurrency: int = 16,
    ):
        self._store = store
        self._cache = cache
        self._expire_at = expire_at
        self._key_prefix = key_prefix
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._max_concurrency = max_concurrency

    @property
    def expire_at(self) -> int:
        return self._expire_at

    async def fetch(self, query: PlannedQuery) -> FetchOutcome:
        """Fetch one query; never raises for I/O failures."""
        key = query.cache_key(self._key_prefix)

        cached = await self._read_cache(key, query)
        if cached is not None:
            logger.debug("flow.fetch.cache_hit", query=query.name)
            return FetchOutcome(query=query, rows=cached, from_cache=True)

        ctx = RetryContext(
            ConstantBackoff(
                max_attempts=self._max_attempts,
                delay=self._retry_delay,
                retry_if=is_retryable,
            ),
            on_retry=lambda attempt, exc, delay: logger.warning(
                "flow.fetch.retry",
                query=query.name,
                attempt=attempt,
                error=str(exc),
                delay=delay,
            ),
        )
        try:
            rows = await ctx.run_async(
                asyncio.to_thread, self._store.execute, query.text, query.params
            )
        except Exception as exc:
            logger.error(
                "flow.fetch.unavailable",
                query=query.name,
                attempts=ctx.attempts,
                error=str(exc),
            )
            return FetchOutcome.unavailable(query, str(exc), ctx.attempts)

        await self._write_cache(key, rows, query)
        logger.debug("flow.fetch.cache_miss", query=query.name, rows=len(rows))
        return FetchOutcome(query=query, rows=rows, attempts=ctx.attempts)

    async def fetch_all(self, queries: Sequence[PlannedQuery]) -> list[FetchOutcome]:
        """Fetch every query concurrently; outcomes follow *queries* order."""
        batch = AsyncBatchExecutor(max_concurrency=self._max_concurrency)
        for query in queries:
            batch.add(query.name, self._fetch_item, {"query": query})

        result = await batch.run_all()

        return [
            outcome
            if outcome is not None
            else FetchOutcome.unavailable(query, item.error or "failed", 0)
            for query, item, outcome in zip(queries, result.items, result.results())
        ]

    async def _fetch_item(self, params: dict[str, Any]) -> FetchOutcome:
        return await self.fetch(params["query"])

    async def _read_cache(self, key: str, query: PlannedQuery) -> list[dict[str, Any]] | None:
        try:
            return await asyncio.to_thread(self._cache.get, key)
        except Exception as exc:
            # A broken cache degrades to a miss; the store is still authoritative
            logger.warning("flow.fetch.cache_read_failed", query=query.name, error=str(exc))
            return None

    async def _write_cache(self, key: str, rows: list[dict[str, Any]], query: PlannedQuery) -> None:
        try:
            await asyncio.to_thread(self._cache.set, key, rows, expire_at=self._expire_at)
        except Exception as exc:
            logger.warning("flow.fetch.cache_write_failed", query=query.name, error=str(exc))


__all__ = ["CacheAsideFetcher", "FetchOutcome"]
