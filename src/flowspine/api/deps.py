"""
FastAPI dependency injection — shared singletons and per-request factories.

Usage in routers::

    from flowspine.api.deps import Cache, Settings, Store

    @router.get("/sankey")
    async def sankey(settings: Settings, store: Store, cache: Cache):
        ...

Manifesto:
    Dependency injection keeps routers thin.  Singletons (settings, the
    analytic store's connection pool) are created once; the cache
    connection is per request and always released.

Tags:
    flow-spine, api, dependency-injection, singletons

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from flowspine.api.settings import FlowSpineAPISettings
from flowspine.core.cache import CacheBackend, create_cache
from flowspine.core.store import AnalyticStore

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> FlowSpineAPISettings:
    """Cached settings — loaded once per process."""
    return FlowSpineAPISettings()


# ── Analytic store (per app) ─────────────────────────────────────────────


def get_store(request: Request) -> AnalyticStore:
    """The store created by :func:`~flowspine.api.app.create_app`."""
    return request.app.state.store


# ── Cache (per-request) ──────────────────────────────────────────────────


def get_cache(
    settings: Annotated[FlowSpineAPISettings, Depends(get_settings)],
) -> Generator[CacheBackend, None, None]:
    """Yield a cache connection for the request lifespan."""
    cache = create_cache(settings.redis_url)
    try:
        yield cache
    finally:
        cache.close()


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[FlowSpineAPISettings, Depends(get_settings)]
Store = Annotated[AnalyticStore, Depends(get_store)]
Cache = Annotated[CacheBackend, Depends(get_cache)]
