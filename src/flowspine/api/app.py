"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root — all middleware,
    routers, and lifecycle hooks are wired here so the rest of the
    codebase never touches ``FastAPI`` directly.

Tags:
    flow-spine, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowspine.api.deps import get_settings
from flowspine.api.middleware.errors import unhandled_exception_handler
from flowspine.api.middleware.request_id import RequestIDMiddleware
from flowspine.api.middleware.timing import TimingMiddleware
from flowspine.api.settings import FlowSpineAPISettings
from flowspine.core.health import cache_check, create_health_router, store_check
from flowspine.core.logging import get_logger
from flowspine.core.store import AnalyticStore, SqlAlchemyStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup / shutdown hooks."""
    log = get_logger("flowspine.api")
    log.info("api.starting", version=app.version, prefix=app.state.settings.api_prefix)

    yield

    app.state.store.close()
    log.info("api.stopped")


def create_app(
    *,
    settings: FlowSpineAPISettings | None = None,
    store: AnalyticStore | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : FlowSpineAPISettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    store : AnalyticStore | None
        Override the analytic store.  When ``None`` a
        :class:`SqlAlchemyStore` is opened on ``settings.database_url``.
    """

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings and the store on app state for middleware and deps
    app.state.settings = settings
    app.state.store = store or SqlAlchemyStore(settings.database_url)

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from flowspine.api.routers import flows

    # Health endpoints at root level (no prefix) for container healthchecks
    app.include_router(
        create_health_router(
            "flow-spine",
            version=settings.api_version,
            checks=[
                store_check(app.state.store),
                cache_check(settings.redis_url),
            ],
        ),
    )

    app.include_router(flows.router, prefix=settings.api_prefix, tags=["flows"])

    return app
