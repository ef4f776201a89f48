"""Health check utilities for flow-spine.

Provides:

- **Response models** — ``HealthResponse``, ``CheckResult``, ``LivenessResponse``.
- **``HealthCheck``** — a declarative description of a single dependency
  check (analytic store, cache) with ``required`` / ``timeout_s`` knobs.
- **``create_health_router()``** — three K8s-style endpoints: ``/health``,
  ``/health/ready``, ``/health/live``.
- **``store_check`` / ``cache_check``** — ready-made checks for the two
  collaborators a flow graph depends on.

Quick start::

    from flowspine.core.health import cache_check, create_health_router, store_check

    router = create_health_router(
        service_name="flow-spine",
        version="0.1.0",
        checks=[
            store_check(store),
            cache_check(settings.redis_url, required=False),
        ],
    )
    app.include_router(router)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from flowspine.core.cache import RedisCache
from flowspine.core.store import AnalyticStore

# Module-level start time — set when the service first imports this module.
_START_TIME = time.monotonic()


# ── Response Models ──────────────────────────────────────────────────────


class CheckResult(BaseModel):
    """Result of a single dependency health check."""

    status: Literal["healthy", "degraded", "unhealthy"]
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health response envelope returned from ``GET /health``.

    Fields
    ──────
    status    : ``healthy`` | ``degraded`` | ``unhealthy``
    service   : Human-readable service name
    version   : Semver string
    uptime_s  : Seconds since startup
    timestamp : ISO-8601 UTC
    checks    : Per-dependency breakdown (name → CheckResult)
    """

    status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
    service: str = ""
    version: str = ""
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    checks: dict[str, CheckResult] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Response for liveness probes — always returns ``{"status": "alive"}``."""

    status: str = "alive"


# ── Health Check Definition ──────────────────────────────────────────────


@dataclass
class HealthCheck:
    """Declarative description of a single dependency health check.

    Parameters
    ----------
    name : str
        Dependency name (e.g. ``"store"``, ``"cache"``).
    check_fn : () -> Awaitable[bool]
        Async callable.  Should return ``True`` or raise on failure.
    required : bool
        If *True* (default), failure makes the overall status ``unhealthy``.
        If *False*, failure only causes ``degraded``.
    timeout_s : float
        Max seconds to wait before the check is considered failed.
    """

    name: str
    check_fn: Callable[[], Awaitable[bool]]
    required: bool = True
    timeout_s: float = 5.0


def store_check(store: AnalyticStore, *, required: bool = True) -> HealthCheck:
    """Check that the analytic store answers ``SELECT 1``."""

    async def _check() -> bool:
        return await asyncio.to_thread(store.ping)

    return HealthCheck("store", _check, required=required)


def cache_check(redis_url: str | None, *, required: bool = False) -> HealthCheck:
    """Check the Redis cache, or report the in-process cache as healthy."""

    def _ping() -> bool:
        if not redis_url:
            return True
        cache = RedisCache(redis_url)
        try:
            return cache.ping()
        finally:
            cache.close()

    async def _check() -> bool:
        return await asyncio.to_thread(_ping)

    return HealthCheck("cache", _check, required=required)


# ── Internal helpers ─────────────────────────────────────────────────────


async def _run_checks(checks: list[HealthCheck]) -> dict[str, CheckResult]:
    """Execute all checks in parallel and return a mapping of name → result."""

    async def _one(hc: HealthCheck) -> tuple[str, CheckResult]:
        start = time.monotonic()
        try:
            await asyncio.wait_for(hc.check_fn(), timeout=hc.timeout_s)
            elapsed = (time.monotonic() - start) * 1000
            return hc.name, CheckResult(status="healthy", latency_ms=round(elapsed, 2))
        except TimeoutError:
            return hc.name, CheckResult(status="unhealthy", error="timeout")
        except Exception as exc:  # noqa: BLE001
            elapsed = (time.monotonic() - start) * 1000
            return hc.name, CheckResult(
                status="unhealthy",
                latency_ms=round(elapsed, 2),
                error=str(exc)[:200],
            )

    pairs = await asyncio.gather(*[_one(hc) for hc in checks])
    return dict(pairs)


def _compute_status(
    check_results: dict[str, CheckResult],
    checks: list[HealthCheck],
) -> Literal["healthy", "degraded", "unhealthy"]:
    """Derive aggregate status from individual check results."""
    check_map = {hc.name: hc for hc in checks}
    any_required_down = False
    any_optional_down = False

    for name, result in check_results.items():
        if result.status != "healthy":
            hc = check_map.get(name)
            if hc and hc.required:
                any_required_down = True
            else:
                any_optional_down = True

    if any_required_down:
        return "unhealthy"
    if any_optional_down:
        return "degraded"
    return "healthy"


# ── Router Factory ───────────────────────────────────────────────────────


def create_health_router(
    service_name: str,
    version: str,
    checks: list[HealthCheck] | None = None,
    prefix: str = "/health",
) -> APIRouter:
    """Create a FastAPI ``APIRouter`` with health endpoints.

    Endpoints created
    -----------------
    ``GET {prefix}``         Primary health — runs all checks.
    ``GET {prefix}/ready``   Readiness probe — 503 if any dependency is down.
    ``GET {prefix}/live``    Liveness probe — always 200.
    """
    router = APIRouter(tags=["health"])
    _checks: list[HealthCheck] = checks or []

    def _make_response(
        status: Literal["healthy", "degraded", "unhealthy"],
        check_results: dict[str, CheckResult],
    ) -> HealthResponse:
        return HealthResponse(
            status=status,
            service=service_name,
            version=version,
            checks=check_results,
        )

    @router.get(prefix, response_model=HealthResponse)
    async def health() -> JSONResponse:
        """Primary health — runs all dependency checks."""
        check_results = await _run_checks(_checks)
        status = _compute_status(check_results, _checks)
        body = _make_response(status, check_results)
        code = 503 if status == "unhealthy" else 200
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/ready", response_model=HealthResponse)
    async def readiness() -> JSONResponse:
        """Readiness probe — 503 if any dependency is down."""
        check_results = await _run_checks(_checks)
        status = _compute_status(check_results, _checks)
        code = 503 if status != "healthy" else 200
        body = _make_response(status, check_results)
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/live", response_model=LivenessResponse)
    async def liveness() -> LivenessResponse:
        """Liveness probe — always 200 if the process is running."""
        return LivenessResponse()

    return router


__all__ = [
    "CheckResult",
    "HealthCheck",
    "HealthResponse",
    "LivenessResponse",
    "cache_check",
    "create_health_router",
    "store_check",
]
