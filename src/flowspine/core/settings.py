"""Shared settings for flow-spine.

``FlowSpineSettings`` holds everything the flow pipeline needs to know
about its environment: where the analytic store and cache live, how long
cache entries survive, and the knobs of the aggregation itself (top-N
size, retry budget, fan-out width, request deadline).

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads ``FLOWSPINE_*`` env vars and ``.env``
    - **Sensible defaults:** In-memory cache and local SQLite out of the box

Examples:
    >>> from flowspine.core.settings import FlowSpineSettings
    >>> s = FlowSpineSettings(top_n=10)
    >>> s.top_n
    10

Tags:
    settings, configuration, pydantic, environment, flow-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlowSpineSettings(BaseSettings):
    """Settings shared by the API, the CLI and the flow pipeline.

    Fields
    ──────
    host / port            : Bind address for the HTTP transport
    debug / log_level      : Observability knobs
    database_url           : SQLAlchemy URL of the analytic store
    redis_url              : Redis URL; ``None`` → in-process cache
    cache_key_prefix       : Prefix of every cache key
    cache_period_seconds   : Length of the cache period (entries expire at its end)
    orderflow_table        : Flow table for the orderflow taxonomy
    liquidity_table        : Flow table for the liquidity taxonomy
    top_n                  : Labels kept per column before the "Other" bucket
    fetch_*                : Retry budget and fan-out width of Phase 1
    request_timeout_seconds: Deadline for all fetches of one request
    palette                : Label → color overrides
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 12100

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: str = "INFO"

    # ── Analytic store ───────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///flowspine.db",
        description="SQLAlchemy URL of the analytic store",
    )
    orderflow_table: str = "orderflow.prodof_aggregated"
    liquidity_table: str = "orderflow.prodlq_aggregated"

    # ── Cache ────────────────────────────────────────────────────
    redis_url: str | None = Field(default=None, description="Redis URL; unset → in-memory cache")
    cache_key_prefix: str = "sql:"
    cache_period_seconds: int = Field(default=3600, ge=1)

    # ── Aggregation ──────────────────────────────────────────────
    top_n: int = Field(default=20, ge=1)
    fetch_max_attempts: int = Field(default=3, ge=1)
    fetch_retry_delay_seconds: float = Field(default=0.1, ge=0)
    fetch_max_concurrency: int = Field(default=16, ge=1)
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # ── Presentation ─────────────────────────────────────────────
    palette: dict[str, str] = Field(
        default_factory=dict,
        description="Label → color overrides merged over the built-in palette",
    )
