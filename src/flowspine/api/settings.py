"""
API-specific settings.

Extends :class:`~flowspine.core.settings.FlowSpineSettings` with parameters
that govern the REST transport (CORS, prefix, OpenAPI metadata).

All values can be overridden via environment variables prefixed with
``FLOWSPINE_``.
"""

from __future__ import annotations

from pydantic import Field

from flowspine import __version__
from flowspine.core.settings import FlowSpineSettings


class FlowSpineAPISettings(FlowSpineSettings):
    """Settings for the flow-spine REST API.

    Order of precedence (highest → lowest):
        1. Environment variables (``FLOWSPINE_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api/v1", description="URL prefix for all endpoints")
    api_title: str = Field(default="flow-spine API", description="OpenAPI title")
    api_version: str = Field(default=__version__, description="OpenAPI version string")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )
