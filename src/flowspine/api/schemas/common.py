"""
Common API schemas — the success envelope and the error body.

Response Envelope Conventions:
    - All 2xx responses use ``SuccessResponse[T]``
    - All 4xx/5xx responses use ``ErrorResponse`` (``{"error": "..."}``)
    - ``elapsed_ms`` tracks server-side processing time
    - ``warnings`` contains non-fatal issues to display to users

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """Error envelope for all non-2xx responses.

    UI Hints:
        Display ``error`` verbatim; it is written for humans.

    Example:
        {"error": "Unknown column(s) for orderflow: pool"}
    """

    error: str = Field(description="Human-readable error message")


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope.

    UI Hints:
        Extract ``data`` for display content.
        Show ``warnings`` as toast notifications if present.
        Use ``elapsed_ms`` for performance monitoring.
    """

    data: T = Field(description="Response payload (type varies by endpoint)")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings to display to users",
    )
