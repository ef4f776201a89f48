"""
Error-handling middleware — maps failures to ``{"error": message}`` bodies.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from flowspine.api.schemas.common import ErrorResponse
from flowspine.core.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."


def error_response(*, status: int, message: str) -> JSONResponse:
    """Build an error JSON response."""
    return JSONResponse(status_code=status, content=ErrorResponse(error=message).model_dump())


def public_message(request: Request, exc: Exception) -> str:
    """Exception text in debug mode, a generic message otherwise."""
    return str(exc) if request.app.state.settings.debug else GENERIC_ERROR_MESSAGE


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — returns 500."""
    logger.exception("api.unhandled_exception", path=request.url.path, error=str(exc))
    return error_response(status=500, message=public_message(request, exc))
