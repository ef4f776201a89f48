"""
Structured error types for flow-spine.

Every failure raised inside flow-spine is a :class:`FlowSpineError` carrying
a category, an explicit retry flag, structured context and the chained
cause.  The flow pipeline relies on the retry flag to decide whether a
failed analytic-store or cache call is worth another attempt, and on the
category to decide whether a failure is isolated to one query or aborts the
whole request.

Manifesto:
    - **Typed Error Hierarchy:** I/O failures and request failures are
      different types, handled at different layers
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the query / column they relate to
    - **Error Chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        FlowSpineError  (category, retryable, context, cause)
        ├── TransientError        retryable, NETWORK
        │   ├── QueryError        analytic store execution (DATABASE)
        │   └── CacheError        cache get/set (STORAGE)
        ├── ValidationError       malformed request input (VALIDATION)
        ├── ConfigError           invalid settings (CONFIG)
        └── DeadlineExceededError request deadline hit (INTERNAL)

Examples:
    >>> error = QueryError("connection reset")
    >>> error.retryable
    True
    >>> error.with_context(query="SELECT 1").context.metadata["query"]
    'SELECT 1'

Tags:
    error-handling, exception-hierarchy, retry-logic, flow-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Infrastructure errors (usually transient)
    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    STORAGE = "STORAGE"

    # Request errors (never retryable)
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"

    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        column: Flow column the failure relates to
        query: Normalized query text that failed
        request_id: Request identifier (from ``X-Request-ID``)
        metadata: Additional key-value pairs
    """

    column: str | None = None
    query: str | None = None
    request_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["column", "query", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FlowSpineError(Exception):
    """
    Base exception for all flow-spine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so callers
    rarely pass them explicitly.

    Examples:
        >>> error = FlowSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FlowSpineError:
        """Add context fields fluently; unknown keys go to ``metadata``.

        Example:
            raise QueryError("Failed").with_context(column="solver")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Retryable)
# =============================================================================


class TransientError(FlowSpineError):
    """Temporary error that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class QueryError(TransientError):
    """Analytic store failed to execute a query."""

    default_category = ErrorCategory.DATABASE


class CacheError(TransientError):
    """Cache backend failed to read or write a key."""

    default_category = ErrorCategory.STORAGE


# =============================================================================
# REQUEST ERRORS (Never retryable)
# =============================================================================


class ValidationError(FlowSpineError):
    """
    Malformed request input.

    Never retryable - the request must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class ConfigError(FlowSpineError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class DeadlineExceededError(FlowSpineError):
    """The request ran past its deadline while fetching data."""

    def __init__(self, timeout: float, operation: str = "flow graph"):
        self.timeout = timeout
        self.operation = operation
        super().__init__(f"Operation '{operation}' timed out after {timeout}s")


def is_retryable(error: Exception) -> bool:
    """Return True if *error* is a retryable FlowSpineError."""
    return isinstance(error, FlowSpineError) and error.retryable


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FlowSpineError",
    "TransientError",
    "QueryError",
    "CacheError",
    "ValidationError",
    "ConfigError",
    "DeadlineExceededError",
    "is_retryable",
]
