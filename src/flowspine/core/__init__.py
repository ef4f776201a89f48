"""Core primitives for flow-spine: errors, logging, settings, cache, store."""

from flowspine.core.cache import CacheBackend, InMemoryCache, RedisCache, create_cache
from flowspine.core.errors import (
    CacheError,
    ConfigError,
    DeadlineExceededError,
    FlowSpineError,
    QueryError,
    TransientError,
    ValidationError,
)
from flowspine.core.logging import configure_logging, get_logger
from flowspine.core.settings import FlowSpineSettings

__all__ = [
    "CacheBackend",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    "CacheError",
    "ConfigError",
    "DeadlineExceededError",
    "FlowSpineError",
    "QueryError",
    "TransientError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "FlowSpineSettings",
]
