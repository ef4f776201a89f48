"""
Shared pytest fixtures and configuration for flow-spine tests.

This module provides:
- Settings pointing at a throwaway SQLite database
- A fresh in-memory cache per test
- Small fixed taxonomies for pipeline tests
"""

import sys
from pathlib import Path

import pytest

# Ensure flowspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from flowspine.core.cache import InMemoryCache
from flowspine.core.settings import FlowSpineSettings
from flowspine.flow.columns import Taxonomy


@pytest.fixture
def cache() -> InMemoryCache:
    """Isolated in-memory cache."""
    return InMemoryCache()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'flows.db'}"


@pytest.fixture
def settings(sqlite_url: str) -> FlowSpineSettings:
    """Settings with fast retries and plain table names SQLite accepts."""
    return FlowSpineSettings(
        database_url=sqlite_url,
        orderflow_table="prodof_aggregated",
        liquidity_table="prodlq_aggregated",
        fetch_retry_delay_seconds=0,
        redis_url=None,
    )


@pytest.fixture
def two_columns() -> Taxonomy:
    """The smallest useful taxonomy: A → B."""
    return Taxonomy(name="test", table="flows", columns=("a", "b"))


@pytest.fixture
def three_columns() -> Taxonomy:
    return Taxonomy(name="test", table="flows", columns=("frontend", "solver", "builder"))
