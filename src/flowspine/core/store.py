"""
Analytic store access.

The analytic store is an external collaborator: flow-spine only sends it
read-only aggregate queries and reads back rows.  ``AnalyticStore`` is the
contract; :class:`SqlAlchemyStore` fulfils it for any database SQLAlchemy can
reach, always executing parameterized ``text()`` statements so request
values are bound, never interpolated.

Manifesto:
    - **Protocol-based:** the pipeline depends on ``execute`` only
    - **Bound parameters:** SQL text is structural, values travel separately
    - **Typed failures:** driver errors surface as :class:`QueryError`,
      retryable only when the failure is operational (connection, timeout)

Examples:
    >>> store = SqlAlchemyStore("sqlite:///flows.db")
    >>> store.execute("SELECT DISTINCT solver FROM flows WHERE solver = :solver_0",
    ...               {"solver_0": "a"})
    [{'solver': 'a'}]

Tags:
    analytic-store, sqlalchemy, query, flow-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from typing import Any, Protocol

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from flowspine.core.errors import QueryError
from flowspine.core.logging import get_logger

logger = get_logger(__name__)


class AnalyticStore(Protocol):
    """Read-only query execution against the flow tables."""

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run *sql* with bound *params* and return rows as dicts."""
        ...

    def ping(self) -> bool:
        """Return True if the store is reachable; raise otherwise."""
        ...

    def close(self) -> None:
        """Release pooled connections."""
        ...


class SqlAlchemyStore:
    """Analytic store backed by a SQLAlchemy engine.

    The engine (and its pool) is shared by every request of the process;
    each :meth:`execute` checks a connection out and returns it.
    """

    def __init__(self, url: str | None = None, *, engine: Engine | None = None):
        if engine is None and url is None:
            raise ValueError("SqlAlchemyStore needs either a URL or an engine")
        self._engine = engine or create_engine(url, pool_pre_ping=True)

    @property
    def engine(self) -> Engine:
        return self._engine

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                result = conn.execute(text(sql), params or {})
                return [dict(row) for row in result.mappings()]
        except OperationalError as exc:
            raise QueryError(f"Analytic store unavailable: {exc.orig}", cause=exc).with_context(
                query=sql
            ) from exc
        except SQLAlchemyError as exc:
            raise QueryError(
                f"Query failed: {exc}", retryable=False, cause=exc
            ).with_context(query=sql) from exc

    def ping(self) -> bool:
        self.execute("SELECT 1")
        return True

    def close(self) -> None:
        self._engine.dispose()
        logger.debug("store.closed", url=self._engine.url.render_as_string(hide_password=True))
