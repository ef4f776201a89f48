"""
Test support utilities for flow-spine tests.

Helpers that don't fit as pytest fixtures: a scriptable in-memory
analytic store, builders for settled fetch outcomes, and a seeder for a
SQLite flow table.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import create_engine, text

from flowspine.core.errors import QueryError
from flowspine.flow.columns import Taxonomy
from flowspine.flow.fetcher import FetchOutcome
from flowspine.flow.filters import EntityFilter
from flowspine.flow.planner import plan_label_query, plan_pair_query


class FakeStore:
    """In-memory analytic store.

    Args:
        rows: Rows returned for every query (or a callable ``(sql, params) -> rows``).
        fail_times: Number of leading calls that raise ``error``.
        error: Exception raised by failing calls (retryable QueryError by default).
    """

    def __init__(
        self,
        rows: Any = None,
        *,
        fail_times: int = 0,
        error: Exception | None = None,
    ):
        self._rows = rows if rows is not None else []
        self._fail_times = fail_times
        self._error = error or QueryError("connection reset")
        self._lock = threading.Lock()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def execute(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        with self._lock:
            self.calls.append((sql, dict(params or {})))
            call_number = len(self.calls)
        if call_number <= self._fail_times:
            raise self._error
        if callable(self._rows):
            return self._rows(sql, params or {})
        return [dict(r) for r in self._rows]

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


def label_outcomes(
    taxonomy: Taxonomy,
    labels: dict[str, Sequence[str]],
    *,
    unavailable: Iterable[str] = (),
) -> list[FetchOutcome]:
    """One settled label outcome per taxonomy column."""
    down = set(unavailable)
    outcomes = []
    for column in taxonomy.columns:
        query = plan_label_query(taxonomy, column, EntityFilter())
        if column in down:
            outcomes.append(FetchOutcome.unavailable(query, "store down", 3))
        else:
            rows = [{"value": v} for v in labels.get(column, [])]
            outcomes.append(FetchOutcome(query=query, rows=rows, attempts=1))
    return outcomes


def pair_outcomes(
    taxonomy: Taxonomy,
    links: Sequence[tuple[str, str, str, str, float]],
) -> list[FetchOutcome]:
    """Settled pair outcomes from ``(src_col, src, tgt_col, tgt, volume)`` tuples."""
    columns = taxonomy.columns
    outcomes = []
    for i in range(len(columns)):
        for j in range(i + 1, len(columns)):
            query = plan_pair_query(taxonomy, columns[i], columns[j], EntityFilter())
            rows = [
                {"source": s, "target": t, "value": v}
                for sc, s, tc, t, v in links
                if sc == columns[i] and tc == columns[j]
            ]
            outcomes.append(FetchOutcome(query=query, rows=rows, attempts=1))
    return outcomes


def seed_flow_table(
    url: str,
    table: str,
    columns: Sequence[str],
    records: Sequence[dict[str, Any]],
) -> None:
    """Create *table* with *columns* + ``total_volume`` and insert *records*."""
    engine = create_engine(url)
    column_defs = ", ".join(f"{c} TEXT NOT NULL DEFAULT ''" for c in columns)
    placeholders = ", ".join(f":{c}" for c in (*columns, "total_volume"))
    names = ", ".join((*columns, "total_volume"))
    with engine.begin() as conn:
        conn.execute(text(f"CREATE TABLE {table} ({column_defs}, total_volume REAL NOT NULL)"))
        for record in records:
            row = {c: record.get(c, "") for c in columns}
            row["total_volume"] = record["total_volume"]
            conn.execute(text(f"INSERT INTO {table} ({names}) VALUES ({placeholders})"), row)
    engine.dispose()
