"""Query planning for one flow graph.

For N columns the planner emits N label queries (distinct values of a
column) and N·(N-1)/2 pair queries (summed volume grouped by the two
columns).  A pair query over non-adjacent columns only counts rows that
skip every column in between, so each row contributes volume to exactly
one link per hop it actually makes.

Query text is whitespace-normalized once, at construction, and doubles as
the cache key together with the bound parameters.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from flowspine.flow.columns import VOLUME_COLUMN, Taxonomy
from flowspine.flow.filters import EntityFilter

_WHITESPACE = re.compile(r"\s+")


def normalize_sql(sql: str) -> str:
    """Collapse runs of whitespace so equivalent queries share a key."""
    return _WHITESPACE.sub(" ", sql).strip()


@dataclass(frozen=True)
class PlannedQuery(ABC):
    """Base for queries produced by the planner."""

    text: str
    params: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and warnings."""

    def cache_key(self, prefix: str = "sql:") -> str:
        """Prefix + normalized text, then the bound parameters if any."""
        if not self.params:
            return f"{prefix}{self.text}"
        return f"{prefix}{self.text} {json.dumps(self.params, sort_keys=True)}"


@dataclass(frozen=True)
class LabelQuery(PlannedQuery):
    """Distinct non-empty values of one column."""

    column: str = ""

    @property
    def name(self) -> str:
        return f"labels:{self.column}"


@dataclass(frozen=True)
class PairQuery(PlannedQuery):
    """Summed volume per (source, target) for two columns."""

    source_column: str = ""
    target_column: str = ""

    @property
    def name(self) -> str:
        return f"pair:{self.source_column}->{self.target_column}"


@dataclass
class QueryPlan:
    label_queries: list[LabelQuery]
    pair_queries: list[PairQuery]

    @property
    def all_queries(self) -> list[PlannedQuery]:
        return [*self.label_queries, *self.pair_queries]


def plan_label_query(taxonomy: Taxonomy, column: str, entity_filter: EntityFilter) -> LabelQuery:
    sql = f"""
        SELECT DISTINCT {column} AS value
        FROM {taxonomy.table}
        WHERE {column} <> '' AND {VOLUME_COLUMN} <> 0{entity_filter.and_sql()}
        ORDER BY value
    """
    return LabelQuery(text=normalize_sql(sql), params=dict(entity_filter.params), column=column)


def plan_pair_query(
    taxonomy: Taxonomy,
    source_column: str,
    target_column: str,
    entity_filter: EntityFilter,
) -> PairQuery:
    i = taxonomy.index_of(source_column)
    j = taxonomy.index_of(target_column)
    if i >= j:
        raise ValueError(f"{source_column} must precede {target_column}")

    skipped = "".join(f" AND {c} = ''" for c in taxonomy.columns[i + 1 : j])
    sql = f"""
        SELECT {source_column} AS source, {target_column} AS target,
               SUM({VOLUME_COLUMN}) AS value
        FROM {taxonomy.table}
        WHERE {source_column} <> '' AND {target_column} <> ''
          AND {VOLUME_COLUMN} <> 0{skipped}{entity_filter.and_sql()}
        GROUP BY {source_column}, {target_column}
        ORDER BY source, target
    """
    return PairQuery(
        text=normalize_sql(sql),
        params=dict(entity_filter.params),
        source_column=source_column,
        target_column=target_column,
    )


def plan_queries(taxonomy: Taxonomy, entity_filter: EntityFilter) -> QueryPlan:
    """Plan every label and pair query for *taxonomy*, in column order."""
    columns = taxonomy.columns
    label_queries = [plan_label_query(taxonomy, c, entity_filter) for c in columns]
    pair_queries = [
        plan_pair_query(taxonomy, columns[i], columns[j], entity_filter)
        for i in range(len(columns))
        for j in range(i + 1, len(columns))
    ]
    return QueryPlan(label_queries=label_queries, pair_queries=pair_queries)


__all__ = [
    "LabelQuery",
    "PairQuery",
    "PlannedQuery",
    "QueryPlan",
    "normalize_sql",
    "plan_label_query",
    "plan_pair_query",
    "plan_queries",
]
