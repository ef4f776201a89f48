"""Entity filter: per-column selections → parameterized SQL predicate.

OR within a column, AND across columns.  Columns without a selection add
nothing, and an empty filter matches every row.

Example::

    f = build_entity_filter(taxonomy, {"frontend": ["a", "b"], "solver": ["c"]})
    f.sql        # "(frontend = :frontend_0 OR frontend = :frontend_1) AND (solver = :solver_0)"
    f.params     # {"frontend_0": "a", "frontend_1": "b", "solver_0": "c"}
    f.describe() # "((frontend = 'a' OR frontend = 'b') AND (solver = 'c'))"
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flowspine.core.errors import ValidationError
from flowspine.flow.columns import Taxonomy, canonical_column


@dataclass(frozen=True)
class EntityFilter:
    """Combinable predicate over the flow table.

    ``selections`` is a tuple of ``(column, values)`` in taxonomy order,
    holding only columns with at least one selected value.
    """

    selections: tuple[tuple[str, tuple[str, ...]], ...] = ()
    params: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.selections

    @property
    def sql(self) -> str:
        """Predicate fragment with named bind parameters (``""`` if empty)."""
        groups = []
        for column, values in self.selections:
            terms = " OR ".join(f"{column} = :{column}_{i}" for i in range(len(values)))
            groups.append(f"({terms})")
        return " AND ".join(groups)

    def describe(self) -> str:
        """Human-readable form for display; never executed."""
        if self.is_empty:
            return ""
        groups = []
        for column, values in self.selections:
            terms = " OR ".join(f"{column} = {_quote(v)}" for v in values)
            groups.append(f"({terms})")
        return f"({' AND '.join(groups)})"

    def and_sql(self) -> str:
        """``" AND <predicate>"`` for appending to a WHERE clause."""
        return f" AND {self.sql}" if self.selections else ""


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_entity_filter(
    taxonomy: Taxonomy,
    selections: Mapping[str, Iterable[str]] | None = None,
) -> EntityFilter:
    """Build the filter for *selections* against *taxonomy*.

    Duplicate values within a column are collapsed, keeping the first
    occurrence.  Blank values are ignored.

    Raises:
        ValidationError: a selection names a column outside the taxonomy.
    """
    by_column: dict[str, list[str]] = {}
    for name, values in (selections or {}).items():
        column = canonical_column(name)
        if column not in taxonomy:
            raise ValidationError(
                f"Unknown column for {taxonomy.name}: {name}",
                field=name,
            )
        bucket = by_column.setdefault(column, [])
        for value in values:
            if value and value not in bucket:
                bucket.append(value)

    ordered: list[tuple[str, tuple[str, ...]]] = []
    params: dict[str, Any] = {}
    for column in taxonomy.columns:
        values = by_column.get(column)
        if not values:
            continue
        ordered.append((column, tuple(values)))
        for i, value in enumerate(values):
            params[f"{column}_{i}"] = value

    return EntityFilter(selections=tuple(ordered), params=params)


__all__ = ["EntityFilter", "build_entity_filter"]
