"""Column taxonomies for flow diagrams.

A taxonomy is the fixed, ordered list of category columns that make up
the stages of one diagram, together with the table the flow records live
in.  The request's mode flag picks one of the two taxonomies below.

Column identifiers are interpolated into SQL, so they must only ever come
from here, never from request data.
"""

from __future__ import annotations

from dataclasses import dataclass

from flowspine.core.errors import ValidationError
from flowspine.core.settings import FlowSpineSettings

VOLUME_COLUMN = "total_volume"

ORDERFLOW_COLUMNS: tuple[str, ...] = (
    "frontend",
    "metaaggregator",
    "solver",
    "mempool",
    "ofa",
    "builder",
)

LIQUIDITY_COLUMNS: tuple[str, ...] = (
    "frontend",
    "metaaggregator",
    "solver",
    "aggregator",
    "liquidity_src",
    "pmm",
)

# Suffix used when a display label appears in more than one column
COLUMN_TAGS: dict[str, str] = {
    "frontend": "fro",
    "metaaggregator": "met",
    "solver": "sol",
    "mempool": "mem",
    "ofa": "ofa",
    "builder": "bui",
    "aggregator": "agg",
    "liquidity_src": "liq",
    "pmm": "pmm",
}

COLUMN_PLURALS: dict[str, str] = {
    "solver": "solvers",
}

# Request parameter spellings accepted in addition to the column name
COLUMN_ALIASES: dict[str, str] = {
    "metaAggregator": "metaaggregator",
}


def column_tag(column: str) -> str:
    """Short disambiguation tag for *column*."""
    return COLUMN_TAGS.get(column, column[:3])


def column_plural(column: str) -> str:
    return COLUMN_PLURALS.get(column, column)


def other_label(column: str) -> str:
    """Name of the synthetic bucket that absorbs a column's long tail."""
    return f"Other ({column_plural(column)})"


def canonical_column(name: str) -> str:
    """Map a request-side column spelling to the column name."""
    return COLUMN_ALIASES.get(name, name)


@dataclass(frozen=True)
class Taxonomy:
    """Ordered columns of one diagram mode plus the table they live in."""

    name: str
    table: str
    columns: tuple[str, ...]

    def index_of(self, column: str) -> int:
        return self.columns.index(column)

    def __contains__(self, column: object) -> bool:
        return column in self.columns

    def __len__(self) -> int:
        return len(self.columns)

    def subset(self, excluded: list[str] | set[str] | tuple[str, ...]) -> Taxonomy:
        """Return a taxonomy without *excluded* columns, order preserved.

        Raises:
            ValidationError: an excluded name is not a column of this
                taxonomy, or nothing would remain.
        """
        excluded_set = {canonical_column(c) for c in excluded}
        unknown = sorted(c for c in excluded_set if c not in self.columns)
        if unknown:
            raise ValidationError(
                f"Unknown column(s) for {self.name}: {', '.join(unknown)}",
                field="columns",
                value=unknown,
            )

        remaining = tuple(c for c in self.columns if c not in excluded_set)
        if not remaining:
            raise ValidationError(
                "At least one column must remain after exclusions",
                field="columns",
                value=sorted(excluded_set),
            )
        return Taxonomy(name=self.name, table=self.table, columns=remaining)


def get_taxonomy(is_orderflow: bool, settings: FlowSpineSettings | None = None) -> Taxonomy:
    """Select the taxonomy for the request mode flag."""
    settings = settings or FlowSpineSettings()
    if is_orderflow:
        return Taxonomy("orderflow", settings.orderflow_table, ORDERFLOW_COLUMNS)
    return Taxonomy("liquidity", settings.liquidity_table, LIQUIDITY_COLUMNS)


__all__ = [
    "VOLUME_COLUMN",
    "ORDERFLOW_COLUMNS",
    "LIQUIDITY_COLUMNS",
    "COLUMN_TAGS",
    "Taxonomy",
    "canonical_column",
    "column_tag",
    "column_plural",
    "get_taxonomy",
    "other_label",
]
