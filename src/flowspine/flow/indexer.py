"""Global label index used to correlate pair-query rows with label rows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from flowspine.flow.fetcher import FetchOutcome
from flowspine.flow.planner import LabelQuery


class LabelIndexer:
    """Stable integer index for every observed ``(column, label)``.

    Columns are added in taxonomy order and labels in the order the label
    query returned them, so the index is deterministic for a given input.
    """

    def __init__(self) -> None:
        self._index: dict[tuple[str, str], int] = {}
        self._entries: list[tuple[str, str]] = []
        self._by_column: dict[str, list[str]] = {}

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[FetchOutcome]) -> LabelIndexer:
        """Index the rows of settled label queries.

        Unavailable outcomes contribute no labels.
        """
        indexer = cls()
        for outcome in outcomes:
            query = outcome.query
            if not isinstance(query, LabelQuery):
                raise TypeError(f"expected a label query, got {query.name}")
            labels = [str(row["value"]) for row in outcome.rows] if outcome.available else []
            indexer.add_column(query.column, labels)
        return indexer

    def add_column(self, column: str, labels: Iterable[str]) -> None:
        bucket = self._by_column.setdefault(column, [])
        for label in labels:
            key = (column, label)
            if key in self._index:
                continue
            self._index[key] = len(self._entries)
            self._entries.append(key)
            bucket.append(label)

    def resolve(self, column: str, label: str) -> int | None:
        """Index of ``(column, label)``, or ``None`` if it was never seen."""
        return self._index.get((column, label))

    def entry(self, index: int) -> tuple[str, str]:
        """``(column, label)`` owning *index*."""
        return self._entries[index]

    def column_of(self, index: int) -> str:
        return self._entries[index][0]

    def labels(self, column: str) -> list[str]:
        return list(self._by_column.get(column, []))

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["LabelIndexer"]
