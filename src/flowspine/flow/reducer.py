"""Top-N reduction: collapse each column's long tail into an "Other" bucket.

A label's score is the total volume of every raw link touching it.  Per
column, labels are ranked by score (descending, ties by label ascending)
and the first ``top_n`` survive; the rest fold into one synthetic
``Other (<column plural>)`` label, ranked last.  If a real label of the
column already carries that name, the bucket is numbered (``" #2"``).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from flowspine.flow.columns import other_label
from flowspine.flow.indexer import LabelIndexer
from flowspine.flow.models import RawLink


@dataclass
class Reduction:
    """Outcome of reducing every column.

    Attributes:
        labels: Per column, surviving labels in rank order, Other last.
        mapping: ``(column, raw label)`` → surviving label or Other label.
        other: Column → its Other label, for columns that needed one.
        scores: ``(column, raw label)`` → popularity score.
    """

    labels: dict[str, list[str]] = field(default_factory=dict)
    mapping: dict[tuple[str, str], str] = field(default_factory=dict)
    other: dict[str, str] = field(default_factory=dict)
    scores: dict[tuple[str, str], float] = field(default_factory=dict)

    def is_other(self, column: str, label: str) -> bool:
        return self.other.get(column) == label

    def collapse(self, column: str, raw_label: str) -> str:
        return self.mapping[(column, raw_label)]


def _bucket_name(column: str, labels: Sequence[str]) -> str:
    """Other label for *column*, numbered if a real label already uses it."""
    taken = set(labels)
    bucket = other_label(column)
    n = 2
    while bucket in taken:
        bucket = f"{other_label(column)} #{n}"
        n += 1
    return bucket


class TopNReducer:
    """Keep the ``top_n`` most popular labels per column.

    Example:
        >>> reducer = TopNReducer(top_n=20)
        >>> reduction = reducer.reduce(["frontend", "solver"], indexer, raw_links)
        >>> reduction.labels["solver"][-1]
        'Other (solvers)'
    """

    def __init__(self, top_n: int = 20):
        if top_n < 1:
            raise ValueError(f"top_n must be >= 1, got {top_n}")
        self._top_n = top_n

    @property
    def top_n(self) -> int:
        return self._top_n

    def reduce(
        self,
        columns: Sequence[str],
        indexer: LabelIndexer,
        raw_links: Sequence[RawLink],
    ) -> Reduction:
        scores: dict[tuple[str, str], float] = defaultdict(float)
        for column in columns:
            for label in indexer.labels(column):
                scores[(column, label)] = 0.0
        for link in raw_links:
            scores[(link.source_column, link.source_label)] += link.volume
            scores[(link.target_column, link.target_label)] += link.volume

        reduction = Reduction(scores=dict(scores))
        for column in columns:
            ranked = sorted(
                indexer.labels(column),
                key=lambda label: (-scores[(column, label)], label),
            )
            kept = ranked[: self._top_n]
            dropped = ranked[self._top_n :]

            for label in kept:
                reduction.mapping[(column, label)] = label
            final = list(kept)

            if dropped:
                bucket = _bucket_name(column, ranked)
                reduction.other[column] = bucket
                for label in dropped:
                    reduction.mapping[(column, label)] = bucket
                final.append(bucket)

            reduction.labels[column] = final

        return reduction


__all__ = ["Reduction", "TopNReducer"]
