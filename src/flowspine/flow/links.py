"""Link aggregation in two passes.

Pass 1 decodes pair-query rows into :class:`RawLink` values, resolving
both endpoints through the :class:`LabelIndexer`.  Pass 2 maps each raw
endpoint through the top-N collapse and the display mapping to a final
node index, then merges links that land on the same node pair.  Volume is
never created or dropped by pass 2.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from flowspine.core.logging import get_logger
from flowspine.flow.disambiguator import Disambiguation
from flowspine.flow.fetcher import FetchOutcome
from flowspine.flow.indexer import LabelIndexer
from flowspine.flow.models import FinalLink, RawLink
from flowspine.flow.planner import PairQuery
from flowspine.flow.reducer import Reduction

logger = get_logger(__name__)


@dataclass
class DecodedLinks:
    links: list[RawLink]
    skipped: int = 0


def decode_raw_links(outcomes: Sequence[FetchOutcome], indexer: LabelIndexer) -> DecodedLinks:
    """Pass 1: pair-query rows → raw links.

    Rows with an endpoint the indexer never saw (its label query was
    unavailable) are skipped and counted.
    """
    decoded = DecodedLinks(links=[])
    for outcome in outcomes:
        query = outcome.query
        if not isinstance(query, PairQuery):
            raise TypeError(f"expected a pair query, got {query.name}")
        if not outcome.available:
            continue

        for row in outcome.rows:
            source = indexer.resolve(query.source_column, str(row["source"]))
            target = indexer.resolve(query.target_column, str(row["target"]))
            if source is None or target is None:
                decoded.skipped += 1
                continue

            source_column, source_label = indexer.entry(source)
            target_column, target_label = indexer.entry(target)
            decoded.links.append(
                RawLink(
                    source_column=source_column,
                    target_column=target_column,
                    source_label=source_label,
                    target_label=target_label,
                    volume=float(row["value"] or 0),
                )
            )

    if decoded.skipped:
        logger.warning("flow.links.unresolved", skipped=decoded.skipped)
    return decoded


def aggregate_links(
    raw_links: Sequence[RawLink],
    reduction: Reduction,
    disambiguation: Disambiguation,
) -> list[FinalLink]:
    """Pass 2: remap raw links onto final nodes and merge duplicates.

    Output keeps the order in which each ``(source, target)`` pair first
    appears.
    """
    node_index = disambiguation.node_index()
    totals: dict[tuple[int, int], float] = {}

    for link in raw_links:
        source_display = disambiguation.display[
            (link.source_column, reduction.collapse(link.source_column, link.source_label))
        ]
        target_display = disambiguation.display[
            (link.target_column, reduction.collapse(link.target_column, link.target_label))
        ]
        key = (node_index[source_display], node_index[target_display])
        totals[key] = totals.get(key, 0.0) + link.volume

    return [FinalLink(source=s, target=t, value=v) for (s, t), v in totals.items()]


__all__ = ["DecodedLinks", "aggregate_links", "decode_raw_links"]
