"""
Flow graph pipeline: one request in, one diagram out.

Manifesto:
    A request is recomputed from scratch every time (the cache makes that
    cheap), in two strictly separated phases:

    - **Phase 1 (I/O):** every label and pair query is fetched concurrently
      through the cache-aside fetcher, under one request deadline.  Failed
      queries become warnings, never exceptions.
    - **Phase 2 (pure):** indexing, top-N reduction, disambiguation, link
      aggregation and presentation.  No awaits, no I/O, deterministic for
      a given set of fetch outcomes.

Architecture:
    ::

        FlowRequest
            │  build_entity_filter / Taxonomy.subset / plan_queries
            ▼
        CacheAsideFetcher.fetch_all  ──(deadline)──► DeadlineExceededError
            │  outcomes in query order
            ▼
        assemble_graph
            LabelIndexer.from_outcomes
            decode_raw_links           (pass 1)
            TopNReducer.reduce
            disambiguate
            aggregate_links            (pass 2)
            assign_presentation
            ▼
        FlowGraph

Examples:
    >>> builder = FlowGraphBuilder(store, cache, settings)
    >>> graph = await builder.build(FlowRequest(is_orderflow=True))
    >>> graph.to_dict()["labels"][:2]
    ['Uniswap', '1inch']

Tags:
    sankey, aggregation, pipeline, asyncio, flow-spine

Doc-Types:
    - API Reference
    - Architecture Guide
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from flowspine.core.cache import CacheBackend
from flowspine.core.errors import DeadlineExceededError
from flowspine.core.logging import LogContext, get_logger
from flowspine.core.periods import current_period_end
from flowspine.core.settings import FlowSpineSettings
from flowspine.core.store import AnalyticStore
from flowspine.flow.columns import Taxonomy, get_taxonomy
from flowspine.flow.disambiguator import disambiguate
from flowspine.flow.fetcher import CacheAsideFetcher, FetchOutcome
from flowspine.flow.filters import EntityFilter, build_entity_filter
from flowspine.flow.indexer import LabelIndexer
from flowspine.flow.links import aggregate_links, decode_raw_links
from flowspine.flow.models import FlowGraph
from flowspine.flow.planner import plan_queries
from flowspine.flow.presentation import assign_presentation
from flowspine.flow.reducer import TopNReducer

logger = get_logger(__name__)


@dataclass
class FlowRequest:
    """What to draw.

    Attributes:
        is_orderflow: Orderflow taxonomy if True, liquidity otherwise.
        selections: Column → selected values (OR within, AND across).
        excluded: Columns left out of the diagram; their selections
            still filter rows.
    """

    is_orderflow: bool = False
    selections: dict[str, list[str]] = field(default_factory=dict)
    excluded: list[str] = field(default_factory=list)


def assemble_graph(
    taxonomy: Taxonomy,
    entity_filter: EntityFilter,
    label_outcomes: Sequence[FetchOutcome],
    pair_outcomes: Sequence[FetchOutcome],
    *,
    top_n: int = 20,
    palette: Mapping[str, str] | None = None,
) -> FlowGraph:
    """Phase 2: turn settled fetch outcomes into the final graph."""
    warnings = [
        f"{o.query.name} unavailable after {o.attempts} attempt(s): {o.error}"
        for o in [*label_outcomes, *pair_outcomes]
        if not o.available
    ]

    indexer = LabelIndexer.from_outcomes(label_outcomes)
    decoded = decode_raw_links(pair_outcomes, indexer)
    if decoded.skipped:
        warnings.append(f"{decoded.skipped} link row(s) skipped: endpoint labels unavailable")

    columns = taxonomy.columns
    reduction = TopNReducer(top_n).reduce(columns, indexer, decoded.links)
    disambiguation = disambiguate(columns, reduction)
    links = aggregate_links(decoded.links, reduction, disambiguation)
    nodes = assign_presentation(columns, reduction, disambiguation, palette)

    return FlowGraph(
        entity_filter=entity_filter.describe(),
        nodes=nodes,
        links=links,
        warnings=warnings,
    )


class FlowGraphBuilder:
    """Request-scoped flow graph computation.

    The builder does not own ``cache`` or ``store``; callers release them.
    """

    def __init__(
        self,
        store: AnalyticStore,
        cache: CacheBackend,
        settings: FlowSpineSettings | None = None,
    ):
        self._store = store
        self._cache = cache
        self._settings = settings or FlowSpineSettings()

    async def build(self, request: FlowRequest) -> FlowGraph:
        """Compute the graph for *request*.

        Raises:
            ValidationError: unknown columns or every column excluded.
            DeadlineExceededError: Phase 1 ran past ``request_timeout_seconds``.
        """
        settings = self._settings
        full = get_taxonomy(request.is_orderflow, settings)
        entity_filter = build_entity_filter(full, request.selections)
        taxonomy = full.subset(request.excluded)
        plan = plan_queries(taxonomy, entity_filter)

        fetcher = CacheAsideFetcher(
            self._store,
            self._cache,
            expire_at=current_period_end(settings.cache_period_seconds),
            key_prefix=settings.cache_key_prefix,
            max_attempts=settings.fetch_max_attempts,
            retry_delay=settings.fetch_retry_delay_seconds,
            max_concurrency=settings.fetch_max_concurrency,
        )

        async with LogContext(mode=taxonomy.name):
            logger.debug(
                "flow.graph.started",
                columns=list(taxonomy.columns),
                queries=len(plan.all_queries),
                filtered=not entity_filter.is_empty,
            )
            timeout = settings.request_timeout_seconds
            try:
                outcomes = await asyncio.wait_for(
                    fetcher.fetch_all(plan.all_queries), timeout=timeout
                )
            except TimeoutError as exc:
                logger.error("flow.graph.deadline_exceeded", timeout=timeout)
                raise DeadlineExceededError(timeout) from exc

            n_labels = len(plan.label_queries)
            graph = assemble_graph(
                taxonomy,
                entity_filter,
                outcomes[:n_labels],
                outcomes[n_labels:],
                top_n=settings.top_n,
                palette=settings.palette,
            )

            logger.info(
                "flow.graph.built",
                nodes=len(graph.nodes),
                links=len(graph.links),
                cache_hits=sum(1 for o in outcomes if o.from_cache),
                warnings=len(graph.warnings),
            )
        return graph


async def build_flow_graph(
    store: AnalyticStore,
    cache: CacheBackend,
    *,
    is_orderflow: bool = False,
    selections: dict[str, list[str]] | None = None,
    excluded: list[str] | None = None,
    settings: FlowSpineSettings | None = None,
) -> FlowGraph:
    """Convenience wrapper around :class:`FlowGraphBuilder`."""
    request = FlowRequest(
        is_orderflow=is_orderflow,
        selections=selections or {},
        excluded=excluded or [],
    )
    return await FlowGraphBuilder(store, cache, settings).build(request)


__all__ = ["FlowGraphBuilder", "FlowRequest", "assemble_graph", "build_flow_graph"]
