"""Flow diagram aggregation: filters, query planning, fetching, reduction."""

from flowspine.flow.columns import Taxonomy, get_taxonomy
from flowspine.flow.fetcher import CacheAsideFetcher, FetchOutcome
from flowspine.flow.filters import EntityFilter, build_entity_filter
from flowspine.flow.models import FinalLink, FinalNode, FlowGraph, RawLink
from flowspine.flow.pipeline import FlowGraphBuilder, FlowRequest, build_flow_graph

__all__ = [
    "CacheAsideFetcher",
    "EntityFilter",
    "FetchOutcome",
    "FinalLink",
    "FinalNode",
    "FlowGraph",
    "FlowGraphBuilder",
    "FlowRequest",
    "RawLink",
    "Taxonomy",
    "build_entity_filter",
    "build_flow_graph",
    "get_taxonomy",
]
