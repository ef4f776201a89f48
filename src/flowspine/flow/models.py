"""Value types flowing through the graph pipeline.

Raw types are produced from query rows and never mutated; final types
are what the response is built from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawLink:
    """One aggregated pair-query row, resolved to its two columns."""

    source_column: str
    target_column: str
    source_label: str
    target_label: str
    volume: float


@dataclass(frozen=True)
class FinalNode:
    """A node of the rendered diagram."""

    label: str
    column_index: int
    color: str
    x: float


@dataclass(frozen=True)
class FinalLink:
    """A weighted edge between two final node indices."""

    source: int
    target: int
    value: float


@dataclass
class FlowGraph:
    """Complete diagram for one request.

    ``warnings`` collects degradations (unavailable queries, unresolved
    link rows) that did not abort the request.
    """

    entity_filter: str
    nodes: list[FinalNode]
    links: list[FinalLink]
    warnings: list[str] = field(default_factory=list)

    @property
    def total_volume(self) -> float:
        return sum(link.value for link in self.links)

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the shape the diagram front end consumes."""
        return {
            "entityFilter": self.entity_filter,
            "links": {
                "source": [link.source for link in self.links],
                "target": [link.target for link in self.links],
                "value": [link.value for link in self.links],
            },
            "labels": [node.label for node in self.nodes],
            "colors": [node.color for node in self.nodes],
            "xPositions": [node.x for node in self.nodes],
            "range": None,
        }


__all__ = ["RawLink", "FinalNode", "FinalLink", "FlowGraph"]
