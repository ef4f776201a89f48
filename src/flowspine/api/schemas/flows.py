"""
Flow diagram schemas.

The payload mirrors what Plotly-style Sankey renderers consume: parallel
arrays for links and for nodes, indexed by node position.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flowspine.flow.models import FlowGraph


class LinksSchema(BaseModel):
    """Parallel arrays of diagram edges."""

    source: list[int] = Field(default_factory=list, description="Source node index per link")
    target: list[int] = Field(default_factory=list, description="Target node index per link")
    value: list[float] = Field(default_factory=list, description="Aggregated volume per link")


class SankeySchema(BaseModel):
    """A complete flow diagram.

    UI Hints:
        ``labels``, ``colors`` and ``xPositions`` are indexed by node;
        feed them straight into the Sankey node arrays.
        ``entityFilter`` is a readable summary of the active filters.

    Example:
        {
            "entityFilter": "((frontend = 'Uniswap'))",
            "links": {"source": [0, 1], "target": [2, 2], "value": [5.0, 3.0]},
            "labels": ["a1", "a2", "b1"],
            "colors": ["#...", "#...", "#..."],
            "xPositions": [0.25, 0.25, 0.75],
            "range": null
        }
    """

    model_config = ConfigDict(populate_by_name=True)

    entity_filter: str = Field(default="", alias="entityFilter", description="Readable filter summary")
    links: LinksSchema = Field(default_factory=LinksSchema)
    labels: list[str] = Field(default_factory=list, description="Display label per node")
    colors: list[str] = Field(default_factory=list, description="#rrggbb color per node")
    x_positions: list[float] = Field(
        default_factory=list,
        alias="xPositions",
        description="Horizontal position in [0, 1] per node",
    )
    range: Any = Field(default=None, description="Reserved; always null")

    @classmethod
    def from_graph(cls, graph: FlowGraph) -> SankeySchema:
        return cls.model_validate(graph.to_dict())
