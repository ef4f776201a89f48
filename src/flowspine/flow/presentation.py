"""Node colors and horizontal positions."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence

from flowspine.flow.disambiguator import Disambiguation
from flowspine.flow.models import FinalNode
from flowspine.flow.reducer import Reduction

OTHER_COLOR = "#999999"

# Brand colors for well-known frontends; overridable through settings.palette
DEFAULT_PALETTE: dict[str, str] = {
    "Uniswap": "#FF007A",
    "1inch": "#1B314F",
    "CoW Swap": "#012F7A",
    "Matcha": "#21C95E",
    "MetaMask": "#F6851B",
    "0x": "#231815",
    "Paraswap": "#0058D4",
    "Kyberswap": "#31CB9E",
}


def hash_color(label: str) -> str:
    """Deterministic ``#rrggbb`` derived from *label*."""
    digest = hashlib.md5(label.encode("utf-8")).hexdigest()
    return f"#{digest[:6]}"


def x_position(column_index: int, num_columns: int) -> float:
    """Center of the column's slot on a [0, 1] axis."""
    return (column_index + 0.5) / num_columns


def assign_presentation(
    columns: Sequence[str],
    reduction: Reduction,
    disambiguation: Disambiguation,
    palette: Mapping[str, str] | None = None,
) -> list[FinalNode]:
    """Build final nodes in node-index order."""
    colors = {**DEFAULT_PALETTE, **(palette or {})}
    num_columns = len(columns)

    nodes = []
    for display in disambiguation.nodes:
        canonical = disambiguation.canonical[display]
        column_idx = disambiguation.column_index[display]
        if reduction.is_other(columns[column_idx], canonical):
            color = OTHER_COLOR
        else:
            color = colors.get(canonical) or hash_color(canonical)
        nodes.append(
            FinalNode(
                label=display,
                column_index=column_idx,
                color=color,
                x=x_position(column_idx, num_columns),
            )
        )
    return nodes


__all__ = [
    "DEFAULT_PALETTE",
    "OTHER_COLOR",
    "assign_presentation",
    "hash_color",
    "x_position",
]
