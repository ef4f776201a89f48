"""Display-label disambiguation.

Diagram nodes are identified by their display label alone, so every
display label must be unique across the whole graph.  Two transforms run
in order over the reduced labels:

1. **Truncation** — long ``0x…`` addresses are shortened to
   ``first5 + "…" + last3``.  If two labels of one column would shorten to
   the same string, both keep their full form.
2. **Suffixing** — a display string used by more than one column gets the
   column tag appended (``"X (sol)"``, ``"X (bui)"``).  Anything still
   duplicated after that gets a ``" #n"`` counter.

Canonical lookups (palette colors, Other detection) always use the label
as it was before formatting.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from flowspine.flow.columns import column_tag
from flowspine.flow.reducer import Reduction

ELLIPSIS = "…"
_ADDRESS_PREFIX = "0x"
_TRUNCATE_OVER = 10


def truncate_label(label: str) -> str:
    """Shorten an address-like label; other labels pass through."""
    if label.startswith(_ADDRESS_PREFIX) and len(label) > _TRUNCATE_OVER:
        return f"{label[:5]}{ELLIPSIS}{label[-3:]}"
    return label


@dataclass
class Disambiguation:
    """Display labels for every reduced label.

    Attributes:
        display: ``(column, reduced label)`` → display label.
        canonical: display label → reduced label.
        column_index: display label → index of its column.
        nodes: display labels in final node order (column order, then rank).
    """

    display: dict[tuple[str, str], str] = field(default_factory=dict)
    canonical: dict[str, str] = field(default_factory=dict)
    column_index: dict[str, int] = field(default_factory=dict)
    nodes: list[str] = field(default_factory=list)

    def node_index(self) -> dict[str, int]:
        return {label: i for i, label in enumerate(self.nodes)}


def disambiguate(columns: Sequence[str], reduction: Reduction) -> Disambiguation:
    """Assign a unique display label to every reduced label of *columns*."""
    truncated: dict[tuple[str, str], str] = {}
    for column in columns:
        labels = reduction.labels.get(column, [])
        short = {label: truncate_label(label) for label in labels}
        clashes = Counter(short.values())
        for label in labels:
            text = short[label]
            truncated[(column, label)] = text if clashes[text] == 1 else label

    columns_using: dict[str, set[str]] = defaultdict(set)
    for (column, _), text in truncated.items():
        columns_using[text].add(column)

    result = Disambiguation()
    for column_idx, column in enumerate(columns):
        for label in reduction.labels.get(column, []):
            text = truncated[(column, label)]
            if len(columns_using[text]) > 1:
                text = f"{text} ({column_tag(column)})"

            if text in result.canonical:
                n = 2
                while f"{text} #{n}" in result.canonical:
                    n += 1
                text = f"{text} #{n}"

            result.display[(column, label)] = text
            result.canonical[text] = label
            result.column_index[text] = column_idx
            result.nodes.append(text)

    return result


__all__ = ["Disambiguation", "disambiguate", "truncate_label"]
