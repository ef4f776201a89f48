"""
CLI: ``flowspine graph`` — compute one flow graph and print it.

Uses the configured analytic store and cache exactly like the API does,
so it doubles as a smoke test of a deployment's data.
"""

from __future__ import annotations

import asyncio

import typer

from flowspine.cli.utils import console, fail, print_json, print_table
from flowspine.core.cache import create_cache
from flowspine.core.errors import FlowSpineError
from flowspine.core.logging import configure_logging
from flowspine.core.settings import FlowSpineSettings
from flowspine.core.store import SqlAlchemyStore
from flowspine.flow.pipeline import FlowGraphBuilder, FlowRequest


def parse_select(values: list[str]) -> dict[str, list[str]]:
    """``["solver=a", "solver=b,c"]`` → ``{"solver": ["a", "b", "c"]}``."""
    selections: dict[str, list[str]] = {}
    for item in values:
        column, sep, raw = item.partition("=")
        if not sep or not column.strip():
            raise typer.BadParameter(f"expected column=value, got {item!r}", param_hint="--select")
        bucket = selections.setdefault(column.strip(), [])
        bucket.extend(v.strip() for v in raw.split(",") if v.strip())
    return selections


def graph(
    orderflow: bool = typer.Option(False, "--orderflow", help="Use the orderflow taxonomy"),
    select: list[str] = typer.Option([], "--select", "-s", help="Filter as column=value (repeatable)"),
    exclude: list[str] = typer.Option([], "--exclude", "-x", help="Column to leave out (repeatable)"),
    database_url: str | None = typer.Option(None, "--database-url", help="Override the store URL"),
    fmt: str = typer.Option("json", "--format", "-f", help="json | table"),
    log_level: str = typer.Option("WARNING", "--log-level"),
) -> None:
    """Compute a flow graph and print it."""
    configure_logging(level=log_level, json_format=False)

    settings = FlowSpineSettings()
    request = FlowRequest(
        is_orderflow=orderflow,
        selections=parse_select(select),
        excluded=list(exclude),
    )

    store = SqlAlchemyStore(database_url or settings.database_url)
    cache = create_cache(settings.redis_url)
    try:
        result = asyncio.run(FlowGraphBuilder(store, cache, settings).build(request))
    except FlowSpineError as exc:
        fail(exc.message, code=exc.category.value.upper())
    finally:
        cache.close()
        store.close()

    if fmt == "table":
        print_table(
            [
                {"#": i, "label": n.label, "column": n.column_index, "color": n.color, "x": n.x}
                for i, n in enumerate(result.nodes)
            ],
            title="Nodes",
        )
        print_table(
            [{"source": k.source, "target": k.target, "value": k.value} for k in result.links],
            title="Links",
        )
    else:
        print_json(result.to_dict())

    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
