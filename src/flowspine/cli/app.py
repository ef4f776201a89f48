"""
Root Typer application for the flow-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from flowspine import __version__

app = Typer(
    name="flowspine",
    help="flow-spine — Sankey flow-diagram aggregation over an analytic store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"flow-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """flow-spine CLI — serve the API or compute a graph."""


# ── Command registration ─────────────────────────────────────────────────

from flowspine.cli.graph import graph  # noqa: E402
from flowspine.cli.serve import serve  # noqa: E402

app.command("serve", help="Start the API server.")(serve)
app.command("graph", help="Compute one flow graph.")(graph)
