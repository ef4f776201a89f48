"""
CLI: ``flowspine serve`` — start the API server.
"""

from __future__ import annotations

import typer
import uvicorn

from flowspine.cli.utils import console
from flowspine.core.logging import configure_logging
from flowspine.core.settings import FlowSpineSettings


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
    workers: int = typer.Option(1, "--workers", "-w", help="Number of workers"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Start the flow-spine REST API server."""
    settings = FlowSpineSettings()
    host = host or settings.host
    port = port or settings.port
    log_level = (log_level or settings.log_level).lower()

    configure_logging(level=log_level)

    console.print(f"[bold green]Starting flow-spine API[/bold green] on {host}:{port}")
    uvicorn.run(
        "flowspine.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )
