"""Serve command: interactive tree in the browser."""

from __future__ import annotations

from pathlib import Path

import typer

from ....config.defaults import DEFAULT_PORT, PORT_SEARCH_RANGE
from ...common import console, load_config, open_session, setup_logging
from .server import find_free_port, start_visualization_server


def serve_command(
    config_path: Path | None = typer.Argument(
        None,
        help="Tree config file (defaults to ./record-tree.yaml)",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    port: int = typer.Option(
        DEFAULT_PORT,
        "--port",
        "-p",
        help="First port to try for the HTTP server",
        min=1024,
        max=65535,
        rich_help_panel="🌐 Server Options",
    ),
    no_open: bool = typer.Option(
        False,
        "--no-open",
        help="Do not open a browser window",
        rich_help_panel="🌐 Server Options",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output",
        rich_help_panel="🔧 Global Options",
    ),
) -> None:
    """🌐 Serve the interactive tree (expand/collapse, pan/zoom, tooltips)."""
    setup_logging(verbose)
    config = load_config(config_path)
    session = open_session(config)

    try:
        free_port = find_free_port(port, min(port + PORT_SEARCH_RANGE, 65535))
    except OSError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if free_port != port:
        console.print(f"[yellow]Port {port} is busy, using {free_port}[/yellow]")
    start_visualization_server(free_port, session, auto_open=not no_open)


__all__ = ["serve_command"]
