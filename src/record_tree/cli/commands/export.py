"""Export command: write the built tree as JSON."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from ..common import console, load_config, open_session, setup_logging


def export_command(
    config_path: Path | None = typer.Argument(
        None,
        help="Tree config file (defaults to ./record-tree.yaml)",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write JSON here instead of stdout",
        rich_help_panel="📊 Output Options",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output",
        rich_help_panel="🔧 Global Options",
    ),
) -> None:
    """📦 Build the tree and export it as JSON.

    The output is a list of root nodes, each with ``title``, ``level`` and,
    where present, ``children`` and ``tooltipData``.
    """
    setup_logging(verbose)
    config = load_config(config_path)
    session = open_session(config)

    payload = json.dumps(session.hierarchy.to_dict(), indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(payload)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload + "\n", encoding="utf-8")
    console.print(
        f"[green]✓[/green] Exported {session.hierarchy.node_count()} nodes to {output}"
    )
