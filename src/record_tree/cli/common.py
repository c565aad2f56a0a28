"""Helpers shared by the CLI commands."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from ..config.defaults import find_default_config
from ..config.settings import TreeConfig
from ..core.exceptions import RecordTreeError
from ..core.session import TreeSession

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route loguru output to stderr, WARNING by default and DEBUG when verbose."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<level>{level: <8}</level> | <cyan>{name}</cyan> - {message}",
    )
    if verbose:
        logger.debug("Verbose logging enabled")


def load_config(config_path: Path | None) -> TreeConfig:
    """Load the given config, or the default one in the current directory.

    Raises:
        typer.Exit: If no config can be found or it is invalid
    """
    path = config_path or find_default_config()
    if path is None:
        console.print(
            "[red]Error:[/red] No config file given and no record-tree.yaml in the current directory"
        )
        raise typer.Exit(1)

    try:
        return TreeConfig.load(path)
    except RecordTreeError as e:
        logger.error(f"Config load failed: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def open_session(config: TreeConfig) -> TreeSession:
    """Create a session and build its tree once.

    Raises:
        typer.Exit: If the session cannot be built
    """
    session = TreeSession(config)
    try:
        asyncio.run(session.refresh())
    except RecordTreeError as e:
        logger.error(f"Building tree failed: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if not config.is_complete:
        console.print(
            "[yellow]Configuration is incomplete: set root_value and grouping_columns[/yellow]"
        )
    return session
