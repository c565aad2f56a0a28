"""Show command: print the tree in the terminal."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.markup import escape
from rich.tree import Tree

from ...config.settings import TreeConfig
from ...core.models import MetadataTable, TreeNode
from ..common import console, load_config, open_session, setup_logging


def _label(node: TreeNode, config: TreeConfig, metadata: MetadataTable) -> str:
    label = f"[bold]{escape(node.title)}[/bold]"
    fields = [
        f"{escape(metadata.display_name(column))}: {escape(node.tooltip_data[column])}"
        for column in config.tooltip_fields.get(node.level, ())
        if node.tooltip_data.get(column)
    ]
    if fields:
        label += f" [dim]({', '.join(fields)})[/dim]"
    return label


def _add_children(
    branch: Tree,
    node: TreeNode,
    config: TreeConfig,
    metadata: MetadataTable,
    depth: int | None,
) -> None:
    if depth is not None and node.level >= depth:
        if node.children:
            branch.add(f"[dim]… {len(node.children)} more[/dim]")
        return
    for child in node.children:
        color = config.color_for_level(child.level)
        child_branch = branch.add(f"[{color}]●[/{color}] {_label(child, config, metadata)}")
        _add_children(child_branch, child, config, metadata, depth)


def show_command(
    config_path: Path | None = typer.Argument(
        None,
        help="Tree config file (defaults to ./record-tree.yaml)",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    depth: int | None = typer.Option(
        None,
        "--depth",
        "-d",
        help="Only show this many levels below the root",
        min=0,
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
    """🌳 Fetch records, build the tree and print it.

    [bold cyan]Examples:[/bold cyan]

    [green]Show the whole tree:[/green]
        $ record-tree show record-tree.yaml

    [green]Only the first two levels:[/green]
        $ record-tree show record-tree.yaml --depth 2
    """
    setup_logging(verbose)
    config = load_config(config_path)
    session = open_session(config)

    root = session.hierarchy.root
    if root is None or not config.is_complete:
        return

    tree = Tree(f"[bold {config.color_for_level(0)}]{escape(root.title)}[/]")
    _add_children(tree, root, config, session.metadata, depth)
    console.print(tree)
    console.print(
        f"\n[dim]{session.hierarchy.node_count()} nodes from list "
        f"'{escape(config.list_name)}'[/dim]"
    )
