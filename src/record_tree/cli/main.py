"""Command line entry point for record-tree."""

import typer

from .. import __version__
from .commands.export import export_command
from .commands.show import show_command
from .commands.visualize import serve_command

app = typer.Typer(
    name="record-tree",
    help="🌳 Group flat list records into an interactive, collapsible tree",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"record-tree {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """🌳 record-tree: flat records in, interactive tree out."""


app.command("show")(show_command)
app.command("export")(export_command)
app.command("serve")(serve_command)


if __name__ == "__main__":
    app()
