"""Root callback of the stagewise CLI."""

import typer

from stagewise import __version__


def main_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the installed version and exit",
    ),
) -> None:
    """Plan focused commits from a mixed working tree."""
    if version:
        typer.echo(f"stagewise {__version__}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
