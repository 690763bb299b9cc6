"""CLI entry point for stagewise.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

import typer

from stagewise.cli.ignore import ignore_app
from stagewise.cli.main import main_command
from stagewise.cli.session import apply_session_command, run_interactive_session
from stagewise.cli.split import split_command

# Main application
app = typer.Typer(
    name="stagewise",
    help="stagewise: split uncommitted changes into focused, ordered commits",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(ignore_app, name="ignore")

# Add individual commands
app.command("split")(split_command)

# Set the main callback for default behavior (includes --version flag)
app.callback(invoke_without_command=True)(main_command)


__all__ = [
    "app",
    "ignore_app",
    "main_command",
    "split_command",
    "apply_session_command",
    "run_interactive_session",
]
