"""Interactive editing of a staging plan.

Contains:
- SESSION_HELP: Command reference shown by "help"
- SessionOutcome: Text to show and whether the session should end
- apply_session_command: Parse and apply one session command
- run_interactive_session: Prompt loop around apply_session_command
"""

import shlex
from dataclasses import dataclass
from typing import Optional

import typer

from stagewise.boundary import BoundaryConfig, BoundaryMutationService, MutationResult, StagingStrategy
from stagewise.formatters import render_terminal


SESSION_HELP = """Commands:
  show                              Show the current plan
  merge ID ID                       Merge two boundaries
  split ID PATH,PATH | PATH,PATH    Split a boundary into two file groups
  reorder ID POSITION [--override]  Move a boundary to a 1-based position
  relabel ID title|body|type VALUE  Edit the suggested commit message
  undo                              Revert the last change
  done                              Accept the plan"""


@dataclass
class SessionOutcome:
    """Result of one session command."""

    message: str
    done: bool = False
    changed: bool = False


def _describe(result: MutationResult, success: str) -> SessionOutcome:
    if result.ok:
        return SessionOutcome(success, changed=True)
    return SessionOutcome(f"Error: {result.error}")


def _parse_groups(text: str) -> Optional[list[list[str]]]:
    if "|" not in text:
        return None
    groups = [[p.strip() for p in part.split(",") if p.strip()] for part in text.split("|")]
    return groups


def apply_session_command(service: BoundaryMutationService, line: str, color: bool = False) -> SessionOutcome:
    """Parse and apply one session command.

    Args:
        service: The mutation service holding the current plan.
        line: The command line typed by the user.
        color: Whether rendered plans use ANSI styling.

    Returns:
        SessionOutcome describing what happened.
    """
    line = line.strip()
    if not line:
        return SessionOutcome("")
    command, _, rest = line.partition(" ")
    command = command.lower()
    rest = rest.strip()

    if command in ("done", "quit", "exit", "q"):
        return SessionOutcome("Plan accepted.", done=True)
    if command in ("help", "?"):
        return SessionOutcome(SESSION_HELP)
    if command == "show":
        return SessionOutcome(render_terminal(service.current, color=color))
    if command == "undo":
        return _describe(service.undo(), "Reverted the last change.")

    if command == "merge":
        args = rest.split()
        if len(args) != 2:
            return SessionOutcome("Usage: merge ID ID")
        return _describe(service.merge(args[0], args[1]), f"Merged {args[0]} and {args[1]}.")

    if command == "split":
        boundary_id, _, groups_text = rest.partition(" ")
        groups = _parse_groups(groups_text)
        if not boundary_id or groups is None:
            return SessionOutcome("Usage: split ID PATH,PATH | PATH,PATH")
        return _describe(service.split(boundary_id, groups), f"Split {boundary_id}.")

    if command == "reorder":
        args = rest.split()
        override = "--override" in args
        args = [a for a in args if a != "--override"]
        if len(args) != 2 or not args[1].isdigit():
            return SessionOutcome("Usage: reorder ID POSITION [--override]")
        position = int(args[1])
        result = service.reorder(args[0], position - 1, override=override)
        return _describe(result, f"Moved {args[0]} to position {position}.")

    if command == "relabel":
        try:
            args = shlex.split(rest)
        except ValueError as e:
            return SessionOutcome(f"Error: {e}")
        if len(args) < 3:
            return SessionOutcome("Usage: relabel ID title|body|type VALUE")
        boundary_id, field, value = args[0], args[1], " ".join(args[2:])
        return _describe(service.relabel(boundary_id, field, value), f"Updated the {field} of {boundary_id}.")

    return SessionOutcome(f"Unknown command: {command}. Type 'help' for the list of commands.")


def run_interactive_session(strategy: StagingStrategy, config: Optional[BoundaryConfig] = None) -> StagingStrategy:
    """Let the user edit the plan until they accept it.

    Returns:
        The accepted plan.
    """
    service = BoundaryMutationService(strategy, config)
    typer.echo(SESSION_HELP)
    while True:
        typer.echo()
        line = typer.prompt("stagewise", default="done", show_default=False)
        outcome = apply_session_command(service, line, color=True)
        if outcome.message:
            typer.echo(outcome.message)
        if outcome.changed:
            typer.echo()
            typer.echo(render_terminal(service.current))
        if outcome.done:
            return service.current
