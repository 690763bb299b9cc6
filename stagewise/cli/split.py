"""CLI command for splitting working tree changes into commit boundaries."""

import json
from typing import Optional

import typer

from stagewise.boundary import BoundaryError, EmptyInputError, StagingStrategy, plan_staging
from stagewise.cli.session import run_interactive_session
from stagewise.formatters import (
    OUTPUT_FORMATS,
    error_to_dict,
    render_json,
    render_markdown,
    render_terminal,
)
from stagewise.git import GitError, NoChangesError, collect_working_changes, get_repo_root, stage_boundary
from stagewise.logging_utils import configure_logging
from stagewise.user_config import load_boundary_config


def _render(strategy: StagingStrategy, output_format: str) -> str:
    if output_format == "json":
        return render_json(strategy)
    if output_format == "markdown":
        return render_markdown(strategy)
    return render_terminal(strategy)


def _report_error(error: Exception, output_format: str) -> None:
    if output_format == "json":
        typer.echo(json.dumps(error_to_dict(error), indent=2))
    else:
        typer.echo(f"Error: {error}", err=True)


def split_command(
    output_format: str = typer.Option(
        "terminal",
        "--format",
        "-f",
        help="Output format: terminal, json or markdown",
    ),
    min_boundary_size: Optional[int] = typer.Option(
        None,
        "--min-boundary-size",
        help="Minimum number of files per commit (default 1)",
    ),
    max_boundary_size: Optional[int] = typer.Option(
        None,
        "--max-boundary-size",
        help="Maximum number of files per commit (default 8)",
    ),
    complexity_threshold: Optional[float] = typer.Option(
        None,
        "--complexity-threshold",
        help="Warn about commits more complex than this (0-10, default 8)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Allow commits larger than the maximum size when files are related",
    ),
    auto_stage: bool = typer.Option(
        False,
        "--auto-stage",
        help="Stage the files of the first recommended commit",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Only show the plan; never stage files or start an interactive session",
    ),
    interactive: bool = typer.Option(
        False,
        "--interactive",
        "-i",
        help="Edit the plan (merge, split, reorder, relabel) before accepting it",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log output (-v for info, -vv for debug)",
    ),
) -> None:
    """Analyze uncommitted changes and suggest how to split them into commits."""
    configure_logging(verbose)

    if output_format not in OUTPUT_FORMATS:
        typer.echo(f"Error: Unknown format '{output_format}'. Choose one of: {', '.join(OUTPUT_FORMATS)}", err=True)
        raise typer.Exit(1)

    try:
        repo_root = get_repo_root()
        config = load_boundary_config(
            repo_root,
            min_boundary_size=min_boundary_size,
            max_boundary_size=max_boundary_size,
            complexity_threshold=complexity_threshold,
            force=True if force else None,
        )
        changes, parse_warnings = collect_working_changes(repo_root)
        strategy = plan_staging(changes, config)
    except NoChangesError as e:
        if output_format == "json":
            _report_error(EmptyInputError(str(e)), output_format)
        else:
            typer.echo(str(e))
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except BoundaryError as e:
        _report_error(e, output_format)
        raise typer.Exit(1)

    if parse_warnings:
        strategy = strategy.model_copy(update={"warnings": tuple(parse_warnings) + strategy.warnings})

    if interactive and not dry_run:
        typer.echo(render_terminal(strategy))
        strategy = run_interactive_session(strategy, config)
        typer.echo()

    typer.echo(_render(strategy, output_format), nl=output_format == "json")

    if dry_run:
        if output_format != "json":
            typer.echo("Dry run - no files were staged.")
        return

    if auto_stage and strategy.commits:
        first = strategy.commits[0]
        try:
            staged = stage_boundary(first.boundary, repo_root)
        except GitError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(f"Staged {len(staged)} file(s) for {first.boundary.id}:", err=output_format == "json")
        typer.echo(f"  {first.suggested_message.render().splitlines()[0]}", err=output_format == "json")
