"""Staging strategy formatting and rendering.

Contains:
- strategy_to_dict: JSON-ready dictionary of a staging strategy
- error_to_dict: JSON-ready dictionary of a failed analysis
- render_json, render_markdown, render_terminal: Output formats of the split command
"""

import json
from datetime import datetime, timezone
from typing import Optional

import typer

from stagewise.boundary.models import PlannedBoundaryCommit, RiskLevel, StagingStrategy


OUTPUT_FORMATS = ("terminal", "json", "markdown")

_RISK_COLORS = {
    RiskLevel.LOW: typer.colors.GREEN,
    RiskLevel.MEDIUM: typer.colors.YELLOW,
    RiskLevel.HIGH: typer.colors.RED,
}


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def commit_to_dict(order: int, commit: PlannedBoundaryCommit) -> dict:
    boundary = commit.boundary
    return {
        "order": order,
        "boundary": {
            "id": boundary.id,
            "theme": boundary.theme,
            "priority": boundary.priority.value,
            "estimatedComplexity": boundary.estimated_complexity,
            "dependencies": list(boundary.dependencies),
            "reasoning": boundary.reasoning,
            "fileCount": boundary.file_count,
            "files": [
                {
                    "path": change.path,
                    "insertions": change.insertions,
                    "deletions": change.deletions,
                    "changeType": change.change_type.value,
                }
                for change in boundary.files
            ],
        },
        "suggestedMessage": commit.suggested_message.model_dump(mode="json"),
        "risk": commit.risk.value,
        "estimatedTime": commit.estimated_time,
        "rationale": commit.rationale,
    }


def strategy_to_dict(strategy: StagingStrategy, now: Optional[datetime] = None) -> dict:
    """Convert a staging strategy to the JSON output shape.

    Args:
        strategy: The strategy to convert.
        now: Timestamp to record (current UTC time when omitted).

    Returns:
        Dictionary with "analysis", "warnings" and "commits" keys.
    """
    return {
        "analysis": {
            "totalFiles": sum(c.boundary.file_count for c in strategy.commits),
            "recommendedCommits": len(strategy.commits),
            "strategy": strategy.strategy.value,
            "overallRisk": strategy.overall_risk.value,
            "timestamp": _timestamp(now),
        },
        "warnings": list(strategy.warnings),
        "commits": [commit_to_dict(i, c) for i, c in enumerate(strategy.commits, start=1)],
    }


def error_to_dict(error: Exception) -> dict:
    """Convert an analysis failure to the JSON error shape."""
    return {
        "error": {
            "type": type(error).__name__,
            "message": str(error),
        },
        "warnings": [],
        "commits": [],
    }


def render_json(strategy: StagingStrategy, now: Optional[datetime] = None) -> str:
    return json.dumps(strategy_to_dict(strategy, now), indent=2)


def render_markdown(strategy: StagingStrategy) -> str:
    """Render a staging strategy as a Markdown report."""
    lines = [
        "# Commit Boundary Analysis",
        "",
        f"**Strategy:** {strategy.strategy.value}  ",
        f"**Overall risk:** {strategy.overall_risk.value}  ",
        f"**Recommended commits:** {len(strategy.commits)}",
        "",
    ]

    if strategy.warnings:
        lines.append("## Warnings")
        lines.append("")
        lines.extend(f"- {warning}" for warning in strategy.warnings)
        lines.append("")

    lines.append("## Commits")
    lines.append("")
    for order, commit in enumerate(strategy.commits, start=1):
        boundary = commit.boundary
        lines.append(f"### {order}. {boundary.theme}")
        lines.append("")
        lines.append(f"- **Id:** `{boundary.id}`")
        lines.append(f"- **Priority:** {boundary.priority.value}")
        lines.append(f"- **Risk:** {commit.risk.value}")
        lines.append(f"- **Complexity:** {boundary.estimated_complexity:.1f}/10")
        lines.append(f"- **Estimated time:** {commit.estimated_time} min")
        if boundary.dependencies:
            lines.append(f"- **Depends on:** {', '.join(boundary.dependencies)}")
        lines.append("")
        lines.append("```")
        lines.append(commit.suggested_message.render())
        lines.append("```")
        lines.append("")
        lines.append("Files:")
        lines.append("")
        for change in boundary.files:
            lines.append(f"- `{change.path}` ({change.change_type.value}, +{change.insertions} -{change.deletions})")
        lines.append("")
        lines.append(f"_{commit.rationale}_")
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def render_terminal(strategy: StagingStrategy, color: bool = True) -> str:
    """Render a staging strategy for the terminal.

    Args:
        strategy: The strategy to render.
        color: Whether to add ANSI styling.

    Returns:
        The rendered text.
    """

    def style(text: str, **kwargs) -> str:
        return typer.style(text, **kwargs) if color else text

    lines = [
        style("Commit boundary analysis", bold=True),
        f"  Strategy: {strategy.strategy.value}",
        f"  Overall risk: {style(strategy.overall_risk.value, fg=_RISK_COLORS[strategy.overall_risk])}",
        f"  Recommended commits: {len(strategy.commits)}",
        "",
    ]

    for order, commit in enumerate(strategy.commits, start=1):
        boundary = commit.boundary
        header = commit.suggested_message.render().splitlines()[0]
        lines.append(style(f"[{order}] {boundary.id}: {boundary.theme}", bold=True))
        lines.append("    " + style(header, fg=typer.colors.CYAN))
        lines.append(
            f"    priority {boundary.priority.value} | "
            f"risk {style(commit.risk.value, fg=_RISK_COLORS[commit.risk])} | "
            f"complexity {boundary.estimated_complexity:.1f} | ~{commit.estimated_time} min"
        )
        if boundary.dependencies:
            lines.append(f"    after: {', '.join(boundary.dependencies)}")
        for change in boundary.files:
            lines.append(f"      {change.path} (+{change.insertions} -{change.deletions})")
        lines.append("")

    if strategy.warnings:
        lines.append(style("Warnings:", fg=typer.colors.YELLOW, bold=True))
        lines.extend(f"  - {warning}" for warning in strategy.warnings)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
