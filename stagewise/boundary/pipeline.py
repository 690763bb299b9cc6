"""End-to-end boundary analysis.

Contains:
- BoundaryAnalysis: The staging strategy plus the intermediate results behind it
- analyze_changes: Run every analysis stage over a change-set
- plan_staging: Convenience wrapper returning only the strategy
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from stagewise.boundary.builder import BoundaryBuilder
from stagewise.boundary.classifier import ChangeClassifier
from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.dependencies import DependencyResolver
from stagewise.boundary.exceptions import BoundaryError, EmptyInputError, ValidationError
from stagewise.boundary.impact import ImpactAnalyzer
from stagewise.boundary.models import (
    ChangeTypeAnalysis,
    FileRelationship,
    GitChange,
    ImpactAssessment,
    StagingStrategy,
)
from stagewise.boundary.planner import StagingStrategyPlanner
from stagewise.boundary.relationships import RelationshipAnalyzer
from stagewise.boundary.validation import validate_strategy

logger = logging.getLogger(__name__)


@dataclass
class BoundaryAnalysis:
    """Result of a full analysis run."""

    strategy: StagingStrategy
    analyses: dict[str, ChangeTypeAnalysis]
    relationships: list[FileRelationship]
    impacts: dict[str, ImpactAssessment]
    ignored_paths: list[str]


def _check_unique_paths(changes: Sequence[GitChange]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for change in changes:
        if change.path in seen and change.path not in duplicates:
            duplicates.append(change.path)
        seen.add(change.path)
    if duplicates:
        raise ValidationError(f"Duplicate paths in change-set: {', '.join(duplicates)}")


def analyze_changes(changes: Sequence[GitChange], config: Optional[BoundaryConfig] = None) -> BoundaryAnalysis:
    """Analyze a change-set and plan how to stage it.

    Args:
        changes: The uncommitted changes, in a stable order.
        config: Analysis options (defaults when omitted).

    Returns:
        BoundaryAnalysis with the strategy and intermediate results.

    Raises:
        ValidationError: If the configuration is invalid or paths repeat.
        EmptyInputError: If no changes remain after ignore patterns.
    """
    config = (config or BoundaryConfig()).validate()
    if not changes:
        raise EmptyInputError("No changes to analyze")
    _check_unique_paths(changes)

    analyzed = [c for c in changes if not config.is_ignored(c.path)]
    ignored = [c.path for c in changes if config.is_ignored(c.path)]
    if not analyzed:
        raise EmptyInputError(f"All {len(changes)} changed files match ignore patterns")

    warnings: list[str] = []
    if ignored:
        warnings.append(f"Ignored {len(ignored)} file(s) matching ignore patterns: {', '.join(ignored)}")

    relationship_analyzer = RelationshipAnalyzer(config)
    if relationship_analyzer.is_degraded(len(analyzed)):
        warnings.append(
            f"{len(analyzed)} files exceed the full analysis limit of "
            f"{config.max_files_for_full_analysis}; only path-based relationships were used"
        )

    analyses = ChangeClassifier(config).classify_all(analyzed)
    relationships = relationship_analyzer.analyze(analyzed)
    impacts = ImpactAnalyzer(config).assess_all(analyzed, analyses)

    build = BoundaryBuilder(config).build(analyzed, relationships, analyses, impacts)
    warnings.extend(build.warnings)
    resolved = DependencyResolver(config).resolve(build.boundaries, relationships, analyses)
    strategy = StagingStrategyPlanner(config).plan(
        resolved.boundaries, impacts, resolved, warnings, forced_ids=build.forced_ids
    )

    errors = validate_strategy(strategy, [c.path for c in analyzed])
    if errors:
        raise BoundaryError(f"Planned strategy is inconsistent: {'; '.join(errors)}")

    return BoundaryAnalysis(
        strategy=strategy,
        analyses=analyses,
        relationships=relationships,
        impacts=impacts,
        ignored_paths=ignored,
    )


def plan_staging(changes: Sequence[GitChange], config: Optional[BoundaryConfig] = None) -> StagingStrategy:
    """Plan how to stage a change-set as a sequence of commits."""
    return analyze_changes(changes, config).strategy
