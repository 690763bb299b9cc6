"""Staging strategy planning.

Contains:
- round_half_up, estimate_time: Time estimate per boundary
- assess_risk, overall_risk: Risk per boundary and for the whole plan
- determine_strategy_kind: Parallel / sequential / progressive classification
- order_boundaries: Topological ordering with priority tie-breaks
- build_commit: Wrap a boundary with its message skeleton and estimates
- StagingStrategyPlanner: Assemble the final StagingStrategy
"""

import logging
import math
from collections import defaultdict
from typing import Iterable, Mapping, Optional, Sequence

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.dependencies import DependencyResult
from stagewise.boundary.models import (
    CommitBoundary,
    ImpactAssessment,
    PlannedBoundaryCommit,
    RiskLevel,
    StagingStrategy,
    StrategyKind,
)
from stagewise.boundary.skeleton import build_message_skeleton, build_rationale

logger = logging.getLogger(__name__)


HIGH_RISK_SCORE = 0.7
MEDIUM_RISK_SCORE = 0.4
HIGH_RISK_COMPLEXITY = 8.0
MEDIUM_RISK_COMPLEXITY = 5.0

# Plans with more commits than this get a suggestion to combine some
MANY_COMMITS = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_time(boundary: CommitBoundary) -> int:
    """Estimated minutes to review and commit a boundary."""
    return round_half_up(2 + boundary.estimated_complexity * 1.2 + 0.3 * boundary.file_count)


def assess_risk(boundary: CommitBoundary, impacts: Mapping[str, ImpactAssessment]) -> RiskLevel:
    """Risk of a boundary from its riskiest member and its complexity."""
    scores = [impacts[p].risk_score for p in boundary.paths if p in impacts]
    worst = max(scores, default=0.0)
    complexity = boundary.estimated_complexity
    if worst >= HIGH_RISK_SCORE or complexity >= HIGH_RISK_COMPLEXITY:
        return RiskLevel.HIGH
    if worst >= MEDIUM_RISK_SCORE or complexity >= MEDIUM_RISK_COMPLEXITY:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def overall_risk(risks: Iterable[RiskLevel]) -> RiskLevel:
    return max(risks, key=lambda r: r.rank, default=RiskLevel.LOW)


def determine_strategy_kind(boundaries: Sequence[CommitBoundary]) -> StrategyKind:
    """Classify the shape of the dependency graph.

    parallel: no dependencies at all. sequential: the dependencies form one
    chain through every boundary. progressive: anything else.
    """
    edges = [(dep, b.id) for b in boundaries for dep in b.dependencies]
    if not edges:
        return StrategyKind.PARALLEL

    indegree: dict[str, int] = defaultdict(int)
    outdegree: dict[str, int] = defaultdict(int)
    for src, dst in edges:
        outdegree[src] += 1
        indegree[dst] += 1

    is_chain = (
        len(boundaries) > 1
        and len(edges) == len(boundaries) - 1
        and all(indegree[b.id] <= 1 and outdegree[b.id] <= 1 for b in boundaries)
        and sum(1 for b in boundaries if indegree[b.id] == 0) == 1
    )
    return StrategyKind.SEQUENTIAL if is_chain else StrategyKind.PROGRESSIVE


def dependency_depths(boundaries: Sequence[CommitBoundary]) -> dict[str, int]:
    """Longest-path depth of each boundary from a boundary without dependencies."""
    known = {b.id for b in boundaries}
    depth: dict[str, int] = {}
    remaining = list(boundaries)
    while remaining:
        progressed = False
        still: list[CommitBoundary] = []
        for boundary in remaining:
            deps = [d for d in boundary.dependencies if d in known]
            if all(d in depth for d in deps):
                depth[boundary.id] = max((depth[d] + 1 for d in deps), default=0)
                progressed = True
            else:
                still.append(boundary)
        if not progressed:
            # Cyclic leftovers keep their relative order after everything else
            top = max(depth.values(), default=0) + 1
            for boundary in still:
                depth[boundary.id] = top
            break
        remaining = still
    return depth


def order_boundaries(boundaries: Sequence[CommitBoundary]) -> list[CommitBoundary]:
    """Order boundaries by dependency depth, then priority, then input position."""
    depth = dependency_depths(boundaries)
    position = {b.id: i for i, b in enumerate(boundaries)}
    return sorted(boundaries, key=lambda b: (depth[b.id], -b.priority.rank, position[b.id]))


def build_commit(boundary: CommitBoundary, risk: RiskLevel) -> PlannedBoundaryCommit:
    return PlannedBoundaryCommit(
        boundary=boundary,
        suggested_message=build_message_skeleton(boundary),
        rationale=build_rationale(boundary),
        risk=risk,
        estimated_time=estimate_time(boundary),
    )


class StagingStrategyPlanner:
    """Turn resolved boundaries into an ordered staging strategy."""

    def __init__(self, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()

    def plan(
        self,
        boundaries: Sequence[CommitBoundary],
        impacts: Mapping[str, ImpactAssessment],
        dependency_result: Optional[DependencyResult] = None,
        extra_warnings: Sequence[str] = (),
        forced_ids: Sequence[str] = (),
    ) -> StagingStrategy:
        """Build the staging strategy.

        Args:
            boundaries: Boundaries with dependencies resolved, in build order.
            impacts: Impact assessment per path.
            dependency_result: Resolution output, for cycle warnings.
            extra_warnings: Warnings from earlier stages (ignored files, degraded analysis).
            forced_ids: Boundaries the builder let grow past the maximum size.

        Returns:
            The StagingStrategy.
        """
        ordered = order_boundaries(boundaries)
        commits = [build_commit(b, assess_risk(b, impacts)) for b in ordered]

        warnings = list(extra_warnings)
        warnings.extend(self._size_warnings(ordered, forced_ids))
        if dependency_result is not None:
            warnings.extend(dependency_result.warnings)
        warnings.extend(self._complexity_warnings(ordered))

        high_risk = sum(1 for c in commits if c.risk is RiskLevel.HIGH)
        if high_risk:
            warnings.append(f"{high_risk} high-risk commit(s) - review them carefully before committing")
        if len(commits) > MANY_COMMITS:
            warnings.append(f"Many commits ({len(commits)}) - consider combining closely related changes")

        strategy = StagingStrategy(
            strategy=determine_strategy_kind(ordered),
            commits=tuple(commits),
            warnings=tuple(warnings),
            overall_risk=overall_risk(c.risk for c in commits),
        )
        logger.info(
            "Planned %d commits (%s strategy, %s risk)",
            len(commits), strategy.strategy.value, strategy.overall_risk.value,
        )
        return strategy

    def _size_warnings(self, boundaries: Sequence[CommitBoundary], forced_ids: Sequence[str]) -> list[str]:
        limit = self.config.max_boundary_size
        forced = set(forced_ids)
        return [
            f"{b.id} has {b.file_count} files, above the maximum boundary size of {limit} (forced)"
            for b in boundaries
            if b.id in forced
        ]

    def _complexity_warnings(self, boundaries: Sequence[CommitBoundary]) -> list[str]:
        ceiling = self.config.complexity_ceiling
        return [
            f"{b.id} has complexity {b.estimated_complexity:.1f}, above {ceiling:.1f} - consider splitting it"
            for b in boundaries
            if b.estimated_complexity > ceiling
        ]
