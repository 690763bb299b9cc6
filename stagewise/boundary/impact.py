"""Risk and breaking-change assessment for individual changes.

Contains:
- CATEGORY_BASE_RISK: Starting risk score per change category
- ImpactAnalyzer: Builds an ImpactAssessment per change
"""

import logging
from typing import Iterable, Mapping, Optional

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.models import (
    ChangeCategory,
    ChangeKind,
    ChangeTypeAnalysis,
    GitChange,
    ImpactAssessment,
)
from stagewise.boundary.paths import is_critical_path, is_source_path
from stagewise.boundary.symbols import removed_public_symbols

logger = logging.getLogger(__name__)


CATEGORY_BASE_RISK = {
    ChangeCategory.BREAKING_CHANGE: 0.8,
    ChangeCategory.SECURITY_FIX: 0.7,
    ChangeCategory.API_CHANGE: 0.6,
    ChangeCategory.DEPLOYMENT: 0.5,
    ChangeCategory.DEPENDENCY_UPDATE: 0.5,
    ChangeCategory.CONFIGURATION: 0.4,
    ChangeCategory.FEATURE_ADDITION: 0.4,
    ChangeCategory.PERFORMANCE_IMPROVEMENT: 0.35,
    ChangeCategory.BUG_FIX: 0.3,
    ChangeCategory.REFACTOR: 0.3,
    ChangeCategory.TESTING: 0.1,
    ChangeCategory.DOCUMENTATION: 0.05,
}

CRITICAL_CATEGORIES = {ChangeCategory.BREAKING_CHANGE, ChangeCategory.SECURITY_FIX}

CRITICAL_FILE_RISK = 0.3
BREAKING_RISK = 0.3
DELETION_RISK = 0.1
MAX_SIZE_RISK = 0.2


class ImpactAnalyzer:
    """Assess how risky each change is to commit."""

    def __init__(self, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()

    def assess(self, change: GitChange, analysis: ChangeTypeAnalysis) -> ImpactAssessment:
        """Assess a single change.

        Args:
            change: The change to assess.
            analysis: Its classification.

        Returns:
            The impact assessment with a risk score in [0, 1].
        """
        signals: list[str] = []

        removed = removed_public_symbols(change)
        breaking = bool(removed)
        if removed:
            signals.append(f"removes public symbols: {', '.join(removed)}")
        if change.change_type is ChangeKind.DELETED and is_source_path(change.path):
            breaking = True
            signals.append("deletes a source file")

        critical_file = is_critical_path(change.path)
        if critical_file:
            signals.append("touches a critical file")

        critical = critical_file or breaking or analysis.category in CRITICAL_CATEGORIES
        if analysis.category in CRITICAL_CATEGORIES:
            signals.append(f"classified as {analysis.category.value}")

        risk = CATEGORY_BASE_RISK.get(analysis.category, 0.3)
        risk += min(MAX_SIZE_RISK, change.total_lines / 1000)
        if critical_file:
            risk += CRITICAL_FILE_RISK
        if breaking:
            risk += BREAKING_RISK
        if change.change_type is ChangeKind.DELETED:
            risk += DELETION_RISK

        return ImpactAssessment(
            path=change.path,
            risk_score=round(min(1.0, max(0.0, risk)), 3),
            critical=critical,
            breaking=breaking,
            signals=tuple(signals),
            removed_symbols=tuple(removed),
        )

    def assess_all(
        self,
        changes: Iterable[GitChange],
        analyses: Mapping[str, ChangeTypeAnalysis],
    ) -> dict[str, ImpactAssessment]:
        """Assess every change, keyed by path."""
        impacts = {change.path: self.assess(change, analyses[change.path]) for change in changes}
        critical = sum(1 for i in impacts.values() if i.critical)
        logger.debug("Assessed %d changes, %d critical", len(impacts), critical)
        return impacts
