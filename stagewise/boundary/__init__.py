"""Commit boundary analysis engine.

This package provides the pure analysis pipeline with:
- models: GitChange, CommitBoundary, StagingStrategy and related records
- exceptions: BoundaryError, ValidationError, EmptyInputError, OperationError, InvalidSplitError
- config: BoundaryConfig, ClassifierWeights
- classifier: ChangeClassifier and its detector registry
- relationships: RelationshipAnalyzer
- impact: ImpactAnalyzer
- builder: BoundaryBuilder
- dependencies: DependencyResolver
- planner: StagingStrategyPlanner
- mutation: BoundaryMutationService, MutationResult
- pipeline: analyze_changes, plan_staging
"""

# Models
from stagewise.boundary.models import (
    ChangeCategory,
    ChangeKind,
    ChangeTypeAnalysis,
    CommitBoundary,
    CommitMessageSkeleton,
    DiffHunk,
    DiffLine,
    FileRelationship,
    GitChange,
    ImpactAssessment,
    LineKind,
    PlannedBoundaryCommit,
    Priority,
    RelationType,
    RiskLevel,
    StagingStrategy,
    StrategyKind,
)

# Exceptions
from stagewise.boundary.exceptions import (
    BoundaryError,
    EmptyInputError,
    InvalidSplitError,
    OperationError,
    ValidationError,
)

# Configuration
from stagewise.boundary.config import (
    BoundaryConfig,
    ClassifierWeights,
)

# Components
from stagewise.boundary.classifier import (
    DEFAULT_DETECTORS,
    ChangeClassifier,
    Detection,
    Detector,
)
from stagewise.boundary.relationships import RelationshipAnalyzer
from stagewise.boundary.impact import ImpactAnalyzer
from stagewise.boundary.builder import BoundaryBuilder, BuildResult
from stagewise.boundary.dependencies import DependencyEdge, DependencyResolver, DependencyResult
from stagewise.boundary.planner import StagingStrategyPlanner
from stagewise.boundary.mutation import BoundaryMutationService, MutationResult

# Validation
from stagewise.boundary.validation import validate_strategy

# Pipeline
from stagewise.boundary.pipeline import (
    BoundaryAnalysis,
    analyze_changes,
    plan_staging,
)

__all__ = [
    # Models
    "ChangeCategory",
    "ChangeKind",
    "ChangeTypeAnalysis",
    "CommitBoundary",
    "CommitMessageSkeleton",
    "DiffHunk",
    "DiffLine",
    "FileRelationship",
    "GitChange",
    "ImpactAssessment",
    "LineKind",
    "PlannedBoundaryCommit",
    "Priority",
    "RelationType",
    "RiskLevel",
    "StagingStrategy",
    "StrategyKind",
    # Exceptions
    "BoundaryError",
    "EmptyInputError",
    "InvalidSplitError",
    "OperationError",
    "ValidationError",
    # Configuration
    "BoundaryConfig",
    "ClassifierWeights",
    # Components
    "DEFAULT_DETECTORS",
    "ChangeClassifier",
    "Detection",
    "Detector",
    "RelationshipAnalyzer",
    "ImpactAnalyzer",
    "BoundaryBuilder",
    "BuildResult",
    "DependencyEdge",
    "DependencyResolver",
    "DependencyResult",
    "StagingStrategyPlanner",
    "BoundaryMutationService",
    "MutationResult",
    # Validation
    "validate_strategy",
    # Pipeline
    "BoundaryAnalysis",
    "analyze_changes",
    "plan_staging",
]
