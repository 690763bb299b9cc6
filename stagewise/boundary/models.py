"""Data models for boundary analysis.

Contains:
- ChangeKind, LineKind: Kinds of file changes and diff lines
- ChangeCategory: Semantic intent of a change
- RelationType: Kinds of relationships between changed files
- Priority, RiskLevel, StrategyKind: Plan-level enumerations
- DiffLine, DiffHunk, GitChange: One changed file and its hunks
- FileRelationship: A weighted relationship between two changed files
- ChangeTypeAnalysis: Classification result for a single file
- ImpactAssessment: Risk and breaking-change signals for a single file
- CommitBoundary: A group of files intended to become one commit
- CommitMessageSkeleton: Structured commit message fields
- PlannedBoundaryCommit: A boundary with its message, risk and time estimate
- StagingStrategy: The ordered staging plan
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from stagewise.boundary.exceptions import ValidationError


class ChangeKind(Enum):
    """How a file changed in the working tree."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineKind(Enum):
    """Role of a line inside a diff hunk."""

    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


class ChangeCategory(Enum):
    """Semantic intent of a change."""

    FEATURE_ADDITION = "feature-addition"
    BUG_FIX = "bug-fix"
    REFACTOR = "refactor"
    BREAKING_CHANGE = "breaking-change"
    PERFORMANCE_IMPROVEMENT = "performance-improvement"
    SECURITY_FIX = "security-fix"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    CONFIGURATION = "configuration"
    DEPENDENCY_UPDATE = "dependency-update"
    DEPLOYMENT = "deployment"
    API_CHANGE = "api-change"


# Tie-break order when picking a dominant category (most severe first)
CATEGORY_SEVERITY: tuple[ChangeCategory, ...] = (
    ChangeCategory.BREAKING_CHANGE,
    ChangeCategory.SECURITY_FIX,
    ChangeCategory.API_CHANGE,
    ChangeCategory.FEATURE_ADDITION,
    ChangeCategory.BUG_FIX,
    ChangeCategory.REFACTOR,
    ChangeCategory.PERFORMANCE_IMPROVEMENT,
    ChangeCategory.TESTING,
    ChangeCategory.CONFIGURATION,
    ChangeCategory.DEPENDENCY_UPDATE,
    ChangeCategory.DEPLOYMENT,
    ChangeCategory.DOCUMENTATION,
)


class RelationType(Enum):
    """Kinds of relationships between two changed files."""

    IMPORT = "import"
    SIMILAR_CHANGES = "similar_changes"
    SHARED_FUNCTION = "shared_function"
    TEST_PAIR = "test_pair"
    CONFIG_RELATED = "config_related"


class Priority(Enum):
    """Commit priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


class RiskLevel(Enum):
    """Risk of committing a boundary."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


class StrategyKind(Enum):
    """Shape of the dependency graph between boundaries."""

    PROGRESSIVE = "progressive"
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}
_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


# ============================================================
# Diff-level records
# ============================================================

@dataclass(frozen=True)
class DiffLine:
    """A single line of a diff hunk."""

    kind: LineKind
    content: str  # Without the leading +/-/space marker


@dataclass(frozen=True)
class DiffHunk:
    """A hunk of a file diff."""

    header: str  # The @@ ... @@ line
    start_line: int
    end_line: int
    lines: tuple[DiffLine, ...] = ()


@dataclass(frozen=True)
class GitChange:
    """One changed file in the working tree."""

    path: str
    change_type: ChangeKind
    insertions: int = 0
    deletions: int = 0
    hunks: tuple[DiffHunk, ...] = ()
    old_path: Optional[str] = None  # For renames
    binary: bool = False

    def __post_init__(self):
        if not self.path:
            raise ValidationError("GitChange path must not be empty")
        if self.insertions < 0 or self.deletions < 0:
            raise ValidationError(
                f"Negative line counts for {self.path}: +{self.insertions} -{self.deletions}"
            )

    @property
    def total_lines(self) -> int:
        return self.insertions + self.deletions

    @property
    def added_lines(self) -> list[str]:
        return [ln.content for h in self.hunks for ln in h.lines if ln.kind is LineKind.ADDED]

    @property
    def removed_lines(self) -> list[str]:
        return [ln.content for h in self.hunks for ln in h.lines if ln.kind is LineKind.REMOVED]

    @property
    def context_lines(self) -> list[str]:
        return [ln.content for h in self.hunks for ln in h.lines if ln.kind is LineKind.CONTEXT]

    @property
    def content_readable(self) -> bool:
        """Whether hunk content is available for content-based analysis."""
        return not self.binary and bool(self.hunks)


@dataclass(frozen=True)
class FileRelationship:
    """A weighted relationship between two changed files.

    The pair is unordered; file_a is the file that comes first in the input.
    """

    file_a: str
    file_b: str
    relation_type: RelationType
    strength: float
    evidence: str = ""


@dataclass(frozen=True)
class ChangeTypeAnalysis:
    """Classification result for a single changed file."""

    path: str
    category: ChangeCategory
    confidence: float
    reasoning: str
    suggested_actions: tuple[str, ...] = ()
    detector: str = ""
    path_only: bool = False


@dataclass(frozen=True)
class ImpactAssessment:
    """Risk and breaking-change signals for a single changed file."""

    path: str
    risk_score: float
    critical: bool = False
    breaking: bool = False
    signals: tuple[str, ...] = ()
    removed_symbols: tuple[str, ...] = field(default_factory=tuple)


# ============================================================
# Plan-level records
# ============================================================

class CommitBoundary(BaseModel):
    """A group of files intended to become one commit."""

    model_config = ConfigDict(frozen=True)

    id: str  # e.g., "boundary-1"
    files: tuple[GitChange, ...]
    theme: str
    category: ChangeCategory
    priority: Priority
    estimated_complexity: float
    dependencies: tuple[str, ...] = ()  # Boundary ids that must be committed first
    reasoning: str = ""

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.total_lines for f in self.files)


class CommitMessageSkeleton(BaseModel):
    """Structured commit message fields for a boundary."""

    model_config = ConfigDict(frozen=True)

    type: str
    scope: Optional[str] = None
    title: str
    body: Optional[str] = None
    breaking: bool = False

    def render(self) -> str:
        """Render as a conventional commit message."""
        header = self.type
        if self.scope:
            header += f"({self.scope})"
        if self.breaking:
            header += "!"
        message = f"{header}: {self.title}"
        if self.body:
            message += f"\n\n{self.body}"
        return message


class PlannedBoundaryCommit(BaseModel):
    """A boundary with its suggested message, risk and time estimate."""

    model_config = ConfigDict(frozen=True)

    boundary: CommitBoundary
    suggested_message: CommitMessageSkeleton
    rationale: str
    risk: RiskLevel
    estimated_time: int  # Minutes


class StagingStrategy(BaseModel):
    """The ordered staging plan."""

    model_config = ConfigDict(frozen=True)

    strategy: StrategyKind
    commits: tuple[PlannedBoundaryCommit, ...]
    warnings: tuple[str, ...] = ()
    overall_risk: RiskLevel = RiskLevel.LOW

    @property
    def boundary_ids(self) -> list[str]:
        return [c.boundary.id for c in self.commits]

    @property
    def paths(self) -> list[str]:
        return [path for c in self.commits for path in c.boundary.paths]

    def get_commit(self, boundary_id: str) -> Optional[PlannedBoundaryCommit]:
        for commit in self.commits:
            if commit.boundary.id == boundary_id:
                return commit
        return None
