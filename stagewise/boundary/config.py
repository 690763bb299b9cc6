"""Configuration for boundary analysis.

Contains:
- ClassifierWeights: Confidence weights and thresholds used by the change classifier
- BoundaryConfig: Options passed explicitly into every analysis component
"""

import fnmatch
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from stagewise.boundary.exceptions import ValidationError

logger = logging.getLogger(__name__)


# Complexity ceiling used for warnings when no explicit threshold is set
DEFAULT_COMPLEXITY_CEILING = 8.0


@dataclass(frozen=True)
class ClassifierWeights:
    """Confidence weights and thresholds used by the change classifier."""

    high_confidence: float = 0.7  # First detection at or above this wins
    path_only_penalty: float = 0.6  # Multiplier when hunk content is unreadable
    breaking_change: float = 0.9
    bug_fix: float = 0.8
    feature: float = 0.85
    refactor: float = 0.75
    fallback: float = 0.5
    unknown_file: float = 0.3
    bug_fix_max_lines: int = 60  # Larger edits are not treated as targeted fixes


@dataclass(frozen=True)
class BoundaryConfig:
    """Options for a single boundary analysis run."""

    min_boundary_size: int = 1
    max_boundary_size: int = 8
    complexity_threshold: Optional[float] = None
    ignore_patterns: tuple[str, ...] = ()
    force: bool = False

    # Relationship graph
    min_relationship_strength: float = 0.3
    dependency_strength_threshold: float = 0.5
    similarity_threshold: float = 0.5

    # Priority thresholds
    medium_priority_line_threshold: int = 100
    medium_priority_file_threshold: int = 4

    # Resource limits
    max_files_for_full_analysis: int = 500
    workers: int = 4

    weights: ClassifierWeights = field(default_factory=ClassifierWeights)

    @property
    def complexity_ceiling(self) -> float:
        """Complexity above which a boundary is flagged in the plan warnings."""
        if self.complexity_threshold is None:
            return DEFAULT_COMPLEXITY_CEILING
        return self.complexity_threshold

    def validate(self) -> "BoundaryConfig":
        """Check option ranges.

        Returns:
            The same configuration, for chaining.

        Raises:
            ValidationError: If any option is out of range.
        """
        if self.min_boundary_size < 1:
            raise ValidationError(f"min_boundary_size must be at least 1, got {self.min_boundary_size}")
        if self.max_boundary_size < 1:
            raise ValidationError(f"max_boundary_size must be at least 1, got {self.max_boundary_size}")
        if self.min_boundary_size > self.max_boundary_size:
            raise ValidationError(
                f"min_boundary_size ({self.min_boundary_size}) cannot exceed "
                f"max_boundary_size ({self.max_boundary_size})"
            )
        if self.complexity_threshold is not None and not 0 <= self.complexity_threshold <= 10:
            raise ValidationError(
                f"complexity_threshold must be between 0 and 10, got {self.complexity_threshold}"
            )
        for name in ("min_relationship_strength", "dependency_strength_threshold", "similarity_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValidationError(f"{name} must be between 0 and 1, got {value}")
        if self.workers < 1:
            raise ValidationError(f"workers must be at least 1, got {self.workers}")
        if self.max_files_for_full_analysis < 1:
            raise ValidationError("max_files_for_full_analysis must be at least 1")
        return self

    def is_ignored(self, path: str) -> bool:
        """Check whether a path matches one of the ignore patterns.

        Patterns match the full path or just the filename, so "*.lock"
        excludes lockfiles in any directory.
        """
        filename = path.rsplit("/", 1)[-1]
        for pattern in self.ignore_patterns:
            if path == pattern:
                return True
            if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(filename, pattern):
                return True
        return False

    def with_overrides(self, **overrides: Any) -> "BoundaryConfig":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: dict) -> "BoundaryConfig":
        """Build a configuration from a plain mapping (e.g. a YAML section).

        Unknown keys are ignored with a warning. A nested "weights" mapping
        overrides individual classifier weights.

        Raises:
            ValidationError: If a value has the wrong type.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in (data or {}).items():
            if key not in known:
                logger.warning("Ignoring unknown boundary option: %s", key)
                continue
            kwargs[key] = value

        if "ignore_patterns" in kwargs:
            kwargs["ignore_patterns"] = tuple(kwargs["ignore_patterns"] or ())

        if "weights" in kwargs:
            weight_names = {f.name for f in fields(ClassifierWeights)}
            raw_weights = kwargs["weights"] or {}
            if not isinstance(raw_weights, dict):
                raise ValidationError("weights must be a mapping")
            unknown = set(raw_weights) - weight_names
            if unknown:
                logger.warning("Ignoring unknown classifier weights: %s", ", ".join(sorted(unknown)))
            kwargs["weights"] = ClassifierWeights(
                **{k: v for k, v in raw_weights.items() if k in weight_names}
            )

        for key, value in kwargs.items():
            if key in ("ignore_patterns", "weights", "force"):
                continue
            if value is None and key == "complexity_threshold":
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{key} must be a number, got {value!r}")

        return cls(**kwargs)
