"""Invariant-preserving edits of a staging strategy.

Contains:
- RELABEL_FIELDS: Message fields that can be relabeled
- MutationResult: New snapshot, or the unchanged one plus an error
- BoundaryMutationService: merge / split / reorder / relabel with undo

Every operation builds a new StagingStrategy, validates it against the
original change-set and only then replaces the current snapshot.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.exceptions import BoundaryError, InvalidSplitError, OperationError
from stagewise.boundary.models import (
    CATEGORY_SEVERITY,
    CommitBoundary,
    PlannedBoundaryCommit,
    StagingStrategy,
)
from stagewise.boundary.planner import (
    build_commit,
    determine_strategy_kind,
    overall_risk,
    round_half_up,
)
from stagewise.boundary.validation import find_order_violations, validate_strategy

logger = logging.getLogger(__name__)


RELABEL_FIELDS = ("title", "body", "type")


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation: the current snapshot and the error, if any."""

    strategy: StagingStrategy
    error: Optional[BoundaryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _rewrite_dependencies(
    commits: Sequence[PlannedBoundaryCommit],
    replacements: dict[str, tuple[str, ...]],
) -> list[PlannedBoundaryCommit]:
    """Point dependency references at replacement ids, dropping duplicates."""
    rewritten: list[PlannedBoundaryCommit] = []
    for commit in commits:
        deps = commit.boundary.dependencies
        if not any(d in replacements for d in deps):
            rewritten.append(commit)
            continue
        new_deps: list[str] = []
        for dep in deps:
            for target in replacements.get(dep, (dep,)):
                if target not in new_deps and target != commit.boundary.id:
                    new_deps.append(target)
        boundary = commit.boundary.model_copy(update={"dependencies": tuple(new_deps)})
        rewritten.append(commit.model_copy(update={"boundary": boundary}))
    return rewritten


class BoundaryMutationService:
    """Apply user edits to a staging strategy while keeping it valid."""

    def __init__(self, strategy: StagingStrategy, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()
        self._paths = frozenset(strategy.paths)
        self._current = strategy
        self._history: list[StagingStrategy] = []

    @property
    def current(self) -> StagingStrategy:
        return self._current

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def undo(self) -> MutationResult:
        """Restore the snapshot before the last successful operation."""
        if not self._history:
            return MutationResult(self._current, OperationError("Nothing to undo"))
        self._current = self._history.pop()
        return MutationResult(self._current)

    # ------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------

    def merge(self, id_a: str, id_b: str) -> MutationResult:
        """Merge two boundaries into one named "<A>+<B>"."""
        return self._apply(lambda: self._merged(id_a, id_b))

    def split(self, boundary_id: str, partition: Sequence[Sequence[str]]) -> MutationResult:
        """Split a boundary into "<id>.1" and "<id>.2" along an explicit file partition."""
        return self._apply(lambda: self._split(boundary_id, partition))

    def reorder(self, boundary_id: str, new_index: int, override: bool = False) -> MutationResult:
        """Move a boundary to a new position.

        Moves that put a boundary before one of its dependencies (or after one
        of its dependents) are rejected unless override is set, in which case
        the contradicted dependencies are dropped and recorded in the warnings.
        """
        return self._apply(lambda: self._reordered(boundary_id, new_index, override))

    def relabel(self, boundary_id: str, field: str, value: str) -> MutationResult:
        """Change the title, body or type of a boundary's suggested message."""
        return self._apply(lambda: self._relabeled(boundary_id, field, value))

    # ------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------

    def _apply(self, build: Callable[[], StagingStrategy]) -> MutationResult:
        try:
            candidate = build()
        except BoundaryError as e:
            logger.info("Mutation rejected: %s", e)
            return MutationResult(self._current, e)

        errors = validate_strategy(candidate, self._paths)
        if errors:
            error = OperationError("; ".join(errors))
            logger.info("Mutation rejected: %s", error)
            return MutationResult(self._current, error)

        self._history.append(self._current)
        self._current = candidate
        return MutationResult(candidate)

    def _commit(self, boundary_id: str) -> tuple[int, PlannedBoundaryCommit]:
        for i, commit in enumerate(self._current.commits):
            if commit.boundary.id == boundary_id:
                return i, commit
        raise OperationError(f"Unknown boundary: {boundary_id}")

    def _snapshot(self, commits: Sequence[PlannedBoundaryCommit], warnings: Sequence[str] = ()) -> StagingStrategy:
        """New strategy with the kind and overall risk recomputed."""
        return StagingStrategy(
            strategy=determine_strategy_kind([c.boundary for c in commits]),
            commits=tuple(commits),
            warnings=tuple(self._current.warnings) + tuple(warnings),
            overall_risk=overall_risk(c.risk for c in commits),
        )

    def _merged(self, id_a: str, id_b: str) -> StagingStrategy:
        if id_a == id_b:
            raise OperationError(f"Cannot merge {id_a} with itself")
        pos_a, commit_a = self._commit(id_a)
        pos_b, commit_b = self._commit(id_b)
        (first_pos, first), (second_pos, second) = sorted(
            [(pos_a, commit_a), (pos_b, commit_b)], key=lambda item: item[0]
        )
        a, b = first.boundary, second.boundary
        merged_id = f"{a.id}+{b.id}"
        removed = {a.id, b.id}

        order = {c.boundary.id: i for i, c in enumerate(self._current.commits)}
        deps = sorted({d for d in a.dependencies + b.dependencies if d not in removed}, key=order.__getitem__)
        severity = {category: i for i, category in enumerate(CATEGORY_SEVERITY)}

        boundary = CommitBoundary(
            id=merged_id,
            files=a.files + b.files,
            theme=f"{a.theme} + {b.theme}",
            category=min((a.category, b.category), key=severity.__getitem__),
            priority=max((a.priority, b.priority), key=lambda p: p.rank),
            estimated_complexity=max(a.estimated_complexity, b.estimated_complexity),
            dependencies=tuple(deps),
            reasoning=f"Merged {a.id} and {b.id}. {a.reasoning} {b.reasoning}".strip(),
        )
        merged = build_commit(boundary, max((first.risk, second.risk), key=lambda r: r.rank))

        others = [c for c in self._current.commits if c.boundary.id not in removed]
        others = _rewrite_dependencies(others, {a.id: (merged_id,), b.id: (merged_id,)})

        # Earlier position first; the later one if that breaks the order
        for insert_at in (first_pos, second_pos - 1):
            commits = others[:insert_at] + [merged] + others[insert_at:]
            if not find_order_violations(commits):
                return self._snapshot(commits)
        raise OperationError(
            f"Merging {a.id} and {b.id} would break the dependency order of the boundaries between them"
        )

    def _split(self, boundary_id: str, partition: Sequence[Sequence[str]]) -> StagingStrategy:
        pos, commit = self._commit(boundary_id)
        parent = commit.boundary
        if parent.file_count < 2:
            raise InvalidSplitError(f"Boundary {boundary_id} has only {parent.file_count} file and cannot be split")
        if len(partition) != 2:
            raise OperationError(f"A split needs exactly two file groups, got {len(partition)}")

        first_paths, second_paths = (list(part) for part in partition)
        if not first_paths or not second_paths:
            raise OperationError("Both halves of a split need at least one file")
        overlap = set(first_paths) & set(second_paths)
        if overlap:
            raise OperationError(f"Files in both halves: {', '.join(sorted(overlap))}")
        parent_paths = set(parent.paths)
        given = set(first_paths) | set(second_paths)
        if given - parent_paths:
            raise OperationError(f"Files not in {boundary_id}: {', '.join(sorted(given - parent_paths))}")
        if parent_paths - given:
            raise OperationError(f"Files of {boundary_id} missing from the split: {', '.join(sorted(parent_paths - given))}")

        halves: list[PlannedBoundaryCommit] = []
        first_set = set(first_paths)
        groups = [
            tuple(f for f in parent.files if f.path in first_set),
            tuple(f for f in parent.files if f.path not in first_set),
        ]
        for number, files in enumerate(groups, start=1):
            if parent.total_lines:
                share = sum(f.total_lines for f in files) / parent.total_lines
            else:
                share = len(files) / parent.file_count
            boundary = parent.model_copy(update={
                "id": f"{boundary_id}.{number}",
                "files": files,
                "estimated_complexity": round(parent.estimated_complexity * share, 1),
                "reasoning": f"Split from {boundary_id}. {parent.reasoning}",
            })
            half = build_commit(boundary, commit.risk)
            half = half.model_copy(update={
                "estimated_time": max(1, round_half_up(commit.estimated_time * share)),
            })
            halves.append(half)

        # Dependents of the parent wait for both halves
        half_ids = tuple(h.boundary.id for h in halves)
        others = list(self._current.commits[:pos]) + list(self._current.commits[pos + 1:])
        others = _rewrite_dependencies(others, {boundary_id: half_ids})
        commits = others[:pos] + halves + others[pos:]
        return self._snapshot(commits)

    def _reordered(self, boundary_id: str, new_index: int, override: bool) -> StagingStrategy:
        pos, commit = self._commit(boundary_id)
        count = len(self._current.commits)
        if not 0 <= new_index < count:
            raise OperationError(f"Position {new_index} is out of range (0-{count - 1})")

        commits = list(self._current.commits)
        del commits[pos]
        commits.insert(new_index, commit)

        violations = find_order_violations(commits)
        if not violations:
            return self._snapshot(commits)
        if not override:
            details = ", ".join(f"{prereq} must precede {dependent}" for dependent, prereq in violations)
            raise OperationError(f"Moving {boundary_id} to position {new_index} breaks dependencies: {details}")

        dropped: dict[str, set[str]] = {}
        for dependent, prereq in violations:
            dropped.setdefault(dependent, set()).add(prereq)
        updated: list[PlannedBoundaryCommit] = []
        for c in commits:
            removed = dropped.get(c.boundary.id)
            if removed:
                deps = tuple(d for d in c.boundary.dependencies if d not in removed)
                c = c.model_copy(update={"boundary": c.boundary.model_copy(update={"dependencies": deps})})
            updated.append(c)
        warnings = [
            f"Reorder override dropped dependency {prereq} -> {dependent}"
            for dependent, prereq in violations
        ]
        return self._snapshot(updated, warnings)

    def _relabeled(self, boundary_id: str, field: str, value: str) -> StagingStrategy:
        if field not in RELABEL_FIELDS:
            raise OperationError(f"Cannot relabel {field!r}; choose one of: {', '.join(RELABEL_FIELDS)}")
        pos, commit = self._commit(boundary_id)
        value = value.strip()
        if field in ("title", "type") and not value:
            raise OperationError(f"The {field} cannot be empty")

        message = commit.suggested_message.model_copy(update={field: value or None})
        commits = list(self._current.commits)
        commits[pos] = commit.model_copy(update={"suggested_message": message})
        return StagingStrategy(
            strategy=self._current.strategy,
            commits=tuple(commits),
            warnings=self._current.warnings,
            overall_risk=self._current.overall_risk,
        )
