"""Invariant checks for staging strategies.

Contains:
- find_order_violations: Dependencies that are not committed before their dependents
- validate_strategy: Check every structural invariant of a plan
"""

from typing import Iterable, Optional, Sequence

from stagewise.boundary.models import PlannedBoundaryCommit, StagingStrategy


def find_order_violations(commits: Sequence[PlannedBoundaryCommit]) -> list[tuple[str, str]]:
    """Find dependencies that do not precede their dependents.

    Returns:
        List of (dependent id, prerequisite id) pairs, in plan order.
    """
    position = {c.boundary.id: i for i, c in enumerate(commits)}
    violations: list[tuple[str, str]] = []
    for i, commit in enumerate(commits):
        for dep in commit.boundary.dependencies:
            if dep in position and position[dep] >= i:
                violations.append((commit.boundary.id, dep))
    return violations


def validate_strategy(strategy: StagingStrategy, expected_paths: Optional[Iterable[str]] = None) -> list[str]:
    """Validate the structural invariants of a staging strategy.

    Checks:
    - No file appears in more than one boundary
    - Boundary ids are unique and every boundary has files
    - Every dependency exists and is not a self-reference
    - Every dependency is committed before its dependent (which also rules out cycles)
    - The file set matches expected_paths exactly, when given

    Args:
        strategy: The strategy to validate.
        expected_paths: The analyzed change-set paths.

    Returns:
        List of error messages (empty if valid).
    """
    errors: list[str] = []
    ids: set[str] = set()
    seen_paths: dict[str, str] = {}

    for commit in strategy.commits:
        boundary = commit.boundary
        if boundary.id in ids:
            errors.append(f"Duplicate boundary id: {boundary.id}")
        ids.add(boundary.id)
        if not boundary.files:
            errors.append(f"Boundary {boundary.id} has no files")
        for path in boundary.paths:
            if path in seen_paths:
                errors.append(f"File {path} is in both {seen_paths[path]} and {boundary.id}")
            else:
                seen_paths[path] = boundary.id

    for commit in strategy.commits:
        boundary = commit.boundary
        for dep in boundary.dependencies:
            if dep == boundary.id:
                errors.append(f"Boundary {boundary.id} depends on itself")
            elif dep not in ids:
                errors.append(f"Boundary {boundary.id} depends on unknown boundary {dep}")

    for dependent, prerequisite in find_order_violations(strategy.commits):
        if dependent != prerequisite:
            errors.append(f"Boundary {dependent} is ordered before its dependency {prerequisite}")

    if expected_paths is not None:
        expected = set(expected_paths)
        missing = sorted(expected - set(seen_paths))
        unexpected = sorted(set(seen_paths) - expected)
        if missing:
            errors.append(f"Files missing from the plan: {', '.join(missing)}")
        if unexpected:
            errors.append(f"Files not in the change-set: {', '.join(unexpected)}")

    return errors
