"""Staging of a planned boundary.

Contains:
- boundary_pathspec: Paths git needs to stage a boundary (including rename sources)
- stage_boundary: Reset the index and stage exactly one boundary
"""

from pathlib import Path
from typing import Optional

from stagewise.boundary.models import CommitBoundary
from stagewise.git.runner import _run_git_command


def boundary_pathspec(boundary: CommitBoundary) -> list[str]:
    paths: list[str] = []
    for change in boundary.files:
        if change.old_path and change.old_path not in paths:
            paths.append(change.old_path)
        if change.path not in paths:
            paths.append(change.path)
    return paths


def stage_boundary(boundary: CommitBoundary, repo_root: Optional[Path] = None) -> list[str]:
    """Unstage everything, then stage the files of one boundary.

    Args:
        boundary: The boundary to stage.
        repo_root: The root directory of the git repository (optional).

    Returns:
        The staged paths.

    Raises:
        GitError: If git fails.
    """
    paths = boundary_pathspec(boundary)
    _run_git_command(["reset", "-q"], cwd=repo_root)
    _run_git_command(["add", "-A", "--"] + paths, cwd=repo_root)
    return paths
