"""Working tree diff collection.

Contains:
- get_working_diff: Unified diff of tracked changes against HEAD
- get_untracked_files: Untracked files that are not ignored by git
- read_untracked_file: Text content of an untracked file
- collect_working_changes: All uncommitted changes as GitChange records
"""

import logging
from pathlib import Path
from typing import Optional

from stagewise.boundary.models import GitChange
from stagewise.git.exceptions import GitError, NoChangesError
from stagewise.git.parser import change_for_untracked, parse_unified_diff
from stagewise.git.runner import _run_git_command

logger = logging.getLogger(__name__)


# Untracked files larger than this are analyzed by path only
MAX_UNTRACKED_BYTES = 1_000_000

_DIFF_ARGS = ["--patch", "--find-renames", "--no-color", "--no-ext-diff"]


def get_working_diff(repo_root: Optional[Path] = None) -> str:
    """Get the unified diff of all tracked changes (staged and unstaged) against HEAD.

    In a repository without commits, the staged changes are returned instead.

    Args:
        repo_root: The root directory of the git repository (optional).

    Returns:
        The raw diff output.
    """
    try:
        return _run_git_command(["diff", "HEAD"] + _DIFF_ARGS, cwd=repo_root)
    except GitError as e:
        logger.debug("Diff against HEAD failed, using staged changes: %s", e)
        return _run_git_command(["diff", "--cached"] + _DIFF_ARGS, cwd=repo_root)


def get_untracked_files(repo_root: Optional[Path] = None) -> list[str]:
    """List untracked files, honouring .gitignore."""
    output = _run_git_command(["ls-files", "--others", "--exclude-standard"], cwd=repo_root)
    return [line for line in output.split("\n") if line.strip()]


def read_untracked_file(repo_root: Path, path: str) -> Optional[str]:
    """Read an untracked file as text.

    Returns:
        The content, or None for binary, oversized or unreadable files.
    """
    file_path = repo_root / path
    try:
        if file_path.stat().st_size > MAX_UNTRACKED_BYTES:
            return None
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def collect_working_changes(repo_root: Path) -> tuple[list[GitChange], list[str]]:
    """Collect every uncommitted change in the working tree.

    Tracked changes come first in diff order, then untracked files in
    git's listing order.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Tuple of (changes, parser warnings).

    Raises:
        GitError: If git fails.
        NoChangesError: If there is nothing uncommitted.
    """
    changes, warnings = parse_unified_diff(get_working_diff(repo_root))
    seen = {c.path for c in changes}
    for path in get_untracked_files(repo_root):
        if path in seen:
            continue
        changes.append(change_for_untracked(path, read_untracked_file(repo_root, path)))
        seen.add(path)
    if not changes:
        raise NoChangesError("No uncommitted changes in the working tree.")
    logger.info("Collected %d changed files", len(changes))
    return changes, warnings
