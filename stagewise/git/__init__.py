"""Git adapter for stagewise.

This package turns the working tree into GitChange records with:
- exceptions: GitError, NoChangesError
- runner: _run_git_command, get_repo_root
- parser: parse_unified_diff, change_for_untracked
- diff: get_working_diff, get_untracked_files, collect_working_changes
- staging: stage_boundary
"""

# Exceptions
from stagewise.git.exceptions import (
    GitError,
    NoChangesError,
)

# Runner utilities
from stagewise.git.runner import (
    _run_git_command,
    get_repo_root,
)

# Diff parsing
from stagewise.git.parser import (
    change_for_untracked,
    parse_unified_diff,
)

# Working tree collection
from stagewise.git.diff import (
    collect_working_changes,
    get_untracked_files,
    get_working_diff,
)

# Staging
from stagewise.git.staging import stage_boundary

__all__ = [
    # Exceptions
    "GitError",
    "NoChangesError",
    # Runner
    "_run_git_command",
    "get_repo_root",
    # Parser
    "change_for_untracked",
    "parse_unified_diff",
    # Diff
    "collect_working_changes",
    "get_untracked_files",
    "get_working_diff",
    # Staging
    "stage_boundary",
]
