"""Unified diff parser producing GitChange records.

Contains functions for parsing unified diff output:
- parse_unified_diff: Parse unified diff output from git diff
- _parse_file_block: Parse a single file block from the diff
- _parse_hunks: Parse hunks from the hunk portion of a file diff
- change_for_untracked: Build a GitChange for an untracked file
"""

import re
from typing import Optional

from stagewise.boundary.models import ChangeKind, DiffHunk, DiffLine, GitChange, LineKind


_HUNK_HEADER_RE = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_unified_diff(diff_output: str) -> tuple[list[GitChange], list[str]]:
    """Parse unified diff output from 'git diff HEAD --patch'.

    Args:
        diff_output: Raw output from git diff

    Returns:
        Tuple of (list of GitChange objects in diff order, list of warning messages)
    """
    changes: list[GitChange] = []
    warnings: list[str] = []

    if not diff_output.strip():
        return changes, warnings

    # Each file starts with 'diff --git a/... b/...'
    file_blocks = re.split(r"(?=^diff --git )", diff_output, flags=re.MULTILINE)

    for block in file_blocks:
        if not block.startswith("diff --git"):
            continue
        change = _parse_file_block(block.split("\n"), warnings)
        if change:
            changes.append(change)

    return changes, warnings


def _parse_file_block(lines: list[str], warnings: list[str]) -> Optional[GitChange]:
    """Parse a single file block from the diff.

    Args:
        lines: Lines of the file block
        warnings: List to append warnings to

    Returns:
        GitChange or None if the header cannot be parsed
    """
    match = re.match(r"diff --git a/(.*) b/(.*)", lines[0])
    if not match:
        warnings.append(f"Could not parse diff header: {lines[0]}")
        return None

    old_path = match.group(1)
    new_path = match.group(2)
    is_binary = False
    is_new_file = False
    is_deleted_file = False
    hunk_start_idx = len(lines)

    for i, line in enumerate(lines[1:], start=1):
        if line.startswith("@@"):
            hunk_start_idx = i
            break
        if "GIT binary patch" in line or line.startswith("Binary files"):
            is_binary = True
        elif line.startswith("new file mode"):
            is_new_file = True
        elif line.startswith("deleted file mode"):
            is_deleted_file = True
        elif line.startswith("rename from "):
            old_path = line[len("rename from "):]
        elif line.startswith("rename to "):
            new_path = line[len("rename to "):]

    if is_new_file:
        change_type = ChangeKind.ADDED
    elif is_deleted_file:
        change_type = ChangeKind.DELETED
    elif old_path != new_path:
        change_type = ChangeKind.RENAMED
    else:
        change_type = ChangeKind.MODIFIED

    path = old_path if is_deleted_file else new_path
    if is_binary:
        warnings.append(f"Binary file analyzed by path only: {path}")
        hunks: list[DiffHunk] = []
    else:
        hunks = _parse_hunks(lines[hunk_start_idx:])

    insertions = sum(1 for h in hunks for ln in h.lines if ln.kind is LineKind.ADDED)
    deletions = sum(1 for h in hunks for ln in h.lines if ln.kind is LineKind.REMOVED)

    return GitChange(
        path=path,
        change_type=change_type,
        insertions=insertions,
        deletions=deletions,
        hunks=tuple(hunks),
        old_path=old_path if change_type is ChangeKind.RENAMED else None,
        binary=is_binary,
    )


def _parse_hunks(lines: list[str]) -> list[DiffHunk]:
    """Parse hunks from the hunk portion of a file diff.

    Args:
        lines: Lines starting from the first @@

    Returns:
        List of DiffHunk objects
    """
    hunks: list[DiffHunk] = []
    header: Optional[str] = None
    body: list[str] = []

    for line in lines:
        if line.startswith("@@"):
            if header is not None:
                hunk = _create_hunk(header, body)
                if hunk:
                    hunks.append(hunk)
            header = line
            body = []
        elif header is not None:
            body.append(line)

    if header is not None:
        hunk = _create_hunk(header, body)
        if hunk:
            hunks.append(hunk)

    return hunks


def _create_hunk(header: str, body: list[str]) -> Optional[DiffHunk]:
    """Create a DiffHunk from its @@ header and raw lines."""
    match = _HUNK_HEADER_RE.match(header)
    if not match:
        return None

    new_start = int(match.group(3))
    new_len = int(match.group(4)) if match.group(4) else 1

    diff_lines: list[DiffLine] = []
    for raw in body:
        if raw.startswith("+"):
            diff_lines.append(DiffLine(LineKind.ADDED, raw[1:]))
        elif raw.startswith("-"):
            diff_lines.append(DiffLine(LineKind.REMOVED, raw[1:]))
        elif raw.startswith(" "):
            diff_lines.append(DiffLine(LineKind.CONTEXT, raw[1:]))
        # "\ No newline at end of file" and trailing blanks carry no content

    return DiffHunk(
        header=header,
        start_line=new_start,
        end_line=new_start + max(new_len - 1, 0),
        lines=tuple(diff_lines),
    )


def change_for_untracked(path: str, content: Optional[str]) -> GitChange:
    """Build a GitChange for an untracked file.

    Args:
        path: Repository-relative path.
        content: File text, or None when the file is binary or unreadable.

    Returns:
        An "added" GitChange with one hunk holding every line.
    """
    if content is None:
        return GitChange(path=path, change_type=ChangeKind.ADDED, binary=True)

    lines = content.splitlines()
    if not lines:
        return GitChange(path=path, change_type=ChangeKind.ADDED)

    hunk = DiffHunk(
        header=f"@@ -0,0 +1,{len(lines)} @@",
        start_line=1,
        end_line=len(lines),
        lines=tuple(DiffLine(LineKind.ADDED, line) for line in lines),
    )
    return GitChange(path=path, change_type=ChangeKind.ADDED, insertions=len(lines), hunks=(hunk,))
