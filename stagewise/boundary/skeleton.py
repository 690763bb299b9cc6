"""Commit message skeletons and rationales for boundaries.

Contains:
- CATEGORY_COMMIT_TYPES: Conventional commit type per change category
- infer_scope: Dominant non-generic path segment of a boundary
- build_message_skeleton: Structured message fields for a boundary
- build_rationale: Short explanation of why the files belong together
"""

from collections import Counter
from typing import Optional, Sequence

from stagewise.boundary.builder import detect_topic
from stagewise.boundary.models import ChangeCategory, CommitBoundary, CommitMessageSkeleton
from stagewise.boundary.paths import base_stem, is_docs_path, is_test_path, path_segments


CATEGORY_COMMIT_TYPES = {
    ChangeCategory.FEATURE_ADDITION: "feat",
    ChangeCategory.BUG_FIX: "fix",
    ChangeCategory.REFACTOR: "refactor",
    ChangeCategory.BREAKING_CHANGE: "feat",
    ChangeCategory.PERFORMANCE_IMPROVEMENT: "perf",
    ChangeCategory.SECURITY_FIX: "fix",
    ChangeCategory.DOCUMENTATION: "docs",
    ChangeCategory.TESTING: "test",
    ChangeCategory.CONFIGURATION: "chore",
    ChangeCategory.DEPENDENCY_UPDATE: "build",
    ChangeCategory.DEPLOYMENT: "ci",
    ChangeCategory.API_CHANGE: "feat",
}

TITLE_TEMPLATES = {
    ChangeCategory.FEATURE_ADDITION: "add {subject}",
    ChangeCategory.BUG_FIX: "fix {subject}",
    ChangeCategory.REFACTOR: "refactor {subject}",
    ChangeCategory.BREAKING_CHANGE: "rework {subject}",
    ChangeCategory.PERFORMANCE_IMPROVEMENT: "improve {subject} performance",
    ChangeCategory.SECURITY_FIX: "harden {subject}",
    ChangeCategory.DOCUMENTATION: "update {subject} documentation",
    ChangeCategory.TESTING: "add tests for {subject}",
    ChangeCategory.CONFIGURATION: "update {subject} configuration",
    ChangeCategory.DEPENDENCY_UPDATE: "update {subject} dependencies",
    ChangeCategory.DEPLOYMENT: "update {subject} deployment",
    ChangeCategory.API_CHANGE: "update {subject} API",
}

# Path segments that never make a useful scope
SCOPE_STOP_WORDS = {
    "src", "lib", "libs", "source", "sources", "tests", "test", "spec", "specs", "__tests__",
    "__pycache__", "node_modules", "vendor", "dist", "build", "out", "target", "bin", "obj",
    "pkg", "app", "apps", "packages", "internal", "main", "java", "python", "js", "ts",
    "docs", "doc", ".github",
}

DOMINANT_SCOPE_THRESHOLD = 0.6
MAX_LISTED_FILES = 3


def infer_scope(paths: Sequence[str]) -> Optional[str]:
    """Infer a conventional-commit scope from the files' directories.

    Uses the first non-generic directory of each file; a candidate must
    cover at least 60% of the files. Docs-only boundaries get "docs".
    """
    if not paths:
        return None
    if all(is_docs_path(p) for p in paths):
        return "docs"

    candidates: Counter = Counter()
    for path in paths:
        directories = path_segments(path)[:-1]
        segment = next((d for d in directories if d not in SCOPE_STOP_WORDS), None)
        if segment is None and not is_test_path(path):
            stem = base_stem(path)
            segment = stem if stem and stem not in SCOPE_STOP_WORDS else None
        if segment:
            candidates[segment] += 1

    if not candidates:
        return None
    scope, count = min(candidates.items(), key=lambda kv: (-kv[1], kv[0]))
    if count / len(paths) >= DOMINANT_SCOPE_THRESHOLD:
        return scope
    return None


def _subject(boundary: CommitBoundary, scope: Optional[str]) -> str:
    topic = detect_topic(boundary.paths)
    if topic:
        return topic
    if scope:
        return scope
    if boundary.file_count == 1:
        return base_stem(boundary.paths[0])
    return "project"


def build_message_skeleton(boundary: CommitBoundary) -> CommitMessageSkeleton:
    """Build the structured commit message fields for a boundary."""
    scope = infer_scope(boundary.paths)
    title = TITLE_TEMPLATES[boundary.category].format(subject=_subject(boundary, scope))

    body = None
    if boundary.file_count > MAX_LISTED_FILES:
        body = "Changes include:\n" + "\n".join(f"- {path}" for path in boundary.paths)

    return CommitMessageSkeleton(
        type=CATEGORY_COMMIT_TYPES[boundary.category],
        scope=scope,
        title=title,
        body=body,
        breaking=boundary.category is ChangeCategory.BREAKING_CHANGE,
    )


def build_rationale(boundary: CommitBoundary) -> str:
    noun = "file" if boundary.file_count == 1 else "files"
    return f"This commit groups {boundary.file_count} {noun} related to {boundary.theme}. {boundary.reasoning}"
