"""Shared test fixtures and configuration."""

import tempfile
from pathlib import Path

import pytest

from stagewise.boundary.models import (
    ChangeCategory,
    ChangeKind,
    CommitBoundary,
    DiffHunk,
    DiffLine,
    GitChange,
    LineKind,
    Priority,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_repo_root(temp_dir):
    """Create a mock git repository root directory."""
    # Create .git directory to simulate a git repo
    git_dir = temp_dir / ".git"
    git_dir.mkdir()
    return temp_dir


def build_change(path, added=(), removed=(), context=(), change_type=ChangeKind.MODIFIED, binary=False):
    lines = (
        [DiffLine(LineKind.CONTEXT, line) for line in context]
        + [DiffLine(LineKind.REMOVED, line) for line in removed]
        + [DiffLine(LineKind.ADDED, line) for line in added]
    )
    hunks = ()
    if lines and not binary:
        hunks = (DiffHunk(header="@@ -1 +1 @@", start_line=1, end_line=max(1, len(lines)), lines=tuple(lines)),)
    return GitChange(
        path=path,
        change_type=change_type,
        insertions=0 if binary else len(added),
        deletions=0 if binary else len(removed),
        hunks=hunks,
        binary=binary,
    )


@pytest.fixture
def make_change():
    """Factory building a GitChange from added, removed and context lines."""
    return build_change


@pytest.fixture
def make_boundary(make_change):
    """Factory building a CommitBoundary over single-line changes."""

    def factory(
        boundary_id,
        paths,
        category=ChangeCategory.FEATURE_ADDITION,
        priority=Priority.LOW,
        dependencies=(),
        complexity=2.0,
    ):
        return CommitBoundary(
            id=boundary_id,
            files=tuple(make_change(p, added=[f"line in {p}"]) for p in paths),
            theme=category.value,
            category=category,
            priority=priority,
            estimated_complexity=complexity,
            dependencies=tuple(dependencies),
            reasoning="test boundary",
        )

    return factory


@pytest.fixture
def auth_changes(make_change):
    """A feature-like source file and its test, as in a typical auth change."""
    source = make_change(
        "src/auth.ts",
        added=["export function authenticate(token: string): boolean {"]
        + [f"  const step{i} = verifyToken(token, {i});" for i in range(78)]
        + ["}"],
        removed=[f"// old stub {i}" for i in range(4)],
    )
    test = make_change(
        "test/auth.test.ts",
        added=["import { authenticate } from '../src/auth';", "describe('authenticate', () => {"]
        + [f"  it('accepts token {i}', () => expect(authenticate('t{i}')).toBe(true));" for i in range(37)]
        + ["});"],
        change_type=ChangeKind.ADDED,
    )
    return [source, test]


SAMPLE_DIFF = """diff --git a/src/billing.py b/src/billing.py
index 1234567..abcdefg 100644
--- a/src/billing.py
+++ b/src/billing.py
@@ -1,3 +1,5 @@
 def total(items):
-    return sum(items)
+    if items is None:
+        return 0
+    return sum(items)
diff --git a/docs/setup.md b/docs/setup.md
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/docs/setup.md
@@ -0,0 +1,2 @@
+# Setup
+Run the installer.
diff --git a/legacy.py b/legacy.py
deleted file mode 100644
index 1234567..0000000
--- a/legacy.py
+++ /dev/null
@@ -1,2 +0,0 @@
-def old_entry():
-    pass
diff --git a/src/old_name.py b/src/new_name.py
similarity index 90%
rename from src/old_name.py
rename to src/new_name.py
index 1234567..abcdefg 100644
--- a/src/old_name.py
+++ b/src/new_name.py
@@ -1,2 +1,2 @@
-VALUE = 1
+VALUE = 2
 OTHER = 3
diff --git a/assets/logo.png b/assets/logo.png
index 1234567..abcdefg 100644
Binary files a/assets/logo.png and b/assets/logo.png differ
"""


@pytest.fixture
def sample_diff():
    """Working tree diff with a modified, added, deleted, renamed and binary file."""
    return SAMPLE_DIFF
