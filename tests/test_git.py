"""Tests for stagewise.git package."""

import subprocess

import pytest

from stagewise.boundary.models import ChangeKind, LineKind
from stagewise.git import (
    GitError,
    NoChangesError,
    _run_git_command,
    change_for_untracked,
    collect_working_changes,
    get_repo_root,
    parse_unified_diff,
    stage_boundary,
)
from stagewise.git.staging import boundary_pathspec


class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_change_types(self, sample_diff):
        """Test that every kind of file change is recognized."""
        changes, _ = parse_unified_diff(sample_diff)
        kinds = {c.path: c.change_type for c in changes}
        assert kinds == {
            "src/billing.py": ChangeKind.MODIFIED,
            "docs/setup.md": ChangeKind.ADDED,
            "legacy.py": ChangeKind.DELETED,
            "src/new_name.py": ChangeKind.RENAMED,
            "assets/logo.png": ChangeKind.MODIFIED,
        }

    def test_line_counts_and_hunks(self, sample_diff):
        """Test insertion and deletion counts from hunk lines."""
        changes, _ = parse_unified_diff(sample_diff)
        billing = changes[0]
        assert (billing.insertions, billing.deletions) == (3, 1)
        hunk = billing.hunks[0]
        assert hunk.start_line == 1
        assert hunk.end_line == 5
        assert [ln.kind for ln in hunk.lines][:2] == [LineKind.CONTEXT, LineKind.REMOVED]
        assert billing.added_lines[0] == "    if items is None:"

    def test_rename_keeps_old_path(self, sample_diff):
        """Test that renames record their source path."""
        changes, _ = parse_unified_diff(sample_diff)
        renamed = next(c for c in changes if c.change_type is ChangeKind.RENAMED)
        assert renamed.old_path == "src/old_name.py"

    def test_binary_file_warning(self, sample_diff):
        """Test that binary files are flagged and reported."""
        changes, warnings = parse_unified_diff(sample_diff)
        binary = changes[-1]
        assert binary.binary is True
        assert binary.hunks == ()
        assert warnings == ["Binary file analyzed by path only: assets/logo.png"]

    def test_empty_diff(self):
        """Test that an empty diff yields no changes."""
        assert parse_unified_diff("") == ([], [])


class TestChangeForUntracked:
    """Tests for change_for_untracked."""

    def test_text_file(self):
        """Test that every line of a new file is an addition."""
        change = change_for_untracked("notes.md", "line one\nline two\n")
        assert change.change_type is ChangeKind.ADDED
        assert change.insertions == 2
        assert change.added_lines == ["line one", "line two"]

    def test_unreadable_file(self):
        """Test that unreadable files are path-only."""
        change = change_for_untracked("logo.png", None)
        assert change.binary is True
        assert change.content_readable is False


class TestRunner:
    """Tests for the git command runner."""

    def test_returns_stdout(self, mocker):
        """Test that stdout is returned without trailing whitespace."""
        mock_run = mocker.patch("stagewise.git.runner.subprocess.run")
        mock_run.return_value.stdout = "/repo\n"

        assert _run_git_command(["rev-parse", "--show-toplevel"]) == "/repo"
        assert mock_run.call_args[0][0] == ["git", "rev-parse", "--show-toplevel"]

    def test_failure_raises_git_error(self, mocker):
        """Test that a failing command becomes a GitError."""
        mocker.patch(
            "stagewise.git.runner.subprocess.run",
            side_effect=subprocess.CalledProcessError(128, ["git"], stderr="fatal: bad revision"),
        )
        with pytest.raises(GitError, match="bad revision"):
            _run_git_command(["diff", "HEAD"])

    def test_outside_repository(self, mocker):
        """Test the message when not inside a repository."""
        mocker.patch("stagewise.git.runner._run_git_command", side_effect=GitError("fatal"))
        with pytest.raises(GitError, match="Not in a git repository"):
            get_repo_root()


class TestCollectWorkingChanges:
    """Tests for collect_working_changes."""

    def test_tracked_and_untracked(self, mocker, temp_dir, sample_diff):
        """Test that untracked files follow the tracked changes."""
        (temp_dir / "new_module.py").write_text("def added():\n    pass\n")
        mocker.patch("stagewise.git.diff.get_working_diff", return_value=sample_diff)
        mocker.patch("stagewise.git.diff.get_untracked_files", return_value=["new_module.py"])

        changes, warnings = collect_working_changes(temp_dir)

        assert [c.path for c in changes][-1] == "new_module.py"
        assert changes[-1].insertions == 2
        assert len(changes) == 6
        assert len(warnings) == 1

    def test_no_changes(self, mocker, temp_dir):
        """Test that a clean working tree raises NoChangesError."""
        mocker.patch("stagewise.git.diff.get_working_diff", return_value="")
        mocker.patch("stagewise.git.diff.get_untracked_files", return_value=[])
        with pytest.raises(NoChangesError):
            collect_working_changes(temp_dir)


class TestStageBoundary:
    """Tests for stage_boundary."""

    def test_resets_then_adds_boundary_files(self, mocker, temp_dir, make_boundary):
        """Test that only the boundary's files are staged."""
        mock_git = mocker.patch("stagewise.git.staging._run_git_command", return_value="")
        boundary = make_boundary("boundary-1", ["src/a.py", "src/b.py"])

        staged = stage_boundary(boundary, temp_dir)

        assert staged == ["src/a.py", "src/b.py"]
        assert mock_git.call_args_list[0][0][0] == ["reset", "-q"]
        assert mock_git.call_args_list[1][0][0] == ["add", "-A", "--", "src/a.py", "src/b.py"]

    def test_pathspec_includes_rename_source(self, sample_diff, make_boundary):
        """Test that renames stage the removal of the old path too."""
        changes, _ = parse_unified_diff(sample_diff)
        renamed = next(c for c in changes if c.change_type is ChangeKind.RENAMED)
        boundary = make_boundary("boundary-1", ["x.py"]).model_copy(update={"files": (renamed,)})
        assert boundary_pathspec(boundary) == ["src/old_name.py", "src/new_name.py"]
