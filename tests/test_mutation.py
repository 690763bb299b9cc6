"""Tests for stagewise.boundary.mutation module."""

import pytest

from stagewise.boundary.exceptions import InvalidSplitError, OperationError
from stagewise.boundary.models import ChangeCategory, Priority, StrategyKind
from stagewise.boundary.mutation import BoundaryMutationService
from stagewise.boundary.planner import StagingStrategyPlanner
from stagewise.boundary.validation import validate_strategy


@pytest.fixture
def strategy(make_boundary):
    """Plan of three boundaries where boundary-3 depends on boundary-1."""
    boundaries = [
        make_boundary("boundary-1", ["src/billing.py", "src/invoice.py"], priority=Priority.MEDIUM, complexity=4.0),
        make_boundary("boundary-2", ["README.md"], ChangeCategory.DOCUMENTATION),
        make_boundary(
            "boundary-3", ["tests/test_billing.py"], ChangeCategory.TESTING, dependencies=["boundary-1"]
        ),
    ]
    return StagingStrategyPlanner().plan(boundaries, {})


class TestMerge:
    """Tests for merging boundaries."""

    def test_merge_two_boundaries(self, strategy):
        """Test that merging combines files under a joined id."""
        service = BoundaryMutationService(strategy)
        result = service.merge("boundary-1", "boundary-2")

        assert result.ok
        merged = result.strategy.get_commit("boundary-1+boundary-2")
        assert merged.boundary.paths == ["src/billing.py", "src/invoice.py", "README.md"]
        assert result.strategy.get_commit("boundary-3").boundary.dependencies == ("boundary-1+boundary-2",)
        assert validate_strategy(result.strategy, strategy.paths) == []

    def test_merge_unknown_boundary(self, strategy):
        """Test that unknown ids leave the plan unchanged."""
        service = BoundaryMutationService(strategy)
        result = service.merge("boundary-1", "boundary-9")

        assert not result.ok
        assert isinstance(result.error, OperationError)
        assert result.strategy is strategy
        assert service.current is strategy

    def test_merge_with_itself(self, strategy):
        """Test that a boundary cannot be merged with itself."""
        result = BoundaryMutationService(strategy).merge("boundary-2", "boundary-2")
        assert isinstance(result.error, OperationError)

    def test_merge_keeps_higher_priority_and_complexity(self, make_boundary):
        """Test that the merged boundary takes the larger priority and complexity."""
        boundaries = [
            make_boundary("auth", ["src/auth.py", "src/session.py"], priority=Priority.HIGH, complexity=6.0),
            make_boundary("readme", ["README.md"], ChangeCategory.DOCUMENTATION, complexity=1.0),
        ]
        service = BoundaryMutationService(StagingStrategyPlanner().plan(boundaries, {}))

        merged = service.merge("readme", "auth").strategy.get_commit("auth+readme")

        assert merged.boundary.priority == Priority.HIGH
        assert merged.boundary.estimated_complexity == 6.0
        assert merged.estimated_time == 10

    def test_merge_moves_to_later_position_when_needed(self, make_boundary):
        """Test that the merge lands at the later position when the earlier one breaks the order."""
        boundaries = [
            make_boundary("models", ["src/models.py"]),
            make_boundary("schema", ["src/schema.py"]),
            make_boundary("api", ["src/api.py"], dependencies=["schema"]),
        ]
        service = BoundaryMutationService(StagingStrategyPlanner().plan(boundaries, {}))

        result = service.merge("models", "api")

        assert result.ok
        assert result.strategy.boundary_ids == ["schema", "models+api"]
        assert result.strategy.get_commit("models+api").boundary.dependencies == ("schema",)
        assert result.strategy.get_commit("schema").boundary.dependencies == ()

    def test_merge_rejected_when_no_position_keeps_order(self, make_boundary):
        """Test that a merge around a dependent in between is rejected."""
        boundaries = [
            make_boundary("models", ["src/models.py"]),
            make_boundary("schema", ["src/schema.py"], dependencies=["models"]),
            make_boundary("api", ["src/api.py"], dependencies=["schema"]),
        ]
        original = StagingStrategyPlanner().plan(boundaries, {})
        service = BoundaryMutationService(original)

        result = service.merge("models", "api")

        assert isinstance(result.error, OperationError)
        assert "would break the dependency order" in str(result.error)
        assert service.current is original
        assert not service.can_undo


class TestSplit:
    """Tests for splitting boundaries."""

    def test_split_recovers_merged_boundaries(self, strategy):
        """Test that splitting a merge along the original files restores both file sets."""
        service = BoundaryMutationService(strategy)
        merged_id = service.merge("boundary-1", "boundary-2").strategy.boundary_ids[0]
        result = service.split(merged_id, [["src/billing.py", "src/invoice.py"], ["README.md"]])

        assert result.ok
        first = result.strategy.get_commit(f"{merged_id}.1").boundary
        second = result.strategy.get_commit(f"{merged_id}.2").boundary
        assert set(first.paths) == {"src/billing.py", "src/invoice.py"}
        assert set(second.paths) == {"README.md"}

    def test_dependents_wait_for_both_halves(self, strategy):
        """Test that dependents of a split boundary depend on both halves."""
        service = BoundaryMutationService(strategy)
        result = service.split("boundary-1", [["src/billing.py"], ["src/invoice.py"]])

        assert result.ok
        dependent = result.strategy.get_commit("boundary-3").boundary
        assert dependent.dependencies == ("boundary-1.1", "boundary-1.2")
        assert result.strategy.strategy == StrategyKind.PROGRESSIVE

    def test_split_shares_complexity_by_changed_lines(self, make_boundary, make_change):
        """Test that complexity and time follow each half's share of changed lines."""
        boundary = make_boundary("billing", ["x.py"], complexity=4.0).model_copy(update={
            "files": (
                make_change("src/billing.py", added=["a = 1", "b = 2", "c = 3"]),
                make_change("src/invoice.py", added=["d = 4"]),
            ),
        })
        service = BoundaryMutationService(StagingStrategyPlanner().plan([boundary], {}))
        assert service.current.get_commit("billing").estimated_time == 7

        result = service.split("billing", [["src/billing.py"], ["src/invoice.py"]])

        first = result.strategy.get_commit("billing.1")
        second = result.strategy.get_commit("billing.2")
        assert first.boundary.estimated_complexity == 3.0
        assert second.boundary.estimated_complexity == 1.0
        assert (first.estimated_time, second.estimated_time) == (5, 2)

    def test_split_shares_by_file_count_without_lines(self, make_boundary, make_change):
        """Test that path-only boundaries are divided by file count."""
        boundary = make_boundary("assets", ["x.png"], complexity=2.0).model_copy(update={
            "files": tuple(
                make_change(path, binary=True) for path in ("img/a.png", "img/b.png", "img/c.png")
            ),
        })
        service = BoundaryMutationService(StagingStrategyPlanner().plan([boundary], {}))
        assert service.current.get_commit("assets").estimated_time == 5

        result = service.split("assets", [["img/a.png"], ["img/b.png", "img/c.png"]])

        first = result.strategy.get_commit("assets.1")
        second = result.strategy.get_commit("assets.2")
        assert first.boundary.estimated_complexity == 0.7
        assert second.boundary.estimated_complexity == 1.3
        assert (first.estimated_time, second.estimated_time) == (2, 3)

    def test_split_single_file_boundary(self, strategy):
        """Test that a one-file boundary cannot be split."""
        service = BoundaryMutationService(strategy)
        result = service.split("boundary-2", [["README.md"], []])

        assert isinstance(result.error, InvalidSplitError)
        assert service.current is strategy

    def test_split_with_incomplete_partition(self, strategy):
        """Test that every file must be assigned to a half."""
        result = BoundaryMutationService(strategy).split("boundary-1", [["src/billing.py"], ["other.py"]])
        assert isinstance(result.error, OperationError)
        assert "other.py" in str(result.error)


class TestReorder:
    """Tests for reordering boundaries."""

    def test_reorder_independent_boundary(self, strategy):
        """Test moving a boundary without dependencies."""
        service = BoundaryMutationService(strategy)
        result = service.reorder("boundary-2", 0)

        assert result.ok
        assert result.strategy.boundary_ids[0] == "boundary-2"

    def test_reorder_against_dependencies_is_rejected(self, strategy):
        """Test that moving a dependent before its prerequisite fails."""
        service = BoundaryMutationService(strategy)
        result = service.reorder("boundary-3", 0)

        assert isinstance(result.error, OperationError)
        assert "boundary-1 must precede boundary-3" in str(result.error)
        assert service.current is strategy

    def test_reorder_with_override_drops_dependency(self, strategy):
        """Test that override applies the move and records the dropped dependency."""
        service = BoundaryMutationService(strategy)
        result = service.reorder("boundary-3", 0, override=True)

        assert result.ok
        assert result.strategy.boundary_ids[0] == "boundary-3"
        assert result.strategy.get_commit("boundary-3").boundary.dependencies == ()
        assert "Reorder override dropped dependency boundary-1 -> boundary-3" in result.strategy.warnings

    def test_reorder_out_of_range(self, strategy):
        """Test that positions outside the plan are rejected."""
        result = BoundaryMutationService(strategy).reorder("boundary-2", 5)
        assert isinstance(result.error, OperationError)


class TestRelabelAndUndo:
    """Tests for relabeling and undo."""

    def test_relabel_title(self, strategy):
        """Test replacing the suggested title."""
        service = BoundaryMutationService(strategy)
        result = service.relabel("boundary-2", "title", "describe the billing flow")

        assert result.ok
        message = result.strategy.get_commit("boundary-2").suggested_message
        assert message.title == "describe the billing flow"

    def test_relabel_unknown_field(self, strategy):
        """Test that only title, body and type can be relabeled."""
        result = BoundaryMutationService(strategy).relabel("boundary-2", "scope", "x")
        assert isinstance(result.error, OperationError)

    def test_relabel_empty_title(self, strategy):
        """Test that the title cannot be emptied."""
        result = BoundaryMutationService(strategy).relabel("boundary-2", "title", "  ")
        assert isinstance(result.error, OperationError)

    def test_undo_restores_previous_snapshot(self, strategy):
        """Test that undo reverts the last successful operation."""
        service = BoundaryMutationService(strategy)
        service.merge("boundary-1", "boundary-2")
        assert service.can_undo

        result = service.undo()
        assert result.ok
        assert service.current is strategy
        assert not service.can_undo

    def test_undo_without_history(self, strategy):
        """Test undo on a fresh session."""
        result = BoundaryMutationService(strategy).undo()
        assert isinstance(result.error, OperationError)
        assert "Nothing to undo" in str(result.error)
