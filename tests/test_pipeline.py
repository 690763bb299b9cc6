"""Tests for stagewise.boundary.pipeline module."""

import pytest

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.exceptions import EmptyInputError, ValidationError
from stagewise.boundary.models import ChangeCategory, ChangeKind, Priority, StrategyKind
from stagewise.boundary.pipeline import analyze_changes, plan_staging
from stagewise.boundary.validation import find_order_violations


@pytest.fixture
def unrelated_changes(make_change):
    """Five single-line changes with nothing in common."""
    return [
        make_change("src/alpha.py", added=["alpha = 1"]),
        make_change("lib/beta.rb", added=["beta = 2"]),
        make_change("docs/gamma.md", added=["Gamma"]),
        make_change("config/delta.yaml", added=["delta: 4"]),
        make_change("scripts/epsilon.sh", added=["echo epsilon"]),
    ]


@pytest.fixture
def billing_changes(make_change):
    """A test listed before the module it covers."""
    return [
        make_change(
            "tests/test_billing.py",
            added=[
                "from src.billing import create_invoice",
                "def test_create_invoice():",
                "    assert create_invoice([]).total == 0",
            ],
            change_type=ChangeKind.ADDED,
        ),
        make_change("src/billing.py", added=["def create_invoice(items):", "    return Invoice(items)"]),
    ]


class TestScenarios:
    """End-to-end scenarios."""

    def test_source_and_test_form_one_boundary(self, auth_changes):
        """Test that a module and its test become a single high-priority commit."""
        strategy = plan_staging(auth_changes, BoundaryConfig(min_boundary_size=1, max_boundary_size=8))

        assert len(strategy.commits) == 1
        boundary = strategy.commits[0].boundary
        assert set(boundary.paths) == {"src/auth.ts", "test/auth.test.ts"}
        assert "authentication" in boundary.theme
        assert boundary.priority == Priority.HIGH

    def test_single_readme_change(self, make_change):
        """Test that a lone README change is a low-priority documentation commit."""
        strategy = plan_staging([make_change("README.md", added=["Install with pip."])])

        assert len(strategy.commits) == 1
        boundary = strategy.commits[0].boundary
        assert boundary.category == ChangeCategory.DOCUMENTATION
        assert boundary.priority == Priority.LOW
        assert boundary.dependencies == ()
        assert strategy.strategy == StrategyKind.PARALLEL

    def test_unrelated_manifest_and_component(self, make_change):
        """Test that unrelated files become independent boundaries."""
        changes = [
            make_change(
                "package.json",
                added=['    "lodash": "^4.17.21",'],
                removed=['    "lodash": "^4.17.20",'],
                context=['  "dependencies": {'],
            ),
            make_change(
                "src/ui/Button.tsx",
                added=["export function Button(props) {", "  return <button>{props.label}</button>;", "}"],
                change_type=ChangeKind.ADDED,
            ),
        ]
        analysis = analyze_changes(changes, BoundaryConfig(max_boundary_size=8))
        strategy = analysis.strategy

        assert analysis.analyses["package.json"].category == ChangeCategory.DEPENDENCY_UPDATE
        assert analysis.analyses["src/ui/Button.tsx"].category == ChangeCategory.FEATURE_ADDITION
        assert analysis.relationships == []
        assert len(strategy.commits) == 2
        assert all(c.boundary.dependencies == () for c in strategy.commits)
        assert strategy.strategy == StrategyKind.PARALLEL

    def test_test_commit_follows_its_module(self, billing_changes):
        """Test that a testing boundary is ordered after the feature it covers."""
        strategy = plan_staging(billing_changes, BoundaryConfig(max_boundary_size=1))

        assert [c.boundary.paths for c in strategy.commits] == [["src/billing.py"], ["tests/test_billing.py"]]
        assert strategy.commits[1].boundary.dependencies == (strategy.commits[0].boundary.id,)
        assert strategy.strategy == StrategyKind.SEQUENTIAL


class TestProperties:
    """Invariants that hold for every plan."""

    def test_every_file_in_exactly_one_boundary(self, unrelated_changes, billing_changes, auth_changes):
        """Test that the plan partitions the change-set."""
        changes = unrelated_changes + billing_changes + auth_changes
        strategy = plan_staging(changes, BoundaryConfig(max_boundary_size=3))

        paths = strategy.paths
        assert sorted(paths) == sorted(c.path for c in changes)
        assert len(paths) == len(set(paths))

    def test_commit_order_respects_dependencies(self, unrelated_changes, billing_changes):
        """Test that the commit order is a topological order of the dependencies."""
        strategy = plan_staging(billing_changes + unrelated_changes, BoundaryConfig(max_boundary_size=1))
        assert find_order_violations(strategy.commits) == []

    def test_deterministic(self, unrelated_changes, billing_changes, auth_changes):
        """Test that repeated runs produce identical plans."""
        changes = auth_changes + unrelated_changes + billing_changes
        config = BoundaryConfig(max_boundary_size=2)
        assert plan_staging(changes, config) == plan_staging(changes, config)

    def test_size_bound(self, unrelated_changes):
        """Test that a small maximum size yields at least three boundaries for five files."""
        strategy = plan_staging(unrelated_changes, BoundaryConfig(max_boundary_size=2))
        assert len(strategy.commits) >= 3
        assert all(c.boundary.file_count <= 2 for c in strategy.commits)

    def test_empty_input(self):
        """Test that an empty change-set is an error, not an empty plan."""
        with pytest.raises(EmptyInputError):
            plan_staging([])


class TestAnalyzeChanges:
    """Tests for validation, filtering and warnings."""

    def test_invalid_config(self, unrelated_changes):
        """Test that a minimum above the maximum is rejected."""
        with pytest.raises(ValidationError):
            analyze_changes(unrelated_changes, BoundaryConfig(min_boundary_size=3, max_boundary_size=2))

    def test_duplicate_paths(self, make_change):
        """Test that repeated paths are rejected."""
        changes = [make_change("a.py", added=["x"]), make_change("a.py", added=["y"])]
        with pytest.raises(ValidationError, match="a.py"):
            analyze_changes(changes)

    def test_ignored_files_are_reported(self, unrelated_changes, make_change):
        """Test that ignored files are left out and listed in the warnings."""
        changes = unrelated_changes + [make_change("yarn.lock", added=["lodash@4"])]
        analysis = analyze_changes(changes, BoundaryConfig(ignore_patterns=("*.lock",)))

        assert analysis.ignored_paths == ["yarn.lock"]
        assert "yarn.lock" not in analysis.strategy.paths
        assert analysis.strategy.warnings[0] == "Ignored 1 file(s) matching ignore patterns: yarn.lock"

    def test_everything_ignored(self, make_change):
        """Test that ignoring every file is an empty input."""
        with pytest.raises(EmptyInputError):
            analyze_changes([make_change("yarn.lock", added=["x"])], BoundaryConfig(ignore_patterns=("yarn.lock",)))

    def test_forced_boundary_warning(self, make_change):
        """Test that force keeps related files together and warns about the size."""
        changes = [make_change(f"config/service_{i}.yaml", added=[f"port_{i}: 80{i}"]) for i in range(3)]

        forced = plan_staging(changes, BoundaryConfig(max_boundary_size=2, force=True))
        capped = plan_staging(changes, BoundaryConfig(max_boundary_size=2))

        assert len(forced.commits) == 1
        assert any(w.endswith("(forced)") for w in forced.warnings)
        assert not any(w.endswith("(forced)") for w in capped.warnings)

    def test_degraded_analysis_warning(self, unrelated_changes):
        """Test the warning when the change-set exceeds the full analysis limit."""
        analysis = analyze_changes(unrelated_changes, BoundaryConfig(max_files_for_full_analysis=3))
        assert any("exceed the full analysis limit" in w for w in analysis.strategy.warnings)
        assert len(analysis.strategy.paths) == 5
