"""Tests for stagewise.boundary.impact module."""

import pytest

from stagewise.boundary.impact import ImpactAnalyzer
from stagewise.boundary.models import ChangeCategory, ChangeKind, ChangeTypeAnalysis


def _analysis(path, category):
    return ChangeTypeAnalysis(path=path, category=category, confidence=0.9, reasoning="test")


class TestImpactAnalyzer:
    """Tests for ImpactAnalyzer."""

    def test_small_documentation_change_is_low_risk(self, make_change):
        """Test that docs changes carry almost no risk."""
        change = make_change("README.md", added=["# Title"])
        impact = ImpactAnalyzer().assess(change, _analysis("README.md", ChangeCategory.DOCUMENTATION))
        assert impact.risk_score == pytest.approx(0.051)
        assert impact.critical is False
        assert impact.breaking is False

    def test_removed_public_symbol_is_breaking(self, make_change):
        """Test that removing a public function marks the change as breaking."""
        change = make_change("src/billing.py", removed=["def charge(customer):"], added=["x = 1"])
        impact = ImpactAnalyzer().assess(change, _analysis("src/billing.py", ChangeCategory.REFACTOR))
        assert impact.breaking is True
        assert impact.critical is True
        assert impact.removed_symbols == ("charge",)

    def test_deleted_source_file_is_breaking(self, make_change):
        """Test that deleting a source file is breaking even without content."""
        change = make_change("src/legacy.py", change_type=ChangeKind.DELETED, binary=True)
        impact = ImpactAnalyzer().assess(change, _analysis("src/legacy.py", ChangeCategory.REFACTOR))
        assert impact.breaking is True
        assert "deletes a source file" in impact.signals

    def test_manifest_is_critical(self, make_change):
        """Test that package manifests are critical files."""
        change = make_change("package.json", added=['"lodash": "^4.17.21"'])
        impact = ImpactAnalyzer().assess(change, _analysis("package.json", ChangeCategory.DEPENDENCY_UPDATE))
        assert impact.critical is True
        assert impact.breaking is False
        assert impact.risk_score == pytest.approx(0.801)

    def test_security_category_is_critical(self, make_change):
        """Test that security fixes are critical regardless of path."""
        change = make_change("src/session.py", added=["token = sign()"])
        impact = ImpactAnalyzer().assess(change, _analysis("src/session.py", ChangeCategory.SECURITY_FIX))
        assert impact.critical is True
        assert "classified as security-fix" in impact.signals

    def test_risk_is_clamped(self, make_change):
        """Test that the risk score never exceeds 1."""
        change = make_change(
            "migrations/0002_drop_users.py",
            removed=[f"def migrate_{i}():" for i in range(300)],
        )
        impact = ImpactAnalyzer().assess(
            change, _analysis("migrations/0002_drop_users.py", ChangeCategory.BREAKING_CHANGE)
        )
        assert impact.risk_score == 1.0

    def test_assess_all(self, make_change):
        """Test that every change is assessed and keyed by path."""
        changes = [make_change("a.py", added=["x"]), make_change("b.md", added=["y"])]
        analyses = {
            "a.py": _analysis("a.py", ChangeCategory.FEATURE_ADDITION),
            "b.md": _analysis("b.md", ChangeCategory.DOCUMENTATION),
        }
        impacts = ImpactAnalyzer().assess_all(changes, analyses)
        assert list(impacts) == ["a.py", "b.md"]
        assert impacts["a.py"].risk_score > impacts["b.md"].risk_score
