"""Tests for stagewise.boundary.classifier module."""

from stagewise.boundary.classifier import (
    DEFAULT_DETECTORS,
    ChangeClassifier,
    ChangeContent,
    Detection,
    Detector,
    detect_api,
    detect_config,
    detect_generic_source,
)
from stagewise.boundary.config import BoundaryConfig, ClassifierWeights
from stagewise.boundary.models import ChangeCategory, ChangeKind


def _detect(detector, change):
    return detector(change, ChangeContent.from_change(change), ClassifierWeights())


class TestDetectApi:
    """Tests for the API detector."""

    def test_new_route_is_feature(self, make_change):
        """Test that an added route counts as a feature addition."""
        change = make_change(
            "app/routes/users.py",
            added=["@router.get('/users/{user_id}')", "def get_user(user_id):", "    return load(user_id)"],
        )
        detection = _detect(detect_api, change)
        assert detection.category == ChangeCategory.FEATURE_ADDITION
        assert detection.confidence == 0.9

    def test_removed_route_is_breaking(self, make_change):
        """Test that a removed route counts as a breaking change."""
        change = make_change("app/routes/users.py", removed=["@router.delete('/users/{user_id}')"])
        detection = _detect(detect_api, change)
        assert detection.category == ChangeCategory.BREAKING_CHANGE

    def test_non_api_path_is_ignored(self, make_change):
        """Test that files outside API paths are not matched."""
        change = make_change("src/billing.py", added=["@router.get('/x')"])
        assert _detect(detect_api, change) is None


class TestDetectConfig:
    """Tests for the configuration detector."""

    def test_dependency_version_change(self, make_change):
        """Test that version bumps in package.json are dependency updates."""
        change = make_change(
            "package.json",
            added=['    "lodash": "^4.17.21",'],
            removed=['    "lodash": "^4.17.20",'],
            context=['  "dependencies": {'],
        )
        detection = _detect(detect_config, change)
        assert detection.category == ChangeCategory.DEPENDENCY_UPDATE

    def test_lockfile(self, make_change):
        """Test that lockfiles are dependency updates."""
        detection = _detect(detect_config, make_change("poetry.lock", added=["x"]))
        assert detection.category == ChangeCategory.DEPENDENCY_UPDATE

    def test_script_change_in_manifest_is_configuration(self, make_change):
        """Test that non-dependency manifest edits are configuration."""
        change = make_change("package.json", added=['    "build": "tsc -p ."'], context=['  "scripts": {'])
        detection = _detect(detect_config, change)
        assert detection.category == ChangeCategory.CONFIGURATION

    def test_deployment_files_are_skipped(self, make_change):
        """Test that CI files are left to the deployment detector."""
        change = make_change(".github/workflows/ci.yml", added=["on: push"])
        assert _detect(detect_config, change) is None


class TestDetectGenericSource:
    """Tests for the fallback source detector."""

    def test_removed_public_function_is_breaking(self, make_change):
        """Test that removing a public function is a breaking change."""
        change = make_change("src/billing.py", removed=["def charge(customer):", "    pass"])
        detection = _detect(detect_generic_source, change)
        assert detection.category == ChangeCategory.BREAKING_CHANGE
        assert "charge" in detection.evidence

    def test_private_removal_is_not_breaking(self, make_change):
        """Test that removing a private helper is not breaking."""
        change = make_change("src/billing.py", removed=["def _helper():"], added=["x = 1"])
        detection = _detect(detect_generic_source, change)
        assert detection.category != ChangeCategory.BREAKING_CHANGE

    def test_null_check_is_bug_fix(self, make_change):
        """Test that a small null-check edit is a bug fix."""
        change = make_change(
            "src/billing.py",
            removed=["    return sum(items)"],
            added=["    if items is None:", "        return 0", "    return sum(items)"],
        )
        detection = _detect(detect_generic_source, change)
        assert detection.category == ChangeCategory.BUG_FIX

    def test_new_definition_is_feature(self, make_change):
        """Test that new functions are feature additions."""
        change = make_change("src/billing.py", added=["def refund(order):", "    return order.total"])
        detection = _detect(detect_generic_source, change)
        assert detection.category == ChangeCategory.FEATURE_ADDITION
        assert "refund" in detection.evidence

    def test_restructure_is_refactor(self, make_change):
        """Test that replaced lines without new definitions are a refactor."""
        change = make_change("src/billing.py", removed=["total = a + b"], added=["total = sum([a, b])"])
        detection = _detect(detect_generic_source, change)
        assert detection.category == ChangeCategory.REFACTOR

    def test_unknown_file_type(self, make_change):
        """Test the low-confidence fallback for unknown files."""
        detection = _detect(detect_generic_source, make_change("assets/logo.svg", added=["<svg/>"]))
        assert detection.confidence == ClassifierWeights().unknown_file

    def test_weights_are_configurable(self, make_change):
        """Test that detector confidences come from the weights."""
        change = make_change("src/billing.py", added=["def refund(order):"])
        weights = ClassifierWeights(feature=0.42)
        detection = detect_generic_source(change, ChangeContent.from_change(change), weights)
        assert detection.confidence == 0.42


class TestChangeClassifier:
    """Tests for ChangeClassifier."""

    def test_classifies_test_file(self, make_change):
        """Test that test files are classified as testing."""
        change = make_change("tests/test_billing.py", added=["def test_total():", "    assert total([]) == 0"])
        analysis = ChangeClassifier().classify(change)
        assert analysis.category == ChangeCategory.TESTING
        assert analysis.detector == "test"
        assert analysis.path_only is False

    def test_classifies_documentation(self, make_change):
        """Test that markdown files are documentation."""
        analysis = ChangeClassifier().classify(make_change("README.md", added=["# Title"]))
        assert analysis.category == ChangeCategory.DOCUMENTATION

    def test_plain_text_notes_are_documentation(self, make_change):
        """Test that .txt files outside build scripts are documentation."""
        analysis = ChangeClassifier().classify(make_change("notes/release.txt", added=["Ship on Friday"]))
        assert analysis.category == ChangeCategory.DOCUMENTATION

    def test_cmake_lists_is_not_documentation(self, make_change):
        """Test that CMakeLists.txt is a build script, not documentation."""
        change = make_change("native/CMakeLists.txt", added=["add_executable(app main.c)"])
        analysis = ChangeClassifier().classify(change)
        assert analysis.category == ChangeCategory.DEPLOYMENT

    def test_security_file(self, make_change):
        """Test that auth code is classified as a security fix."""
        change = make_change("src/auth.ts", added=["const token = jwt.sign(payload, secret);"])
        analysis = ChangeClassifier().classify(change)
        assert analysis.category == ChangeCategory.SECURITY_FIX

    def test_binary_change_is_path_only(self, make_change):
        """Test that unreadable changes get a penalized, path-only result."""
        change = make_change("assets/logo.png", change_type=ChangeKind.MODIFIED, binary=True)
        analysis = ChangeClassifier().classify(change)
        assert analysis.path_only is True
        assert analysis.reasoning.endswith("(path only)")
        assert analysis.confidence == round(0.3 * 0.6, 3)

    def test_failing_detector_is_skipped(self, make_change):
        """Test that an exception in one detector does not abort classification."""

        def broken(change, content, weights):
            raise RuntimeError("boom")

        classifier = ChangeClassifier(detectors=(Detector("broken", broken),) + DEFAULT_DETECTORS)
        analysis = classifier.classify(make_change("README.md", added=["text"]))
        assert analysis.category == ChangeCategory.DOCUMENTATION

    def test_first_high_confidence_detection_wins(self, make_change):
        """Test that registry order decides between confident detectors."""
        first = Detector("first", lambda c, t, w: Detection(ChangeCategory.REFACTOR, 0.75, "first"))
        second = Detector("second", lambda c, t, w: Detection(ChangeCategory.BUG_FIX, 0.95, "second"))
        analysis = ChangeClassifier(detectors=[first, second]).classify(make_change("a.py", added=["x"]))
        assert analysis.category == ChangeCategory.REFACTOR
        assert analysis.detector == "first"

    def test_best_low_confidence_detection_wins(self, make_change):
        """Test that the most confident detection wins when none is high-confidence."""
        first = Detector("first", lambda c, t, w: Detection(ChangeCategory.REFACTOR, 0.4, "first"))
        second = Detector("second", lambda c, t, w: Detection(ChangeCategory.BUG_FIX, 0.6, "second"))
        analysis = ChangeClassifier(detectors=[first, second]).classify(make_change("a.py", added=["x"]))
        assert analysis.category == ChangeCategory.BUG_FIX

    def test_no_detection(self, make_change):
        """Test the fallback when no detector matches."""
        analysis = ChangeClassifier(detectors=[]).classify(make_change("a.py", added=["x"]))
        assert analysis.detector == "none"
        assert analysis.confidence == ClassifierWeights().unknown_file

    def test_classify_all_keeps_input_order(self, make_change):
        """Test that classify_all is keyed by path in input order."""
        changes = [make_change("b.py", added=["x"]), make_change("a.md", added=["y"])]
        analyses = ChangeClassifier(BoundaryConfig()).classify_all(changes)
        assert list(analyses) == ["b.py", "a.md"]
