"""Semantic classification of individual changes.

Contains:
- Detection: Result of a single detector
- ChangeContent: Pre-extracted text of a change shared by all detectors
- detect_api, detect_test, detect_config, detect_documentation, detect_security,
  detect_performance, detect_deployment, detect_generic_source: Detectors
- DEFAULT_DETECTORS: Ordered detector registry
- ChangeClassifier: Runs the registry and picks the winning detection

Each detector looks at one change and either returns a Detection or None.
Detectors run in registry order; the first one whose confidence reaches
the high-confidence weight wins, otherwise the most confident one does.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from stagewise.boundary.config import BoundaryConfig, ClassifierWeights
from stagewise.boundary.models import ChangeCategory, ChangeKind, ChangeTypeAnalysis, GitChange
from stagewise.boundary.paths import (
    is_dependency_manifest,
    is_deployment_path,
    is_docs_path,
    is_config_path,
    is_lockfile,
    is_source_path,
    is_test_path,
    path_tokens,
)
from stagewise.boundary.symbols import defined_names, removed_public_symbols

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detection:
    """Result of a single detector."""

    category: ChangeCategory
    confidence: float
    evidence: str
    suggested_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChangeContent:
    """Text of a change, extracted once and shared by all detectors.

    In path-only mode (binary change or no hunks) the text fields are empty,
    so content checks fail and detectors fall back to path conventions.
    """

    tokens: frozenset[str]
    added: str
    removed: str
    context: str
    readable: bool

    @property
    def changed(self) -> str:
        return self.added + "\n" + self.removed

    @classmethod
    def from_change(cls, change: GitChange) -> "ChangeContent":
        readable = change.content_readable
        return cls(
            tokens=frozenset(path_tokens(change.path)),
            added="\n".join(change.added_lines) if readable else "",
            removed="\n".join(change.removed_lines) if readable else "",
            context="\n".join(change.context_lines) if readable else "",
            readable=readable,
        )


DetectorFunc = Callable[[GitChange, ChangeContent, ClassifierWeights], Optional[Detection]]


@dataclass(frozen=True)
class Detector:
    """A named entry of the detector registry."""

    name: str
    detect: DetectorFunc


# ============================================================
# API detector
# ============================================================

API_PATH_TOKENS = {
    "api", "apis", "route", "routes", "router", "controller", "controllers",
    "endpoint", "endpoints", "handler", "handlers", "views",
}

ROUTE_DEFINITION_RE = re.compile(
    r"@(?:app|router|api|bp|blueprint)\.(?:get|post|put|patch|delete|route)\b"
    r"|\b(?:app|router)\.(?:get|post|put|patch|delete|use)\s*\("
    r"|@(?:Get|Post|Put|Patch|Delete|Request)Mapping\b"
    r"|@(?:Get|Post|Put|Patch|Delete)\("
    r"|export\s+async\s+function\s+\w+"
    r"|\bpath\(\s*['\"]"
)

API_PARAMETER_RE = re.compile(r"\b(?:params|query|body|request\.args|request\.json|req\.body|req\.query)\b")


def detect_api(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify route, controller and handler changes."""
    if not content.tokens & API_PATH_TOKENS:
        return None

    added_routes = bool(ROUTE_DEFINITION_RE.search(content.added))
    removed_routes = bool(ROUTE_DEFINITION_RE.search(content.removed))

    if added_routes and not removed_routes:
        return Detection(
            ChangeCategory.FEATURE_ADDITION, 0.9, "New API endpoints detected",
            ("Document the new endpoints", "Add integration tests for the new routes"),
        )
    if removed_routes and not added_routes:
        return Detection(
            ChangeCategory.BREAKING_CHANGE, 0.95, "API endpoints removed",
            ("Announce the removal to API consumers", "Bump the major version"),
        )
    if added_routes or API_PARAMETER_RE.search(content.changed):
        return Detection(
            ChangeCategory.API_CHANGE, 0.85, "API parameters or route signatures changed",
            ("Check backward compatibility of request parameters",),
        )
    return Detection(ChangeCategory.API_CHANGE, 0.8, "API-related file modified")


# ============================================================
# Test detector
# ============================================================

TEST_CASE_RE = re.compile(r"\bdef\s+test_\w+|\b(?:it|test|describe)\s*\(|@Test\b|\bfunc\s+Test\w+")


def detect_test(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify files that follow test naming conventions."""
    if not is_test_path(change.path):
        return None
    if TEST_CASE_RE.search(content.added):
        return Detection(ChangeCategory.TESTING, 0.9, "New test cases added", ("Run the test suite",))
    return Detection(ChangeCategory.TESTING, 0.9, "Test files modified", ("Run the test suite",))


# ============================================================
# Configuration detector
# ============================================================

DEPENDENCY_SECTION_RE = re.compile(
    r'"(?:dev|peer|optional)?[dD]ependencies"'
    r"|\[(?:tool\.poetry\.)?(?:dev-)?dependencies\]"
    r"|\[project\.optional-dependencies\]"
    r"|^\s*dependencies\s*=",
    re.MULTILINE,
)

VERSION_SPEC_RE = re.compile(
    r'^\s*"(?!version")[@\w./-]+"\s*:\s*"[\^~<>=*]*\s*v?\d'
    r"|^\s*[A-Za-z0-9_.\-\[\]]+\s*(?:==|>=|<=|~=|!=|>|<)\s*\d"
    r"|^\s*[\w.\-]+/[\w.\-/]+\s+v\d",
    re.MULTILINE,
)


def detect_config(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify configuration files and dependency manifests."""
    path = change.path
    if is_deployment_path(path) or not is_config_path(path):
        return None

    if is_lockfile(path):
        return Detection(
            ChangeCategory.DEPENDENCY_UPDATE, 0.9, "Lockfile updated",
            ("Commit together with the matching manifest change",),
        )

    if is_dependency_manifest(path):
        in_dependency_section = DEPENDENCY_SECTION_RE.search(content.changed + "\n" + content.context)
        if VERSION_SPEC_RE.search(content.changed) and (in_dependency_section or not path.endswith(".json")):
            return Detection(
                ChangeCategory.DEPENDENCY_UPDATE, 0.95, "Dependency versions changed",
                ("Verify compatibility of updated dependencies", "Update the lockfile"),
            )
        if DEPENDENCY_SECTION_RE.search(content.changed):
            return Detection(
                ChangeCategory.DEPENDENCY_UPDATE, 0.95, "Dependency sections changed",
                ("Verify compatibility of updated dependencies",),
            )
        return Detection(ChangeCategory.CONFIGURATION, 0.8, "Package manifest modified")

    return Detection(
        ChangeCategory.CONFIGURATION, 0.8, "Configuration file modified",
        ("Check configuration in every environment",),
    )


# ============================================================
# Documentation detector
# ============================================================

def detect_documentation(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify documentation files."""
    if not is_docs_path(change.path):
        return None
    return Detection(ChangeCategory.DOCUMENTATION, 1.0, "Documentation changes")


# ============================================================
# Security detector
# ============================================================

SECURITY_PATH_TOKENS = {
    "auth", "authentication", "authorization", "security", "permission", "permissions",
    "crypto", "jwt", "oauth", "login", "logout", "signin", "session", "csrf",
    "password", "acl", "rbac",
}

SECURITY_TRIGGER_RE = re.compile(r"\b(?:authenticat\w*|authoriz\w*|jwt|oauth\w*)\b", re.IGNORECASE)

SECURITY_KEYWORD_RE = re.compile(
    r"(?:auth|secur|permission|encrypt|decrypt|token|password|csrf|xss|sanitiz|bcrypt|hmac)",
    re.IGNORECASE,
)


def detect_security(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify authentication, authorization and crypto changes."""
    path_hit = bool(content.tokens & SECURITY_PATH_TOKENS)
    if not path_hit and not SECURITY_TRIGGER_RE.search(content.changed):
        return None
    actions = ("Request a security review", "Add tests for the affected access paths")
    if SECURITY_KEYWORD_RE.search(content.changed):
        return Detection(ChangeCategory.SECURITY_FIX, 0.9, "Security-sensitive code changed", actions)
    return Detection(ChangeCategory.SECURITY_FIX, 0.7, "Security-related file modified", actions)


# ============================================================
# Performance detector
# ============================================================

PERFORMANCE_PATH_TOKENS = {"cache", "caching", "performance", "perf", "optimize", "optimization", "benchmark"}

PERFORMANCE_CONTENT_RE = re.compile(
    r"\b(?:optimi[sz]\w*|memoi[sz]\w*|lru_cache|cached_property|useMemo|useCallback|lazy|debounce|throttle)\b"
)


def detect_performance(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify caching and optimization changes."""
    path_hit = bool(content.tokens & PERFORMANCE_PATH_TOKENS)
    content_hit = bool(PERFORMANCE_CONTENT_RE.search(content.added))
    if not path_hit and not content_hit:
        return None
    actions = ("Benchmark before and after the change",)
    if content_hit:
        return Detection(ChangeCategory.PERFORMANCE_IMPROVEMENT, 0.85, "Performance optimizations detected", actions)
    return Detection(ChangeCategory.PERFORMANCE_IMPROVEMENT, 0.6, "Performance-related file modified", actions)


# ============================================================
# Deployment detector
# ============================================================

def detect_deployment(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify container, CI and infrastructure files."""
    if not is_deployment_path(change.path):
        return None
    return Detection(
        ChangeCategory.DEPLOYMENT, 0.9, "Deployment or CI configuration changed",
        ("Verify the pipeline in a staging environment",),
    )


# ============================================================
# Generic source detector (fallback)
# ============================================================

BUG_FIX_RE = re.compile(
    r"\bis\s+(?:not\s+)?None\b|[!=]==?\s*(?:null|undefined|None|nil)\b"
    r"|\b(?:try|except|catch|rescue)\b"
    r"|\bif\s*\(?\s*!?\s*(?:err|error)\b"
    r"|\?\.",
)


def detect_generic_source(change: GitChange, content: ChangeContent, weights: ClassifierWeights) -> Optional[Detection]:
    """Classify any remaining change from the shape of its diff. Always matches."""
    if not is_source_path(change.path):
        return Detection(ChangeCategory.FEATURE_ADDITION, weights.unknown_file, "Unrecognized file type")

    removed_public = removed_public_symbols(change)
    if removed_public:
        return Detection(
            ChangeCategory.BREAKING_CHANGE, weights.breaking_change,
            f"Public symbols removed: {', '.join(removed_public)}",
            ("Update callers of the removed symbols", "Note the breaking change in the changelog"),
        )

    added_lines = content.added.splitlines() if content.readable else []
    removed_lines = content.removed.splitlines() if content.readable else []
    new_definitions = sorted(defined_names(added_lines, change.path) - defined_names(removed_lines, change.path))

    if (
        added_lines
        and removed_lines
        and not new_definitions
        and change.total_lines <= weights.bug_fix_max_lines
        and BUG_FIX_RE.search(content.added)
    ):
        return Detection(
            ChangeCategory.BUG_FIX, weights.bug_fix, "Error handling or null checks added",
            ("Add a regression test",),
        )

    if new_definitions:
        return Detection(
            ChangeCategory.FEATURE_ADDITION, weights.feature,
            f"New definitions added: {', '.join(new_definitions)}",
        )

    if added_lines and removed_lines:
        return Detection(ChangeCategory.REFACTOR, weights.refactor, "Existing code restructured")

    if change.change_type is ChangeKind.DELETED:
        return Detection(ChangeCategory.REFACTOR, weights.fallback, "Source file removed")

    return Detection(ChangeCategory.FEATURE_ADDITION, weights.fallback, "General source changes")


DEFAULT_DETECTORS: tuple[Detector, ...] = (
    Detector("api", detect_api),
    Detector("test", detect_test),
    Detector("config", detect_config),
    Detector("documentation", detect_documentation),
    Detector("security", detect_security),
    Detector("performance", detect_performance),
    Detector("deployment", detect_deployment),
    Detector("generic-source", detect_generic_source),
)


# ============================================================
# Classifier
# ============================================================

class ChangeClassifier:
    """Assign a semantic category to each change."""

    def __init__(self, config: Optional[BoundaryConfig] = None, detectors: Optional[Sequence[Detector]] = None):
        self.config = config or BoundaryConfig()
        self.detectors = tuple(detectors) if detectors is not None else DEFAULT_DETECTORS

    def classify(self, change: GitChange) -> ChangeTypeAnalysis:
        """Classify a single change. Never raises for detector failures."""
        weights = self.config.weights
        content = ChangeContent.from_change(change)

        best: Optional[tuple[str, Detection]] = None
        for detector in self.detectors:
            try:
                detection = detector.detect(change, content, weights)
            except Exception as e:
                logger.warning("Detector %s failed on %s: %s", detector.name, change.path, e)
                continue
            if detection is None:
                continue
            if detection.confidence >= weights.high_confidence:
                best = (detector.name, detection)
                break
            if best is None or detection.confidence > best[1].confidence:
                best = (detector.name, detection)

        if best is None:
            name, detection = "none", Detection(
                ChangeCategory.FEATURE_ADDITION, weights.unknown_file, "No detector matched"
            )
        else:
            name, detection = best

        confidence = detection.confidence
        reasoning = detection.evidence
        if not content.readable:
            confidence *= weights.path_only_penalty
            reasoning += " (path only)"

        logger.debug("Classified %s as %s (%.2f) by %s", change.path, detection.category.value, confidence, name)
        return ChangeTypeAnalysis(
            path=change.path,
            category=detection.category,
            confidence=round(min(1.0, max(0.0, confidence)), 3),
            reasoning=reasoning,
            suggested_actions=detection.suggested_actions,
            detector=name,
            path_only=not content.readable,
        )

    def classify_all(self, changes: Iterable[GitChange]) -> dict[str, ChangeTypeAnalysis]:
        """Classify every change, keyed by path in input order."""
        return {change.path: self.classify(change) for change in changes}

