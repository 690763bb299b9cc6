"""Clustering of related changes into commit boundaries.

Contains:
- TOPIC_RULES, detect_topic: Subject-area detection from file paths
- dominant_category: Confidence-weighted majority category
- compute_complexity, compute_priority: Boundary scoring
- BuildResult: Boundaries plus notes from the build
- BoundaryBuilder: Greedy size-bounded clustering of the relationship graph
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.models import (
    CATEGORY_SEVERITY,
    ChangeCategory,
    ChangeTypeAnalysis,
    CommitBoundary,
    FileRelationship,
    GitChange,
    ImpactAssessment,
    Priority,
)
from stagewise.boundary.paths import extension, is_docs_path, path_tokens

logger = logging.getLogger(__name__)


# Ordered (topic, path tokens, extensions); earlier rules win ties
TOPIC_RULES: list[tuple[str, set[str], set[str]]] = [
    ("authentication", {"auth", "login", "logout", "signin", "signup", "jwt", "oauth", "session", "password"}, set()),
    ("security", {"security", "permission", "permissions", "csrf", "xss", "crypto", "acl", "rbac"}, set()),
    ("user interface", {"ui", "component", "components", "view", "views", "page", "pages", "style", "styles",
                        "frontend", "widget", "widgets", "button", "layout"}, {".tsx", ".jsx", ".vue", ".svelte", ".css", ".scss"}),
    ("backend", {"api", "route", "routes", "endpoint", "endpoints", "controller", "controllers", "service",
                 "services", "server", "handler", "handlers"}, set()),
    ("database", {"model", "models", "schema", "schemas", "migration", "migrations", "database", "db", "sql",
                  "repository", "repositories"}, {".sql"}),
    ("performance", {"cache", "caching", "optimize", "performance", "perf", "lazy", "bundle"}, set()),
    ("build", {"docker", "dockerfile", "ci", "workflows", "deploy", "k8s", "helm", "terraform"}, {".tf"}),
]

COMPLEXITY_CRITICAL_BONUS = 1.5


def detect_topic(paths: Sequence[str]) -> Optional[str]:
    """Detect the subject area of a group of files from their paths.

    Documentation files are ignored unless every file is documentation.
    """
    considered = [p for p in paths if not is_docs_path(p)] or list(paths)
    scores: dict[str, int] = defaultdict(int)
    for path in considered:
        tokens = path_tokens(path)
        ext = extension(path)
        for topic, topic_tokens, topic_extensions in TOPIC_RULES:
            if tokens & topic_tokens:
                scores[topic] += 2
            elif ext in topic_extensions:
                scores[topic] += 1
    if not scores:
        return None
    order = {topic: i for i, (topic, _, _) in enumerate(TOPIC_RULES)}
    return min(scores, key=lambda t: (-scores[t], order[t]))


def dominant_category(analyses: Sequence[ChangeTypeAnalysis]) -> ChangeCategory:
    """Confidence-weighted majority category, ties broken by severity."""
    totals: dict[ChangeCategory, float] = defaultdict(float)
    for analysis in analyses:
        totals[analysis.category] += analysis.confidence
    if not totals:
        return ChangeCategory.FEATURE_ADDITION
    severity = {category: i for i, category in enumerate(CATEGORY_SEVERITY)}
    return min(totals, key=lambda c: (-round(totals[c], 6), severity[c]))


def format_theme(topic: Optional[str], category: ChangeCategory) -> str:
    if topic:
        return f"{topic} ({category.value})"
    return category.value


def compute_complexity(file_count: int, total_lines: int, critical: bool) -> float:
    """Estimate review complexity on a 0-10 scale."""
    score = 0.6 * file_count + 0.6 * math.log2(1 + total_lines)
    if critical:
        score += COMPLEXITY_CRITICAL_BONUS
    return round(min(10.0, max(0.0, score)), 1)


def compute_priority(file_count: int, total_lines: int, critical: bool, config: BoundaryConfig) -> Priority:
    if critical:
        return Priority.HIGH
    if total_lines > config.medium_priority_line_threshold or file_count > config.medium_priority_file_threshold:
        return Priority.MEDIUM
    return Priority.LOW


@dataclass
class BuildResult:
    """Boundaries produced by the builder."""

    boundaries: list[CommitBoundary]
    warnings: list[str] = field(default_factory=list)
    forced_ids: list[str] = field(default_factory=list)  # Boundaries over max size because of force


class _DisjointSet:
    """Union-find over file indices with size tracking."""

    def __init__(self, count: int):
        self.parent = list(range(count))
        self.size = [1] * count

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> int:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        # Keep the smaller index as root so clusters stay anchored to input order
        if rb < ra:
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.size[ra] += self.size[rb]
        return ra


class BoundaryBuilder:
    """Cluster changed files into size-bounded commit boundaries."""

    def __init__(self, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()

    def build(
        self,
        changes: Sequence[GitChange],
        relationships: Sequence[FileRelationship],
        analyses: Mapping[str, ChangeTypeAnalysis],
        impacts: Mapping[str, ImpactAssessment],
    ) -> BuildResult:
        """Cluster changes into boundaries.

        Args:
            changes: The change-set, in input order.
            relationships: Pairwise relationships between the changes.
            analyses: Classification per path.
            impacts: Impact assessment per path.

        Returns:
            BuildResult with boundaries numbered by their first file's input position.
        """
        index = {change.path: i for i, change in enumerate(changes)}
        weights = self._edge_weights(relationships, index)
        clusters = self._cluster(len(changes), weights)

        warnings: list[str] = []
        clusters = self._enforce_min_size(clusters, weights, warnings)

        boundaries: list[CommitBoundary] = []
        forced_ids: list[str] = []
        for number, members in enumerate(clusters, start=1):
            boundary = self._make_boundary(
                f"boundary-{number}", [changes[i] for i in members], relationships, analyses, impacts
            )
            if boundary.file_count > self.config.max_boundary_size:
                forced_ids.append(boundary.id)
            boundaries.append(boundary)

        logger.debug("Built %d boundaries from %d files", len(boundaries), len(changes))
        return BuildResult(boundaries=boundaries, warnings=warnings, forced_ids=forced_ids)

    # ------------------------------------------------------------
    # Clustering
    # ------------------------------------------------------------

    @staticmethod
    def _edge_weights(
        relationships: Sequence[FileRelationship],
        index: Mapping[str, int],
    ) -> dict[tuple[int, int], float]:
        """Collapse relationships into one weight per pair (the strongest type)."""
        weights: dict[tuple[int, int], float] = {}
        for rel in relationships:
            if rel.file_a not in index or rel.file_b not in index:
                continue
            a, b = sorted((index[rel.file_a], index[rel.file_b]))
            if a == b:
                continue
            weights[(a, b)] = max(weights.get((a, b), 0.0), rel.strength)
        return weights

    def _cluster(self, count: int, weights: Mapping[tuple[int, int], float]) -> list[list[int]]:
        config = self.config
        groups = _DisjointSet(count)
        edges = sorted(
            ((w, a, b) for (a, b), w in weights.items() if w >= config.min_relationship_strength),
            key=lambda e: (-e[0], e[1], e[2]),
        )
        for weight, a, b in edges:
            ra, rb = groups.find(a), groups.find(b)
            if ra == rb:
                continue
            if groups.size[ra] + groups.size[rb] > config.max_boundary_size and not config.force:
                logger.debug("Skipping merge of %d and %d (%.2f): would exceed max size", a, b, weight)
                continue
            groups.union(a, b)

        members: dict[int, list[int]] = defaultdict(list)
        for i in range(count):
            members[groups.find(i)].append(i)
        return sorted(members.values(), key=lambda m: m[0])

    def _enforce_min_size(
        self,
        clusters: list[list[int]],
        weights: Mapping[tuple[int, int], float],
        warnings: list[str],
    ) -> list[list[int]]:
        """Merge undersized clusters into their most related neighbour."""
        config = self.config
        if config.min_boundary_size <= 1:
            return clusters

        clusters = [list(c) for c in clusters]
        settled: set[int] = set()  # First member of clusters that cannot grow

        while len(clusters) > 1:
            pending = [
                i for i, c in enumerate(clusters)
                if len(c) < config.min_boundary_size and c[0] not in settled
            ]
            if not pending:
                break
            small_pos = pending[0]
            small = clusters[small_pos]

            best_pos: Optional[int] = None
            best_key: Optional[tuple] = None
            for pos, other in enumerate(clusters):
                if pos == small_pos:
                    continue
                if len(other) + len(small) > config.max_boundary_size and not config.force:
                    continue
                affinity = sum(
                    weights.get((min(a, b), max(a, b)), 0.0) for a in small for b in other
                )
                key = (-affinity, len(other), other[0])
                if best_key is None or key < best_key:
                    best_pos, best_key = pos, key

            if best_pos is None:
                settled.add(small[0])
                warnings.append(
                    f"Could not reach minimum boundary size {config.min_boundary_size} for "
                    f"{len(small)} file(s) without exceeding the maximum size"
                )
                continue

            target = clusters[best_pos]
            merged = sorted(target + small)
            clusters[best_pos] = merged
            del clusters[small_pos]
            clusters.sort(key=lambda c: c[0])

        return clusters

    # ------------------------------------------------------------
    # Boundary construction
    # ------------------------------------------------------------

    def _make_boundary(
        self,
        boundary_id: str,
        files: list[GitChange],
        relationships: Sequence[FileRelationship],
        analyses: Mapping[str, ChangeTypeAnalysis],
        impacts: Mapping[str, ImpactAssessment],
    ) -> CommitBoundary:
        paths = [f.path for f in files]
        member_analyses = [analyses[p] for p in paths if p in analyses]
        category = dominant_category(member_analyses)
        critical = any(impacts[p].critical or impacts[p].breaking for p in paths if p in impacts)
        total_lines = sum(f.total_lines for f in files)

        return CommitBoundary(
            id=boundary_id,
            files=tuple(files),
            theme=format_theme(detect_topic(paths), category),
            category=category,
            priority=compute_priority(len(files), total_lines, critical, self.config),
            estimated_complexity=compute_complexity(len(files), total_lines, critical),
            dependencies=(),
            reasoning=self._reasoning(paths, relationships),
        )

    @staticmethod
    def _reasoning(paths: list[str], relationships: Sequence[FileRelationship]) -> str:
        if len(paths) == 1:
            return "Standalone change with no strong relationship to other files"
        members = set(paths)
        strongest: dict[str, float] = {}
        for rel in relationships:
            if rel.file_a in members and rel.file_b in members:
                kind = rel.relation_type.value
                strongest[kind] = max(strongest.get(kind, 0.0), rel.strength)
        if not strongest:
            return f"Grouped {len(paths)} files to satisfy the minimum boundary size"
        parts = [f"{kind} ({strength:.2f})" for kind, strength in sorted(strongest.items(), key=lambda kv: (-kv[1], kv[0]))]
        return f"Grouped {len(paths)} files linked by {', '.join(parts)}"
