"""Ordering dependencies between commit boundaries.

Contains:
- DependencyEdge: "prerequisite must be committed before dependent"
- DependencyResult: Boundaries with dependencies filled in, edges and warnings
- find_cycle: Iterative DFS cycle search over boundary ids
- DependencyResolver: Derives edges from relationships and breaks cycles
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.models import (
    ChangeCategory,
    ChangeTypeAnalysis,
    CommitBoundary,
    FileRelationship,
    RelationType,
)

logger = logging.getLogger(__name__)


# Boundaries of these categories follow the code they describe or exercise
DEPENDENT_CATEGORIES = {ChangeCategory.TESTING, ChangeCategory.DOCUMENTATION}

# Files of these categories introduce what dependents describe or exercise
PREREQUISITE_CATEGORIES = {ChangeCategory.FEATURE_ADDITION, ChangeCategory.API_CHANGE}

DEPENDENCY_RELATIONS = {RelationType.TEST_PAIR, RelationType.IMPORT}


@dataclass(frozen=True)
class DependencyEdge:
    """The prerequisite boundary must be committed before the dependent one."""

    prerequisite: str
    dependent: str
    strength: float


@dataclass
class DependencyResult:
    """Output of dependency resolution."""

    boundaries: list[CommitBoundary]
    edges: list[DependencyEdge] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def find_cycle(nodes: Sequence[str], edges: Sequence[DependencyEdge]) -> Optional[list[DependencyEdge]]:
    """Find one cycle in the dependency graph.

    Args:
        nodes: Boundary ids, in plan order.
        edges: Current edges.

    Returns:
        The edges forming a cycle, or None if the graph is acyclic.
    """
    outgoing: dict[str, list[DependencyEdge]] = defaultdict(list)
    for edge in edges:
        outgoing[edge.prerequisite].append(edge)
    order = {node: i for i, node in enumerate(nodes)}
    for node in outgoing:
        outgoing[node].sort(key=lambda e: order.get(e.dependent, len(order)))

    state: dict[str, int] = {}  # 1 = on the DFS stack, 2 = finished
    for root in nodes:
        if state.get(root):
            continue
        # stack[k] is (node, next edge position); path[k] is the edge from stack[k] to stack[k + 1]
        stack: list[tuple[str, int]] = [(root, 0)]
        position = {root: 0}
        path: list[DependencyEdge] = []
        state[root] = 1
        while stack:
            node, pos = stack[-1]
            out = outgoing.get(node, [])
            if pos >= len(out):
                state[node] = 2
                stack.pop()
                del position[node]
                if path:
                    path.pop()
                continue
            stack[-1] = (node, pos + 1)
            edge = out[pos]
            nxt = edge.dependent
            if state.get(nxt) == 1:
                return path[position[nxt]:] + [edge]
            if not state.get(nxt):
                state[nxt] = 1
                position[nxt] = len(stack)
                stack.append((nxt, 0))
                path.append(edge)
    return None


class DependencyResolver:
    """Derive ordering dependencies between boundaries."""

    def __init__(self, config: Optional[BoundaryConfig] = None):
        self.config = config or BoundaryConfig()

    def resolve(
        self,
        boundaries: Sequence[CommitBoundary],
        relationships: Sequence[FileRelationship],
        analyses: Mapping[str, ChangeTypeAnalysis],
    ) -> DependencyResult:
        """Fill in boundary dependencies.

        A testing or documentation boundary depends on the boundary holding
        the feature or API code it is linked to by a strong test_pair or
        import relationship. Cycles are broken by dropping their weakest edge.

        Returns:
            DependencyResult; never raises for cyclic input.
        """
        owner = {path: b.id for b in boundaries for path in b.paths}
        by_id = {b.id: b for b in boundaries}
        strengths: dict[tuple[str, str], float] = {}

        for rel in relationships:
            if rel.relation_type not in DEPENDENCY_RELATIONS:
                continue
            if rel.strength <= self.config.dependency_strength_threshold:
                continue
            for dependent_file, prerequisite_file in ((rel.file_a, rel.file_b), (rel.file_b, rel.file_a)):
                dependent_id = owner.get(dependent_file)
                prerequisite_id = owner.get(prerequisite_file)
                if dependent_id is None or prerequisite_id is None or dependent_id == prerequisite_id:
                    continue
                if by_id[dependent_id].category not in DEPENDENT_CATEGORIES:
                    continue
                prerequisite_analysis = analyses.get(prerequisite_file)
                if prerequisite_analysis is None or prerequisite_analysis.category not in PREREQUISITE_CATEGORIES:
                    continue
                key = (prerequisite_id, dependent_id)
                strengths[key] = max(strengths.get(key, 0.0), rel.strength)

        order = {b.id: i for i, b in enumerate(boundaries)}
        edges = sorted(
            (DependencyEdge(src, dst, s) for (src, dst), s in strengths.items()),
            key=lambda e: (order[e.prerequisite], order[e.dependent]),
        )

        warnings: list[str] = []
        nodes = [b.id for b in boundaries]
        while True:
            cycle = find_cycle(nodes, edges)
            if cycle is None:
                break
            weakest = min(cycle, key=lambda e: (e.strength, e.prerequisite, e.dependent))
            edges = [e for e in edges if e != weakest]
            route = " -> ".join([cycle[0].prerequisite] + [e.dependent for e in cycle])
            message = (
                f"Dependency cycle {route} resolved by dropping "
                f"{weakest.prerequisite} -> {weakest.dependent} (strength {weakest.strength:.2f})"
            )
            logger.warning(message)
            warnings.append(message)

        prerequisites: dict[str, list[str]] = defaultdict(list)
        for edge in edges:
            prerequisites[edge.dependent].append(edge.prerequisite)

        resolved = [
            b.model_copy(update={"dependencies": tuple(sorted(prerequisites.get(b.id, []), key=order.__getitem__))})
            for b in boundaries
        ]
        logger.debug("Resolved %d dependency edges", len(edges))
        return DependencyResult(boundaries=resolved, edges=edges, warnings=warnings)
