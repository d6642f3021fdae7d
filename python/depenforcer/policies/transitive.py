"""Bans every dependency that is not declared directly by the project."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..formatters import ViolationReporter
from ..matcher import ArtifactMatcher
from ..models import DependencyGraph, DependencyNode
from .base import CONTINUE, EnforcerLevel, NodeVerdict, Policy, PolicyResult

logger = logging.getLogger(__name__)


@dataclass
class TransitiveDependencyViolation:
    """A dependency reached only through another dependency."""

    node: DependencyNode
    path: List[DependencyNode]


@dataclass
class _Subtree:
    has_transitive: bool
    lines: List[Tuple[int, str]]
    violations: List[TransitiveDependencyViolation]


class BanTransitiveDependencies(Policy):
    """
    Fails when the graph holds a dependency below depth 1.

    Nodes matching excludes (and none of includes) are allowed together with
    everything beneath them.
    """

    name = "banTransitiveDependencies"
    OPTIONS = ("excludes", "includes")

    def __init__(
        self,
        excludes: Optional[Sequence[str]] = None,
        includes: Optional[Sequence[str]] = None,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(level, message)
        self.excludes = list(excludes or [])
        self.includes = list(includes or [])

    @staticmethod
    def inspect(graph: DependencyGraph, node: DependencyNode, matcher: ArtifactMatcher) -> NodeVerdict:
        """Judge one node on its own; the caller folds verdicts over the tree."""
        if node.depth == 0:
            return CONTINUE
        if matcher.match(node.coordinate):
            return NodeVerdict(prune=True, excluded=True)
        if node.depth > 1:
            return NodeVerdict(violation=TransitiveDependencyViolation(node, graph.path_to(node)))
        return CONTINUE

    def _search(self, graph: DependencyGraph, node: DependencyNode, matcher: ArtifactMatcher) -> _Subtree:
        verdict = self.inspect(graph, node, matcher)
        label = node.coordinate.id

        if verdict.excluded:
            logger.debug(f"Excluded {node.coordinate} and its dependencies")
            return _Subtree(False, [(node.depth, f"{label} [excluded]")], [])

        has_transitive = verdict.violation is not None
        violations = [verdict.violation] if has_transitive else []
        child_lines: List[Tuple[int, str]] = []
        children_have_transitive = False
        for child in node.children:
            subtree = self._search(graph, child, matcher)
            children_have_transitive = children_have_transitive or subtree.has_transitive
            child_lines.extend(subtree.lines)
            violations.extend(subtree.violations)

        has_transitive = has_transitive or children_have_transitive
        if not has_transitive:
            return _Subtree(False, [], [])

        if children_have_transitive and node.depth > 0:
            label += " has transitive dependencies:"
        return _Subtree(True, [(node.depth, label)] + child_lines, violations)

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        matcher = ArtifactMatcher(self.excludes, self.includes)
        subtree = self._search(graph, graph.root, matcher)
        message = ViolationReporter.format_indented(subtree.lines) if subtree.has_transitive else None
        return self._result(subtree.violations, message)
