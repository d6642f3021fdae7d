"""Pattern based dependency bans: banned artifacts and snapshot dependencies."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..formatters import ViolationReporter
from ..matcher import ArtifactMatcher
from ..models import ArtifactCoordinate, DependencyGraph, DependencyNode
from .base import CONTINUE, EnforcerLevel, NodeVerdict, Policy, PolicyResult

logger = logging.getLogger(__name__)


@dataclass
class BannedDependencyViolation:
    """A dependency rejected by a ban policy."""

    node: DependencyNode
    path: List[DependencyNode]
    reason: str


class BannedDependenciesBase(Policy):
    """
    Shared traversal for policies that judge each dependency on its own.

    Subclasses implement is_allowed() and set ERROR_MESSAGE. With
    search_transitive=False only direct dependencies are checked.
    """

    ERROR_MESSAGE = "is banned"
    OPTIONS = ("excludes", "includes", "search_transitive")

    def __init__(
        self,
        excludes: Optional[Sequence[str]] = None,
        includes: Optional[Sequence[str]] = None,
        search_transitive: bool = True,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(level, message)
        self.excludes = list(excludes or [])
        self.includes = list(includes or [])
        self.search_transitive = search_transitive

    def is_allowed(self, coordinate: ArtifactCoordinate, matcher: ArtifactMatcher) -> bool:
        raise NotImplementedError

    def inspect(self, graph: DependencyGraph, node: DependencyNode, matcher: ArtifactMatcher) -> NodeVerdict:
        """Judge a single node; the root is never judged."""
        if node.depth == 0 or self.is_allowed(node.coordinate, matcher):
            return CONTINUE
        logger.debug(f"{node.coordinate} {self.ERROR_MESSAGE}")
        return NodeVerdict(violation=BannedDependencyViolation(node, graph.path_to(node), self.ERROR_MESSAGE))

    def _search(
        self, graph: DependencyGraph, node: DependencyNode, matcher: ArtifactMatcher
    ) -> Tuple[List[Tuple[int, str]], List[BannedDependencyViolation]]:
        verdict = self.inspect(graph, node, matcher)
        violations = [verdict.violation] if verdict.violation is not None else []

        child_lines: List[Tuple[int, str]] = []
        for child in node.children:
            lines, child_violations = self._search(graph, child, matcher)
            child_lines.extend(lines)
            violations.extend(child_violations)

        if not violations:
            return [], []
        label = node.coordinate.id
        if verdict.violation is not None:
            label += f" <--- {self.ERROR_MESSAGE}"
        return [(node.depth, label)] + child_lines, violations

    def _direct_violations(self, graph: DependencyGraph, matcher: ArtifactMatcher) -> List[BannedDependencyViolation]:
        violations = []
        for child in graph.root.children:
            verdict = self.inspect(graph, child, matcher)
            if verdict.violation is not None:
                violations.append(verdict.violation)
        return violations

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        matcher = ArtifactMatcher(self.excludes, self.includes)
        if self.search_transitive:
            lines, violations = self._search(graph, graph.root, matcher)
            message = ViolationReporter.format_indented(lines) if violations else None
        else:
            violations = self._direct_violations(graph, matcher)
            message = "\n".join(f"{v.node.coordinate.id} <--- {v.reason}" for v in violations) or None
        return self._result(violations, message)


class BannedDependencies(BannedDependenciesBase):
    """
    Fails when a dependency matches an exclude pattern and no include pattern.

    Includes carve exceptions out of wide excludes: exclude "xerces" and
    include "xerces:xerces-api" bans every xerces artifact but the API.
    """

    name = "bannedDependencies"
    ERROR_MESSAGE = "banned via the exclude/include list"

    def is_allowed(self, coordinate: ArtifactCoordinate, matcher: ArtifactMatcher) -> bool:
        return not matcher.match(coordinate)


class RequireReleaseDeps(BannedDependenciesBase):
    """
    Fails on snapshot dependencies. Snapshots matching excludes (and none of
    includes) are tolerated.
    """

    name = "requireReleaseDeps"
    ERROR_MESSAGE = "is not a release dependency"
    OPTIONS = BannedDependenciesBase.OPTIONS + ("only_when_release",)

    def __init__(
        self,
        excludes: Optional[Sequence[str]] = None,
        includes: Optional[Sequence[str]] = None,
        search_transitive: bool = True,
        only_when_release: bool = False,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(excludes, includes, search_transitive, level, message)
        self.only_when_release = only_when_release

    def is_allowed(self, coordinate: ArtifactCoordinate, matcher: ArtifactMatcher) -> bool:
        return matcher.match(coordinate) or not coordinate.is_snapshot

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        if self.only_when_release and graph.root.coordinate.is_snapshot:
            logger.info(f"Skipping {self.name}: {graph.root.coordinate} is not a release")
            return self._result([], None)
        return super().evaluate(graph)
