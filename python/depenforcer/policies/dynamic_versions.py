"""Bans dependencies whose requested version can change from build to build."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ..exceptions import InvalidRangeSpec
from ..formatters import ViolationReporter
from ..matcher import compile_patterns, matches_any
from ..models import DependencyGraph, DependencyNode
from ..version_parser import LATEST, RELEASE, VersionParser
from ..version_range import VersionRange
from .base import CONTINUE, EnforcerLevel, NodeVerdict, Policy, PolicyResult

logger = logging.getLogger(__name__)


class DynamicVersionKind(Enum):
    LATEST = "latest"
    RELEASE = "release"
    SNAPSHOT = "snapshot"
    RANGE = "range"


@dataclass
class DynamicVersionViolation:
    """A dependency requested with a banned dynamic version."""

    node: DependencyNode
    constraint: str
    kind: DynamicVersionKind
    intermediate_path: List[DependencyNode]  # nodes between the root and this node


def classify_constraint(constraint: Optional[str]) -> Optional[DynamicVersionKind]:
    """Return the kind of dynamic version, or None for a pinned version."""
    if not constraint:
        return None
    constraint = constraint.strip()
    if constraint.startswith("[") or constraint.startswith("("):
        return DynamicVersionKind.RANGE
    if constraint == LATEST:
        return DynamicVersionKind.LATEST
    if constraint == RELEASE:
        return DynamicVersionKind.RELEASE
    if VersionParser.is_snapshot(constraint):
        return DynamicVersionKind.SNAPSHOT
    return None


class BanDynamicVersions(Policy):
    """
    Fails on version ranges, LATEST, RELEASE and snapshot versions.

    Works on the requested version constraints rather than resolved versions.
    A banned node is reported once; nothing beneath it is inspected. Nodes
    matching ignores are skipped together with their subtree.
    """

    name = "banDynamicVersions"
    OPTIONS = (
        "allow_snapshots",
        "allow_latest",
        "allow_release",
        "allow_ranges",
        "allow_ranges_with_identical_bounds",
        "exclude_optionals",
        "excluded_scopes",
        "ignores",
    )

    def __init__(
        self,
        allow_snapshots: bool = False,
        allow_latest: bool = False,
        allow_release: bool = False,
        allow_ranges: bool = False,
        allow_ranges_with_identical_bounds: bool = False,
        exclude_optionals: bool = False,
        excluded_scopes: Optional[Sequence[str]] = None,
        ignores: Optional[Sequence[str]] = None,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(level, message)
        self.allow_snapshots = allow_snapshots
        self.allow_latest = allow_latest
        self.allow_release = allow_release
        self.allow_ranges = allow_ranges
        self.allow_ranges_with_identical_bounds = allow_ranges_with_identical_bounds
        self.exclude_optionals = exclude_optionals
        self.excluded_scopes = list(excluded_scopes or [])
        self.ignores = list(ignores or [])

    def is_banned(self, constraint: Optional[str]) -> bool:
        kind = classify_constraint(constraint)
        if kind is DynamicVersionKind.LATEST:
            return not self.allow_latest
        if kind is DynamicVersionKind.RELEASE:
            return not self.allow_release
        if kind is DynamicVersionKind.SNAPSHOT:
            return not self.allow_snapshots
        if kind is DynamicVersionKind.RANGE:
            if self.allow_ranges_with_identical_bounds and self._has_identical_bounds(constraint):
                return False
            return not self.allow_ranges
        return False

    @staticmethod
    def _has_identical_bounds(constraint: str) -> bool:
        # the constraint comes from graph data, a malformed one is judged as a plain range
        try:
            return VersionRange.parse(constraint).has_identical_bounds
        except InvalidRangeSpec as e:
            logger.warning(f"Treating malformed version range as a plain range: {e}")
            return False

    def inspect(self, node: DependencyNode, ignores, intermediate_path: List[DependencyNode]) -> NodeVerdict:
        """Judge one non-root node; the caller folds verdicts over the tree."""
        if matches_any(ignores, node.coordinate):
            logger.debug(f"Ignoring {node.coordinate} and its dependencies")
            return NodeVerdict(prune=True, excluded=True)

        constraint = node.version_constraint
        logger.debug(f"Found node {node.coordinate} with version constraint {constraint}")
        if self.is_banned(constraint):
            return NodeVerdict(prune=True, violation=DynamicVersionViolation(
                node=node,
                constraint=constraint,
                kind=classify_constraint(constraint),
                intermediate_path=list(intermediate_path),
            ))
        return CONTINUE

    def find_violations(self, graph: DependencyGraph) -> List[DynamicVersionViolation]:
        ignores = compile_patterns(self.ignores)
        graph = graph.filtered(self.excluded_scopes, self.exclude_optionals)

        violations: List[DynamicVersionViolation] = []
        # (node, intermediate path) pairs; the root is never judged
        stack = [(child, []) for child in reversed(graph.root.children)]
        while stack:
            node, intermediate_path = stack.pop()
            verdict = self.inspect(node, ignores, intermediate_path)
            if verdict.violation is not None:
                violations.append(verdict.violation)
            if verdict.prune:
                continue
            child_path = intermediate_path + [node]
            for child in reversed(node.children):
                stack.append((child, child_path))
        return violations

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        violations = self.find_violations(graph)
        return self._result(violations, ViolationReporter.format_dynamic_versions(violations))
