"""Upper bound enforcement: the resolved version must be the newest one requested."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..conflicts import ConflictGrouper, Occurrence
from ..formatters import ViolationReporter
from ..matcher import compile_patterns, matches_any
from ..models import DependencyGraph, VersionSelectionMode, extract_version
from ..version_parser import Version
from .base import EnforcerLevel, Policy, PolicyResult

logger = logging.getLogger(__name__)


@dataclass
class UpperBoundViolation:
    """A library whose nearest occurrence is older than a version requested deeper down."""

    key: str
    resolved: Occurrence
    resolved_version: Version
    occurrences: List[Occurrence]  # the whole group, nearest first
    offending: List[Occurrence]  # members newer than the resolved version


class RequireUpperBoundDeps(Policy):
    """
    Fails when nearest-wins resolution picked an older version than some
    transitive dependency asked for.

    The nearest occurrence is judged by its resolved version. Every other
    occurrence is judged by the version it asked for before dependency
    management rewrote it, so a managed downgrade is still reported.
    """

    name = "requireUpperBoundDeps"
    OPTIONS = (
        "unique_versions",
        "includes",
        "excludes",
        "excluded_scopes",
        "include_type_classifier",
    )

    def __init__(
        self,
        unique_versions: bool = False,
        includes: Optional[Sequence[str]] = None,
        excludes: Optional[Sequence[str]] = None,
        excluded_scopes: Sequence[str] = ("test", "provided"),
        include_type_classifier: bool = False,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(level, message)
        self.unique_versions = unique_versions
        self.includes = list(includes or [])
        self.excludes = list(excludes or [])
        self.excluded_scopes = list(excluded_scopes or [])
        self.include_type_classifier = include_type_classifier

    def _offending(self, occurrences: List[Occurrence]) -> List[Occurrence]:
        resolved_version = extract_version(occurrences[0].node, VersionSelectionMode.RAW, self.unique_versions)
        return [
            occurrence for occurrence in occurrences
            if extract_version(occurrence.node, VersionSelectionMode.MANAGED, self.unique_versions) > resolved_version
        ]

    def find_conflicts(self, graph: DependencyGraph) -> List[UpperBoundViolation]:
        include_patterns = compile_patterns(self.includes)
        exclude_patterns = compile_patterns(self.excludes)
        graph = graph.filtered(self.excluded_scopes)
        groups = ConflictGrouper(self.include_type_classifier).group(graph)

        violations = []
        for key, occurrences in groups.items():
            resolved = occurrences[0]
            if include_patterns and not matches_any(include_patterns, resolved.coordinate):
                continue

            offending = self._offending(occurrences)
            if not offending:
                continue

            if matches_any(exclude_patterns, resolved.coordinate):
                logger.info(f"Ignoring requireUpperBoundDeps in {key}")
                continue

            resolved_version = extract_version(resolved.node, VersionSelectionMode.RAW, self.unique_versions)
            logger.debug(
                f"Upper bound conflict for {key}: resolved {resolved_version}, "
                f"requested {', '.join(o.version for o in offending)}"
            )
            violations.append(UpperBoundViolation(
                key=key,
                resolved=resolved,
                resolved_version=resolved_version,
                occurrences=list(occurrences),
                offending=offending,
            ))
        return violations

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        violations = self.find_conflicts(graph)
        return self._result(violations, ViolationReporter.format_upper_bound(violations, self.unique_versions))
