"""Dependency convergence: every occurrence of a library must have the same version."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..conflicts import ConflictGrouper, Occurrence
from ..formatters import ViolationReporter
from ..matcher import ArtifactFilter
from ..models import DependencyGraph
from .base import EnforcerLevel, Policy, PolicyResult

logger = logging.getLogger(__name__)


@dataclass
class ConvergenceViolation:
    """A library that appears in the graph with more than one version."""

    key: str
    occurrences: List[Occurrence]
    versions: List[str]  # distinct versions in first-seen order


class DependencyConvergence(Policy):
    """
    Fails when two paths to the same library request different versions.

    With unique_versions=False, timestamped snapshots are compared by base
    version, so 1.0-20240101.120000-1 converges with 1.0-SNAPSHOT.
    """

    name = "dependencyConvergence"
    OPTIONS = (
        "unique_versions",
        "includes",
        "excludes",
        "excluded_scopes",
        "exclude_optionals",
        "include_type_classifier",
    )

    def __init__(
        self,
        unique_versions: bool = False,
        includes: Optional[Sequence[str]] = None,
        excludes: Optional[Sequence[str]] = None,
        excluded_scopes: Sequence[str] = ("test", "provided"),
        exclude_optionals: bool = True,
        include_type_classifier: bool = False,
        level=EnforcerLevel.ERROR,
        message: Optional[str] = None,
    ):
        super().__init__(level, message)
        self.unique_versions = unique_versions
        self.includes = list(includes or [])
        self.excludes = list(excludes or [])
        self.excluded_scopes = list(excluded_scopes or [])
        self.exclude_optionals = exclude_optionals
        self.include_type_classifier = include_type_classifier

    def _version_of(self, occurrence: Occurrence) -> str:
        coordinate = occurrence.coordinate
        return coordinate.version if self.unique_versions else coordinate.base_version

    def find_conflicts(self, graph: DependencyGraph) -> List[ConvergenceViolation]:
        artifact_filter = ArtifactFilter(self.includes, self.excludes)
        graph = graph.filtered(self.excluded_scopes, self.exclude_optionals)
        groups = ConflictGrouper(self.include_type_classifier).group(graph)

        violations = []
        for key, occurrences in groups.items():
            selected = [o for o in occurrences if artifact_filter.accepts(o.coordinate)]

            versions: List[str] = []
            for occurrence in selected:
                version = self._version_of(occurrence)
                if version not in versions:
                    versions.append(version)

            if len(versions) > 1:
                logger.debug(f"Convergence conflict for {key}: {', '.join(versions)}")
                violations.append(ConvergenceViolation(key=key, occurrences=selected, versions=versions))
        return violations

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        violations = self.find_conflicts(graph)
        return self._result(violations, ViolationReporter.format_convergence(violations, self.unique_versions))
