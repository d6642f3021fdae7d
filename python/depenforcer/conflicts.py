"""Groups the occurrences of each library in a dependency graph."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import ArtifactCoordinate, DependencyGraph, DependencyNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Occurrence:
    """One appearance of a library in the graph."""

    node: DependencyNode
    hop_count: int  # 0 for direct dependencies
    path: Tuple[DependencyNode, ...]  # root .. node

    @property
    def coordinate(self) -> ArtifactCoordinate:
        return self.node.coordinate

    @property
    def version(self) -> str:
        return self.node.coordinate.version


ConflictGroups = Dict[str, List[Occurrence]]


class ConflictGrouper:
    """
    Walks a graph once in depth-first pre-order and groups every non-root
    node by conflict key (groupId:artifactId, optionally with type and
    classifier).

    Each group is kept ordered by hop count; nodes at the same hop count keep
    pre-order, so the first occurrence is the one a nearest-wins resolver
    would pick.
    """

    def __init__(self, include_type_classifier: bool = False):
        self.include_type_classifier = include_type_classifier

    def key_for(self, node: DependencyNode) -> str:
        return node.coordinate.conflict_key(self.include_type_classifier)

    def group(self, graph: DependencyGraph) -> ConflictGroups:
        groups: ConflictGroups = {}

        for node in graph:
            if node.parent_index is None:
                continue  # the project itself never conflicts

            occurrence = Occurrence(
                node=node,
                hop_count=node.depth - 1,
                path=tuple(graph.path_to(node)),
            )
            occurrences = groups.setdefault(self.key_for(node), [])

            # insert after every occurrence with the same or a smaller hop count
            position = len(occurrences)
            while position > 0 and occurrences[position - 1].hop_count > occurrence.hop_count:
                position -= 1
            occurrences.insert(position, occurrence)

        logger.debug(f"Grouped {len(graph) - 1} dependency nodes into {len(groups)} conflict groups")
        return groups
