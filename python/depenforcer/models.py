"""Core data models for depenforcer."""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Collection, Dict, Iterator, List, Optional

from packageurl import PackageURL

from .exceptions import TraversalError
from .version_parser import Version, VersionParser
from .version_range import VersionRange

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "jar"
DEFAULT_SCOPE = "compile"


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Represents a Maven artifact with groupId, artifactId, version, type, classifier and scope."""

    group_id: str
    artifact_id: str
    version: str
    type: str = DEFAULT_TYPE
    classifier: Optional[str] = None
    scope: Optional[str] = None  # compile, runtime, test, provided, system, import
    optional: bool = False

    def conflict_key(self, include_type_classifier: bool = False) -> str:
        """Key used to group occurrences of the same library; the version is never part of it."""
        key = f"{self.group_id}:{self.artifact_id}"
        if include_type_classifier:
            key += f":{self.type or DEFAULT_TYPE}:{self.classifier or ''}"
        return key

    @property
    def base_version(self) -> str:
        return VersionParser.base_version(self.version)

    @property
    def is_snapshot(self) -> bool:
        return VersionParser.is_snapshot(self.version)

    @property
    def version_range(self) -> VersionRange:
        return VersionRange.parse(self.version)

    @property
    def id(self) -> str:
        """Return groupId:artifactId:type[:classifier]:version."""
        parts = [self.group_id, self.artifact_id, self.type or DEFAULT_TYPE]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)

    def with_version(self, version: str) -> "ArtifactCoordinate":
        return ArtifactCoordinate(
            self.group_id, self.artifact_id, version,
            self.type, self.classifier, self.scope, self.optional,
        )

    def to_purl(self) -> str:
        """Render as a Package URL (pkg:maven/group/artifact@version)."""
        qualifiers: Dict[str, str] = {}
        if self.type and self.type != DEFAULT_TYPE:
            qualifiers["type"] = self.type
        if self.classifier:
            qualifiers["classifier"] = self.classifier
        return PackageURL(
            type="maven",
            namespace=self.group_id,
            name=self.artifact_id,
            version=self.version,
            qualifiers=qualifiers or None,
        ).to_string()

    @classmethod
    def from_purl(cls, purl: str, scope: Optional[str] = None, optional: bool = False) -> "ArtifactCoordinate":
        """Parse a maven Package URL into a coordinate."""
        parsed = PackageURL.from_string(purl)
        qualifiers = parsed.qualifiers or {}
        return cls(
            group_id=parsed.namespace or "",
            artifact_id=parsed.name,
            version=parsed.version or "",
            type=qualifiers.get("type", DEFAULT_TYPE),
            classifier=qualifiers.get("classifier"),
            scope=scope,
            optional=optional,
        )

    def __str__(self) -> str:
        if self.scope:
            return f"{self.id}:{self.scope}"
        return self.id


@dataclass(eq=False)
class DependencyNode:
    """
    A node in a resolved dependency tree.

    The node owns its children. The link back to the parent is the
    parent's index in the owning DependencyGraph, assigned when the graph
    is built, so there is no reference cycle.
    """

    coordinate: ArtifactCoordinate
    version_constraint: Optional[str] = None  # requested version or range, before resolution
    premanaged_version: Optional[str] = None  # version before dependency management rewrote it
    premanaged_scope: Optional[str] = None
    children: List['DependencyNode'] = field(default_factory=list, repr=False)
    index: int = field(default=-1, repr=False)
    parent_index: Optional[int] = field(default=None, repr=False)
    depth: int = field(default=0, repr=False)

    def __post_init__(self):
        if self.version_constraint is None:
            self.version_constraint = self.coordinate.version

    def __eq__(self, other) -> bool:
        """Equality based on object identity; two occurrences of one artifact are different nodes."""
        return self is other

    def __hash__(self) -> int:
        return id(self)

    def add_child(self, child: 'DependencyNode') -> 'DependencyNode':
        """Add a child dependency to this node and return the child."""
        self.children.append(child)
        return child

    @property
    def is_optional(self) -> bool:
        return self.coordinate.optional

    @property
    def scope(self) -> str:
        return self.coordinate.scope or DEFAULT_SCOPE

    def __str__(self) -> str:
        return str(self.coordinate)


class VersionSelectionMode(Enum):
    """Which version of a node to judge: the one before or after dependency management."""
    MANAGED = "managed"  # prefer the premanaged (originally requested) version
    RAW = "raw"  # the resolved version


def extract_version(
    node: DependencyNode,
    mode: VersionSelectionMode = VersionSelectionMode.RAW,
    unique_versions: bool = False,
) -> Version:
    """
    Get the version of a node for comparison.

    Args:
        node: The node to read
        mode: MANAGED reports the premanaged version when one exists
        unique_versions: Compare timestamped snapshots individually instead of by base version

    Returns:
        The parsed version

    Raises:
        TraversalError: If the node has neither a version nor a usable version constraint
    """
    if mode is VersionSelectionMode.MANAGED and node.premanaged_version:
        return Version.parse(node.premanaged_version)

    coordinate = node.coordinate
    version = coordinate.version if unique_versions else coordinate.base_version
    if version:
        return Version.parse(version)

    if node.version_constraint:
        selected = VersionRange.parse(node.version_constraint).recommended_version
        if selected is not None:
            return selected
    raise TraversalError(f"Version ranges problem with {coordinate}: no version was selected")


class DependencyGraph:
    """
    A resolved, rooted dependency tree indexed in depth-first pre-order.

    Building the graph assigns each node its index, parent index and depth.
    The graph is read-only afterwards; every analysis walks the same node
    sequence, so results are deterministic.
    """

    def __init__(self, root: DependencyNode):
        nodes: List[DependencyNode] = []
        seen = set()
        stack = [(root, None, 0)]

        while stack:
            node, parent_index, depth = stack.pop()
            if id(node) in seen:
                raise TraversalError(
                    f"Dependency graph is not a tree: {node.coordinate} is reachable twice"
                )
            seen.add(id(node))

            node.index = len(nodes)
            node.parent_index = parent_index
            node.depth = depth
            nodes.append(node)

            for child in reversed(node.children):
                stack.append((child, node.index, depth + 1))

        self._nodes = tuple(nodes)
        logger.debug(f"Indexed dependency graph of {root.coordinate} with {len(self._nodes)} nodes")

    @property
    def root(self) -> DependencyNode:
        return self._nodes[0]

    @property
    def nodes(self) -> Collection[DependencyNode]:
        return self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[DependencyNode]:
        """Iterate nodes in depth-first pre-order, root first."""
        return iter(self._nodes)

    @property
    def fingerprint(self) -> str:
        """Digest of every node's coordinate, depth and resolution notes, in pre-order."""
        digest = hashlib.sha256()
        for node in self._nodes:
            coordinate = node.coordinate
            digest.update(
                f"{node.depth}|{coordinate.id}|{node.scope}|{coordinate.optional}|{node.version_constraint}|"
                f"{node.premanaged_version}|{node.premanaged_scope}\n".encode("utf-8")
            )
        return digest.hexdigest()

    def _check_owned(self, node: DependencyNode) -> None:
        if not (0 <= node.index < len(self._nodes)) or self._nodes[node.index] is not node:
            raise TraversalError(f"{node.coordinate} does not belong to this dependency graph")

    def parent(self, node: DependencyNode) -> Optional[DependencyNode]:
        self._check_owned(node)
        if node.parent_index is None:
            return None
        return self._nodes[node.parent_index]

    def path_to(self, node: DependencyNode) -> List[DependencyNode]:
        """Return the nodes from the root down to (and including) node."""
        path = []
        current: Optional[DependencyNode] = node
        while current is not None:
            path.append(current)
            current = self.parent(current)
        path.reverse()
        return path

    def filtered(self, excluded_scopes: Collection[str] = (), exclude_optionals: bool = False) -> "DependencyGraph":
        """
        Return a copy of this graph without nodes in the excluded scopes or
        optional nodes (and everything beneath them). The root is always kept.
        """
        excluded = set(excluded_scopes or ())
        if not excluded and not exclude_optionals:
            return self

        def copy(node: DependencyNode) -> DependencyNode:
            clone = DependencyNode(
                coordinate=node.coordinate,
                version_constraint=node.version_constraint,
                premanaged_version=node.premanaged_version,
                premanaged_scope=node.premanaged_scope,
            )
            for child in node.children:
                if child.scope in excluded or (exclude_optionals and child.is_optional):
                    logger.debug(f"Filtering {child.coordinate} (scope={child.scope}, optional={child.is_optional})")
                    continue
                clone.add_child(copy(child))
            return clone

        return DependencyGraph(copy(self.root))
