"""Dependency graph readers: JSON trees, CycloneDX SBOMs and mvn dependency:tree output."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

import requests

from .exceptions import GraphParseError
from .models import DEFAULT_TYPE, ArtifactCoordinate, DependencyGraph, DependencyNode

logger = logging.getLogger(__name__)

PROJECT_ROOT = ArtifactCoordinate("project", "project", "0", type="pom")


def _is_url(path: str) -> bool:
    """Check if a path is a URL."""
    return urlparse(path).scheme in ('http', 'https')


def _read_content(path: str) -> str:
    """
    Read content from either a file path or URL.

    Args:
        path: File path or URL

    Returns:
        Content as string

    Raises:
        GraphParseError: If the file cannot be read or the URL fetch fails
    """
    try:
        if _is_url(path):
            logger.info(f"Fetching content from URL: {path}")
            response = requests.get(path, timeout=30)
            response.raise_for_status()
            return response.text
        logger.info(f"Reading content from file: {path}")
        with open(path, 'r') as f:
            return f.read()
    except (OSError, requests.RequestException) as e:
        raise GraphParseError(f"Cannot read {path}: {e}") from e


class GraphParser:
    """Reads dependency graphs in the supported input formats."""

    # one branch of mvn dependency:tree output: indentation, connector, label
    TREE_LINE_PATTERN = re.compile(r'^((?:[| ]  )*)([+\\]- )(.+)$')
    ROOT_LINE_PATTERN = re.compile(r'^[^\s:()]+:[^\s:()]+:[^\s:()]+:[^\s()]+$')
    LOG_PREFIX_PATTERN = re.compile(r'^\[(?:INFO|WARNING|DEBUG)\] ?')

    MANAGED_VERSION_PATTERN = re.compile(r'version managed from ([^;)\s]+)')
    MANAGED_SCOPE_PATTERN = re.compile(r'scope managed from ([^;)\s]+)')
    CONSTRAINT_PATTERN = re.compile(r'version selected from constraint (\S+)')

    @staticmethod
    def detect_format(file_path: str, content: str) -> str:
        """Detect the input format: 'sbom', 'json' or 'tree'."""
        name_lower = Path(urlparse(file_path).path).name.lower()
        if name_lower.endswith('.cdx.json') or name_lower.endswith('.sbom'):
            return 'sbom'

        stripped = content.lstrip()
        if stripped.startswith('{'):
            try:
                document = json.loads(content)
            except json.JSONDecodeError as e:
                raise GraphParseError(f"{file_path} is not valid JSON: {e}") from e
            if isinstance(document, dict) and (
                document.get('bomFormat') == 'CycloneDX' or 'components' in document
            ):
                return 'sbom'
            return 'json'
        return 'tree'

    @staticmethod
    def parse(file_path: str) -> DependencyGraph:
        """Read a graph from a file path or http(s) URL, detecting the format."""
        content = _read_content(file_path)
        detected_format = GraphParser.detect_format(file_path, content)
        logger.info(f"Detected input format: {detected_format}")
        return GraphParser.parse_content(content, detected_format)

    @staticmethod
    def parse_content(content: str, input_format: str) -> DependencyGraph:
        if input_format == 'sbom':
            return GraphParser.parse_sbom(content)
        if input_format == 'json':
            return GraphParser.parse_json_tree(content)
        if input_format == 'tree':
            return GraphParser.parse_maven_tree(content)
        raise GraphParseError(f"Unknown input format: {input_format}")

    # JSON tree

    @staticmethod
    def parse_json_tree(content: str) -> DependencyGraph:
        """
        Parse a JSON dependency tree.

        Each node is an object with groupId, artifactId and version, plus the
        optional keys type, classifier, scope, optional, versionConstraint,
        premanagedVersion, premanagedScope and children.
        """
        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise GraphParseError(f"Invalid JSON dependency tree: {e}") from e
        if not isinstance(document, dict):
            raise GraphParseError("JSON dependency tree must be an object")

        root = GraphParser._json_node(document, "root")
        graph = DependencyGraph(root)
        logger.info(f"Parsed {len(graph)} nodes from JSON dependency tree")
        return graph

    @staticmethod
    def _json_node(data: Dict[str, Any], location: str) -> DependencyNode:
        missing = [key for key in ('groupId', 'artifactId') if not data.get(key)]
        if missing:
            raise GraphParseError(f"Node at {location} is missing {', '.join(missing)}")

        coordinate = ArtifactCoordinate(
            group_id=data['groupId'],
            artifact_id=data['artifactId'],
            version=data.get('version') or '',
            type=data.get('type') or DEFAULT_TYPE,
            classifier=data.get('classifier') or None,
            scope=data.get('scope') or None,
            optional=bool(data.get('optional', False)),
        )
        node = DependencyNode(
            coordinate=coordinate,
            version_constraint=data.get('versionConstraint'),
            premanaged_version=data.get('premanagedVersion'),
            premanaged_scope=data.get('premanagedScope'),
        )
        children = data.get('children', [])
        if not isinstance(children, list):
            raise GraphParseError(f"'children' of {coordinate} must be a list")
        for i, child in enumerate(children):
            node.add_child(GraphParser._json_node(child, f"{location}.children[{i}]"))
        return node

    # CycloneDX

    @staticmethod
    def _component_coordinate(component: Dict[str, Any]) -> Optional[ArtifactCoordinate]:
        purl = component.get('purl')
        cdx_scope = component.get('scope')
        optional = cdx_scope == 'optional'
        scope = 'test' if cdx_scope == 'excluded' else None

        if purl:
            try:
                return ArtifactCoordinate.from_purl(purl, scope=scope, optional=optional)
            except ValueError as e:
                logger.warning(f"Invalid purl format: {purl}: {e}")
                return None
        if component.get('name'):
            return ArtifactCoordinate(
                group_id=component.get('group') or '',
                artifact_id=component['name'],
                version=component.get('version') or '',
                scope=scope,
                optional=optional,
            )
        return None

    @staticmethod
    def parse_sbom(content: str) -> DependencyGraph:
        """
        Parse a CycloneDX JSON SBOM.

        The root is metadata.component when present, otherwise the single
        component no other component depends on. With several candidates a
        synthetic project root is added above them. Components reached
        through more than one path appear once per path.
        """
        try:
            sbom = json.loads(content)
        except json.JSONDecodeError as e:
            raise GraphParseError(f"Invalid SBOM JSON: {e}") from e

        coordinates: Dict[str, ArtifactCoordinate] = {}
        metadata_component = sbom.get('metadata', {}).get('component')
        for component in sbom.get('components', []) + ([metadata_component] if metadata_component else []):
            ref = component.get('bom-ref') or component.get('purl')
            coordinate = GraphParser._component_coordinate(component)
            if ref and coordinate:
                coordinates[ref] = coordinate

        dep_graph: Dict[str, List[str]] = {}
        for dep in sbom.get('dependencies', []):
            ref = dep.get('ref')
            if ref:
                dep_graph[ref] = dep.get('dependsOn', [])

        root_ref = metadata_component.get('bom-ref') if metadata_component else None
        if root_ref in coordinates:
            root = GraphParser._sbom_node(root_ref, dep_graph, coordinates, set())
        else:
            referenced = {child for children in dep_graph.values() for child in children}
            top_refs = [ref for ref in coordinates if ref not in referenced]
            if len(top_refs) == 1:
                root = GraphParser._sbom_node(top_refs[0], dep_graph, coordinates, set())
            else:
                logger.debug(f"SBOM has {len(top_refs)} top level components, adding a project root")
                root = DependencyNode(PROJECT_ROOT)
                for ref in top_refs:
                    root.add_child(GraphParser._sbom_node(ref, dep_graph, coordinates, set()))

        graph = DependencyGraph(root)
        logger.info(f"Parsed {len(graph)} nodes from SBOM")
        return graph

    @staticmethod
    def _sbom_node(ref: str, dep_graph: Dict[str, List[str]],
                   coordinates: Dict[str, ArtifactCoordinate], ancestors: Set[str]) -> DependencyNode:
        node = DependencyNode(coordinates[ref])
        ancestors = ancestors | {ref}
        for child_ref in dep_graph.get(ref, []):
            if child_ref not in coordinates:
                logger.debug(f"Skipping unknown SBOM reference {child_ref}")
                continue
            if child_ref in ancestors:
                logger.warning(f"Skipping dependency cycle {ref} -> {child_ref}")
                continue
            node.add_child(GraphParser._sbom_node(child_ref, dep_graph, coordinates, ancestors))
        return node

    # mvn dependency:tree

    @staticmethod
    def _tree_coordinate(text: str, is_root: bool) -> ArtifactCoordinate:
        """Parse groupId:artifactId:type[:classifier]:version[:scope]."""
        parts = text.split(':')
        scope = None
        if not is_root:
            if len(parts) < 5:
                raise GraphParseError(f"Invalid dependency coordinate: {text}")
            scope = parts.pop()
        if len(parts) == 4:
            group_id, artifact_id, type_, version = parts
            classifier = None
        elif len(parts) == 5:
            group_id, artifact_id, type_, classifier, version = parts
        else:
            raise GraphParseError(f"Invalid dependency coordinate: {text}")
        return ArtifactCoordinate(group_id, artifact_id, version, type_, classifier, scope)

    @staticmethod
    def _tree_node(label: str) -> DependencyNode:
        optional = label.endswith(' (optional)')
        if optional:
            label = label[:-len(' (optional)')]

        if label.startswith('('):
            # verbose output: (g:a:jar:1.0:compile - omitted for conflict with 2.0)
            coordinate_text, _, notes = label[1:].partition(' - ')
        else:
            coordinate_text, _, notes = label.partition(' ')

        coordinate = GraphParser._tree_coordinate(coordinate_text.strip(), is_root=False)
        if optional:
            coordinate = ArtifactCoordinate(
                coordinate.group_id, coordinate.artifact_id, coordinate.version,
                coordinate.type, coordinate.classifier, coordinate.scope, True,
            )

        premanaged_version = GraphParser.MANAGED_VERSION_PATTERN.search(notes)
        premanaged_scope = GraphParser.MANAGED_SCOPE_PATTERN.search(notes)
        constraint = GraphParser.CONSTRAINT_PATTERN.search(notes)
        version_constraint = None
        if constraint:
            # the constraint is the last note, so one trailing ')' closes the notes
            version_constraint = constraint.group(1)
            if version_constraint.endswith(')') or version_constraint.endswith(';'):
                version_constraint = version_constraint[:-1]

        return DependencyNode(
            coordinate=coordinate,
            version_constraint=version_constraint,
            premanaged_version=premanaged_version.group(1) if premanaged_version else None,
            premanaged_scope=premanaged_scope.group(1) if premanaged_scope else None,
        )

    @staticmethod
    def parse_maven_tree(content: str) -> DependencyGraph:
        """
        Parse `mvn dependency:tree` output, with or without the [INFO] log
        prefix. Lines before the root and after the tree are ignored; verbose
        "omitted for ..." entries become regular nodes.
        """
        root: Optional[DependencyNode] = None
        stack: List[Tuple[int, DependencyNode]] = []

        for line_number, raw_line in enumerate(content.splitlines(), 1):
            line = GraphParser.LOG_PREFIX_PATTERN.sub('', raw_line).rstrip()
            if root is None:
                if GraphParser.ROOT_LINE_PATTERN.match(line):
                    root = DependencyNode(GraphParser._tree_coordinate(line, is_root=True))
                    stack = [(0, root)]
                continue

            match = GraphParser.TREE_LINE_PATTERN.match(line)
            if not match:
                break
            depth = len(match.group(1)) // 3 + 1
            while stack and stack[-1][0] >= depth:
                stack.pop()
            if not stack or stack[-1][0] != depth - 1:
                raise GraphParseError(f"Line {line_number}: unexpected indentation: {raw_line}")

            node = stack[-1][1].add_child(GraphParser._tree_node(match.group(3)))
            stack.append((depth, node))

        if root is None:
            raise GraphParseError("No dependency tree found in input")
        graph = DependencyGraph(root)
        logger.info(f"Parsed {len(graph)} nodes from dependency:tree output")
        return graph
