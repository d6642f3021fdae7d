"""Renders policy violations and dependency graphs as text."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import DEFAULT_SCOPE, DependencyGraph, DependencyNode

logger = logging.getLogger(__name__)

PATH_INDENT = "  "
TREE_INDENT = "   "


class ViolationReporter:
    """Formatter for violation reports."""

    @staticmethod
    def full_artifact_name(node: DependencyNode, use_premanaged: bool = False, unique_versions: bool = False) -> str:
        """Format as groupId:artifactId:version[:classifier][ [scope]]."""
        coordinate = node.coordinate
        version = node.premanaged_version if use_premanaged else None
        if not version:
            version = coordinate.version if unique_versions else coordinate.base_version

        result = f"{coordinate.group_id}:{coordinate.artifact_id}:{version}"
        if coordinate.classifier:
            result += f":{coordinate.classifier}"
        if coordinate.scope and coordinate.scope != DEFAULT_SCOPE:
            result += f" [{coordinate.scope}]"
        return result

    @staticmethod
    def path_line(node: DependencyNode, unique_versions: bool = False) -> str:
        line = ViolationReporter.full_artifact_name(node, False, unique_versions)
        if node.premanaged_version:
            line += f" (managed) <-- {ViolationReporter.full_artifact_name(node, True, unique_versions)}"
        return line

    @staticmethod
    def format_path(path: Sequence[DependencyNode], unique_versions: bool = False) -> List[str]:
        """Format a root-to-node path as an indented '+-- ' tree."""
        return [
            f"{PATH_INDENT * depth}+-- {ViolationReporter.path_line(node, unique_versions)}"
            for depth, node in enumerate(path)
        ]

    @staticmethod
    def _format_paths(header: str, paths: Iterable[Sequence[DependencyNode]], unique_versions: bool) -> str:
        lines = [header]
        for i, path in enumerate(paths):
            if i > 0:
                lines.append("and")
            lines.extend(ViolationReporter.format_path(path, unique_versions))
        return "\n".join(lines)

    @staticmethod
    def format_convergence(violations, unique_versions: bool = False) -> Optional[str]:
        """Format convergence violations, one block per library."""
        if not violations:
            return None
        blocks = []
        for violation in violations:
            header = (
                f"Dependency convergence error for {violation.occurrences[0].coordinate.id} "
                f"paths to dependency are:"
            )
            blocks.append(ViolationReporter._format_paths(
                header, (o.path for o in violation.occurrences), unique_versions
            ))
        return "\n\n".join(blocks)

    @staticmethod
    def format_upper_bound(violations, unique_versions: bool = False) -> Optional[str]:
        """Format upper bound violations, showing every path of each offending library."""
        if not violations:
            return None
        blocks = []
        for violation in violations:
            first = violation.occurrences[0].node
            header = (
                f"Require upper bound dependencies error for "
                f"{ViolationReporter.full_artifact_name(first, False, unique_versions)} "
                f"paths to dependency are:"
            )
            blocks.append(ViolationReporter._format_paths(
                header, (o.path for o in violation.occurrences), unique_versions
            ))
        return "\n\n".join(blocks)

    @staticmethod
    def format_indented(lines: Iterable[Tuple[int, str]]) -> str:
        """Format (depth, text) pairs with three spaces per level."""
        return "\n".join(f"{TREE_INDENT * depth}{text}" for depth, text in lines)

    @staticmethod
    def format_dynamic_versions(violations) -> Optional[str]:
        if not violations:
            return None
        noun = "dependency" if len(violations) == 1 else "dependencies"
        lines = [f"Found {len(violations)} {noun} with dynamic versions."]
        for violation in violations:
            via = ""
            if violation.intermediate_path:
                via = " via " + " -> ".join(n.coordinate.id for n in violation.intermediate_path)
            lines.append(
                f"Dependency {violation.node.coordinate.id} ({violation.node.scope}){via} "
                f"is referenced with a banned dynamic version {violation.constraint}"
            )
        return "\n".join(lines)

    @staticmethod
    def format_rule_message(index: int, name: str, failed: bool, message: Optional[str]) -> str:
        """Format the per-rule summary written by the Enforcer."""
        result = f"Rule {index}: {name} {'failed' if failed else 'warned'}"
        if message:
            return f"{result} with message:\n{message}"
        return f"{result} without a message"

    @staticmethod
    def format_tree(graph: DependencyGraph) -> str:
        """Format a graph as Maven dependency:tree output."""
        root = graph.root
        lines = [root.coordinate.id]
        for i, child in enumerate(root.children):
            lines.extend(ViolationReporter._format_tree_node(child, "", i == len(root.children) - 1))
        return "\n".join(lines) + "\n"

    @staticmethod
    def _format_tree_node(node: DependencyNode, prefix: str, is_last: bool) -> List[str]:
        connector = "\\- " if is_last else "+- "
        label = f"{node.coordinate.id}:{node.scope}"
        notes = []
        if node.premanaged_version:
            notes.append(f"version managed from {node.premanaged_version}")
        if node.version_constraint and node.version_constraint != node.coordinate.version:
            notes.append(f"version selected from constraint {node.version_constraint}")
        if notes:
            label += f" ({'; '.join(notes)})"
        if node.is_optional:
            label += " (optional)"

        lines = [f"{prefix}{connector}{label}"]
        child_prefix = prefix + ("   " if is_last else "|  ")
        for i, child in enumerate(node.children):
            lines.extend(ViolationReporter._format_tree_node(child, child_prefix, i == len(node.children) - 1))
        return lines
