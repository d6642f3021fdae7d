"""Dependency graph policies."""

from .banned import BannedDependencies, BannedDependenciesBase, BannedDependencyViolation, RequireReleaseDeps
from .base import CONTINUE, EnforcerLevel, NodeVerdict, Policy, PolicyResult
from .convergence import ConvergenceViolation, DependencyConvergence
from .dynamic_versions import BanDynamicVersions, DynamicVersionKind, DynamicVersionViolation, classify_constraint
from .transitive import BanTransitiveDependencies, TransitiveDependencyViolation
from .upper_bound import RequireUpperBoundDeps, UpperBoundViolation

__all__ = [
    "BanDynamicVersions",
    "BanTransitiveDependencies",
    "BannedDependencies",
    "BannedDependenciesBase",
    "BannedDependencyViolation",
    "CONTINUE",
    "ConvergenceViolation",
    "DependencyConvergence",
    "DynamicVersionKind",
    "DynamicVersionViolation",
    "EnforcerLevel",
    "NodeVerdict",
    "Policy",
    "PolicyResult",
    "RequireReleaseDeps",
    "RequireUpperBoundDeps",
    "TransitiveDependencyViolation",
    "UpperBoundViolation",
    "classify_constraint",
]
