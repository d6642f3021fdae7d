"""Shared policy plumbing: levels, results and the Policy base class."""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigurationError
from ..models import DependencyGraph

logger = logging.getLogger(__name__)


class EnforcerLevel(Enum):
    """What a failed policy does to the build."""
    ERROR = "ERROR"
    WARN = "WARN"

    @classmethod
    def of(cls, level: Union["EnforcerLevel", str, None]) -> "EnforcerLevel":
        if level is None:
            return cls.ERROR
        if isinstance(level, cls):
            return level
        try:
            return cls(str(level).upper())
        except ValueError:
            raise ConfigurationError(f"Unknown enforcer level '{level}' (expected ERROR or WARN)")


@dataclass
class PolicyResult:
    """Outcome of one policy evaluation."""

    name: str
    passed: bool
    violations: List[Any] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def violation_count(self) -> int:
        return len(self.violations)


@dataclass(frozen=True)
class NodeVerdict:
    """Decision for a single node during a pruning traversal."""

    prune: bool = False  # do not look at the node's children
    excluded: bool = False  # the node matched an exclude/ignore pattern
    violation: Any = None


CONTINUE = NodeVerdict()


class Policy:
    """
    Base class for dependency graph policies.

    Subclasses list their keyword options in OPTIONS, take them in __init__
    and implement evaluate(). Policies hold configuration only; evaluate()
    derives everything else from the graph it is given.
    """

    name = "policy"
    OPTIONS: tuple = ()

    def __init__(self, level: Union[EnforcerLevel, str, None] = EnforcerLevel.ERROR, message: Optional[str] = None):
        self.level = EnforcerLevel.of(level)
        self.message = message

    def evaluate(self, graph: DependencyGraph) -> PolicyResult:
        raise NotImplementedError

    def options(self) -> Dict[str, Any]:
        """Return the configured options, used for caching and display."""
        return {option: getattr(self, option) for option in self.OPTIONS}

    @property
    def cache_id(self) -> Optional[str]:
        """Stable identity of this policy's configuration."""
        payload = json.dumps(
            {"policy": self.name, "options": self.options()},
            sort_keys=True,
            default=list,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def _result(self, violations: List[Any], generated_message: Optional[str]) -> PolicyResult:
        passed = not violations
        message = None
        if not passed:
            message = self.message or generated_message
        logger.info(f"{self.name}: {'passed' if passed else f'{len(violations)} violation(s)'}")
        return PolicyResult(name=self.name, passed=passed, violations=violations, message=message)

    def __repr__(self) -> str:
        options = ", ".join(f"{key}={value}" for key, value in self.options().items())
        return f"{type(self).__name__}[{options}]"
