"""Rules file loading: maps JSON rule declarations onto policy objects."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from .enforcer import Enforcer, RuleCache
from .exceptions import ConfigurationError
from .policies import (
    BanDynamicVersions,
    BannedDependencies,
    BanTransitiveDependencies,
    DependencyConvergence,
    Policy,
    RequireReleaseDeps,
    RequireUpperBoundDeps,
)

logger = logging.getLogger(__name__)

RULES: Dict[str, Type[Policy]] = {
    policy.name: policy
    for policy in (
        DependencyConvergence,
        RequireUpperBoundDeps,
        BanTransitiveDependencies,
        BanDynamicVersions,
        BannedDependencies,
        RequireReleaseDeps,
    )
}

# keys of a rule declaration that are not policy options
RULE_KEYS = ("rule", "level", "message")

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')


def to_snake_case(name: str) -> str:
    """Convert a camelCase option name (allowRangesWithIdenticalBounds) to snake_case."""
    return _CAMEL_BOUNDARY.sub(r'_\1', name).lower()


def create_policy(name: str, options: Optional[Dict[str, Any]] = None,
                  level: Optional[str] = None, message: Optional[str] = None) -> Policy:
    """
    Create a policy from its rule name and camelCase (or snake_case) options.

    Raises:
        ConfigurationError: For an unknown rule or option
    """
    policy_class = RULES.get(name)
    if policy_class is None:
        raise ConfigurationError(f"Unknown rule '{name}' (known rules: {', '.join(sorted(RULES))})")

    kwargs = {}
    for key, value in (options or {}).items():
        option = to_snake_case(key)
        if option not in policy_class.OPTIONS:
            raise ConfigurationError(f"Rule '{name}' has no option '{key}'")
        kwargs[option] = value

    logger.debug(f"Creating rule {name} with options {kwargs}")
    return policy_class(level=level, message=message, **kwargs)


@dataclass
class EnforcerConfig:
    """Parsed rules file."""

    policies: List[Policy] = field(default_factory=list)
    fail: bool = True
    fail_fast: bool = False
    fail_if_no_rules: bool = True

    def create_enforcer(self, cache: Optional[RuleCache] = None) -> Enforcer:
        return Enforcer(
            self.policies,
            fail=self.fail,
            fail_fast=self.fail_fast,
            fail_if_no_rules=self.fail_if_no_rules,
            cache=cache,
        )


def _flag(document: Dict[str, Any], key: str, default: bool) -> bool:
    value = document.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be true or false, got {value!r}")
    return value


def parse_config(document: Dict[str, Any]) -> EnforcerConfig:
    """Build an EnforcerConfig from an already decoded rules document."""
    if not isinstance(document, dict):
        raise ConfigurationError("Rules file must contain a JSON object")

    rules = document.get("rules", [])
    if not isinstance(rules, list):
        raise ConfigurationError("'rules' must be a list")

    policies = []
    for i, rule in enumerate(rules):
        if not isinstance(rule, dict) or "rule" not in rule:
            raise ConfigurationError(f"Rule {i} must be an object with a 'rule' name")
        options = {key: value for key, value in rule.items() if key not in RULE_KEYS}
        policies.append(create_policy(rule["rule"], options, rule.get("level"), rule.get("message")))

    config = EnforcerConfig(
        policies=policies,
        fail=_flag(document, "fail", True),
        fail_fast=_flag(document, "failFast", False),
        fail_if_no_rules=_flag(document, "failIfNoRules", True),
    )
    logger.info(f"Loaded {len(policies)} rule(s)")
    return config


def load_config(file_path: str) -> EnforcerConfig:
    """Load a JSON rules file."""
    logger.info(f"Reading rules from file: {file_path}")
    try:
        with open(file_path, 'r') as f:
            document = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read rules file {file_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Rules file {file_path} is not valid JSON: {e}") from e
    return parse_config(document)
