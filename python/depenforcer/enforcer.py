"""Runs a list of policies over a dependency graph and decides the build outcome."""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple, Type

from .exceptions import ConfigurationError, EnforcementFailure
from .formatters import ViolationReporter
from .models import DependencyGraph
from .policies.base import EnforcerLevel, Policy, PolicyResult

logger = logging.getLogger(__name__)


class RuleCache:
    """
    Remembers which (policy class, configuration, graph) combinations already passed.

    Shared between Enforcer runs, for example across the modules of one
    build, so it is guarded by a lock. The graph fingerprint is part of the
    key: a rule that passed on one module is evaluated again on the next.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Set[Tuple[Type[Policy], str, str]] = set()

    @staticmethod
    def _key(policy: Policy, graph: DependencyGraph) -> Optional[Tuple[Type[Policy], str, str]]:
        cache_id = policy.cache_id
        if cache_id is None:
            return None
        return type(policy), cache_id, graph.fingerprint

    def contains(self, policy: Policy, graph: DependencyGraph) -> bool:
        key = self._key(policy, graph)
        if key is None:
            return False
        with self._lock:
            return key in self._entries

    def add(self, policy: Policy, graph: DependencyGraph) -> None:
        key = self._key(policy, graph)
        if key is None:
            return
        with self._lock:
            self._entries.add(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class RuleOutcome:
    """Result of one rule within an enforcement run."""

    index: int
    policy: Policy
    result: Optional[PolicyResult]  # None when the rule was skipped from cache
    cached: bool = False

    @property
    def failed(self) -> bool:
        return self.result is not None and not self.result.passed

    @property
    def summary(self) -> str:
        return ViolationReporter.format_rule_message(
            self.index,
            self.policy.name,
            self.policy.level is EnforcerLevel.ERROR,
            self.result.message if self.result else None,
        )


@dataclass
class EnforcementReport:
    """All rule outcomes of one enforcement run."""

    outcomes: List[RuleOutcome] = field(default_factory=list)

    @property
    def errors(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.failed and o.policy.level is EnforcerLevel.ERROR]

    @property
    def warnings(self) -> List[RuleOutcome]:
        return [o for o in self.outcomes if o.failed and o.policy.level is EnforcerLevel.WARN]

    @property
    def passed(self) -> bool:
        return not self.errors

    def format(self) -> str:
        return "\n".join(o.summary for o in self.outcomes if o.failed)


class Enforcer:
    """
    Evaluates policies in order.

    WARN level failures are only logged. ERROR level failures raise
    EnforcementFailure when fail is set (immediately with fail_fast),
    otherwise they are logged as warnings.
    """

    def __init__(
        self,
        policies: Sequence[Policy],
        fail: bool = True,
        fail_fast: bool = False,
        fail_if_no_rules: bool = True,
        cache: Optional[RuleCache] = None,
    ):
        self.policies = list(policies)
        self.fail = fail
        self.fail_fast = fail_fast
        self.fail_if_no_rules = fail_if_no_rules
        self.cache = cache

    def enforce(self, graph: DependencyGraph) -> EnforcementReport:
        if not self.policies:
            if self.fail_if_no_rules:
                raise ConfigurationError("No rules are configured.")
            logger.warning("No rules are configured.")
            return EnforcementReport()

        logger.info(f"Enforcing {len(self.policies)} rule(s) on {graph.root.coordinate}")
        report = EnforcementReport()
        for index, policy in enumerate(self.policies):
            if self.cache is not None and self.cache.contains(policy, graph):
                logger.info(f"Rule {index}: {policy.name} is cached, skipping")
                report.outcomes.append(RuleOutcome(index, policy, None, cached=True))
                continue

            logger.debug(f"Executing rule {index}: {policy!r}")
            result = policy.evaluate(graph)
            outcome = RuleOutcome(index, policy, result)
            report.outcomes.append(outcome)

            if not outcome.failed:
                if self.cache is not None:
                    self.cache.add(policy, graph)
                continue

            if policy.level is EnforcerLevel.WARN:
                logger.warning(outcome.summary)
            elif self.fail_fast and self.fail:
                raise EnforcementFailure(outcome.summary, report)

        if report.errors:
            message = "\n".join(o.summary for o in report.errors)
            if self.fail:
                raise EnforcementFailure(
                    f"{message}\nSome rules have failed.", report
                )
            for outcome in report.errors:
                logger.warning(outcome.summary)
        else:
            logger.info("All rules passed")
        return report
