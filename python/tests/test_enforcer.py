"""Tests for the enforcement runner and rules configuration."""

import json
import logging
import os
import tempfile
import threading

import pytest
from builders import dep, graph_of
from depenforcer.config import RULES, EnforcerConfig, create_policy, load_config, parse_config, to_snake_case
from depenforcer.enforcer import Enforcer, RuleCache
from depenforcer.exceptions import ConfigurationError, EnforcementFailure
from depenforcer.policies import (
    BanDynamicVersions,
    BanTransitiveDependencies,
    DependencyConvergence,
    EnforcerLevel,
    RequireUpperBoundDeps,
)


def diverging_graph():
    return graph_of(dep(
        "com.example:app:1.0",
        dep("org.example:a:1.0", dep("org.example:c:1.0")),
        dep("org.example:b:1.0", dep("org.example:c:2.0")),
    ))


class CountingPolicy(DependencyConvergence):
    """Convergence policy that records how often it ran."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    def evaluate(self, graph):
        self.calls += 1
        return super().evaluate(graph)


class TestEnforcer:
    """Tests for Enforcer."""

    def test_no_rules_fails(self):
        with pytest.raises(ConfigurationError):
            Enforcer([]).enforce(diverging_graph())

    def test_no_rules_allowed(self):
        report = Enforcer([], fail_if_no_rules=False).enforce(diverging_graph())

        assert report.outcomes == []
        assert report.passed

    def test_passing_rules(self):
        report = Enforcer([RequireUpperBoundDeps(), BanDynamicVersions()]).enforce(diverging_graph())

        assert report.passed
        assert len(report.outcomes) == 2
        assert report.format() == ""

    def test_error_rule_raises(self):
        with pytest.raises(EnforcementFailure) as exc_info:
            Enforcer([DependencyConvergence()]).enforce(diverging_graph())

        message = str(exc_info.value)
        assert message.startswith("Rule 0: dependencyConvergence failed with message:\n")
        assert "Dependency convergence error for org.example:c:jar:1.0" in message
        assert message.endswith("Some rules have failed.")
        assert len(exc_info.value.report.errors) == 1

    def test_warn_rule_only_logs(self, caplog):
        with caplog.at_level(logging.WARNING, logger="depenforcer"):
            report = Enforcer([DependencyConvergence(level=EnforcerLevel.WARN)]).enforce(diverging_graph())

        assert report.passed
        assert len(report.warnings) == 1
        assert "Rule 0: dependencyConvergence warned with message:" in caplog.text

    def test_fail_false_reports_errors(self):
        report = Enforcer([DependencyConvergence()], fail=False).enforce(diverging_graph())

        assert not report.passed
        assert report.format().startswith("Rule 0: dependencyConvergence failed")

    def test_fail_fast_stops_at_first_error(self):
        second = CountingPolicy()

        with pytest.raises(EnforcementFailure) as exc_info:
            Enforcer([DependencyConvergence(), second], fail_fast=True).enforce(diverging_graph())

        assert second.calls == 0
        assert len(exc_info.value.report.outcomes) == 1

    def test_without_fail_fast_all_rules_run(self):
        second = CountingPolicy()

        with pytest.raises(EnforcementFailure) as exc_info:
            Enforcer([DependencyConvergence(), second]).enforce(diverging_graph())

        assert second.calls == 1
        assert len(exc_info.value.report.errors) == 2

    def test_custom_message_in_failure(self):
        with pytest.raises(EnforcementFailure) as exc_info:
            Enforcer([DependencyConvergence(message="Align your versions")]).enforce(diverging_graph())

        assert "Rule 0: dependencyConvergence failed with message:\nAlign your versions" in str(exc_info.value)


class TestRuleCache:
    """Tests for RuleCache."""

    def test_passed_rules_are_skipped(self):
        cache = RuleCache()
        policy = CountingPolicy(excludes=["org.example:c"])

        Enforcer([policy], cache=cache).enforce(diverging_graph())
        report = Enforcer([CountingPolicy(excludes=["org.example:c"])], cache=cache).enforce(diverging_graph())

        assert policy.calls == 1
        assert report.outcomes[0].cached
        assert len(cache) == 1

    def test_pass_on_one_graph_does_not_skip_another(self):
        """Test that a shared cache still evaluates each distinct graph."""
        cache = RuleCache()
        clean = graph_of(dep(
            "com.example:app:1.0",
            dep("org.example:a:1.0", dep("org.example:c:1.0")),
            dep("org.example:b:1.0", dep("org.example:c:1.0")),
        ))

        first = Enforcer([DependencyConvergence()], fail=False, cache=cache).enforce(clean)
        second = Enforcer([DependencyConvergence()], fail=False, cache=cache).enforce(diverging_graph())

        assert first.passed
        assert not second.outcomes[0].cached
        assert not second.passed
        assert len(second.errors) == 1

    def test_different_configuration_not_cached(self):
        cache = RuleCache()
        graph = diverging_graph()
        cache.add(BanTransitiveDependencies(excludes=["org.example"]), graph)

        assert cache.contains(BanTransitiveDependencies(excludes=["org.example"]), graph)
        assert cache.contains(BanTransitiveDependencies(excludes=["org.example"]), diverging_graph())
        assert not cache.contains(BanTransitiveDependencies(), graph)

    def test_failed_rules_are_not_cached(self):
        cache = RuleCache()

        Enforcer([DependencyConvergence()], fail=False, cache=cache).enforce(diverging_graph())

        assert len(cache) == 0

    def test_concurrent_use(self):
        cache = RuleCache()
        graph = diverging_graph()
        policies = [BanTransitiveDependencies(excludes=[f"org.example:lib{i}"]) for i in range(20)]

        def worker():
            for policy in policies:
                cache.add(policy, graph)
                assert cache.contains(policy, graph)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 20
        cache.clear()
        assert len(cache) == 0


class TestConfig:
    """Tests for rules configuration."""

    def test_to_snake_case(self):
        assert to_snake_case("uniqueVersions") == "unique_versions"
        assert to_snake_case("allowRangesWithIdenticalBounds") == "allow_ranges_with_identical_bounds"
        assert to_snake_case("excludes") == "excludes"
        assert to_snake_case("exclude_optionals") == "exclude_optionals"

    def test_rule_names(self):
        assert sorted(RULES) == [
            "banDynamicVersions",
            "banTransitiveDependencies",
            "bannedDependencies",
            "dependencyConvergence",
            "requireReleaseDeps",
            "requireUpperBoundDeps",
        ]

    def test_create_policy(self):
        policy = create_policy("banDynamicVersions", {"allowLatest": True, "ignores": ["org.example"]}, level="WARN")

        assert isinstance(policy, BanDynamicVersions)
        assert policy.allow_latest is True
        assert policy.ignores == ["org.example"]
        assert policy.level is EnforcerLevel.WARN

    def test_unknown_rule(self):
        with pytest.raises(ConfigurationError):
            create_policy("requireJavaVersion")

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_policy("dependencyConvergence", {"allowLatest": True})

        assert "allowLatest" in str(exc_info.value)

    def test_parse_config(self):
        config = parse_config({
            "failFast": True,
            "rules": [
                {"rule": "dependencyConvergence", "uniqueVersions": True},
                {"rule": "requireUpperBoundDeps", "level": "WARN", "message": "Upgrade please"},
            ],
        })

        assert config.fail is True
        assert config.fail_fast is True
        assert config.fail_if_no_rules is True
        assert [p.name for p in config.policies] == ["dependencyConvergence", "requireUpperBoundDeps"]
        assert config.policies[0].unique_versions is True
        assert config.policies[1].level is EnforcerLevel.WARN
        assert config.policies[1].message == "Upgrade please"

    @pytest.mark.parametrize("document", [
        [],
        {"rules": {}},
        {"rules": [{"uniqueVersions": True}]},
        {"rules": [{"rule": "dependencyConvergence", "level": "FATAL"}]},
        {"fail": "yes", "rules": []},
    ])
    def test_invalid_config(self, document):
        with pytest.raises(ConfigurationError):
            parse_config(document)

    def test_malformed_pattern_in_config(self):
        """Test that a malformed version range in a pattern surfaces as a configuration error."""
        config = parse_config({"rules": [{"rule": "bannedDependencies", "excludes": ["org.example:lib:[1.0"]}]})

        with pytest.raises(ConfigurationError):
            config.create_enforcer().enforce(diverging_graph())

    def test_load_config(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "rules.json")
            with open(path, "w") as f:
                json.dump({"fail": False, "rules": [{"rule": "banTransitiveDependencies"}]}, f)

            config = load_config(path)

        assert isinstance(config, EnforcerConfig)
        assert config.fail is False
        assert isinstance(config.policies[0], BanTransitiveDependencies)

    def test_load_config_errors(self):
        with pytest.raises(ConfigurationError):
            load_config("/nonexistent/rules.json")

        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "rules.json")
            with open(path, "w") as f:
                f.write("{not json")

            with pytest.raises(ConfigurationError):
                load_config(path)

    def test_create_enforcer(self):
        config = parse_config({"fail": False, "rules": [{"rule": "dependencyConvergence"}]})

        report = config.create_enforcer().enforce(diverging_graph())

        assert len(report.errors) == 1
