"""Exception types raised by depenforcer.

Policy violations are not exceptions: policies return them as part of a
PolicyResult. Only the Enforcer turns failed results into EnforcementFailure.
"""


class EnforcerError(Exception):
    """Base class for all depenforcer errors."""


class ConfigurationError(EnforcerError):
    """Raised for an invalid rule configuration (unknown rule, bad option, bad file)."""


class InvalidRangeSpec(ConfigurationError, ValueError):
    """Raised when a version range specification cannot be parsed."""

    def __init__(self, spec: str, reason: str):
        self.spec = spec
        self.reason = reason
        super().__init__(f"Invalid version range '{spec}': {reason}")


class InvalidPatternError(ConfigurationError, ValueError):
    """Raised when an artifact pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid artifact pattern '{pattern}': {reason}")


class TraversalError(EnforcerError):
    """Raised when a dependency graph breaks the rooted-tree invariant."""


class GraphParseError(EnforcerError):
    """Raised when a dependency graph document cannot be read."""


class EnforcementFailure(EnforcerError):
    """Raised by the Enforcer when at least one ERROR level rule failed."""

    def __init__(self, message: str, report=None):
        self.report = report
        super().__init__(message)
