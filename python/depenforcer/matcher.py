"""Artifact pattern matching: groupId:artifactId:version:type:scope:classifier."""

import logging
import re
from enum import Enum
from typing import Iterable, List, Optional, Pattern

from .exceptions import InvalidPatternError
from .models import DEFAULT_SCOPE, DEFAULT_TYPE, ArtifactCoordinate
from .version_parser import Version
from .version_range import VersionRange

logger = logging.getLogger(__name__)

MAX_SEGMENTS = 6
VERSION_SEGMENT = 2
WILDCARD = "*"


class MatchMode(Enum):
    """How a plain version in a pattern's version segment is interpreted."""
    INTERVAL = "interval"  # "1.0" matches exactly 1.0
    AT_LEAST = "at-least"  # "1.0" matches 1.0 and anything newer


def _compile_glob(expression: str) -> Optional[Pattern]:
    if expression in ("", WILDCARD):
        return None
    regex = re.escape(expression).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(regex)


class ArtifactPattern:
    """
    A compiled artifact pattern.

    Segments are positional; '*' or an empty segment matches anything, and
    '*'/'?' inside a segment act as globs. The version segment may also be a
    version range such as [1.0,2.0).
    """

    def __init__(self, pattern: str, mode: MatchMode = MatchMode.INTERVAL):
        if pattern is None:
            raise InvalidPatternError("None", "pattern is missing")
        self.pattern = pattern
        self.mode = mode

        parts = [part.strip() for part in pattern.split(":")]
        if len(parts) > MAX_SEGMENTS:
            raise InvalidPatternError(pattern, "pattern contains too many delimiters")
        self.parts = tuple(parts)

        self._globs: List[Optional[Pattern]] = [_compile_glob(part) for part in parts]
        self._version_range: Optional[VersionRange] = None
        if len(parts) > VERSION_SEGMENT:
            version_part = parts[VERSION_SEGMENT]
            if version_part and not any(ch in version_part for ch in "*?"):
                # InvalidRangeSpec propagates: a bad version segment is a configuration error
                self._version_range = VersionRange.parse(version_part)

    @staticmethod
    def _matches(glob: Optional[Pattern], value: Optional[str]) -> bool:
        if glob is None:
            return True
        return glob.fullmatch(value or "") is not None

    def _matches_version(self, version: Optional[str]) -> bool:
        glob = self._globs[VERSION_SEGMENT]
        if self._matches(glob, version):
            return True
        if self._version_range is None or not version:
            return False
        parsed = Version.parse(version)
        if self.mode is MatchMode.AT_LEAST:
            return self._version_range.satisfies_at_least(parsed)
        return self._version_range.contained_in_interval(parsed)

    def match(self, coordinate: ArtifactCoordinate) -> bool:
        """Check whether every present segment matches the coordinate."""
        values = [
            coordinate.group_id,
            coordinate.artifact_id,
            coordinate.version,
            coordinate.type or DEFAULT_TYPE,
            coordinate.scope or DEFAULT_SCOPE,
            coordinate.classifier,
        ]
        for index, glob in enumerate(self._globs):
            if index == VERSION_SEGMENT:
                if not self._matches_version(values[index]):
                    return False
            elif not self._matches(glob, values[index]):
                return False
        return True

    def __str__(self) -> str:
        return self.pattern

    def __repr__(self) -> str:
        return f"ArtifactPattern('{self.pattern}')"


def compile_patterns(patterns: Optional[Iterable[str]], mode: MatchMode = MatchMode.INTERVAL) -> List[ArtifactPattern]:
    """Compile a pattern list; empty entries are ignored."""
    compiled = []
    for pattern in patterns or ():
        if pattern is None or not pattern.strip():
            continue
        compiled.append(ArtifactPattern(pattern, mode))
    return compiled


def matches_any(patterns: Iterable[ArtifactPattern], coordinate: ArtifactCoordinate) -> bool:
    return any(pattern.match(coordinate) for pattern in patterns)


class ArtifactMatcher:
    """
    Exclude/include pattern pair.

    A coordinate matches when it matches any exclude pattern and none of the
    include patterns; includes carve exceptions out of wide excludes.
    """

    def __init__(
        self,
        excludes: Optional[Iterable[str]] = None,
        includes: Optional[Iterable[str]] = None,
        mode: MatchMode = MatchMode.INTERVAL,
    ):
        self.exclude_patterns = compile_patterns(excludes, mode)
        self.include_patterns = compile_patterns(includes, mode)

    def match(self, coordinate: ArtifactCoordinate) -> bool:
        return (
            matches_any(self.exclude_patterns, coordinate)
            and not matches_any(self.include_patterns, coordinate)
        )

    def __repr__(self) -> str:
        return (
            f"ArtifactMatcher(excludes={[str(p) for p in self.exclude_patterns]}, "
            f"includes={[str(p) for p in self.include_patterns]})"
        )


class ArtifactFilter:
    """
    Include/exclude selection: a coordinate is selected when the include list
    is empty or one include matches, and no exclude matches.
    """

    def __init__(
        self,
        includes: Optional[Iterable[str]] = None,
        excludes: Optional[Iterable[str]] = None,
        mode: MatchMode = MatchMode.INTERVAL,
    ):
        self.include_patterns = compile_patterns(includes, mode)
        self.exclude_patterns = compile_patterns(excludes, mode)

    def accepts(self, coordinate: ArtifactCoordinate) -> bool:
        if self.include_patterns and not matches_any(self.include_patterns, coordinate):
            return False
        return not matches_any(self.exclude_patterns, coordinate)
