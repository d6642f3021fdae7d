"""Version ranges in Maven range syntax: 1.0, [1.0], [1.0,2.0), (,1.0],[1.2,)."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from .exceptions import InvalidRangeSpec
from .version_parser import Version

VersionLike = Union[Version, str]

_BRACKETS = "[]()"


def _as_version(version: VersionLike) -> Version:
    if isinstance(version, Version):
        return version
    return Version.parse(version)


@dataclass(frozen=True)
class Restriction:
    """One interval of a version range. A None bound is unbounded."""

    lower_bound: Optional[Version] = None
    lower_inclusive: bool = False
    upper_bound: Optional[Version] = None
    upper_inclusive: bool = False

    def contains(self, version: VersionLike) -> bool:
        version = _as_version(version)
        if self.lower_bound is not None:
            comparison = self.lower_bound.compare_to(version)
            if comparison > 0 or (comparison == 0 and not self.lower_inclusive):
                return False
        if self.upper_bound is not None:
            comparison = self.upper_bound.compare_to(version)
            if comparison < 0 or (comparison == 0 and not self.upper_inclusive):
                return False
        return True

    def intersect(self, other: "Restriction") -> Optional["Restriction"]:
        """Return the overlap of two restrictions, or None when they are disjoint."""
        lower, lower_inclusive = self.lower_bound, self.lower_inclusive
        if other.lower_bound is not None:
            if lower is None:
                lower, lower_inclusive = other.lower_bound, other.lower_inclusive
            else:
                comparison = lower.compare_to(other.lower_bound)
                if comparison < 0:
                    lower, lower_inclusive = other.lower_bound, other.lower_inclusive
                elif comparison == 0:
                    lower_inclusive = lower_inclusive and other.lower_inclusive

        upper, upper_inclusive = self.upper_bound, self.upper_inclusive
        if other.upper_bound is not None:
            if upper is None:
                upper, upper_inclusive = other.upper_bound, other.upper_inclusive
            else:
                comparison = upper.compare_to(other.upper_bound)
                if comparison > 0:
                    upper, upper_inclusive = other.upper_bound, other.upper_inclusive
                elif comparison == 0:
                    upper_inclusive = upper_inclusive and other.upper_inclusive

        if lower is not None and upper is not None:
            comparison = lower.compare_to(upper)
            if comparison > 0 or (comparison == 0 and not (lower_inclusive and upper_inclusive)):
                return None
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    @property
    def is_pinned(self) -> bool:
        """True for [x] style restrictions whose bounds are the same version."""
        return (
            self.lower_bound is not None
            and self.upper_bound is not None
            and self.lower_bound == self.upper_bound
        )

    def __str__(self) -> str:
        if self.is_pinned and self.lower_inclusive and self.upper_inclusive:
            return f"[{self.lower_bound}]"
        return "".join([
            "[" if self.lower_inclusive else "(",
            str(self.lower_bound) if self.lower_bound is not None else "",
            ",",
            str(self.upper_bound) if self.upper_bound is not None else "",
            "]" if self.upper_inclusive else ")",
        ])


EVERYTHING = Restriction()


class VersionRange:
    """
    A set of ascending, non-overlapping restrictions plus an optional recommended version.

    A plain version string ("1.0") parses to a range with that recommended
    version and no bounds. Two containment tests are offered because policies
    disagree on what a plain version means:

    - satisfies_at_least: a plain version is a floor ("1.0" behaves as "[1.0,)")
    - contained_in_interval: a plain version is pinned ("1.0" behaves as "[1.0]")

    Bracketed ranges behave the same under both tests.
    """

    def __init__(self, recommended_version: Optional[Version], restrictions: Sequence[Restriction]):
        self.recommended_version = recommended_version
        self.restrictions = tuple(restrictions)

    @classmethod
    def parse(cls, spec: str) -> "VersionRange":
        """Parse a range specification, raising InvalidRangeSpec when it is malformed."""
        if spec is None:
            raise InvalidRangeSpec("None", "range specification is missing")
        process = spec.strip()
        if not process:
            raise InvalidRangeSpec(spec, "range specification is empty")

        restrictions: List[Restriction] = []
        while process.startswith("[") or process.startswith("("):
            index = cls._closing_bracket_index(process)
            if index < 0:
                raise InvalidRangeSpec(spec, "unbounded range")

            restriction = cls._parse_restriction(spec, process[:index + 1])
            if restrictions:
                previous = restrictions[-1]
                if (
                    previous.upper_bound is None
                    or restriction.lower_bound is None
                    or restriction.lower_bound < previous.upper_bound
                ):
                    raise InvalidRangeSpec(spec, "ranges overlap")
            restrictions.append(restriction)

            process = process[index + 1:].strip()
            if process.startswith(","):
                process = process[1:].strip()

        if process:
            if restrictions:
                raise InvalidRangeSpec(spec, "only fully-qualified sets allowed in multiple set scenario")
            if any(ch in process for ch in _BRACKETS) or "," in process:
                raise InvalidRangeSpec(spec, "mismatched brackets")
            return cls(Version.parse(process), [EVERYTHING])

        return cls(None, restrictions)

    @classmethod
    def from_version(cls, version: VersionLike) -> "VersionRange":
        """Wrap a single version as a recommended-version range."""
        return cls(_as_version(version), [EVERYTHING])

    @staticmethod
    def _closing_bracket_index(process: str) -> int:
        paren = process.find(")")
        bracket = process.find("]")
        if bracket < 0 or (0 <= paren < bracket):
            return paren
        return bracket

    @staticmethod
    def _parse_restriction(spec: str, text: str) -> Restriction:
        lower_inclusive = text.startswith("[")
        upper_inclusive = text.endswith("]")
        process = text[1:-1].strip()

        if any(ch in process for ch in _BRACKETS):
            raise InvalidRangeSpec(spec, f"unexpected bracket inside '{text}'")

        if "," not in process:
            if not (lower_inclusive and upper_inclusive):
                raise InvalidRangeSpec(spec, "single version must be surrounded by []")
            if not process:
                raise InvalidRangeSpec(spec, "single version restriction is empty")
            version = Version.parse(process)
            return Restriction(version, True, version, True)

        lower_text, upper_text = process.split(",", 1)
        lower_text, upper_text = lower_text.strip(), upper_text.strip()
        if "," in upper_text:
            raise InvalidRangeSpec(spec, "range cannot have more than two bounds")

        lower = Version.parse(lower_text) if lower_text else None
        upper = Version.parse(upper_text) if upper_text else None
        if lower is not None and upper is not None and upper < lower:
            raise InvalidRangeSpec(spec, "range defies version ordering")
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    @property
    def is_empty(self) -> bool:
        """True when no version can satisfy the range."""
        return not self.restrictions and self.recommended_version is None

    @property
    def has_restrictions(self) -> bool:
        return bool(self.restrictions) and self.recommended_version is None

    @property
    def lower_bound(self) -> Optional[Version]:
        return self.restrictions[0].lower_bound if self.restrictions else None

    @property
    def upper_bound(self) -> Optional[Version]:
        return self.restrictions[-1].upper_bound if self.restrictions else None

    @property
    def has_identical_bounds(self) -> bool:
        """True for a single pinned restriction such as [1.0] or [1.0,1.0]."""
        return (
            self.recommended_version is None
            and len(self.restrictions) == 1
            and self.restrictions[0].is_pinned
            and self.restrictions[0].lower_inclusive == self.restrictions[0].upper_inclusive
        )

    def _in_restrictions(self, version: Version) -> bool:
        return any(restriction.contains(version) for restriction in self.restrictions)

    def satisfies_at_least(self, version: VersionLike) -> bool:
        """Containment where a plain version means 'this version or newer'."""
        version = _as_version(version)
        if self.recommended_version is not None:
            return self.recommended_version.compare_to(version) <= 0
        return self._in_restrictions(version)

    def contained_in_interval(self, version: VersionLike) -> bool:
        """Strict containment where a plain version means exactly that version."""
        version = _as_version(version)
        if self.recommended_version is not None:
            return self.recommended_version == version
        return self._in_restrictions(version)

    def restrict(self, other: "VersionRange") -> "VersionRange":
        """Intersect two ranges, keeping a recommended version that still fits."""
        if not self.restrictions or not other.restrictions:
            restrictions: List[Restriction] = []
        else:
            restrictions = self._intersection(self.restrictions, other.restrictions)

        version = None
        if restrictions:
            for restriction in restrictions:
                if self.recommended_version is not None and restriction.contains(self.recommended_version):
                    version = self.recommended_version
                    break
                if (
                    version is None
                    and other.recommended_version is not None
                    and restriction.contains(other.recommended_version)
                ):
                    version = other.recommended_version
        elif not self.restrictions and self.recommended_version is not None:
            version = self.recommended_version
        elif not other.restrictions and other.recommended_version is not None:
            version = other.recommended_version

        return VersionRange(version, restrictions)

    @staticmethod
    def _intersection(left: Iterable[Restriction], right: Iterable[Restriction]) -> List[Restriction]:
        # both sides are ascending and non-overlapping, so pairwise overlaps come out ascending too
        result = []
        right = list(right)
        for restriction in left:
            for candidate in right:
                overlap = restriction.intersect(candidate)
                if overlap is not None:
                    result.append(overlap)
        return result

    def match_version(self, versions: Iterable[VersionLike]) -> Optional[Version]:
        """Return the newest candidate inside the range, or None."""
        matched = None
        for candidate in versions:
            candidate = _as_version(candidate)
            if self.contained_in_interval(candidate) and (matched is None or candidate > matched):
                matched = candidate
        return matched

    def __eq__(self, other) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return (
            self.recommended_version == other.recommended_version
            and self.restrictions == other.restrictions
        )

    def __hash__(self) -> int:
        return hash((self.recommended_version, self.restrictions))

    def __str__(self) -> str:
        if self.recommended_version is not None:
            return str(self.recommended_version)
        return ",".join(str(r) for r in self.restrictions)

    def __repr__(self) -> str:
        return f"VersionRange('{self}')"
