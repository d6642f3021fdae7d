"""Version parsing and ordering for Maven-style dependency versions."""

import functools
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

SNAPSHOT = "SNAPSHOT"
LATEST = "LATEST"
RELEASE = "RELEASE"

# Known qualifiers, oldest first. The empty qualifier is a plain release.
QUALIFIERS = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]

QUALIFIER_ALIASES = {
    "ga": "",
    "final": "",
    "release": "",
    "cr": "rc",
}

_RELEASE_RANK = QUALIFIERS.index("")

Item = Union[int, str, Tuple["Item", ...]]

_SHORT_QUALIFIERS = {"a": "alpha", "b": "beta", "m": "milestone"}


def _qualifier_key(qualifier: str) -> Tuple[int, str]:
    qualifier = QUALIFIER_ALIASES.get(qualifier, qualifier)
    if qualifier in QUALIFIERS:
        return QUALIFIERS.index(qualifier), ""
    return len(QUALIFIERS), qualifier


def _compare_items(left: Optional[Item], right: Optional[Item]) -> int:
    """
    Compare two version items; None stands for a missing trailing item.

    Numbers are newer than nested lists, which are newer than qualifiers,
    so 1-1 < 1.1 and 1.0-1 < 1.0.1 while 1-1 > 1-rc.
    """
    if left is None and right is None:
        return 0
    if left is None:
        return -_compare_items(right, None)
    if isinstance(left, int):
        if right is None:
            return 0 if left == 0 else 1
        if isinstance(right, int):
            return (left > right) - (left < right)
        return 1
    if isinstance(left, str):
        if right is None:
            rank = _qualifier_key(left)
            release = (_RELEASE_RANK, "")
            return (rank > release) - (rank < release)
        if isinstance(right, str):
            left_key = _qualifier_key(left)
            right_key = _qualifier_key(right)
            return (left_key > right_key) - (left_key < right_key)
        return -1
    if right is None:
        return _compare_items(left[0], None) if left else 0
    if isinstance(right, int):
        return -1
    if isinstance(right, str):
        return 1
    return _compare_lists(left, right)


def _compare_lists(left: Tuple[Item, ...], right: Tuple[Item, ...]) -> int:
    for i in range(max(len(left), len(right))):
        result = _compare_items(
            left[i] if i < len(left) else None,
            right[i] if i < len(right) else None,
        )
        if result != 0:
            return result
    return 0


def _is_null_item(item: Item) -> bool:
    if isinstance(item, int):
        return item == 0
    if isinstance(item, tuple):
        return not item
    return _qualifier_key(item) == (_RELEASE_RANK, "")


def _parse_item(token: str, is_digit: bool, followed_by_digit: bool = False) -> Item:
    if is_digit:
        return int(token)
    if followed_by_digit and len(token) == 1:
        token = _SHORT_QUALIFIERS.get(token, token)
    return QUALIFIER_ALIASES.get(token, token)


def _normalize(items: list) -> None:
    """Drop null items from the end, looking past nested lists."""
    for i in range(len(items) - 1, -1, -1):
        item = items[i]
        if isinstance(item, list):
            if not item:
                del items[i]
        elif _is_null_item(item):
            del items[i]
        else:
            break


def _freeze(items: list) -> Tuple[Item, ...]:
    return tuple(_freeze(item) if isinstance(item, list) else item for item in items)


def _tokenize(text: str) -> Tuple[Item, ...]:
    """
    Split a version string into comparable items.

    '.' separates items. '-' and digit/letter transitions open a nested list
    holding the rest of the version, so 1-1 is (1, (1,)) and sorts below 1.1.
    Trailing zero or release items are trimmed from every list, which makes
    1.0 == 1.0.0 and 1.0-SNAPSHOT == 1-SNAPSHOT.
    """
    text = text.lower()
    root: list = []
    current = root
    lists = [root]
    start = 0
    is_digit = False

    def open_list() -> None:
        nonlocal current
        nested: list = []
        current.append(nested)
        current = nested
        lists.append(nested)

    for i, ch in enumerate(text):
        if ch == "." or ch == "-":
            current.append(0 if i == start else _parse_item(text[start:i], is_digit))
            start = i + 1
            if ch == "-":
                open_list()
        elif ch in "0123456789":
            if not is_digit and i > start:
                current.append(_parse_item(text[start:i], False, followed_by_digit=True))
                start = i
                open_list()
            is_digit = True
        else:
            if is_digit and i > start:
                current.append(_parse_item(text[start:i], True))
                start = i
                open_list()
            is_digit = False
    if len(text) > start:
        current.append(_parse_item(text[start:], is_digit))

    # nested lists are created after their parents, so children normalize first
    while lists:
        _normalize(lists.pop())
    return _freeze(root)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """
    A parsed dependency version.

    Attributes:
        original: The version string as given
        major: Major version number (0 when the string does not parse)
        minor: Minor version number
        incremental: Incremental version number
        build_number: Numeric suffix after '-', when there is one
        qualifier: Non numeric suffix after '-', or the whole string when it does not parse
    """
    original: str
    major: int = 0
    minor: int = 0
    incremental: int = 0
    build_number: int = 0
    qualifier: Optional[str] = None
    _items: Tuple[Item, ...] = field(default=(), repr=False)

    def __post_init__(self):
        if not self._items and self.original:
            object.__setattr__(self, "_items", _tokenize(self.original))

    @classmethod
    def parse(cls, text: str) -> "Version":
        return VersionParser.parse(text)

    @property
    def is_snapshot(self) -> bool:
        return VersionParser.is_snapshot(self.original)

    def compare_to(self, other: "Version") -> int:
        """Return <0, 0 or >0 as this version is older, equal or newer than other."""
        return _compare_lists(self._items, other._items)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        # equal versions can differ in structure (1-0.1 == 1), only a leading number is shared
        first = self._items[0] if self._items else 0
        return hash(first if isinstance(first, int) else 0)

    def __str__(self) -> str:
        return self.original


class VersionParser:
    """Parser for Maven style version strings."""

    # major[.minor[.incremental]][-buildNumber|-qualifier]
    VERSION_PATTERN = re.compile(r'^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-(.+))?$')

    # Timestamped snapshot: <base>-YYYYMMDD.HHMMSS-<build>
    TIMESTAMP_SNAPSHOT_PATTERN = re.compile(r'^(.*)-(\d{8}\.\d{6})-(\d+)$')

    @classmethod
    def parse(cls, version: str) -> Version:
        """
        Parse a version string. Never fails: strings that do not fit the
        major.minor.incremental shape keep the whole text as the qualifier.
        """
        version = (version or "").strip()

        match = cls.VERSION_PATTERN.match(version)
        if not match:
            return Version(original=version, qualifier=version or None)

        major, minor, incremental, suffix = match.groups()
        build_number = 0
        qualifier = None
        if suffix is not None:
            if suffix.isdigit() and (len(suffix) == 1 or not suffix.startswith("0")):
                build_number = int(suffix)
            else:
                qualifier = suffix

        return Version(
            original=version,
            major=int(major),
            minor=int(minor or 0),
            incremental=int(incremental or 0),
            build_number=build_number,
            qualifier=qualifier,
        )

    @classmethod
    def is_snapshot(cls, version: Optional[str]) -> bool:
        """True for '-SNAPSHOT' versions and timestamped snapshot versions."""
        if not version:
            return False
        if version.endswith(SNAPSHOT):
            return True
        return cls.TIMESTAMP_SNAPSHOT_PATTERN.match(version) is not None

    @classmethod
    def base_version(cls, version: Optional[str]) -> Optional[str]:
        """
        Get the base version, with a snapshot timestamp folded back into SNAPSHOT.

        Example: 1.0-20240101.120000-3 -> 1.0-SNAPSHOT
        """
        if not version:
            return version
        match = cls.TIMESTAMP_SNAPSHOT_PATTERN.match(version)
        if match:
            return f"{match.group(1)}-{SNAPSHOT}"
        return version

    @classmethod
    def compare(cls, v1: str, v2: str) -> int:
        """Compare two version strings. Returns >0 if v1 > v2, <0 if v1 < v2, 0 if equal."""
        return cls.parse(v1).compare_to(cls.parse(v2))


def base_version(version: Optional[str]) -> Optional[str]:
    return VersionParser.base_version(version)


def is_snapshot(version: Optional[str]) -> bool:
    return VersionParser.is_snapshot(version)
