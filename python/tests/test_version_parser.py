"""Tests for version parsing utilities."""

import pytest
from depenforcer.version_parser import Version, VersionParser, base_version, is_snapshot


class TestVersionParser:
    """Tests for the VersionParser class."""

    def test_parse_standard_version_simple(self):
        """Test parsing major.minor.incremental."""
        version = VersionParser.parse("1.2.3")

        assert version.major == 1
        assert version.minor == 2
        assert version.incremental == 3
        assert version.build_number == 0
        assert version.qualifier is None
        assert str(version) == "1.2.3"

    def test_parse_short_version(self):
        version = VersionParser.parse("1.2")

        assert version.major == 1
        assert version.minor == 2
        assert version.incremental == 0

    def test_parse_build_number(self):
        """Test that a numeric suffix is a build number."""
        version = VersionParser.parse("1.2.3-4")

        assert version.build_number == 4
        assert version.qualifier is None

    def test_parse_leading_zero_suffix_is_qualifier(self):
        version = VersionParser.parse("1.2.3-04")

        assert version.build_number == 0
        assert version.qualifier == "04"

    def test_parse_qualifier(self):
        version = VersionParser.parse("1.2.3-SNAPSHOT")

        assert version.qualifier == "SNAPSHOT"
        assert version.is_snapshot is True

    def test_parse_irregular_version(self):
        """Test that versions outside the usual shape keep the whole string as qualifier."""
        version = VersionParser.parse("5.3.39.RELEASE")

        assert version.major == 0
        assert version.qualifier == "5.3.39.RELEASE"
        assert str(version) == "5.3.39.RELEASE"

    def test_is_snapshot(self):
        assert VersionParser.is_snapshot("1.0-SNAPSHOT") is True
        assert VersionParser.is_snapshot("1.0-20240101.120000-3") is True
        assert VersionParser.is_snapshot("1.0") is False
        assert VersionParser.is_snapshot(None) is False
        assert is_snapshot("2.0-SNAPSHOT") is True

    def test_base_version_folds_timestamp(self):
        """Test that timestamped snapshots map back to their SNAPSHOT base version."""
        assert VersionParser.base_version("1.0-20240101.120000-3") == "1.0-SNAPSHOT"
        assert base_version("1.0-SNAPSHOT") == "1.0-SNAPSHOT"
        assert base_version("1.0") == "1.0"
        assert base_version(None) is None

    def test_compare(self):
        assert VersionParser.compare("1.10", "1.9") > 0
        assert VersionParser.compare("1.0", "1.0.0") == 0
        assert VersionParser.compare("1.0-SNAPSHOT", "1.0") < 0


class TestVersionOrdering:
    """Tests for Version comparison."""

    def test_qualifier_order(self):
        ordered = [
            "1.0-alpha-1",
            "1.0-beta",
            "1.0-milestone-1",
            "1.0-rc1",
            "1.0-SNAPSHOT",
            "1.0",
            "1.0-sp1",
            "1.0.1",
            "1.1",
            "2.0",
        ]
        versions = [Version.parse(v) for v in ordered]

        for older, newer in zip(versions, versions[1:]):
            assert older < newer, f"{older} should be older than {newer}"

        shuffled = list(reversed(versions))
        assert [str(v) for v in sorted(shuffled)] == ordered

    def test_trailing_zeros_are_equal(self):
        assert Version.parse("1.0") == Version.parse("1.0.0")
        assert Version.parse("1") == Version.parse("1.0.0")
        assert hash(Version.parse("1.0")) == hash(Version.parse("1.0.0"))

    def test_release_aliases(self):
        """Test that ga/final/release qualifiers equal the plain version."""
        assert Version.parse("1.0-ga") == Version.parse("1.0")
        assert Version.parse("1.0-final") == Version.parse("1.0")
        assert Version.parse("1.0-cr1") == Version.parse("1.0-rc1")

    def test_short_qualifier_aliases(self):
        assert Version.parse("1.0-a1") == Version.parse("1.0-alpha-1")
        assert Version.parse("1.0-b2") == Version.parse("1.0-beta-2")

    def test_numbers_compare_numerically(self):
        assert Version.parse("1.10.0") > Version.parse("1.9.9")
        assert Version.parse("2.0") < Version.parse("10.0-SNAPSHOT")

    def test_unknown_qualifiers_after_known(self):
        assert Version.parse("1.0-foo") > Version.parse("1.0-sp")
        assert Version.parse("1.0-bar") < Version.parse("1.0-foo")

    @pytest.mark.parametrize("version", ["1.0", "1.0-SNAPSHOT", "2.3.4-rc1", "weird"])
    def test_equal_to_itself(self, version):
        assert Version.parse(version) == Version.parse(version)
        assert Version.parse(version).compare_to(Version.parse(version)) == 0

    @pytest.mark.parametrize("older, newer", [
        ("1.0-1", "1.0.1"),
        ("1-1", "1.1"),
        ("2.5-1", "2.5.1"),
        ("1-rc1", "1-1"),
        ("1.0", "1.0-1"),
        ("1.0-1", "1.0-2"),
    ])
    def test_build_number_sorts_between_release_and_next_increment(self, older, newer):
        assert Version.parse(older) < Version.parse(newer)
        assert Version.parse(newer).compare_to(Version.parse(older)) > 0

    def test_equal_versions_hash_alike(self):
        assert Version.parse("1-0.1") == Version.parse("1")
        assert hash(Version.parse("1-0.1")) == hash(Version.parse("1"))
        assert hash(Version.parse("1.0-SNAPSHOT")) == hash(Version.parse("1-SNAPSHOT"))
