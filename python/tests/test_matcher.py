"""Tests for artifact pattern matching."""

import pytest
from builders import coordinate
from depenforcer.exceptions import InvalidPatternError, InvalidRangeSpec
from depenforcer.matcher import (
    ArtifactFilter,
    ArtifactMatcher,
    ArtifactPattern,
    MatchMode,
    compile_patterns,
    matches_any,
)


class TestArtifactPattern:
    """Tests for single patterns."""

    def test_wildcard_artifact_with_version(self):
        pattern = ArtifactPattern("group:*:1.0")

        assert pattern.match(coordinate("group:artifactX:1.0"))
        assert pattern.match(coordinate("group:artifactY:1.0"))
        assert not pattern.match(coordinate("group:artifactX:2.0"))
        assert not pattern.match(coordinate("other:artifactX:1.0"))

    def test_group_only(self):
        pattern = ArtifactPattern("org.example")

        assert pattern.match(coordinate("org.example:anything:3.2.1"))
        assert not pattern.match(coordinate("org.example.sub:anything:3.2.1"))

    def test_glob_inside_segment(self):
        pattern = ArtifactPattern("org.apache.*:commons-?o")

        assert pattern.match(coordinate("org.apache.commons:commons-io:2.11.0"))
        assert not pattern.match(coordinate("org.apache.commons:commons-lang3:3.12.0"))
        assert not pattern.match(coordinate("org.apachex:commons-io:2.11.0"))

    def test_glob_is_literal_otherwise(self):
        """Test that regex characters in patterns are not interpreted."""
        pattern = ArtifactPattern("org.example:lib")

        assert not pattern.match(coordinate("orgXexample:lib:1.0"))

    def test_version_range_segment(self):
        pattern = ArtifactPattern("org.example:lib:[1.0,2.0)")

        assert pattern.match(coordinate("org.example:lib:1.0"))
        assert pattern.match(coordinate("org.example:lib:1.9.9"))
        assert not pattern.match(coordinate("org.example:lib:2.0"))

    def test_version_glob_segment(self):
        pattern = ArtifactPattern("org.example:lib:1.*")

        assert pattern.match(coordinate("org.example:lib:1.4"))
        assert not pattern.match(coordinate("org.example:lib:2.4"))

    def test_at_least_mode(self):
        """Test that a plain version acts as a floor in AT_LEAST mode."""
        pattern = ArtifactPattern("org.example:lib:1.0", MatchMode.AT_LEAST)

        assert pattern.match(coordinate("org.example:lib:1.0"))
        assert pattern.match(coordinate("org.example:lib:2.0"))
        assert not pattern.match(coordinate("org.example:lib:0.9"))

    def test_equal_versions_match(self):
        assert ArtifactPattern("org.example:lib:1.0").match(coordinate("org.example:lib:1.0.0"))

    def test_type_segment_defaults_to_jar(self):
        assert ArtifactPattern("org.example:lib:*:jar").match(coordinate("org.example:lib:1.0"))
        assert not ArtifactPattern("org.example:lib:*:war").match(coordinate("org.example:lib:1.0"))
        assert ArtifactPattern("org.example:lib:*:war").match(coordinate("org.example:lib:1.0", type="war"))

    def test_scope_segment_defaults_to_compile(self):
        assert ArtifactPattern("*:*:*:*:compile").match(coordinate("org.example:lib:1.0"))
        assert ArtifactPattern("*:*:*:*:test").match(coordinate("org.example:lib:1.0", scope="test"))
        assert not ArtifactPattern("*:*:*:*:test").match(coordinate("org.example:lib:1.0"))

    def test_classifier_segment(self):
        pattern = ArtifactPattern("*:*:*:*:*:sources")

        assert pattern.match(coordinate("org.example:lib:1.0", classifier="sources"))
        assert not pattern.match(coordinate("org.example:lib:1.0"))

    def test_empty_segment_matches_anything(self):
        assert ArtifactPattern("org.example::1.0").match(coordinate("org.example:lib:1.0"))

    def test_too_many_segments(self):
        with pytest.raises(InvalidPatternError):
            ArtifactPattern("a:b:c:d:e:f:g")

    def test_malformed_version_segment(self):
        with pytest.raises(InvalidRangeSpec):
            ArtifactPattern("org.example:lib:[1.0")

    def test_str(self):
        assert str(ArtifactPattern("org.example:lib")) == "org.example:lib"


class TestPatternLists:
    """Tests for pattern lists, matchers and filters."""

    def test_empty_patterns_are_dropped(self):
        assert compile_patterns(["", "   ", None]) == []
        assert compile_patterns(None) == []

    def test_empty_pattern_never_matches(self):
        matcher = ArtifactMatcher(excludes=[""])

        assert not matcher.match(coordinate("org.example:lib:1.0"))
        assert not matcher.match(coordinate("any:thing:0"))

    def test_matches_any(self):
        patterns = compile_patterns(["org.foo", "org.example:lib"])

        assert matches_any(patterns, coordinate("org.example:lib:1.0"))
        assert not matches_any(patterns, coordinate("org.example:other:1.0"))
        assert not matches_any([], coordinate("org.example:lib:1.0"))

    def test_includes_carve_out_of_excludes(self):
        matcher = ArtifactMatcher(excludes=["xerces"], includes=["xerces:xerces-api"])

        assert matcher.match(coordinate("xerces:xercesImpl:2.12.2"))
        assert not matcher.match(coordinate("xerces:xerces-api:2.12.2"))
        assert not matcher.match(coordinate("org.example:lib:1.0"))

    def test_filter_with_empty_includes_accepts_all(self):
        artifact_filter = ArtifactFilter()

        assert artifact_filter.accepts(coordinate("org.example:lib:1.0"))

    def test_filter_includes_and_excludes(self):
        artifact_filter = ArtifactFilter(includes=["org.example"], excludes=["org.example:internal"])

        assert artifact_filter.accepts(coordinate("org.example:lib:1.0"))
        assert not artifact_filter.accepts(coordinate("org.example:internal:1.0"))
        assert not artifact_filter.accepts(coordinate("org.other:lib:1.0"))
