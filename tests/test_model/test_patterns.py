"""Tests for model.patterns module."""

import pytest

from cascade.model.patterns import PatternError, matches, translate


class TestSingleSegmentWildcards:
    """Tests for *, ? and character classes."""

    def test_star_matches_within_segment(self):
        """Should match any file name in the directory."""
        assert matches("src/*.py", "src/main.py")

    def test_star_does_not_cross_separator(self):
        """Should not match files in nested directories."""
        assert not matches("src/*.py", "src/pkg/main.py")

    def test_question_mark_matches_one_character(self):
        """Should match exactly one character."""
        assert matches("file?.txt", "file1.txt")
        assert not matches("file?.txt", "file10.txt")
        assert not matches("a?b", "a/b")

    def test_character_class(self):
        """Should match listed characters and ranges only."""
        assert matches("[ab].txt", "a.txt")
        assert not matches("[ab].txt", "c.txt")
        assert matches("v[0-9].md", "v7.md")
        assert not matches("v[0-9].md", "vx.md")

    def test_negated_character_class(self):
        """Should match anything except the listed characters."""
        assert matches("[!ab].txt", "c.txt")
        assert not matches("[!ab].txt", "a.txt")

    def test_literal_characters_are_escaped(self):
        """Should treat regex metacharacters literally."""
        assert matches("a+b(1).txt", "a+b(1).txt")
        assert not matches("a.txt", "abtxt")


class TestRecursiveWildcard:
    """Tests for ** segments."""

    def test_trailing_double_star_matches_any_depth(self):
        """Should match files at any depth below the prefix."""
        assert matches("src/**", "src/a.py")
        assert matches("src/**", "src/a/b/c.py")
        assert not matches("src/**", "lib/a.py")

    def test_leading_double_star_matches_zero_directories(self):
        """Should match files at the root too."""
        assert matches("**/*.rs", "main.rs")
        assert matches("**/*.rs", "a/b/main.rs")

    def test_middle_double_star(self):
        """Should match zero or more intermediate directories."""
        assert matches("src/**/test_*.py", "src/test_x.py")
        assert matches("src/**/test_*.py", "src/a/b/test_x.py")
        assert not matches("src/**/test_*.py", "src/a/b/x.py")

    def test_lone_double_star_matches_everything(self):
        assert matches("**", "any/path/at/all.txt")


class TestMalformedPatterns:
    """Tests for patterns that cannot be compiled."""

    def test_unclosed_class_raises(self):
        """Should raise PatternError for an unclosed '['."""
        with pytest.raises(PatternError) as exc_info:
            translate("[invalid")
        assert exc_info.value.pattern == "[invalid"

    def test_double_star_inside_segment_raises(self):
        """Should reject ** mixed with other characters in a segment."""
        with pytest.raises(PatternError):
            matches("src/a**", "src/ab")

    def test_reversed_range_raises(self):
        with pytest.raises(PatternError):
            translate("[z-a]")
