"""Tests for the multi-line pattern compiler."""

import re
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ipban.lists.errors import PatternError
from ipban.lists.pattern import (
    HEX_WILDCARD,
    anchor_expression,
    compile_expression,
    compile_pattern,
    join_pattern_lines,
)


class TestJoinPatternLines:
    def test_lines_trimmed_and_joined_without_separator(self):
        assert join_pattern_lines("  ^abc  \n\tdef\n") == "^abcdef"

    def test_blank_lines_dropped(self):
        assert join_pattern_lines("a\n\n   \nb") == "ab"

    def test_carriage_returns_trimmed(self):
        """Windows line endings leave \\r on each line, trimming removes it."""
        assert join_pattern_lines("a\r\nb\r\n") == "ab"

    def test_order_preserved(self):
        assert join_pattern_lines("3\n2\n1") == "321"


class TestCompilePattern:
    @pytest.mark.parametrize("text", [None, "", "   ", "\n\n", " \n \t \n"])
    def test_no_fragments_gives_no_pattern(self, text):
        assert compile_pattern(text) is None
        assert compile_pattern(text, wildcard=True) is None

    def test_multi_line_pattern(self):
        pattern = compile_pattern("^192\\.168\\.\n  (1|2)\\.\n")
        assert pattern.pattern == r"^192\.168\.(1|2)\."
        assert pattern.search("192.168.1.5")
        assert not pattern.search("192.168.3.5")

    def test_case_insensitive(self):
        pattern = compile_pattern("^fe80::ABCD")
        assert pattern.flags & re.IGNORECASE
        assert pattern.search("FE80::abcd:1")

    def test_no_locale_flag(self):
        assert not compile_pattern("abc").flags & re.LOCALE

    def test_wildcard_replaced_with_hex_class(self):
        pattern = compile_pattern("^10\\.*\\.0\\.1$", wildcard=True)
        assert pattern.pattern == "^10\\." + HEX_WILDCARD + "\\.0\\.1$"
        assert pattern.search("10.22.0.1")
        assert pattern.search("10.ff.0.1")
        assert not pattern.search("10..0.1")

    def test_ipv6_wildcard(self):
        pattern = compile_pattern("^2001:db8:*:", wildcard=True)
        assert pattern.search("2001:DB8:85a3::1")

    def test_star_kept_without_wildcard(self):
        """Outside address lists '*' keeps its regex meaning."""
        assert compile_pattern("ab*c").pattern == "ab*c"

    def test_invalid_pattern_raises(self):
        with pytest.raises(PatternError) as exc_info:
            compile_pattern("^(unclosed\n[group")
        assert exc_info.value.source == "^(unclosed[group"
        assert isinstance(exc_info.value, ValueError)

    def test_error_surfaces_joined_text(self):
        """The error names the joined pattern, not the separate lines."""
        with pytest.raises(PatternError, match="abc\\(def"):
            compile_pattern("abc\n(def")


class TestAnchorExpression:
    def test_caret_kept_in_front(self):
        assert anchor_expression("^abc") == r"^\s*?abc\s*?"

    def test_unanchored_wrapped_both_sides(self):
        assert anchor_expression("abc") == r"\s*?abc\s*?"

    def test_empty_stays_empty(self):
        assert anchor_expression("") == ""
        assert anchor_expression("   ") == ""

    def test_lone_caret(self):
        assert anchor_expression("^") == r"^\s*?\s*?"


class TestCompileExpression:
    def test_multi_line_anchored(self):
        pattern = compile_expression("^abc\ndef")
        assert pattern.pattern == r"^\s*?abcdef\s*?"
        assert pattern.search("  ABCDEF")

    def test_unanchored_multi_line(self):
        assert compile_expression("abc\n  def ").pattern == r"\s*?abcdef\s*?"

    def test_blank_gives_no_pattern(self):
        assert compile_expression(None) is None
        assert compile_expression(" \n ") is None

    @pytest.mark.parametrize("text", [None, "", " ", "\t\n", "\n\n"])
    def test_blank_handled_like_address_patterns(self, text):
        assert compile_expression(text) is None
        assert compile_pattern(text) is None

    def test_invalid_expression_raises(self):
        with pytest.raises(PatternError):
            compile_expression("^(abc")
