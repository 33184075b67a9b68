"""
Tests for wildcard matching used by 'like'.
"""

import pytest

from exprlang import ExpressionLimits, LimitExceededError, glob_match


class TestGlobMatch:
    """Tests for glob_match."""

    @pytest.mark.parametrize(
        "text,pattern,expected",
        [
            ("abc", "a*c", True),
            ("abc", "a?c", True),
            ("abd", "a*c", False),
            ("abc", "*", True),
            ("", "*", True),
            ("", "?", False),
            ("", "", True),
            ("a", "", False),
            ("abc", "abc", True),
            ("abc", "ab", False),
            ("abcabc", "*bc", True),
            ("mississippi", "m*iss*ppi", True),
            ("mississippi", "m*iss*ppx", False),
            ("a.b", "a?b", True),
        ],
    )
    def test_wildcards(self, text, pattern, expected):
        assert glob_match(text, pattern) is expected

    def test_is_case_insensitive(self):
        assert glob_match("Hello World", "hello*WORLD")
        assert glob_match("ÄBC", "äbc")

    @pytest.mark.parametrize("text", ["ß", "İ", "ŉ"])
    def test_single_character_with_long_lowercase_form(self, text):
        assert glob_match(text, "?")
        assert glob_match(text + "x", "?X")

    def test_is_anchored(self):
        assert not glob_match("xabc", "abc")
        assert not glob_match("abcx", "abc")

    def test_pathological_pattern_terminates(self):
        assert not glob_match("a" * 60, "*a*a*a*a*a*b")

    def test_step_limit(self):
        with pytest.raises(LimitExceededError) as exc_info:
            glob_match("a" * 50, "*aaaab", ExpressionLimits(max_glob_steps=10))
        assert exc_info.value.limit_name == "max_glob_steps"

    def test_long_text_with_trailing_star(self):
        limits = ExpressionLimits(max_glob_steps=10)
        assert glob_match("abc" + "x" * 200_000, "abc*", limits)

    def test_long_text_without_backtracking(self):
        limits = ExpressionLimits(max_glob_steps=10)
        assert not glob_match("x" * 200_000, "*y", limits)
        assert glob_match("x" * 200_000 + "y", "*y", limits)

    def test_pattern_length_limit(self):
        with pytest.raises(LimitExceededError):
            glob_match("abc", "a" * 300)
