"""
Tests for scalar comparison and text conversion.
"""

import pytest

from exprlang import TypeMismatchError, UnsupportedTypeError, ValueKind
from exprlang.compare import compare_payloads, get_type_name, to_text, value_kind


class TestValueKind:
    def test_bool_is_not_an_integer(self):
        assert value_kind(True) is ValueKind.BOOL
        assert value_kind(1) is ValueKind.INTEGER

    def test_other_kinds(self):
        assert value_kind(1.5) is ValueKind.FLOAT
        assert value_kind("s") is ValueKind.STRING
        assert value_kind(None) is None
        assert value_kind([1]) is None

    def test_type_names(self):
        assert get_type_name(None) == "null"
        assert get_type_name(False) == "boolean"
        assert get_type_name(2.0) == "float"
        assert get_type_name(object()) == "object"


class TestComparePayloads:
    """Tests for compare_payloads."""

    @pytest.mark.parametrize(
        "op,left,right,expected",
        [
            ("==", 2, 2, True),
            ("<", -3, 2, True),
            (">=", 1.0, 1.5, False),
            ("<", False, True, True),
            ("!=", True, True, False),
            (">", "b", "a", True),
        ],
    )
    def test_native_ordering(self, op, left, right, expected):
        assert compare_payloads(op, left, right) is expected

    @pytest.mark.parametrize("op", ["==", "!=", ">=", ">", "<=", "<"])
    def test_none_is_always_false(self, op):
        assert compare_payloads(op, None, 1) is False
        assert compare_payloads(op, "a", None) is False
        assert compare_payloads(op, None, None) is False

    def test_rejects_mixed_kinds(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            compare_payloads("==", 1, 1.0, position=7)
        assert exc_info.value.position == 7
        assert exc_info.value.expected == "integer"
        assert exc_info.value.actual == "float"

    def test_bool_and_int_are_different_kinds(self):
        with pytest.raises(TypeMismatchError):
            compare_payloads("==", True, 1)

    def test_rejects_unsupported_payloads(self):
        with pytest.raises(UnsupportedTypeError) as exc_info:
            compare_payloads("<", b"x", b"y")
        assert exc_info.value.type_name == "bytes"

    def test_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            compare_payloads("<>", 1, 2)


class TestToText:
    @pytest.mark.parametrize(
        "payload,expected",
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (3.0, "3"),
            (2.5, "2.5"),
            ("s", "s"),
            ((1, "a", None), "[1, a, ]"),
        ],
    )
    def test_text_forms(self, payload, expected):
        assert to_text(payload) == expected
