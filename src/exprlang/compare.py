"""
Scalar comparison and text conversion helpers.

Comparison dispatches on the payload kind of both operands. Each kind has
its own comparator; operands of different kinds are rejected instead of
being coerced.
"""

import math
import operator
from enum import Enum
from typing import Any, Callable, Dict, Literal, Optional

from .errors import TypeMismatchError, UnsupportedTypeError

CompareOperator = Literal["==", "!=", ">=", ">", "<=", "<"]

COMPARE_OPERATORS = ("==", "!=", ">=", ">", "<=", "<")


class ValueKind(Enum):
    """Comparable payload kinds."""

    BOOL = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"


def value_kind(payload: Any) -> Optional[ValueKind]:
    """Returns the kind of a payload, or None for unsupported payloads."""
    # bool must be tested before int
    if isinstance(payload, bool):
        return ValueKind.BOOL
    if isinstance(payload, int):
        return ValueKind.INTEGER
    if isinstance(payload, float):
        return ValueKind.FLOAT
    if isinstance(payload, str):
        return ValueKind.STRING
    return None


def get_type_name(payload: Any) -> str:
    """Gets the type name of a payload for error messages."""
    if payload is None:
        return "null"
    kind = value_kind(payload)
    if kind is not None:
        return kind.value
    return type(payload).__name__


def to_text(payload: Any) -> str:
    """String form of a payload as used by '+', 'in' and 'like'."""
    if payload is None:
        return ""
    if isinstance(payload, bool):
        return "true" if payload else "false"
    if isinstance(payload, float):
        if math.isfinite(payload) and payload.is_integer() and abs(payload) < 1e21:
            return str(int(payload))
        return repr(payload)
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (list, tuple)):
        return "[" + ", ".join(to_text(p) for p in payload) + "]"
    return str(payload)


Comparator = Callable[[Any, Any], bool]

_OPERATORS: Dict[str, Comparator] = {
    "==": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
}


def _compare_bools(op: str, left: bool, right: bool) -> bool:
    # false < true
    return _OPERATORS[op](int(left), int(right))


def _compare_integers(op: str, left: int, right: int) -> bool:
    return _OPERATORS[op](left, right)


def _compare_floats(op: str, left: float, right: float) -> bool:
    return _OPERATORS[op](left, right)


def _compare_strings(op: str, left: str, right: str) -> bool:
    return _OPERATORS[op](left, right)


_COMPARATORS: Dict[ValueKind, Callable[[str, Any, Any], bool]] = {
    ValueKind.BOOL: _compare_bools,
    ValueKind.INTEGER: _compare_integers,
    ValueKind.FLOAT: _compare_floats,
    ValueKind.STRING: _compare_strings,
}


def compare_payloads(
    op: str, left: Any, right: Any, position: Optional[int] = None
) -> bool:
    """
    Compares two scalar payloads.

    Null payloads compare false under every operator.

    Raises:
        TypeMismatchError: If the payload kinds differ
        UnsupportedTypeError: If a payload has no comparator
        ValueError: If the operator is unknown
    """
    if op not in _OPERATORS:
        raise ValueError(f"Operator not supported: {op}")

    if left is None or right is None:
        return False

    left_kind = value_kind(left)
    if left_kind is None:
        raise UnsupportedTypeError(get_type_name(left), position)
    right_kind = value_kind(right)
    if right_kind is None:
        raise UnsupportedTypeError(get_type_name(right), position)

    if left_kind is not right_kind:
        raise TypeMismatchError(left_kind.value, right_kind.value, position)

    return _COMPARATORS[left_kind](op, left, right)
