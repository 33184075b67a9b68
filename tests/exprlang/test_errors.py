"""
Tests for error types and the call stack.
"""

import pytest

from exprlang import (
    CallFrame,
    CallStack,
    EvaluationError,
    ExpressionError,
    LexError,
    NativeFunctionError,
    NotAListError,
    RecursionLimitError,
    StackUnderflowError,
)
from exprlang.ast import NativeFunctionNode


def frame(name: str = "f") -> CallFrame:
    callee = NativeFunctionNode(name=name, callback=lambda e, a: None)
    return CallFrame(callee=callee, args=())


class TestErrors:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(NotAListError, EvaluationError)
        assert issubclass(RecursionLimitError, EvaluationError)
        assert issubclass(EvaluationError, ExpressionError)
        assert issubclass(LexError, ExpressionError)

    def test_format_without_context(self):
        assert ExpressionError("Bad").format_with_context() == "Bad"

    def test_format_echoes_only_the_failing_line(self):
        error = ExpressionError("Bad", 5, "a +\nbcd")
        assert error.format_with_context() == "Bad\n  bcd\n   ^"

    def test_lex_error_message(self):
        error = LexError("unterminated quoted string", 2, 9)
        assert str(error) == "unterminated quoted string (line 2, offset 9)"
        assert error.position == 9

    def test_recursion_limit_message(self):
        assert str(RecursionLimitError(8, "f")) == "Recursion too deep: f exceeds call depth 8"
        error = RecursionLimitError(1000, "Or", "interpreter stack depth")
        assert error.bound == "interpreter stack depth"
        assert "exceeds interpreter stack depth 1000" in str(error)

    def test_native_function_error_message(self):
        error = NativeFunctionError("Multiply", "needs two ints")
        assert str(error) == "Multiply: needs two ints"


class TestCallStack:
    """Tests for CallStack."""

    def test_lifo(self):
        stack = CallStack(max_depth=3)
        first, second = frame("a"), frame("b")
        stack.push(first)
        stack.push(second)
        assert len(stack) == 2
        assert stack.frames() == (first, second)
        assert stack.peek() is second
        assert stack.pop() is second
        assert stack.pop() is first

    def test_underflow(self):
        stack = CallStack(max_depth=3)
        with pytest.raises(StackUnderflowError):
            stack.pop()
        with pytest.raises(StackUnderflowError):
            stack.peek()

    def test_depth_bound(self):
        stack = CallStack(max_depth=1)
        stack.push(frame())
        with pytest.raises(RecursionLimitError) as exc_info:
            stack.push(frame("deep"))
        assert exc_info.value.name == "deep"
        assert exc_info.value.limit == 1
        assert len(stack) == 1
