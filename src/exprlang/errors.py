"""
Error types for the expression runtime.

All runtime errors extend ExpressionError for consistent handling.
"""

from typing import Any, Optional


class ExpressionError(Exception):
    """
    Base error class for all expression-related errors.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with position context.
        """
        if self.expression is None or self.position is None:
            return self.message

        # Only the line holding the position is echoed back.
        line_start = self.expression.rfind("\n", 0, self.position) + 1
        line_end = self.expression.find("\n", self.position)
        if line_end == -1:
            line_end = len(self.expression)
        pointer = " " * (self.position - line_start) + "^"
        return f"{self.message}\n  {self.expression[line_start:line_end]}\n  {pointer}"


class LexError(ExpressionError):
    """
    Error raised during tokenization (unterminated string, malformed number).
    """

    def __init__(
        self,
        message: str,
        line: int,
        offset: int,
        expression: Optional[str] = None,
    ):
        super().__init__(f"{message} (line {line}, offset {offset})", offset, expression)
        self.reason = message
        self.line = line
        self.offset = offset


class ParseError(ExpressionError):
    """
    Error raised during parsing.

    ``partial`` holds the subtree built before the failure, if any.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
        partial: Any = None,
    ):
        super().__init__(message, position, expression)
        self.partial = partial


class EvaluationError(ExpressionError):
    """
    Error raised during evaluation (runtime error).
    """

    pass


class TypeMismatchError(EvaluationError):
    """
    Error raised when operand types do not fit an operation.
    """

    def __init__(
        self,
        expected: str,
        actual: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        message = f"Type mismatch: expected {expected}, got {actual}"
        super().__init__(message, position, expression)
        self.expected = expected
        self.actual = actual


class UnsupportedTypeError(EvaluationError):
    """
    Error raised when a scalar payload type has no comparison support.
    """

    def __init__(self, type_name: str, position: Optional[int] = None):
        super().__init__(f"Unsupported type: {type_name}", position)
        self.type_name = type_name


class NotAFunctionError(EvaluationError):
    """
    Error raised when a call target does not resolve to a function.
    """

    def __init__(self, name: str, position: Optional[int] = None):
        super().__init__(f"Not a function: {name}", position)
        self.name = name


class NotAListError(EvaluationError):
    """
    Error raised when the right side of 'in' is not a list.
    """

    def __init__(self, literal: str, position: Optional[int] = None):
        super().__init__(f"Not a list for matching values: {literal}", position)
        self.literal = literal


class ReadOnlyViolationError(EvaluationError):
    """
    Error raised when a locked environment entry is overwritten.
    """

    def __init__(self, name: str):
        super().__init__(f"Symbol {name} cannot be modified")
        self.name = name


class StackUnderflowError(EvaluationError):
    """
    Error raised when a frame is popped from an empty call stack.
    """

    def __init__(self) -> None:
        super().__init__("Call stack is empty")


class RecursionLimitError(EvaluationError):
    """
    Error raised when native calls or tree nesting grow past the allowed depth.
    """

    def __init__(self, limit: int, name: str, bound: str = "call depth"):
        super().__init__(f"Recursion too deep: {name} exceeds {bound} {limit}")
        self.limit = limit
        self.name = name
        self.bound = bound


class NativeFunctionError(EvaluationError):
    """
    Error raised when a native function fails.
    """

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        full_message = f"{function_name}: {message}"
        super().__init__(full_message, position, expression)
        self.function_name = function_name


class LimitExceededError(ExpressionError):
    """
    Error raised when expression limits are exceeded.
    """

    def __init__(self, limit_name: str, limit: int, actual: int):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual
