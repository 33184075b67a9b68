"""
Resource limits for expression parsing and evaluation.

These limits keep hostile or runaway scripts from exhausting the
interpreter stack or spinning in the wildcard matcher.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum expression string length in characters
    max_expression_length: int = 4096

    # Maximum AST depth (nesting level)
    max_ast_depth: int = 64

    # Maximum number of AST nodes
    max_ast_nodes: int = 1024

    # Maximum list literal length
    max_list_length: int = 256

    # Maximum function call arguments
    max_function_args: int = 16

    # Maximum number of nested native calls on the call stack
    max_call_depth: int = 64

    # Maximum glob pattern length
    max_glob_pattern_length: int = 256

    # Maximum matcher steps for a single 'like' evaluation
    max_glob_steps: int = 100_000


# Default expression limits.
DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that expression length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "max_expression_length", limits.max_expression_length, len(expression)
        )


def check_ast_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates AST depth during parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_ast_depth:
        raise LimitExceededError("max_ast_depth", limits.max_ast_depth, depth)


def check_ast_node_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates AST node count after parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_ast_nodes:
        raise LimitExceededError("max_ast_nodes", limits.max_ast_nodes, count)


def check_list_length(length: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates list literal length during parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if length > limits.max_list_length:
        raise LimitExceededError("max_list_length", limits.max_list_length, length)


def check_function_arg_count(
    count: int, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates function argument count."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if count > limits.max_function_args:
        raise LimitExceededError("max_function_args", limits.max_function_args, count)


def check_glob_pattern_length(
    pattern: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates glob pattern length before matching."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(pattern) > limits.max_glob_pattern_length:
        raise LimitExceededError(
            "max_glob_pattern_length", limits.max_glob_pattern_length, len(pattern)
        )
