"""
Embeddable expression language.

Text is tokenized, parsed into an immutable expression tree and evaluated
against a shared, lockable Environment into which the host injects native
functions.
"""

# Core types and utilities
from .ast import (
    AndNode,
    AstNode,
    AstNodeBase,
    CompareNode,
    ConcatNode,
    ConditionalNode,
    FunctionCallNode,
    InNode,
    LikeNode,
    ListNode,
    NativeCallback,
    NativeFunctionNode,
    OrNode,
    ScalarNode,
    ScopedFunctionCallNode,
    ScopedNativeFunctionNode,
    SymbolNode,
    ast_to_string,
    calculate_ast_depth,
    count_ast_nodes,
)

# Builtins
from .builtins import (
    BUILTIN_FUNCTIONS,
    is_builtin_function,
    normalize_result,
    register_builtins,
)
from .callstack import CallFrame, CallStack
from .compare import COMPARE_OPERATORS, ValueKind, compare_payloads, get_type_name, to_text
from .config import EnvironmentConfig, normalize_config

# Environment
from .environment import Environment, EnvironmentEntry, execute
from .errors import (
    EvaluationError,
    ExpressionError,
    LexError,
    LimitExceededError,
    NativeFunctionError,
    NotAFunctionError,
    NotAListError,
    ParseError,
    ReadOnlyViolationError,
    RecursionLimitError,
    StackUnderflowError,
    TypeMismatchError,
    UnsupportedTypeError,
)

# Evaluator
from .evaluator import (
    EvaluationResult,
    Evaluator,
    evaluate,
)
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_ast_depth,
    check_ast_node_count,
    check_expression_length,
    check_function_arg_count,
    check_glob_pattern_length,
    check_list_length,
)
from .matching import glob_match

# Parser
from .parser import (
    Parser,
    parse,
)

# Tokenizer
from .tokenizer import (
    Token,
    Tokenizer,
    TokenStream,
    TokenType,
    tokenize,
)

__all__ = [
    # AST types
    "AstNode",
    "AstNodeBase",
    "ScalarNode",
    "SymbolNode",
    "ConditionalNode",
    "OrNode",
    "AndNode",
    "CompareNode",
    "ConcatNode",
    "ListNode",
    "InNode",
    "LikeNode",
    "FunctionCallNode",
    "ScopedFunctionCallNode",
    "NativeFunctionNode",
    "ScopedNativeFunctionNode",
    "NativeCallback",
    "count_ast_nodes",
    "calculate_ast_depth",
    "ast_to_string",
    # Errors
    "ExpressionError",
    "LexError",
    "ParseError",
    "EvaluationError",
    "TypeMismatchError",
    "UnsupportedTypeError",
    "NotAFunctionError",
    "NotAListError",
    "ReadOnlyViolationError",
    "StackUnderflowError",
    "RecursionLimitError",
    "NativeFunctionError",
    "LimitExceededError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    "check_expression_length",
    "check_ast_depth",
    "check_ast_node_count",
    "check_list_length",
    "check_function_arg_count",
    "check_glob_pattern_length",
    # Configuration
    "EnvironmentConfig",
    "normalize_config",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "TokenStream",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    # Comparison and matching
    "COMPARE_OPERATORS",
    "ValueKind",
    "compare_payloads",
    "get_type_name",
    "to_text",
    "glob_match",
    # Evaluator
    "EvaluationResult",
    "Evaluator",
    "evaluate",
    # Environment
    "Environment",
    "EnvironmentEntry",
    "CallFrame",
    "CallStack",
    "execute",
    # Builtins
    "BUILTIN_FUNCTIONS",
    "is_builtin_function",
    "normalize_result",
    "register_builtins",
]
