"""
Expression evaluator.

Walks an expression tree against an Environment and returns a result node.

Evaluation semantics:
- Scalars and native functions evaluate to themselves.
- Symbols resolve through the environment; unknown names give null.
- '||', '&&', comparisons, 'in' and 'like' return the environment's
  canonical true/false instances.
- A conditional evaluates its consequent when the condition is truthy and
  its alternate otherwise, never both.
- Errors propagate immediately; nothing is retried or recovered.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, cast

from .ast import (
    AndNode,
    AstNode,
    CompareNode,
    ConcatNode,
    ConditionalNode,
    FunctionCallNode,
    FunctionNode,
    InNode,
    LikeNode,
    ListNode,
    OrNode,
    ScalarNode,
    ScopedFunctionCallNode,
    ScopedNativeFunctionNode,
    SymbolNode,
    is_function,
)
from .builtins import normalize_result
from .callstack import CallFrame
from .compare import COMPARE_OPERATORS, compare_payloads, to_text
from .errors import (
    EvaluationError,
    ExpressionError,
    NativeFunctionError,
    NotAFunctionError,
    NotAListError,
    RecursionLimitError,
    TypeMismatchError,
)
from .matching import glob_match

if TYPE_CHECKING:
    from .environment import Environment

logger = logging.getLogger("exprlang.evaluator")


@dataclass
class EvaluationResult:
    """Result of a parse and/or evaluation."""

    value: Optional[AstNode]
    """The evaluated result node."""

    success: bool
    """Whether evaluation succeeded."""

    error: Optional[str] = None
    """Error message if evaluation failed."""

    expression: Optional[AstNode] = None
    """The evaluated tree, or the partial tree of a failed parse."""

    exception: Optional[ExpressionError] = None
    """The error raised, if any."""


class Evaluator:
    """Evaluates expression nodes against an environment."""

    def __init__(self, environment: "Environment"):
        self._environment = environment

    def evaluate(self, node: AstNode) -> AstNode:
        """
        Evaluates a node and returns the result node.

        Raises:
            EvaluationError: If evaluation fails
            RecursionLimitError: If the tree is nested deeper than the
                interpreter stack allows
        """
        try:
            return self._evaluate(node)
        except RecursionError as e:
            logger.warning("evaluation_stack_exhausted", extra={"node_type": node.type})
            raise RecursionLimitError(
                sys.getrecursionlimit(), node.type, "interpreter stack depth"
            ) from e

    def _evaluate(self, node: AstNode) -> AstNode:
        node_type = node.type

        if node_type in ("Scalar", "NativeFunction", "ScopedNativeFunction"):
            return node

        if node_type == "Symbol":
            return self._environment.get(cast(SymbolNode, node).literal())

        if node_type == "Conditional":
            return self._evaluate_conditional(cast(ConditionalNode, node))

        if node_type == "Or":
            return self._evaluate_or(cast(OrNode, node))

        if node_type == "And":
            return self._evaluate_and(cast(AndNode, node))

        if node_type == "Compare":
            return self._evaluate_compare(cast(CompareNode, node))

        if node_type == "Concat":
            return self._evaluate_concat(cast(ConcatNode, node))

        if node_type == "List":
            elements = cast(ListNode, node).elements
            return ListNode(elements=tuple(self._evaluate(e) for e in elements))

        if node_type == "In":
            return self._evaluate_in(cast(InNode, node))

        if node_type == "Like":
            return self._evaluate_like(cast(LikeNode, node))

        if node_type == "FunctionCall":
            return self._evaluate_function_call(cast(FunctionCallNode, node))

        if node_type == "ScopedFunctionCall":
            return self._evaluate_scoped_function_call(cast(ScopedFunctionCallNode, node))

        raise EvaluationError(f"Unknown expression node: {node_type}", node.position)

    def _boolean(self, value: bool) -> AstNode:
        return self._environment.true if value else self._environment.false

    def _evaluate_conditional(self, node: ConditionalNode) -> AstNode:
        condition = self._evaluate(node.condition)
        if self._environment.is_truthy(condition):
            return self._evaluate(node.consequent)
        return self._evaluate(node.alternate)

    def _evaluate_or(self, node: OrNode) -> AstNode:
        # Right-nested chains are walked in a loop, not recursively
        current: AstNode = node
        while isinstance(current, OrNode):
            if self._environment.is_truthy(self._evaluate(current.left)):
                return self._environment.true
            current = current.right
        return self._boolean(self._environment.is_truthy(self._evaluate(current)))

    def _evaluate_and(self, node: AndNode) -> AstNode:
        current: AstNode = node
        while isinstance(current, AndNode):
            if not self._environment.is_truthy(self._evaluate(current.left)):
                return self._environment.false
            current = current.right
        return self._boolean(self._environment.is_truthy(self._evaluate(current)))

    def _evaluate_compare(self, node: CompareNode) -> AstNode:
        if node.operator not in COMPARE_OPERATORS:
            raise EvaluationError(f"Operator not supported: {node.operator}", node.position)

        left = self._evaluate(node.left)
        right = self._evaluate(node.right)

        for operand in (left, right):
            if not isinstance(operand, ScalarNode):
                raise TypeMismatchError("scalar", operand.type, node.position)

        return self._boolean(
            compare_payloads(node.operator, left.value(), right.value(), node.position)
        )

    def _evaluate_concat(self, node: ConcatNode) -> AstNode:
        parts: List[str] = []
        current: AstNode = node
        while isinstance(current, ConcatNode):
            parts.append(to_text(self._evaluate(current.left).value()))
            current = current.right
        parts.append(to_text(self._evaluate(current).value()))
        return ScalarNode(raw="", payload="".join(parts))

    def _evaluate_in(self, node: InNode) -> AstNode:
        probe = self._evaluate(node.probe)
        candidates = self._evaluate(node.candidates)

        if not isinstance(candidates, ListNode):
            raise NotAListError(node.candidates.literal(), node.position)

        text = to_text(probe.value())
        return self._boolean(any(to_text(e.value()) == text for e in candidates.elements))

    def _evaluate_like(self, node: LikeNode) -> AstNode:
        text = self._evaluate(node.text)
        pattern = self._evaluate(node.pattern)
        matched = glob_match(
            to_text(text.value()), to_text(pattern.value()), self._environment.limits
        )
        return self._boolean(matched)

    def _evaluate_function_call(self, node: FunctionCallNode) -> AstNode:
        callee = self._evaluate(node.callee)
        if not is_function(callee):
            raise NotAFunctionError(node.callee.literal(), node.position)

        args = [self._evaluate(arg) for arg in node.args]
        return self._invoke(cast(FunctionNode, callee), args, node)

    def _evaluate_scoped_function_call(self, node: ScopedFunctionCallNode) -> AstNode:
        key = node.lookup_key()
        callee = self._environment.get(key)
        if not is_function(callee):
            raise NotAFunctionError(key, node.position)

        args: List[AstNode] = []
        if isinstance(callee, ScopedNativeFunctionNode):
            args.append(self._evaluate(node.scope))
        args.extend(self._evaluate(arg) for arg in node.args)
        return self._invoke(cast(FunctionNode, callee), args, node)

    def _invoke(
        self,
        callee: FunctionNode,
        args: List[AstNode],
        node: "FunctionCallNode | ScopedFunctionCallNode",
    ) -> AstNode:
        """Invokes a native function inside a call frame."""
        frame = CallFrame(callee=callee, args=tuple(node.args))
        try:
            self._environment.push_frame(frame)
        except RecursionLimitError:
            logger.warning(
                "call_depth_exceeded",
                extra={"function": callee.name, "depth": self._environment.call_depth},
            )
            raise

        try:
            try:
                result = callee.invoke(self._environment, tuple(args))
            except ExpressionError:
                raise
            except Exception as e:
                raise NativeFunctionError(callee.name, str(e), node.position) from e
            return normalize_result(self._environment, result)
        finally:
            self._environment.pop_frame()


def evaluate(expression: AstNode, environment: "Environment") -> EvaluationResult:
    """
    Evaluates an expression tree against an environment.

    Args:
        expression: The tree to evaluate
        environment: The environment holding symbols and native functions

    Returns:
        The evaluation result with value and success status
    """
    try:
        value = environment.evaluate(expression)
        return EvaluationResult(value=value, success=True, expression=expression)
    except ExpressionError as error:
        logger.debug(
            "evaluation_failed",
            extra={"expression_type": expression.type, "error": str(error)},
        )
        return EvaluationResult(
            value=None,
            success=False,
            error=str(error),
            expression=expression,
            exception=error,
        )
