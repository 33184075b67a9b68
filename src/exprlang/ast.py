"""
Expression tree node types.

The tree is produced by the parser and walked by the evaluator. Nodes are
frozen: evaluation never mutates a node, it returns fresh ScalarNode or
ListNode results instead.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Literal, Optional, Sequence, Union

from .compare import CompareOperator, to_text

if TYPE_CHECKING:
    from .environment import Environment


# Signature of a host-supplied native function.
NativeCallback = Callable[["Environment", Sequence["AstNode"]], Any]


# ============================================================
# AST Node Types
# ============================================================


@dataclass(frozen=True)
class AstNodeBase(ABC):
    """Base class for all expression nodes."""

    position: int = field(default=-1, kw_only=True, compare=False)
    """Offset in the source expression, -1 for nodes built at runtime."""

    def evaluate(self, environment: "Environment") -> "AstNode":
        """Evaluates the node; raises EvaluationError on failure."""
        return environment.evaluate(self)  # type: ignore[arg-type]

    def literal(self) -> str:
        """Canonical source form of the node."""
        raise NotImplementedError

    def value(self) -> Any:
        """Concrete payload, if the node carries one."""
        return None

    def __str__(self) -> str:
        return self.literal()


@dataclass(frozen=True)
class ScalarNode(AstNodeBase):
    """Terminal, self-evaluating value."""

    raw: str
    payload: Any

    @property
    def type(self) -> Literal["Scalar"]:
        return "Scalar"

    @classmethod
    def of(cls, payload: Any) -> "ScalarNode":
        """Builds a scalar whose literal is derived from the payload."""
        if payload is None:
            raw = "null"
        elif isinstance(payload, str):
            escaped = payload.replace("\\", "\\\\").replace('"', '\\"')
            raw = f'"{escaped}"'
        else:
            raw = to_text(payload)
        return cls(raw=raw, payload=payload)

    def literal(self) -> str:
        return self.raw

    def value(self) -> Any:
        return self.payload

    def __str__(self) -> str:
        if self.payload is None:
            return "NULL"
        return to_text(self.payload)


@dataclass(frozen=True)
class SymbolNode(AstNodeBase):
    """Named reference, optionally nested in a parent symbol scope."""

    name: str
    scope: Optional["SymbolNode"] = None

    @property
    def type(self) -> Literal["Symbol"]:
        return "Symbol"

    def literal(self) -> str:
        if self.scope is not None:
            return f"{self.scope.literal()}.{self.name}"
        return self.name


@dataclass(frozen=True)
class ConditionalNode(AstNodeBase):
    """Conditional node (condition ? consequent : alternate)."""

    condition: "AstNode"
    consequent: "AstNode"
    alternate: "AstNode"

    @property
    def type(self) -> Literal["Conditional"]:
        return "Conditional"

    def literal(self) -> str:
        return (
            f"({self.condition.literal()} ? {self.consequent.literal()} "
            f": {self.alternate.literal()})"
        )


@dataclass(frozen=True)
class OrNode(AstNodeBase):
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["Or"]:
        return "Or"

    def literal(self) -> str:
        return f"({self.left.literal()} || {self.right.literal()})"


@dataclass(frozen=True)
class AndNode(AstNodeBase):
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["And"]:
        return "And"

    def literal(self) -> str:
        return f"({self.left.literal()} && {self.right.literal()})"


@dataclass(frozen=True)
class CompareNode(AstNodeBase):
    """Scalar comparison with one of == != >= > <= <."""

    operator: CompareOperator
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["Compare"]:
        return "Compare"

    def literal(self) -> str:
        return f"({self.left.literal()} {self.operator} {self.right.literal()})"


@dataclass(frozen=True)
class ConcatNode(AstNodeBase):
    """String concatenation (left + right)."""

    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["Concat"]:
        return "Concat"

    def literal(self) -> str:
        return f"({self.left.literal()} + {self.right.literal()})"


@dataclass(frozen=True)
class ListNode(AstNodeBase):
    """List literal node."""

    elements: Sequence["AstNode"] = ()

    @property
    def type(self) -> Literal["List"]:
        return "List"

    def literal(self) -> str:
        return "[" + ", ".join(e.literal() for e in self.elements) + "]"

    def value(self) -> Any:
        return tuple(e.value() for e in self.elements)

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class InNode(AstNodeBase):
    """Membership test (probe in [..])."""

    probe: "AstNode"
    candidates: "AstNode"

    @property
    def type(self) -> Literal["In"]:
        return "In"

    def literal(self) -> str:
        return f"({self.probe.literal()} in {self.candidates.literal()})"


@dataclass(frozen=True)
class LikeNode(AstNodeBase):
    """Wildcard match (text like pattern)."""

    text: "AstNode"
    pattern: "AstNode"

    @property
    def type(self) -> Literal["Like"]:
        return "Like"

    def literal(self) -> str:
        return f"({self.text.literal()} like {self.pattern.literal()})"


@dataclass(frozen=True)
class FunctionCallNode(AstNodeBase):
    """Plain function call: callee(args)."""

    callee: "AstNode"
    args: Sequence["AstNode"] = ()

    @property
    def type(self) -> Literal["FunctionCall"]:
        return "FunctionCall"

    def literal(self) -> str:
        return f"{self.callee.literal()}({_join_args(self.args)})"


@dataclass(frozen=True)
class ScopedFunctionCallNode(AstNodeBase):
    """
    Scope-qualified call: scope.name(args).

    The scope is a SymbolNode chain or a preceding call. The function is
    looked up under ``lookup_key()``, e.g. ``a.b.f`` for ``a.b.f(x)`` and
    ``a.f().g`` for ``a.f().g(x)``.
    """

    name: str
    scope: "AstNode"
    args: Sequence["AstNode"] = ()

    @property
    def type(self) -> Literal["ScopedFunctionCall"]:
        return "ScopedFunctionCall"

    def lookup_key(self) -> str:
        return f"{scope_key(self.scope)}.{self.name}"

    def literal(self) -> str:
        return f"{self.scope.literal()}.{self.name}({_join_args(self.args)})"


@dataclass(frozen=True)
class NativeFunctionNode(AstNodeBase):
    """Host-supplied function; evaluates to itself."""

    name: str
    callback: NativeCallback

    @property
    def type(self) -> Literal["NativeFunction"]:
        return "NativeFunction"

    def invoke(self, environment: "Environment", args: Sequence["AstNode"]) -> Any:
        return self.callback(environment, args)

    def literal(self) -> str:
        return f"(#native-function:{self.name}#)"

    def value(self) -> Any:
        return self.callback


@dataclass(frozen=True)
class ScopedNativeFunctionNode(AstNodeBase):
    """
    Host-supplied function bound to a scope.

    Scoped calls pass the evaluated scope as the first argument.
    """

    name: str
    scope: Optional[str]
    callback: NativeCallback

    @property
    def type(self) -> Literal["ScopedNativeFunction"]:
        return "ScopedNativeFunction"

    def invoke(self, environment: "Environment", args: Sequence["AstNode"]) -> Any:
        return self.callback(environment, args)

    def literal(self) -> str:
        if self.scope:
            return f"(#native-function:{self.scope}.{self.name}#)"
        return f"(#native-function:{self.name}#)"

    def value(self) -> Any:
        return self.callback


# Union type for all expression nodes
AstNode = Union[
    ScalarNode,
    SymbolNode,
    ConditionalNode,
    OrNode,
    AndNode,
    CompareNode,
    ConcatNode,
    ListNode,
    InNode,
    LikeNode,
    FunctionCallNode,
    ScopedFunctionCallNode,
    NativeFunctionNode,
    ScopedNativeFunctionNode,
]

FunctionNode = Union[NativeFunctionNode, ScopedNativeFunctionNode]

SCOPE_TARGETS = (SymbolNode, FunctionCallNode, ScopedFunctionCallNode)


def _join_args(args: Sequence[AstNode]) -> str:
    return ", ".join(a.literal() for a in args)


def scope_key(scope: AstNode) -> str:
    """Lookup path of a scope expression; calls are marked with '()'."""
    if isinstance(scope, SymbolNode):
        return scope.literal()
    if isinstance(scope, ScopedFunctionCallNode):
        return f"{scope.lookup_key()}()"
    if isinstance(scope, FunctionCallNode):
        return f"{scope.callee.literal()}()"
    raise ValueError(f"not a scope expression: {scope.literal()}")


def is_function(node: AstNode) -> bool:
    return isinstance(node, (NativeFunctionNode, ScopedNativeFunctionNode))


# ============================================================
# AST Utilities
# ============================================================


def iter_children(node: AstNode) -> Iterator[AstNode]:
    """Yields the direct sub-expressions of a node."""
    if isinstance(node, SymbolNode):
        if node.scope is not None:
            yield node.scope
    elif isinstance(node, ConditionalNode):
        yield node.condition
        yield node.consequent
        yield node.alternate
    elif isinstance(node, (OrNode, AndNode, CompareNode, ConcatNode)):
        yield node.left
        yield node.right
    elif isinstance(node, ListNode):
        yield from node.elements
    elif isinstance(node, InNode):
        yield node.probe
        yield node.candidates
    elif isinstance(node, LikeNode):
        yield node.text
        yield node.pattern
    elif isinstance(node, FunctionCallNode):
        yield node.callee
        yield from node.args
    elif isinstance(node, ScopedFunctionCallNode):
        yield node.scope
        yield from node.args


def count_ast_nodes(node: AstNode) -> int:
    """Counts the total number of nodes in a tree."""
    count = 0
    pending: List[AstNode] = [node]
    while pending:
        current = pending.pop()
        count += 1
        pending.extend(iter_children(current))
    return count


CHAIN_TYPES = (OrNode, AndNode, ConcatNode)


def calculate_ast_depth(node: AstNode) -> int:
    """
    Calculates the maximum depth of a tree.

    The right operand of an '||', '&&' or '+' node of the same kind continues
    a flat chain and sits on the same level as its parent.
    """
    max_depth = 0
    pending: List[tuple[AstNode, int]] = [(node, 1)]
    while pending:
        current, depth = pending.pop()
        max_depth = max(max_depth, depth)
        for child in iter_children(current):
            if (
                isinstance(current, CHAIN_TYPES)
                and child is current.right  # type: ignore[union-attr]
                and type(child) is type(current)
            ):
                pending.append((child, depth))
            else:
                pending.append((child, depth + 1))
    return max_depth


def ast_to_string(node: AstNode, indent: int = 0) -> str:
    """Returns a human-readable outline of a tree for debugging."""
    prefix = "  " * indent

    if isinstance(node, ScalarNode):
        return f"{prefix}Scalar: {node.raw or repr(node.payload)}"

    if isinstance(node, SymbolNode):
        return f"{prefix}Symbol: {node.literal()}"

    if isinstance(node, CompareNode):
        header = f"{prefix}Compare: {node.operator}"
    elif isinstance(node, ScopedFunctionCallNode):
        header = f"{prefix}ScopedFunctionCall: {node.lookup_key()}"
    elif isinstance(node, (NativeFunctionNode, ScopedNativeFunctionNode)):
        return f"{prefix}{node.type}: {node.name}"
    else:
        header = f"{prefix}{node.type}:"

    children = [ast_to_string(child, indent + 1) for child in iter_children(node)]
    return "\n".join([header, *children])
