"""
Symbol environment for expression evaluation.

An Environment holds the symbol table (named expressions, optionally locked
read-only), the native functions registered by the host and the call-frame
stack used while native functions run. One environment is shared by every
evaluation of a script session.

Each single operation (set, get, lock, push, pop) is atomic. Sequences of
operations are not; hosts that need a compound update to be atomic hold
``lock_table()`` for its duration.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, TextIO, Tuple

from .ast import (
    AstNode,
    NativeCallback,
    NativeFunctionNode,
    ScalarNode,
    ScopedNativeFunctionNode,
)
from .builtins import register_builtins
from .callstack import CallFrame, CallStack
from .config import EnvironmentConfig, normalize_config
from .errors import ExpressionError, ParseError, ReadOnlyViolationError
from .evaluator import EvaluationResult, Evaluator, evaluate
from .limits import ExpressionLimits
from .parser import Parser

logger = logging.getLogger("exprlang.environment")


@dataclass(frozen=True)
class EnvironmentEntry:
    """A named expression in the symbol table."""

    name: str
    expression: AstNode
    read_only: bool = False


class Environment:
    """Scoped, lockable symbol table with a call-frame stack."""

    def __init__(
        self,
        config: EnvironmentConfig | Mapping[str, Any] | None = None,
        output: Optional[TextIO] = None,
    ):
        self._config = normalize_config(config)
        self._limits = self._config.to_limits()

        # Stream used by print; None means sys.stdout at call time
        self.output = output

        self._null = ScalarNode.of(None)
        self._true = ScalarNode.of(True)
        self._false = ScalarNode.of(False)
        self._empty = ScalarNode.of("")

        self._entries: Dict[str, EnvironmentEntry] = {}
        self._lock = threading.RLock()
        self._call_stack = CallStack(self._limits.max_call_depth)
        self._evaluator = Evaluator(self)

        register_builtins(self)

        logger.debug(
            "environment_bootstrapped",
            extra={
                "symbols": self.names(),
                "autoregister_globals": self._config.autoregister_globals,
            },
        )

    # ============================================================
    # Canonical values
    # ============================================================

    @property
    def null(self) -> ScalarNode:
        return self._null

    @property
    def true(self) -> ScalarNode:
        return self._true

    @property
    def false(self) -> ScalarNode:
        return self._false

    @property
    def empty(self) -> ScalarNode:
        return self._empty

    @property
    def config(self) -> EnvironmentConfig:
        return self._config

    @property
    def limits(self) -> ExpressionLimits:
        return self._limits

    def is_truthy(self, expression: AstNode) -> bool:
        """
        Truthiness of an evaluated expression.

        Only null, false and nodes whose payload is None or False are falsy;
        0, "" and lists are truthy.
        """
        if expression is self._null or expression is self._false:
            return False
        payload = expression.value()
        return payload is not None and payload is not False

    # ============================================================
    # Symbol table
    # ============================================================

    def set(self, name: str, expression: AstNode) -> None:
        """
        Binds a name to an expression.

        Raises:
            ReadOnlyViolationError: If the name is locked
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None and entry.read_only:
                logger.debug("read_only_violation", extra={"symbol": name})
                raise ReadOnlyViolationError(name)
            self._entries[name] = EnvironmentEntry(name=name, expression=expression)

    def get(self, name: str) -> AstNode:
        """
        Looks up a name; absent names give null.

        With ``autoregister_globals`` the absent name is also stored as null.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is not None:
                return entry.expression
            if self._config.autoregister_globals:
                self._entries[name] = EnvironmentEntry(name=name, expression=self._null)
            return self._null

    def lock(self, name: str, locked: bool = True) -> None:
        """Locks or unlocks a name; an absent name is registered as null first."""
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                entry = EnvironmentEntry(name=name, expression=self._null)
            self._entries[name] = replace(entry, read_only=locked)

    def is_locked(self, name: str) -> bool:
        with self._lock:
            entry = self._entries.get(name)
            return entry is not None and entry.read_only

    def names(self) -> List[str]:
        """Sorted snapshot of the bound names."""
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    @contextmanager
    def lock_table(self) -> Iterator["Environment"]:
        """Holds the table lock across several operations."""
        with self._lock:
            yield self

    # ============================================================
    # Native functions
    # ============================================================

    def register_function(self, name: str, callback: NativeCallback) -> NativeFunctionNode:
        """Registers a native function under ``name``."""
        function = NativeFunctionNode(name=name, callback=callback)
        self.set(name, function)
        logger.debug("native_function_registered", extra={"function": name})
        return function

    def register_scoped_function(
        self, scope: str, name: str, callback: NativeCallback
    ) -> ScopedNativeFunctionNode:
        """
        Registers a native function under ``scope.name``.

        When called as ``scope.name(args)`` the callback receives the
        evaluated scope as its first argument.
        """
        function = ScopedNativeFunctionNode(name=name, scope=scope, callback=callback)
        key = f"{scope}.{name}"
        self.set(key, function)
        logger.debug("scoped_function_registered", extra={"function": key})
        return function

    # ============================================================
    # Call stack
    # ============================================================

    @property
    def call_stack(self) -> CallStack:
        return self._call_stack

    @property
    def call_depth(self) -> int:
        return len(self._call_stack)

    def push_frame(self, frame: CallFrame) -> None:
        self._call_stack.push(frame)

    def pop_frame(self) -> CallFrame:
        return self._call_stack.pop()

    def current_frame(self) -> CallFrame:
        return self._call_stack.peek()

    def frames(self) -> Tuple[CallFrame, ...]:
        return self._call_stack.frames()

    # ============================================================
    # Parsing and evaluation
    # ============================================================

    def parse(self, source: str) -> AstNode:
        """Parses source text using this environment's configuration."""
        parser = Parser(source, self._limits, self._config.include_whitespace)
        return parser.parse(strict=self._config.strict_parsing)

    def evaluate(self, expression: AstNode) -> AstNode:
        """Evaluates a tree; errors propagate to the caller."""
        return self._evaluator.evaluate(expression)

    def execute(self, source: str) -> EvaluationResult:
        """Parses and evaluates source text, reporting failures in the result."""
        try:
            expression = self.parse(source)
        except ParseError as error:
            logger.debug("parse_failed", extra={"source": source, "error": str(error)})
            return EvaluationResult(
                value=None,
                success=False,
                error=str(error),
                expression=error.partial,
                exception=error,
            )
        except ExpressionError as error:
            logger.debug("parse_failed", extra={"source": source, "error": str(error)})
            return EvaluationResult(
                value=None, success=False, error=str(error), exception=error
            )

        return evaluate(expression, self)


def execute(source: str, environment: Optional[Environment] = None) -> EvaluationResult:
    """
    Parses and evaluates an expression string.

    Args:
        source: The expression string
        environment: Environment to evaluate in; a fresh one if omitted

    Returns:
        The evaluation result with value and success status
    """
    if environment is None:
        environment = Environment()
    return environment.execute(source)
