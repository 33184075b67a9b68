"""
Call frames for native function invocation.
"""

import threading
from dataclasses import dataclass
from typing import List, Tuple

from .ast import AstNode, FunctionNode
from .errors import RecursionLimitError, StackUnderflowError


@dataclass(frozen=True)
class CallFrame:
    """One active native call."""

    callee: FunctionNode
    """The function being invoked."""

    args: Tuple[AstNode, ...]
    """Raw, unevaluated argument expressions of the call."""


class CallStack:
    """LIFO stack of active call frames with a depth bound."""

    def __init__(self, max_depth: int):
        self._max_depth = max_depth
        self._frames: List[CallFrame] = []
        self._lock = threading.Lock()

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def push(self, frame: CallFrame) -> None:
        with self._lock:
            if len(self._frames) >= self._max_depth:
                raise RecursionLimitError(self._max_depth, frame.callee.name)
            self._frames.append(frame)

    def pop(self) -> CallFrame:
        with self._lock:
            if not self._frames:
                raise StackUnderflowError()
            return self._frames.pop()

    def peek(self) -> CallFrame:
        with self._lock:
            if not self._frames:
                raise StackUnderflowError()
            return self._frames[-1]

    def frames(self) -> Tuple[CallFrame, ...]:
        """Snapshot of the stack, outermost call first."""
        with self._lock:
            return tuple(self._frames)

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)
