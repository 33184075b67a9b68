"""
Built-in native functions and host value normalisation.

Every environment starts with the constants ``null``, ``true``, ``false``
and ``empty`` (locked) and the ``print`` function (replaceable).

Native callbacks may return either an expression node or a plain Python
value; plain values are converted by ``normalize_result``:
- None -> the environment's null
- bool -> the environment's canonical true/false
- list/tuple -> ListNode with each element normalised
- anything else -> ScalarNode carrying the value as payload
"""

import sys
from typing import TYPE_CHECKING, Any, Callable, Dict, Sequence

from .ast import AstNode, AstNodeBase, ListNode, NativeCallback, ScalarNode

if TYPE_CHECKING:
    from .environment import Environment


def normalize_result(environment: "Environment", value: Any) -> AstNode:
    """Converts a native function's return value into an expression node."""
    if isinstance(value, AstNodeBase):
        return value  # type: ignore[return-value]

    if value is None:
        return environment.null

    if isinstance(value, bool):
        return environment.true if value else environment.false

    if isinstance(value, list | tuple):
        return ListNode(elements=tuple(normalize_result(environment, v) for v in value))

    return ScalarNode.of(value)


def _print(environment: "Environment", args: Sequence[AstNode]) -> AstNode:
    """Writes the display form of every argument, then a newline."""
    stream = environment.output or sys.stdout
    stream.write("".join(str(arg) for arg in args) + "\n")
    return environment.null


# Built-in function registry.
BUILTIN_FUNCTIONS: Dict[str, NativeCallback] = {
    "print": _print,
}

# Constants bootstrapped into every environment, locked.
BUILTIN_CONSTANTS: Dict[str, Callable[["Environment"], AstNode]] = {
    "null": lambda env: env.null,
    "true": lambda env: env.true,
    "false": lambda env: env.false,
    "empty": lambda env: env.empty,
}


def register_builtins(environment: "Environment") -> None:
    """Registers the built-in constants and functions in an environment."""
    for name, factory in BUILTIN_CONSTANTS.items():
        environment.set(name, factory(environment))
        environment.lock(name)

    for name, callback in BUILTIN_FUNCTIONS.items():
        environment.register_function(name, callback)


def is_builtin_function(name: str) -> bool:
    """Checks if a name refers to a built-in function."""
    return name in BUILTIN_FUNCTIONS
