"""
Wildcard matching for the 'like' operator.

``*`` matches zero or more characters, ``?`` exactly one. Matching is
case-insensitive and anchored at both ends. The matcher is iterative: on a
mismatch it backtracks to the most recent ``*`` only, so the work is bounded
by len(text) * len(pattern). Characters re-scanned after a backtrack are
counted against ``max_glob_steps``; a scan that never re-reads input is not.
"""

from typing import Optional

from .errors import LimitExceededError
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits, check_glob_pattern_length


def _lower(text: str) -> str:
    """Lowercases one character at a time, keeping the length unchanged."""
    chars = []
    for ch in text:
        lowered = ch.lower()
        chars.append(lowered if len(lowered) == 1 else ch)
    return "".join(chars)


def glob_match(
    text: str, pattern: str, limits: Optional[ExpressionLimits] = None
) -> bool:
    """Returns True if ``text`` matches the wildcard ``pattern``."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    check_glob_pattern_length(pattern, limits)

    text = _lower(text)
    pattern = _lower(pattern)

    ti = 0
    pi = 0
    star_pi = -1
    star_ti = 0
    rescanned = 0

    while ti < len(text):
        if pi < len(pattern) and pattern[pi] == "*":
            star_pi = pi
            star_ti = ti
            pi += 1
            if pi == len(pattern):
                return True
        elif pi < len(pattern) and (pattern[pi] == "?" or pattern[pi] == text[ti]):
            ti += 1
            pi += 1
        elif star_pi != -1:
            rescanned += ti - star_ti
            if rescanned > limits.max_glob_steps:
                raise LimitExceededError(
                    "max_glob_steps", limits.max_glob_steps, rescanned
                )
            # Let the last '*' swallow one more character
            star_ti += 1
            ti = star_ti
            pi = star_pi + 1
        else:
            return False

    # Only trailing '*' may remain
    while pi < len(pattern) and pattern[pi] == "*":
        pi += 1

    return pi == len(pattern)
