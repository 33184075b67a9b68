"""
Tokenizer (lexer) for the expression language.

The tokenizer is a lazy state machine: every call to ``next()`` scans just
enough input to produce one token. The parser pulls tokens one at a time
through a TokenStream, which adds an unbounded pushback buffer on top.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional

from .errors import LexError
from .limits import ExpressionLimits, check_expression_length


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    ERROR = "ERROR"
    EOF = "EOF"
    WHITESPACE = "WHITESPACE"
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"


@dataclass(frozen=True)
class Token:
    """A token produced by the tokenizer."""

    type: TokenType

    literal: str
    """Raw source slice."""

    value: Any
    """Decoded payload: int, float, str, or None."""

    line: int
    """1-based line of the token start."""

    offset: int
    """0-based character offset of the token start."""

    def is_operator(self, literal: str) -> bool:
        return self.type is TokenType.OPERATOR and self.literal == literal

    def is_keyword(self, literal: str) -> bool:
        return self.type is TokenType.IDENTIFIER and self.literal == literal


# Operators that are scanned greedily as a single token
DOUBLE_OPERATORS = frozenset({"==", "!=", "<=", ">=", "||", "&&"})

WHITESPACE_CHARS = " \t\r\n\u00a0"
DIGITS = "0123456789"
HEX_DIGITS = DIGITS + "abcdefABCDEF"
OCTAL_DIGITS = "01234567"
BINARY_DIGITS = "01"
IDENTIFIER_START = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"
IDENTIFIER_BODY = IDENTIFIER_START + DIGITS

_RADIX_PREFIXES = {
    "x": (16, HEX_DIGITS),
    "o": (8, OCTAL_DIGITS),
    "b": (2, BINARY_DIGITS),
}

_ESCAPES = {"n": "\n", "r": "\r", "t": "\t"}

INT64_MAX = 2**63 - 1


def _decode_number(text: str) -> Any:
    """Decodes a numeric literal, raising ValueError when it is malformed."""
    lowered = text.lower()
    if len(text) > 1 and lowered[0] == "0" and lowered[1] in _RADIX_PREFIXES:
        base, allowed = _RADIX_PREFIXES[lowered[1]]
        digits = text[2:]
        if not digits or any(ch not in allowed for ch in digits):
            raise ValueError(f"invalid base {base} digits")
        value = int(digits, base)
    elif "." in text:
        whole, _, fraction = text.partition(".")
        if not whole or any(ch not in DIGITS for ch in whole + fraction):
            raise ValueError("invalid float")
        return float(text)
    else:
        if any(ch not in DIGITS for ch in text):
            raise ValueError("invalid integer")
        value = int(text, 10)

    if value > INT64_MAX:
        raise ValueError("value out of range")
    return value


class Tokenizer:
    """Lazy tokenizer; iterate it to pull tokens."""

    def __init__(
        self,
        source: str,
        include_whitespace: bool = False,
        limits: Optional[ExpressionLimits] = None,
    ):
        check_expression_length(source, limits)
        self._source = source
        self._include_whitespace = include_whitespace
        self._start = 0
        self._start_line = 1
        self._position = 0
        self._line = 1
        self._finished = False

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        while not self._finished:
            token = self._scan_token()
            if token is not None:
                return token
        raise StopIteration

    @property
    def finished(self) -> bool:
        return self._finished

    def _is_at_end(self) -> bool:
        return self._position >= len(self._source)

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self._source[self._position]

    def _advance(self) -> str:
        ch = self._source[self._position]
        self._position += 1
        if ch == "\n":
            self._line += 1
        return ch

    def _eat(self, chars: str) -> None:
        while not self._is_at_end() and self._peek() in chars:
            self._advance()

    def _current(self) -> str:
        return self._source[self._start : self._position]

    def _make_token(self, token_type: TokenType, value: Any = None) -> Token:
        return Token(token_type, self._current(), value, self._start_line, self._start)

    def _error(self, message: str) -> Token:
        # An error ends the stream; nothing is scanned after it.
        self._finished = True
        return Token(TokenType.ERROR, self._current(), message, self._start_line, self._start)

    def _scan_token(self) -> Optional[Token]:
        self._start = self._position
        self._start_line = self._line

        if self._is_at_end():
            self._finished = True
            return Token(TokenType.EOF, "", None, self._line, self._position)

        ch = self._advance()

        if ch in WHITESPACE_CHARS:
            self._eat(WHITESPACE_CHARS)
            if self._include_whitespace:
                return self._make_token(TokenType.WHITESPACE)
            return None

        if ch in IDENTIFIER_START:
            self._eat(IDENTIFIER_BODY)
            return self._make_token(TokenType.IDENTIFIER, self._current())

        if ch in DIGITS:
            return self._scan_number()

        if ch == '"' or ch == "'":
            return self._scan_string(ch)

        return self._scan_operator(ch)

    def _scan_number(self) -> Token:
        # Letters and dots are swallowed so that '12ab' or '1.2.3' fail as a whole
        self._eat(IDENTIFIER_BODY + ".")
        text = self._current()
        try:
            value = _decode_number(text)
        except ValueError as e:
            return self._error(f"bad number syntax: {text!r} ({e})")
        return self._make_token(TokenType.NUMBER, value)

    def _scan_string(self, quote: str) -> Token:
        chars: List[str] = []

        while True:
            if self._is_at_end():
                return self._error("unterminated quoted string")
            ch = self._advance()
            if ch == quote:
                break
            if ch == "\n":
                return self._error("unterminated quoted string")
            if ch == "\\":
                if self._is_at_end() or self._peek() == "\n":
                    return self._error("unterminated quoted string")
                escaped = self._advance()
                chars.append(_ESCAPES.get(escaped, escaped))
            else:
                chars.append(ch)

        return self._make_token(TokenType.STRING, "".join(chars))

    def _scan_operator(self, ch: str) -> Token:
        if not self._is_at_end() and ch + self._peek() in DOUBLE_OPERATORS:
            self._advance()
        return self._make_token(TokenType.OPERATOR)


class TokenStream:
    """
    Pull interface over a token iterator with LIFO pushback.

    ``next_token()`` returns None once the underlying stream is finished.
    Whitespace tokens are skipped and an ERROR token is raised as LexError.
    """

    def __init__(self, tokens: Iterator[Token], source: Optional[str] = None):
        self._tokens = tokens
        self._source = source
        self._pushback: List[Token] = []
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished and not self._pushback

    def next_token(self) -> Optional[Token]:
        if self._pushback:
            return self._pushback.pop()

        while not self._finished:
            token = next(self._tokens, None)
            if token is None:
                self._finished = True
                break
            if token.type is TokenType.WHITESPACE:
                continue
            if token.type is TokenType.ERROR:
                self._finished = True
                raise LexError(token.value, token.line, token.offset, self._source)
            return token

        return None

    def push_back(self, token: Token) -> None:
        self._pushback.append(token)


def tokenize(
    source: str,
    limits: Optional[ExpressionLimits] = None,
    include_whitespace: bool = False,
) -> List[Token]:
    """
    Tokenizes an expression string into tokens.

    Args:
        source: The expression string to tokenize
        limits: Optional expression limits
        include_whitespace: Keep whitespace tokens in the result

    Returns:
        List of tokens, ending with a single EOF token

    Raises:
        LexError: If the expression contains an unterminated string or a
            malformed number
    """
    tokens: List[Token] = []
    for token in Tokenizer(source, include_whitespace, limits):
        if token.type is TokenType.ERROR:
            raise LexError(token.value, token.line, token.offset, source)
        tokens.append(token)
    return tokens
