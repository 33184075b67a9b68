"""
Parser for the expression language.

Single-pass recursive descent over a TokenStream, pulling one token at a
time and pushing back whatever a rule does not consume.

Grammar (precedence lowest to highest):

    expr       ::= condExpr
    condExpr   ::= orExpr ['?' expr ':' expr]
    orExpr     ::= andExpr ['||' orExpr]
    andExpr    ::= cmpExpr ['&&' andExpr]
    cmpExpr    ::= concatExpr [('=='|'!='|'>='|'>'|'<='|'<'|'like'|'in') concatExpr]
    concatExpr ::= atom ('+' concatExpr)*
    atom       ::= number | string | symbol | '(' expr ')' | '[' arglist ']'
    symbol     ::= ident ['.' symbol] ['(' arglist ')']
    arglist    ::= expr (',' expr)*

Running out of input ends the current rule and returns what has been built
so far; only an unfinished list literal or a conditional without ':' is an
error. Use ``strict=True`` to reject tokens left after the expression.
"""

from typing import Callable, List, Optional, Tuple

from .ast import (
    SCOPE_TARGETS,
    AndNode,
    AstNode,
    CompareNode,
    ConcatNode,
    ConditionalNode,
    FunctionCallNode,
    InNode,
    LikeNode,
    ListNode,
    OrNode,
    ScalarNode,
    ScopedFunctionCallNode,
    SymbolNode,
    calculate_ast_depth,
    count_ast_nodes,
)
from .compare import COMPARE_OPERATORS
from .errors import LimitExceededError, ParseError
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_ast_depth,
    check_ast_node_count,
    check_function_arg_count,
    check_list_length,
)
from .tokenizer import Token, TokenStream, TokenType, Tokenizer

BinaryFactory = Callable[..., AstNode]


class Parser:
    """Parser for expression strings."""

    def __init__(
        self,
        source: str,
        limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
        include_whitespace: bool = False,
    ):
        self._source = source
        self._limits = limits
        self._stream = TokenStream(
            Tokenizer(source, include_whitespace, limits), source
        )
        self._depth = 0
        self._deepest = 0

    def parse(self, strict: bool = False) -> AstNode:
        """Parses the source into an expression tree."""
        try:
            ast = self._parse_expr()
        except RecursionError as e:
            # Nesting allowed by max_ast_depth but not by the interpreter stack
            raise LimitExceededError(
                "max_ast_depth", self._limits.max_ast_depth, self._deepest
            ) from e

        if strict:
            token = self._next()
            if token is not None:
                raise self._error(f"Unexpected token: {token.literal}", token, ast)

        # Validate tree limits
        check_ast_node_count(count_ast_nodes(ast), self._limits)
        check_ast_depth(calculate_ast_depth(ast), self._limits)

        return ast

    def at_end(self) -> bool:
        """True if every token of the source has been consumed."""
        token = self._next()
        if token is None:
            return True
        self._stream.push_back(token)
        return False

    # ============================================================
    # Token Helpers
    # ============================================================

    def _next(self) -> Optional[Token]:
        """Next token, or None at the end of input."""
        token = self._stream.next_token()
        if token is None or token.type is TokenType.EOF:
            return None
        return token

    def _error(
        self, message: str, token: Optional[Token], partial: Optional[AstNode] = None
    ) -> ParseError:
        position = token.offset if token is not None else len(self._source)
        return ParseError(message, position, self._source, partial)

    def _fold_right(
        self, operands: List[AstNode], positions: List[int], factory: BinaryFactory
    ) -> AstNode:
        node = operands[-1]
        for index in range(len(operands) - 2, -1, -1):
            node = factory(operands[index], node, position=positions[index])
        return node

    # ============================================================
    # Expression Parsing (by precedence, lowest to highest)
    # ============================================================

    def _parse_expr(self) -> AstNode:
        self._depth += 1
        self._deepest = max(self._deepest, self._depth)
        try:
            check_ast_depth(self._depth, self._limits)
            return self._parse_conditional()
        finally:
            self._depth -= 1

    def _parse_conditional(self) -> AstNode:
        """Parses conditional expressions: condition ? consequent : alternate"""
        condition = self._parse_or()

        token = self._next()
        if token is None:
            return condition
        if not token.is_operator("?"):
            self._stream.push_back(token)
            return condition

        consequent = self._parse_expr()

        colon = self._next()
        if colon is None or not colon.is_operator(":"):
            partial = ConditionalNode(
                condition=condition,
                consequent=consequent,
                alternate=ScalarNode(raw="", payload=None),
                position=token.offset,
            )
            raise self._error("Expected ':' in conditional expression", colon, partial)

        alternate = self._parse_expr()
        return ConditionalNode(
            condition=condition,
            consequent=consequent,
            alternate=alternate,
            position=token.offset,
        )

    def _parse_chain(
        self, operator: str, parse_operand: Callable[[], AstNode], factory: BinaryFactory
    ) -> AstNode:
        """Parses ``operand (operator operand)*`` into a right-nested chain."""
        operands = [parse_operand()]
        positions: List[int] = []

        while True:
            token = self._next()
            if token is None:
                break
            if not token.is_operator(operator):
                self._stream.push_back(token)
                break
            positions.append(token.offset)
            operands.append(parse_operand())

        return self._fold_right(operands, positions, factory)

    def _parse_or(self) -> AstNode:
        """Parses logical OR: ||"""
        return self._parse_chain("||", self._parse_and, OrNode)

    def _parse_and(self) -> AstNode:
        """Parses logical AND: &&"""
        return self._parse_chain("&&", self._parse_comparison, AndNode)

    def _parse_comparison(self) -> AstNode:
        """Parses one comparison: == != >= > <= < like in"""
        left = self._parse_concat()

        token = self._next()
        if token is None:
            return left

        if token.type is TokenType.OPERATOR and token.literal in COMPARE_OPERATORS:
            right = self._parse_concat()
            return CompareNode(
                operator=token.literal,  # type: ignore[arg-type]
                left=left,
                right=right,
                position=token.offset,
            )

        if token.is_keyword("like"):
            right = self._parse_concat()
            return LikeNode(text=left, pattern=right, position=token.offset)

        if token.is_keyword("in"):
            right = self._parse_concat()
            return InNode(probe=left, candidates=right, position=token.offset)

        self._stream.push_back(token)
        return left

    def _parse_concat(self) -> AstNode:
        """Parses concatenation: +"""
        return self._parse_chain("+", self._parse_atom, ConcatNode)

    def _parse_atom(self) -> AstNode:
        """Parses literals, symbols, calls, sub-expressions and lists."""
        token = self._next()
        if token is None:
            return ScalarNode(raw="", payload=None, position=len(self._source))

        if token.type in (TokenType.NUMBER, TokenType.STRING):
            return ScalarNode(raw=token.literal, payload=token.value, position=token.offset)

        if token.type is TokenType.IDENTIFIER:
            return self._parse_identifier(token)

        if token.is_operator("("):
            sub = self._parse_expr()
            closing = self._next()
            if closing is not None and not closing.is_operator(")"):
                raise self._error(
                    f"Expected ')' after expression, got {closing.literal}", closing, sub
                )
            return sub

        if token.is_operator("["):
            return self._parse_list(token)

        raise self._error(
            f"Unexpected operator when expecting expression term: {token.literal}",
            token,
        )

    def _parse_list(self, opening: Token) -> AstNode:
        """Parses a list literal; the opening bracket is already consumed."""
        elements: List[AstNode] = []

        def unterminated() -> ParseError:
            partial = ListNode(elements=tuple(elements), position=opening.offset)
            return self._error("Unterminated list", opening, partial)

        token = self._next()
        if token is None:
            raise unterminated()
        if token.is_operator("]"):
            return ListNode(elements=(), position=opening.offset)
        self._stream.push_back(token)

        while True:
            elements.append(self._parse_expr())
            check_list_length(len(elements), self._limits)

            token = self._next()
            if token is None:
                raise unterminated()
            if token.is_operator("]"):
                break
            if not token.is_operator(","):
                partial = ListNode(elements=tuple(elements), position=opening.offset)
                raise self._error(
                    f"Expected ',' or ']' in list, got {token.literal}", token, partial
                )

            # A trailing comma before the closing bracket is accepted
            token = self._next()
            if token is None:
                raise unterminated()
            if token.is_operator("]"):
                break
            self._stream.push_back(token)

        return ListNode(elements=tuple(elements), position=opening.offset)

    def _parse_identifier(self, token: Token) -> AstNode:
        """
        Parses ``ident ['.' ident]* ['(' arglist ')']``.

        A '.' after a call's closing paren continues the chain with the
        call as the scope of the next call.
        """
        node: AstNode = SymbolNode(name=token.literal, position=token.offset)

        while True:
            token = self._next()
            if token is None:
                return node

            if token.is_operator("."):
                name_token = self._next()
                if name_token is None:
                    return node
                if name_token.type is not TokenType.IDENTIFIER:
                    raise self._error(
                        f"Expected identifier after '.', got {name_token.literal}",
                        name_token,
                        node,
                    )
                if isinstance(node, SymbolNode):
                    node = SymbolNode(
                        name=name_token.literal, scope=node, position=name_token.offset
                    )
                    continue

                opening = self._next()
                if opening is None or not opening.is_operator("("):
                    raise self._error(
                        f"Invalid scope target: {node.literal()}.{name_token.literal} "
                        "must be a call",
                        name_token,
                        node,
                    )
                node = self._parse_scoped_call(
                    name_token.literal, name_token.offset, node
                )
                continue

            if token.is_operator("(") and isinstance(node, SymbolNode):
                if node.scope is None:
                    args = self._parse_arguments(node)
                    node = FunctionCallNode(callee=node, args=args, position=node.position)
                else:
                    node = self._parse_scoped_call(node.name, node.position, node.scope)
                continue

            self._stream.push_back(token)
            return node

    def _parse_scoped_call(self, name: str, position: int, scope: AstNode) -> AstNode:
        if not isinstance(scope, SCOPE_TARGETS):
            raise ParseError(
                f"Invalid scope target: {scope.literal()}", position, self._source, scope
            )

        args = self._parse_arguments(scope)
        return ScopedFunctionCallNode(
            name=name, scope=scope, args=args, position=position
        )

    def _parse_arguments(self, owner: AstNode) -> Tuple[AstNode, ...]:
        """Parses a call's argument list; the opening paren is already consumed."""
        args: List[AstNode] = []

        token = self._next()
        if token is None or token.is_operator(")"):
            return ()
        self._stream.push_back(token)

        while True:
            args.append(self._parse_expr())
            check_function_arg_count(len(args), self._limits)

            token = self._next()
            if token is None or token.is_operator(")"):
                return tuple(args)
            if not token.is_operator(","):
                raise self._error(
                    f"Expected ',' or ')' after argument, got {token.literal}",
                    token,
                    owner,
                )


def parse(
    source: str,
    limits: ExpressionLimits = DEFAULT_EXPRESSION_LIMITS,
    strict: bool = False,
) -> AstNode:
    """
    Parses an expression string into an expression tree.

    Args:
        source: The expression string to parse
        limits: Optional expression limits
        strict: Reject tokens left over after a complete expression

    Returns:
        The parsed tree

    Raises:
        LexError: If tokenization fails
        ParseError: If parsing fails
        LimitExceededError: If the expression exceeds a limit
    """
    parser = Parser(source, limits)
    return parser.parse(strict=strict)
