"""Token stream, parse errors and the expression grammar of the SQL dialect."""

from __future__ import annotations

from decimal import Decimal

from lsmdb.sql.lexer import Span, Token, TokenKind
from lsmdb.sql.nodes import (
    BinaryExpr,
    BinaryOp,
    CompoundIdentifier,
    Expr,
    Identifier,
    Literal,
    UnaryExpr,
    UnaryOp,
)


def _format_span(span: Span) -> str:
    return f"Span {{ start: {span.start}, end: {span.end} }}"


class ParseError(Exception):
    """SQL text could not be parsed."""


class UnexpectedTokenError(ParseError):
    def __init__(self, expected: str, found: str, span: Span) -> None:
        super().__init__(
            f"unexpected token at {_format_span(span)}: expected {expected}, found {found}"
        )
        self.expected = expected
        self.found = found
        self.span = span


class UnexpectedEofError(ParseError):
    def __init__(self) -> None:
        super().__init__("unexpected end of input")


class InvalidLimitError(ParseError):
    def __init__(self, value: str, span: Span) -> None:
        super().__init__(f"invalid LIMIT value at {_format_span(span)}: {value}")
        self.value = value
        self.span = span


class InvalidStatementError(ParseError):
    def __init__(self, message: str) -> None:
        super().__init__(f"invalid statement: {message}")
        self.message = message


def _format_float(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        return format(Decimal(text), "f")
    return text


def token_description(token: Token) -> str:
    """Human-readable description of a token for error messages."""
    kind = token.kind
    if kind is TokenKind.IDENTIFIER:
        return f"identifier({token.value})"
    if kind is TokenKind.INTEGER:
        return f"integer({token.value})"
    if kind is TokenKind.FLOAT:
        return f"float({_format_float(token.value)})"
    if kind is TokenKind.STRING:
        return f"string({token.value})"
    return kind.value


_LITERAL_KINDS = {
    TokenKind.INTEGER,
    TokenKind.FLOAT,
    TokenKind.STRING,
}

_CONSTANT_LITERALS = {
    TokenKind.TRUE: True,
    TokenKind.FALSE: False,
    TokenKind.NULL: None,
}


class TokenStream:
    """Cursor over a list of tokens."""

    def __init__(self, tokens) -> None:
        self._tokens: list[Token] = list(tokens)
        self._index = 0

    def _current(self) -> Token | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def peek(self) -> Token:
        """Return the current token; raise UnexpectedEofError past the end."""
        token = self._current()
        if token is None:
            raise UnexpectedEofError()
        return token

    def advance(self) -> None:
        self._index += 1

    def at_eof(self) -> bool:
        token = self._current()
        return token is not None and token.kind is TokenKind.EOF

    def consume_if(self, kind: TokenKind) -> bool:
        """Consume the current token if it has the given kind."""
        token = self._current()
        if token is not None and token.kind is kind:
            self.advance()
            return True
        return False

    def expect(self, kind: TokenKind) -> None:
        if self.consume_if(kind):
            return
        token = self.peek()
        raise UnexpectedTokenError(kind.value, token_description(token), token.span)

    def expect_identifier(self) -> str:
        token = self.peek()
        if token.kind is TokenKind.IDENTIFIER:
            self.advance()
            return token.value
        raise UnexpectedTokenError("identifier", token_description(token), token.span)

    def consume_literal(self) -> Literal | None:
        """Consume a literal token and return it, or None if there is none."""
        token = self._current()
        if token is None:
            return None
        if token.kind in _LITERAL_KINDS:
            literal = Literal(token.value)
        elif token.kind in _CONSTANT_LITERALS:
            literal = Literal(_CONSTANT_LITERALS[token.kind])
        else:
            return None
        self.advance()
        return literal

    def parse_literal(self) -> Literal:
        literal = self.consume_literal()
        if literal is not None:
            return literal
        token = self._current() or Token(TokenKind.EOF, Span(0, 0))
        raise UnexpectedTokenError("literal", token_description(token), token.span)


# Binary operator levels from loosest to tightest binding.
_BINARY_LEVELS: tuple[dict[TokenKind, BinaryOp], ...] = (
    {TokenKind.OR: BinaryOp.OR},
    {TokenKind.AND: BinaryOp.AND},
    {
        TokenKind.EQUAL: BinaryOp.EQUAL,
        TokenKind.NOT_EQUAL: BinaryOp.NOT_EQUAL,
        TokenKind.LESS_THAN: BinaryOp.LESS_THAN,
        TokenKind.LESS_THAN_OR_EQUAL: BinaryOp.LESS_THAN_OR_EQUAL,
        TokenKind.GREATER_THAN: BinaryOp.GREATER_THAN,
        TokenKind.GREATER_THAN_OR_EQUAL: BinaryOp.GREATER_THAN_OR_EQUAL,
    },
    {TokenKind.PLUS: BinaryOp.ADD, TokenKind.MINUS: BinaryOp.SUBTRACT},
    {TokenKind.ASTERISK: BinaryOp.MULTIPLY, TokenKind.SLASH: BinaryOp.DIVIDE},
)

_UNARY_OPS = {TokenKind.NOT: UnaryOp.NOT, TokenKind.MINUS: UnaryOp.NEGATE}


def parse_expression(stream: TokenStream) -> Expr:
    """Parse one expression from the stream, leaving the rest unconsumed."""
    return _parse_binary(stream, 0)


def _parse_binary(stream: TokenStream, level: int) -> Expr:
    if level == len(_BINARY_LEVELS):
        return _parse_unary(stream)

    operators = _BINARY_LEVELS[level]
    left = _parse_binary(stream, level + 1)
    while True:
        token = stream._current()
        op = operators.get(token.kind) if token is not None else None
        if op is None:
            return left
        stream.advance()
        right = _parse_binary(stream, level + 1)
        left = BinaryExpr(left, op, right)


def _parse_unary(stream: TokenStream) -> Expr:
    token = stream._current()
    op = _UNARY_OPS.get(token.kind) if token is not None else None
    if op is not None:
        stream.advance()
        return UnaryExpr(op, _parse_unary(stream))
    return _parse_primary(stream)


def _parse_primary(stream: TokenStream) -> Expr:
    if stream.consume_if(TokenKind.LPAREN):
        expr = parse_expression(stream)
        stream.expect(TokenKind.RPAREN)
        return expr

    literal = stream.consume_literal()
    if literal is not None:
        return literal

    token = stream.peek()
    if token.kind is TokenKind.IDENTIFIER:
        return _parse_identifier(stream)

    raise UnexpectedTokenError("expression", token_description(token), token.span)


def _parse_identifier(stream: TokenStream) -> Expr:
    parts = [stream.expect_identifier()]
    while stream.consume_if(TokenKind.DOT):
        parts.append(stream.expect_identifier())
    if len(parts) == 1:
        return Identifier(parts[0])
    return CompoundIdentifier(tuple(parts))