import pytest

from lsmdb.sql.expressions import (
    InvalidLimitError,
    InvalidStatementError,
    ParseError,
    TokenStream,
    UnexpectedEofError,
    UnexpectedTokenError,
    parse_expression,
    token_description,
)
from lsmdb.sql.lexer import Span, Token, TokenKind, tokenize
from lsmdb.sql.nodes import (
    BinaryExpr,
    BinaryOp,
    CompoundIdentifier,
    Identifier,
    Literal,
    UnaryExpr,
    UnaryOp,
)


def stream_of(sql):
    return TokenStream(tokenize(sql))


def parse(sql):
    stream = stream_of(sql)
    expr = parse_expression(stream)
    return expr, stream


def test_multiplication_binds_tighter_than_addition():
    expr, stream = parse("1 + 2 * 3")
    assert expr == BinaryExpr(
        Literal(1), BinaryOp.ADD, BinaryExpr(Literal(2), BinaryOp.MULTIPLY, Literal(3))
    )
    assert stream.at_eof()


def test_subtraction_is_left_associative():
    expr, _ = parse("a - b - c")
    assert expr == BinaryExpr(
        BinaryExpr(Identifier("a"), BinaryOp.SUBTRACT, Identifier("b")),
        BinaryOp.SUBTRACT,
        Identifier("c"),
    )


def test_and_binds_tighter_than_or():
    expr, _ = parse("a OR b AND c")
    assert expr == BinaryExpr(
        Identifier("a"),
        BinaryOp.OR,
        BinaryExpr(Identifier("b"), BinaryOp.AND, Identifier("c")),
    )


def test_comparison_inside_and():
    expr, _ = parse("age >= 18 AND name != 'x'")
    assert expr == BinaryExpr(
        BinaryExpr(Identifier("age"), BinaryOp.GREATER_THAN_OR_EQUAL, Literal(18)),
        BinaryOp.AND,
        BinaryExpr(Identifier("name"), BinaryOp.NOT_EQUAL, Literal("x")),
    )


def test_parentheses_override_precedence():
    expr, _ = parse("(1 + 2) * 3")
    assert expr == BinaryExpr(
        BinaryExpr(Literal(1), BinaryOp.ADD, Literal(2)), BinaryOp.MULTIPLY, Literal(3)
    )


def test_unary_operators_nest():
    expr, _ = parse("NOT - x")
    assert expr == UnaryExpr(UnaryOp.NOT, UnaryExpr(UnaryOp.NEGATE, Identifier("x")))


def test_not_binds_tighter_than_comparison():
    expr, _ = parse("NOT a = b")
    assert expr == BinaryExpr(
        UnaryExpr(UnaryOp.NOT, Identifier("a")), BinaryOp.EQUAL, Identifier("b")
    )


def test_compound_identifier():
    expr, _ = parse("users.id")
    assert expr == CompoundIdentifier(("users", "id"))


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("'o''hara'", Literal("o'hara")),
        ("1.5", Literal(1.5)),
        ("TRUE", Literal(True)),
        ("false", Literal(False)),
        ("NULL", Literal(None)),
        ("42", Literal(42)),
    ],
)
def test_literals(sql, expected):
    expr, _ = parse(sql)
    assert expr == expected


def test_expression_stops_before_other_tokens():
    expr, stream = parse("id = 7 ORDER BY id")
    assert expr == BinaryExpr(Identifier("id"), BinaryOp.EQUAL, Literal(7))
    assert stream.peek().kind is TokenKind.ORDER


def test_missing_expression_reports_eof():
    with pytest.raises(UnexpectedTokenError) as info:
        parse_expression(stream_of(""))
    assert info.value.expected == "expression"
    assert info.value.found == "<eof>"


def test_unclosed_parenthesis():
    with pytest.raises(UnexpectedTokenError) as info:
        parse_expression(stream_of("(1"))
    assert info.value.expected == ")"
    assert info.value.found == "<eof>"


def test_unexpected_keyword_in_expression():
    with pytest.raises(UnexpectedTokenError) as info:
        parse_expression(stream_of("SELECT"))
    assert info.value.found == "SELECT"
    assert info.value.span == Span(0, 6)


def test_token_descriptions():
    tokens = tokenize("foo 7 'abc' 1.5 SELECT <=")
    described = [token_description(token) for token in tokens]
    assert described == [
        "identifier(foo)",
        "integer(7)",
        "string(abc)",
        "float(1.5)",
        "SELECT",
        "<=",
        "<eof>",
    ]


def test_stream_consume_and_expect():
    stream = stream_of("users ( x")
    assert stream.expect_identifier() == "users"
    assert not stream.consume_if(TokenKind.RPAREN)
    assert stream.consume_if(TokenKind.LPAREN)
    with pytest.raises(UnexpectedTokenError) as info:
        stream.expect(TokenKind.COMMA)
    assert info.value.expected == ","
    assert info.value.found == "identifier(x)"


def test_expect_identifier_rejects_keyword():
    with pytest.raises(UnexpectedTokenError) as info:
        stream_of("TABLE").expect_identifier()
    assert info.value.expected == "identifier"


def test_peek_past_end_raises_eof():
    stream = TokenStream([])
    assert not stream.at_eof()
    with pytest.raises(UnexpectedEofError):
        stream.peek()


def test_parse_literal_on_empty_stream():
    with pytest.raises(UnexpectedTokenError) as info:
        TokenStream([]).parse_literal()
    assert info.value.found == "<eof>"
    assert info.value.span == Span(0, 0)


def test_parse_literal_rejects_identifier_without_consuming():
    stream = stream_of("name")
    with pytest.raises(UnexpectedTokenError) as info:
        stream.parse_literal()
    assert info.value.expected == "literal"
    assert stream.peek().kind is TokenKind.IDENTIFIER


def test_consume_literal_returns_none_for_non_literal():
    stream = stream_of("( 3")
    assert stream.consume_literal() is None
    stream.advance()
    assert stream.consume_literal() == Literal(3)
    assert stream.at_eof()


def test_error_messages():
    span = Span(1, 2)
    assert str(UnexpectedEofError()) == "unexpected end of input"
    assert str(InvalidStatementError("no statement found")) == (
        "invalid statement: no statement found"
    )
    limit_error = InvalidLimitError("-1", span)
    assert limit_error.value == "-1"
    assert str(limit_error).endswith(": -1")
    token_error = UnexpectedTokenError("identifier", "<eof>", span)
    assert str(token_error).endswith("expected identifier, found <eof>")
    for error in (limit_error, token_error, UnexpectedEofError()):
        assert isinstance(error, ParseError)


def test_token_description_of_eof_token():
    assert token_description(Token(TokenKind.EOF, Span(0, 0))) == "<eof>"