"""Statement grammar of the SQL dialect."""

from __future__ import annotations

from typing import Callable

from lsmdb.sql.expressions import (
    InvalidLimitError,
    InvalidStatementError,
    ParseError,
    TokenStream,
    UnexpectedTokenError,
    parse_expression,
    token_description,
)
from lsmdb.sql.lexer import LexError, TokenKind, tokenize
from lsmdb.sql.nodes import (
    Assignment,
    BeginStatement,
    ColumnDef,
    ColumnType,
    CommitStatement,
    CreateTableStatement,
    DeleteStatement,
    DropTableStatement,
    Expr,
    InsertStatement,
    IsolationLevel,
    OrderByExpr,
    RollbackStatement,
    SelectItem,
    SelectStatement,
    SortDirection,
    Statement,
    TableRef,
    UpdateStatement,
    Wildcard,
)

_COLUMN_TYPES: dict[TokenKind, ColumnType] = {
    TokenKind.INTEGER_TYPE: ColumnType.INTEGER,
    TokenKind.BIGINT_TYPE: ColumnType.BIGINT,
    TokenKind.FLOAT_TYPE: ColumnType.FLOAT,
    TokenKind.TEXT_TYPE: ColumnType.TEXT,
    TokenKind.BOOLEAN_TYPE: ColumnType.BOOLEAN,
    TokenKind.BLOB_TYPE: ColumnType.BLOB,
    TokenKind.TIMESTAMP_TYPE: ColumnType.TIMESTAMP,
}


def parse_sql(sql: str) -> list[Statement]:
    """Parse one or more semicolon-separated statements."""
    try:
        tokens = tokenize(sql)
    except LexError as err:
        raise ParseError(f"lexing failed: {err}") from err

    stream = TokenStream(tokens)
    statements: list[Statement] = []
    while not stream.at_eof():
        _skip_semicolons(stream)
        if stream.at_eof():
            break
        statements.append(_parse_statement(stream))
        _skip_semicolons(stream)

    if not statements:
        raise InvalidStatementError("no statement found")
    return statements


def parse_statement(sql: str) -> Statement:
    """Parse text that must hold exactly one statement."""
    statements = parse_sql(sql)
    if not statements:
        raise InvalidStatementError("no statement found")
    if len(statements) > 1:
        raise InvalidStatementError("expected exactly one statement")
    return statements[0]


def _skip_semicolons(stream: TokenStream) -> None:
    while stream.consume_if(TokenKind.SEMICOLON):
        pass


def _comma_separated(stream: TokenStream, parse_item: Callable[[TokenStream], object]) -> list:
    items = [parse_item(stream)]
    while stream.consume_if(TokenKind.COMMA):
        items.append(parse_item(stream))
    return items


def _identifier(stream: TokenStream) -> str:
    return stream.expect_identifier()


def _parse_statement(stream: TokenStream) -> Statement:
    for kind, handler in _STATEMENT_PARSERS.items():
        if stream.consume_if(kind):
            return handler(stream)
    token = stream.peek()
    raise UnexpectedTokenError("a SQL statement", token_description(token), token.span)


def _parse_create_table(stream: TokenStream) -> Statement:
    stream.expect(TokenKind.TABLE)
    name = stream.expect_identifier()
    stream.expect(TokenKind.LPAREN)

    columns: list[ColumnDef] = []
    primary_key: list[str] = []
    parsed_pk = False
    while True:
        if stream.consume_if(TokenKind.PRIMARY):
            if parsed_pk:
                raise InvalidStatementError(
                    "CREATE TABLE cannot define PRIMARY KEY more than once"
                )
            stream.expect(TokenKind.KEY)
            stream.expect(TokenKind.LPAREN)
            primary_key = _comma_separated(stream, _identifier)
            stream.expect(TokenKind.RPAREN)
            parsed_pk = True
        else:
            columns.append(_parse_column_def(stream))
        if not stream.consume_if(TokenKind.COMMA):
            break

    stream.expect(TokenKind.RPAREN)
    if not parsed_pk:
        raise InvalidStatementError("CREATE TABLE requires a PRIMARY KEY clause")
    return CreateTableStatement(name=name, columns=columns, primary_key=primary_key)


def _parse_column_def(stream: TokenStream) -> ColumnDef:
    name = stream.expect_identifier()
    column_type = _parse_column_type(stream)

    nullable = True
    if stream.consume_if(TokenKind.NOT):
        stream.expect(TokenKind.NULL)
        nullable = False

    default = stream.parse_literal() if stream.consume_if(TokenKind.DEFAULT) else None
    return ColumnDef(name=name, column_type=column_type, nullable=nullable, default=default)


def _parse_column_type(stream: TokenStream) -> ColumnType:
    token = stream.peek()
    column_type = _COLUMN_TYPES.get(token.kind)
    if column_type is None:
        raise UnexpectedTokenError("column type", token_description(token), token.span)
    stream.advance()
    return column_type


def _parse_drop_table(stream: TokenStream) -> Statement:
    stream.expect(TokenKind.TABLE)
    return DropTableStatement(name=stream.expect_identifier())


def _parse_insert(stream: TokenStream) -> Statement:
    stream.expect(TokenKind.INTO)
    table = TableRef(stream.expect_identifier())
    stream.expect(TokenKind.LPAREN)
    columns = _comma_separated(stream, _identifier)
    stream.expect(TokenKind.RPAREN)
    stream.expect(TokenKind.VALUES)
    stream.expect(TokenKind.LPAREN)
    values = _comma_separated(stream, parse_expression)
    stream.expect(TokenKind.RPAREN)
    return InsertStatement(table=table, columns=columns, values=values)


def _parse_where(stream: TokenStream) -> Expr | None:
    if stream.consume_if(TokenKind.WHERE):
        return parse_expression(stream)
    return None


def _parse_order_item(stream: TokenStream) -> OrderByExpr:
    expr = parse_expression(stream)
    if stream.consume_if(TokenKind.DESC):
        return OrderByExpr(expr, SortDirection.DESC)
    stream.consume_if(TokenKind.ASC)
    return OrderByExpr(expr, SortDirection.ASC)


def _parse_limit(stream: TokenStream) -> int:
    token = stream.peek()
    if token.kind is TokenKind.INTEGER:
        if token.value >= 0:
            stream.advance()
            return token.value
        raise InvalidLimitError(str(token.value), token.span)
    raise InvalidLimitError(token_description(token), token.span)


def _parse_projection(stream: TokenStream) -> list[SelectItem]:
    if stream.consume_if(TokenKind.ASTERISK):
        return [Wildcard()]
    return _comma_separated(stream, parse_expression)


def _parse_select(stream: TokenStream) -> Statement:
    projection = _parse_projection(stream)
    stream.expect(TokenKind.FROM)
    from_table = TableRef(stream.expect_identifier())
    where_clause = _parse_where(stream)

    order_by: list[OrderByExpr] = []
    if stream.consume_if(TokenKind.ORDER):
        stream.expect(TokenKind.BY)
        order_by = _comma_separated(stream, _parse_order_item)

    limit = _parse_limit(stream) if stream.consume_if(TokenKind.LIMIT) else None
    return SelectStatement(
        projection=projection,
        from_table=from_table,
        where_clause=where_clause,
        order_by=order_by,
        limit=limit,
    )


def _parse_assignment(stream: TokenStream) -> Assignment:
    column = stream.expect_identifier()
    stream.expect(TokenKind.EQUAL)
    return Assignment(column=column, value=parse_expression(stream))


def _parse_update(stream: TokenStream) -> Statement:
    table = TableRef(stream.expect_identifier())
    stream.expect(TokenKind.SET)
    assignments = _comma_separated(stream, _parse_assignment)
    return UpdateStatement(
        table=table, assignments=assignments, where_clause=_parse_where(stream)
    )


def _parse_delete(stream: TokenStream) -> Statement:
    stream.expect(TokenKind.FROM)
    table = TableRef(stream.expect_identifier())
    return DeleteStatement(table=table, where_clause=_parse_where(stream))


def _parse_begin(stream: TokenStream) -> Statement:
    if stream.consume_if(TokenKind.ISOLATION):
        stream.expect(TokenKind.LEVEL)
        stream.expect(TokenKind.SNAPSHOT)
        return BeginStatement(IsolationLevel.SNAPSHOT)
    return BeginStatement()


_STATEMENT_PARSERS: dict[TokenKind, Callable[[TokenStream], Statement]] = {
    TokenKind.CREATE: _parse_create_table,
    TokenKind.DROP: _parse_drop_table,
    TokenKind.INSERT: _parse_insert,
    TokenKind.SELECT: _parse_select,
    TokenKind.UPDATE: _parse_update,
    TokenKind.DELETE: _parse_delete,
    TokenKind.BEGIN: _parse_begin,
    TokenKind.COMMIT: lambda stream: CommitStatement(),
    TokenKind.ROLLBACK: lambda stream: RollbackStatement(),
}