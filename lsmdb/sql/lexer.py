"""Tokenizer for the SQL dialect."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union

_I64_MAX = 2**63 - 1


class TokenKind(enum.Enum):
    """Token kinds; each value is the name shown in error messages."""

    IDENTIFIER = "identifier"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"

    CREATE = "CREATE"
    TABLE = "TABLE"
    DROP = "DROP"
    INSERT = "INSERT"
    INTO = "INTO"
    VALUES = "VALUES"
    SELECT = "SELECT"
    FROM = "FROM"
    WHERE = "WHERE"
    ORDER = "ORDER"
    BY = "BY"
    ASC = "ASC"
    DESC = "DESC"
    LIMIT = "LIMIT"
    UPDATE = "UPDATE"
    SET = "SET"
    DELETE = "DELETE"
    BEGIN = "BEGIN"
    ISOLATION = "ISOLATION"
    LEVEL = "LEVEL"
    SNAPSHOT = "SNAPSHOT"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"
    PRIMARY = "PRIMARY"
    KEY = "KEY"
    NOT = "NOT"
    NULL = "NULL"
    DEFAULT = "DEFAULT"
    AND = "AND"
    OR = "OR"
    TRUE = "TRUE"
    FALSE = "FALSE"
    INTEGER_TYPE = "INTEGER"
    BIGINT_TYPE = "BIGINT"
    FLOAT_TYPE = "FLOAT"
    TEXT_TYPE = "TEXT"
    BOOLEAN_TYPE = "BOOLEAN"
    BLOB_TYPE = "BLOB"
    TIMESTAMP_TYPE = "TIMESTAMP"

    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    DOT = "."
    SEMICOLON = ";"
    ASTERISK = "*"
    PLUS = "+"
    MINUS = "-"
    SLASH = "/"
    EQUAL = "="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="

    EOF = "<eof>"


_KEYWORDS: dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if kind.value.isalpha() and kind.value.isupper()
}

_OPERATORS: dict[str, TokenKind] = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
    ".": TokenKind.DOT,
    ";": TokenKind.SEMICOLON,
    "*": TokenKind.ASTERISK,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "/": TokenKind.SLASH,
    "=": TokenKind.EQUAL,
    "!=": TokenKind.NOT_EQUAL,
    "<>": TokenKind.NOT_EQUAL,
    "<": TokenKind.LESS_THAN,
    "<=": TokenKind.LESS_THAN_OR_EQUAL,
    ">": TokenKind.GREATER_THAN,
    ">=": TokenKind.GREATER_THAN_OR_EQUAL,
}

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<string>'(?:[^']|'')*')
    | (?P<number>[0-9]+(?:\.[0-9]+)?)
    | (?P<word>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<operator><=|<>|>=|!=|[(),.;*+\-/=<>])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Span:
    """Byte offsets of a token in the UTF-8 encoded input."""

    start: int
    end: int


TokenValue = Union[str, int, float, None]


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    span: Span
    value: TokenValue = None


class LexError(Exception):
    """The input could not be tokenized."""


class UnexpectedCharacterError(LexError):
    def __init__(self, ch: str, position: int) -> None:
        super().__init__(f"unexpected character '{ch}' at byte {position}")
        self.ch = ch
        self.position = position


class UnterminatedStringError(LexError):
    def __init__(self, position: int) -> None:
        super().__init__(f"unterminated string starting at byte {position}")
        self.position = position


class InvalidNumberError(LexError):
    def __init__(self, literal: str, position: int) -> None:
        super().__init__(f"invalid numeric literal '{literal}' at byte {position}")
        self.literal = literal
        self.position = position


def _token_from_match(group: str, text: str, start: int, end: int) -> Token:
    span = Span(start, end)
    if group == "string":
        return Token(TokenKind.STRING, span, text[1:-1].replace("''", "'"))
    if group == "number":
        if "." in text:
            return Token(TokenKind.FLOAT, span, float(text))
        value = int(text)
        if value > _I64_MAX:
            raise InvalidNumberError(text, start)
        return Token(TokenKind.INTEGER, span, value)
    if group == "word":
        keyword = _KEYWORDS.get(text.upper())
        if keyword is not None:
            return Token(keyword, span)
        return Token(TokenKind.IDENTIFIER, span, text)
    return Token(_OPERATORS[text], span)


def tokenize(text: str) -> list[Token]:
    """Split SQL text into tokens, ending with an EOF token."""
    tokens: list[Token] = []
    index = 0
    byte_pos = 0
    while index < len(text):
        match = _TOKEN_PATTERN.match(text, index)
        if match is None:
            ch = text[index]
            if ch == "'":
                raise UnterminatedStringError(byte_pos)
            raise UnexpectedCharacterError(ch, byte_pos)

        matched = match.group()
        end = byte_pos + len(matched.encode("utf-8"))
        if match.lastgroup != "space":
            tokens.append(_token_from_match(match.lastgroup, matched, byte_pos, end))
        index = match.end()
        byte_pos = end

    tokens.append(Token(TokenKind.EOF, Span(byte_pos, byte_pos)))
    return tokens