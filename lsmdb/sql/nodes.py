"""Syntax tree of the supported SQL dialect."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union


class ColumnType(enum.Enum):
    """Column types a table may declare."""

    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    BLOB = "BLOB"
    TIMESTAMP = "TIMESTAMP"


class IsolationLevel(enum.Enum):
    SNAPSHOT = "SNAPSHOT"


class SortDirection(enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class UnaryOp(enum.Enum):
    NOT = "NOT"
    NEGATE = "-"


class BinaryOp(enum.Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    EQUAL = "="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="
    AND = "AND"
    OR = "OR"


LiteralValue = Union[int, float, str, bool, None]


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class CompoundIdentifier:
    parts: tuple[str, ...]


@dataclass(frozen=True)
class Literal:
    """A constant; None stands for SQL NULL."""

    value: LiteralValue


@dataclass(frozen=True)
class UnaryExpr:
    op: UnaryOp
    expr: "Expr"


@dataclass(frozen=True)
class BinaryExpr:
    left: "Expr"
    op: BinaryOp
    right: "Expr"


Expr = Union[Identifier, CompoundIdentifier, Literal, UnaryExpr, BinaryExpr]


@dataclass(frozen=True)
class TableRef:
    name: str


@dataclass(frozen=True)
class ColumnDef:
    name: str
    column_type: ColumnType
    nullable: bool = True
    default: Literal | None = None


@dataclass(frozen=True)
class Wildcard:
    """The ``*`` projection."""


SelectItem = Union[Wildcard, Identifier, CompoundIdentifier, Literal, UnaryExpr, BinaryExpr]


@dataclass(frozen=True)
class OrderByExpr:
    expr: Expr
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class Assignment:
    column: str
    value: Expr


@dataclass(frozen=True)
class CreateTableStatement:
    name: str
    columns: list[ColumnDef] = field(default_factory=list)
    primary_key: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DropTableStatement:
    name: str


@dataclass(frozen=True)
class InsertStatement:
    table: TableRef
    columns: list[str] = field(default_factory=list)
    values: list[Expr] = field(default_factory=list)


@dataclass(frozen=True)
class SelectStatement:
    projection: list[SelectItem]
    from_table: TableRef
    where_clause: Expr | None = None
    order_by: list[OrderByExpr] = field(default_factory=list)
    limit: int | None = None


@dataclass(frozen=True)
class UpdateStatement:
    table: TableRef
    assignments: list[Assignment] = field(default_factory=list)
    where_clause: Expr | None = None


@dataclass(frozen=True)
class DeleteStatement:
    table: TableRef
    where_clause: Expr | None = None


@dataclass(frozen=True)
class BeginStatement:
    isolation_level: IsolationLevel | None = None


@dataclass(frozen=True)
class CommitStatement:
    """COMMIT of the open transaction."""


@dataclass(frozen=True)
class RollbackStatement:
    """ROLLBACK of the open transaction."""


Statement = Union[
    CreateTableStatement,
    DropTableStatement,
    InsertStatement,
    SelectStatement,
    UpdateStatement,
    DeleteStatement,
    BeginStatement,
    CommitStatement,
    RollbackStatement,
]