"""Typed SQL expression tree.

Every node is a frozen dataclass tagged with an `ExpressionKind`. Nodes carry
values, never SQL text: dialect compilers turn them into SQL strings and
bound parameters, so a literal can never leak into the statement unquoted.

Typical usage:

- Column refs: `col("main_table", "customer_id")`
- Predicates: `Comparison(col("main_table", "customer_id"), "=", lit(0))`
- Conditionals: `Conditional(cond, lit(1), lit(2))`
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Tuple

__all__ = (
    "ExpressionKind",
    "Expression",
    "Column",
    "Star",
    "Literal",
    "Comparison",
    "InList",
    "IsNull",
    "Like",
    "Conditional",
    "BoolOp",
    "Not",
    "Count",
    "FalseExpr",
    "col",
    "lit",
    "and_",
    "or_",
    "replace_columns",
)


class ExpressionKind(str, Enum):
    COLUMN = "column"
    STAR = "star"
    LITERAL = "literal"
    COMPARISON = "comparison"
    IN_LIST = "in_list"
    IS_NULL = "is_null"
    LIKE = "like"
    CONDITIONAL = "conditional"
    BOOL_OP = "bool_op"
    NOT = "not"
    COUNT = "count"
    FALSE = "false"


class Expression:
    """Base class for expression nodes."""

    kind: ClassVar[ExpressionKind]

    def references(self) -> Tuple[str, ...]:
        """Return table aliases referenced anywhere inside this node."""
        return ()


@dataclass(frozen=True)
class Column(Expression):
    """Column reference, optionally qualified by a table alias."""

    table: Optional[str]
    name: str

    kind: ClassVar[ExpressionKind] = ExpressionKind.COLUMN

    def references(self) -> Tuple[str, ...]:
        return (self.table,) if self.table else ()


@dataclass(frozen=True)
class Star(Expression):
    """`alias.*` (or bare `*` when table is None)."""

    table: Optional[str] = None

    kind: ClassVar[ExpressionKind] = ExpressionKind.STAR

    def references(self) -> Tuple[str, ...]:
        return (self.table,) if self.table else ()


@dataclass(frozen=True)
class Literal(Expression):
    """A value bound as a statement parameter."""

    value: Any

    kind: ClassVar[ExpressionKind] = ExpressionKind.LITERAL


@dataclass(frozen=True)
class Comparison(Expression):
    left: Expression
    op: str
    right: Expression

    kind: ClassVar[ExpressionKind] = ExpressionKind.COMPARISON

    OPERATORS: ClassVar[Tuple[str, ...]] = ("=", "!=", ">", ">=", "<", "<=")

    def __post_init__(self) -> None:
        if self.op not in self.OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.op!r}")

    def references(self) -> Tuple[str, ...]:
        return self.left.references() + self.right.references()


@dataclass(frozen=True)
class InList(Expression):
    """`expr IN (...)`; an empty `values` tuple compiles to a constant predicate."""

    expr: Expression
    values: Tuple[Any, ...]
    negate: bool = False

    kind: ClassVar[ExpressionKind] = ExpressionKind.IN_LIST

    def references(self) -> Tuple[str, ...]:
        return self.expr.references()


@dataclass(frozen=True)
class IsNull(Expression):
    expr: Expression
    negate: bool = False

    kind: ClassVar[ExpressionKind] = ExpressionKind.IS_NULL

    def references(self) -> Tuple[str, ...]:
        return self.expr.references()


@dataclass(frozen=True)
class Like(Expression):
    expr: Expression
    pattern: str

    kind: ClassVar[ExpressionKind] = ExpressionKind.LIKE

    def references(self) -> Tuple[str, ...]:
        return self.expr.references()


@dataclass(frozen=True)
class Conditional(Expression):
    """Searched if/then/else: `CASE WHEN condition THEN then ELSE otherwise END`."""

    condition: Expression
    then: Expression
    otherwise: Expression

    kind: ClassVar[ExpressionKind] = ExpressionKind.CONDITIONAL

    def references(self) -> Tuple[str, ...]:
        return self.condition.references() + self.then.references() + self.otherwise.references()


@dataclass(frozen=True)
class BoolOp(Expression):
    connector: str  # "AND" | "OR"
    items: Tuple[Expression, ...]

    kind: ClassVar[ExpressionKind] = ExpressionKind.BOOL_OP

    def __post_init__(self) -> None:
        if self.connector not in ("AND", "OR"):
            raise ValueError(f"Unsupported connector: {self.connector!r}")

    def references(self) -> Tuple[str, ...]:
        refs: Tuple[str, ...] = ()
        for item in self.items:
            refs += item.references()
        return refs


@dataclass(frozen=True)
class Not(Expression):
    item: Expression

    kind: ClassVar[ExpressionKind] = ExpressionKind.NOT

    def references(self) -> Tuple[str, ...]:
        return self.item.references()


@dataclass(frozen=True)
class Count(Expression):
    """`COUNT(*)`, `COUNT(expr)` or `COUNT(DISTINCT expr)`."""

    expr: Optional[Expression] = None
    distinct: bool = False

    kind: ClassVar[ExpressionKind] = ExpressionKind.COUNT

    def references(self) -> Tuple[str, ...]:
        return self.expr.references() if self.expr is not None else ()


@dataclass(frozen=True)
class FalseExpr(Expression):
    """Predicate that never matches."""

    kind: ClassVar[ExpressionKind] = ExpressionKind.FALSE


def col(table: Optional[str], name: str) -> Column:
    return Column(table, name)


def lit(value: Any) -> Literal:
    return Literal(value)


def and_(*items: Expression) -> Expression:
    """AND the given predicates, flattening single items."""
    if len(items) == 1:
        return items[0]
    return BoolOp("AND", tuple(items))


def or_(*items: Expression) -> Expression:
    if len(items) == 1:
        return items[0]
    return BoolOp("OR", tuple(items))


def replace_columns(node: Expression, replacements: Mapping[Column, Expression]) -> Expression:
    """Return `node` with every column found in `replacements` swapped for its target."""
    if isinstance(node, Column):
        return replacements.get(node, node)
    changes = {}
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Expression):
            changes[f.name] = replace_columns(value, replacements)
        elif isinstance(value, tuple) and value and all(isinstance(v, Expression) for v in value):
            changes[f.name] = tuple(replace_columns(v, replacements) for v in value)
    return replace(node, **changes) if changes else node
