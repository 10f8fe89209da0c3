"""Base compiler.

Walks expression trees and `Select` statements and renders them as SQL for
one dialect. `compile` binds every literal as a parameter; `to_expr` inlines
literals and is meant for logs and debugging only.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from subscriberq.querydsl.expressions import (
    BoolOp,
    Column,
    Comparison,
    Conditional,
    Count,
    Expression,
    ExpressionKind,
    FalseExpr,
    InList,
    IsNull,
    Like,
    Literal,
    Not,
    Star,
)
from subscriberq.querydsl.select import Join, Projection, Select, SubqueryRef, TableRef

from .utils import format_value_sql, quote_identifier

__all__ = ("BaseCompiler", "CompiledQuery")


@dataclass(frozen=True)
class CompiledQuery:
    """SQL text plus positional parameters, ready for a DB-API cursor."""

    sql: str
    params: Tuple[Any, ...] = ()

    def __str__(self) -> str:
        return self.sql


@dataclass
class _Context:
    inline: bool
    params: List[Any] = field(default_factory=list)


class BaseCompiler:
    """Render expressions and statements for a SQL dialect.

    Subclasses set `dialect`, `placeholder` and `quote_char`, and override
    individual `_visit_*` hooks where the dialect's syntax differs.
    """

    dialect: str = "generic"
    placeholder: str = "%s"
    quote_char: str = '"'

    def __init__(self) -> None:
        self._visitors: Dict[ExpressionKind, Callable[[Any, _Context], str]] = {
            ExpressionKind.COLUMN: self._visit_column,
            ExpressionKind.STAR: self._visit_star,
            ExpressionKind.LITERAL: self._visit_literal,
            ExpressionKind.COMPARISON: self._visit_comparison,
            ExpressionKind.IN_LIST: self._visit_in_list,
            ExpressionKind.IS_NULL: self._visit_is_null,
            ExpressionKind.LIKE: self._visit_like,
            ExpressionKind.CONDITIONAL: self._visit_conditional,
            ExpressionKind.BOOL_OP: self._visit_bool_op,
            ExpressionKind.NOT: self._visit_not,
            ExpressionKind.COUNT: self._visit_count,
            ExpressionKind.FALSE: self._visit_false,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} dialect={self.dialect!r}>"

    # -------------------
    # Public API
    # -------------------
    def compile(self, node: Union[Select, Expression]) -> CompiledQuery:
        """Render a statement or expression with bound parameters."""
        ctx = _Context(inline=False)
        sql = self._render(node, ctx)
        return CompiledQuery(sql, tuple(ctx.params))

    def to_expr(self, node: Union[Select, Expression]) -> str:
        """Render with literals inlined (debug output, not for execution)."""
        return self._render(node, _Context(inline=True))

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(name, self.quote_char)

    def _render(self, node: Union[Select, Expression], ctx: _Context) -> str:
        if isinstance(node, Select):
            return self._visit_select(node, ctx)
        if isinstance(node, Expression):
            return self._visit(node, ctx)
        raise TypeError(f"Cannot compile {type(node).__name__}; expected Select or Expression")

    def _visit(self, node: Expression, ctx: _Context) -> str:
        visitor = self._visitors.get(node.kind)
        if visitor is None:
            raise TypeError(f"No visitor for expression kind {node.kind!r}")
        return visitor(node, ctx)

    # -------------------
    # Expressions
    # -------------------
    def _bind(self, value: Any, ctx: _Context) -> str:
        if ctx.inline:
            return format_value_sql(value)
        ctx.params.append(value)
        return self.placeholder

    def _visit_column(self, node: Column, ctx: _Context) -> str:
        if node.table:
            return f"{self.quote_identifier(node.table)}.{self.quote_identifier(node.name)}"
        return self.quote_identifier(node.name)

    def _visit_star(self, node: Star, ctx: _Context) -> str:
        if node.table:
            return f"{self.quote_identifier(node.table)}.*"
        return "*"

    def _visit_literal(self, node: Literal, ctx: _Context) -> str:
        return self._bind(node.value, ctx)

    def _visit_comparison(self, node: Comparison, ctx: _Context) -> str:
        return f"{self._visit(node.left, ctx)} {node.op} {self._visit(node.right, ctx)}"

    def _visit_in_list(self, node: InList, ctx: _Context) -> str:
        if not node.values:
            # IN () is not valid SQL; an empty set matches nothing (NOT IN: everything)
            return "1 = 1" if node.negate else self._visit(FalseExpr(), ctx)
        target = self._visit(node.expr, ctx)
        values = ", ".join(self._bind(v, ctx) for v in node.values)
        op = "NOT IN" if node.negate else "IN"
        return f"{target} {op} ({values})"

    def _visit_is_null(self, node: IsNull, ctx: _Context) -> str:
        op = "IS NOT NULL" if node.negate else "IS NULL"
        return f"{self._visit(node.expr, ctx)} {op}"

    def _visit_like(self, node: Like, ctx: _Context) -> str:
        return f"{self._visit(node.expr, ctx)} LIKE {self._bind(node.pattern, ctx)}"

    def _visit_conditional(self, node: Conditional, ctx: _Context) -> str:
        condition = self._visit(node.condition, ctx)
        then = self._visit(node.then, ctx)
        otherwise = self._visit(node.otherwise, ctx)
        return f"CASE WHEN {condition} THEN {then} ELSE {otherwise} END"

    def _visit_bool_op(self, node: BoolOp, ctx: _Context) -> str:
        inner = f" {node.connector} ".join(self._visit(item, ctx) for item in node.items)
        return f"({inner})"

    def _visit_not(self, node: Not, ctx: _Context) -> str:
        return f"NOT ({self._visit(node.item, ctx)})"

    def _visit_count(self, node: Count, ctx: _Context) -> str:
        if node.expr is None:
            return "COUNT(*)"
        distinct = "DISTINCT " if node.distinct else ""
        return f"COUNT({distinct}{self._visit(node.expr, ctx)})"

    def _visit_false(self, node: FalseExpr, ctx: _Context) -> str:
        return "1 = 0"

    # -------------------
    # Statements
    # -------------------
    def _visit_projection(self, projection: Projection, ctx: _Context) -> str:
        sql = self._visit(projection.expr, ctx)
        if projection.alias:
            return f"{sql} AS {self.quote_identifier(projection.alias)}"
        return sql

    def _visit_source(self, source: Union[TableRef, SubqueryRef], ctx: _Context) -> str:
        if isinstance(source, SubqueryRef):
            return f"({self._visit_select(source.select, ctx)}) AS {self.quote_identifier(source.alias)}"
        sql = self.quote_identifier(source.name)
        if source.alias and source.alias != source.name:
            sql += f" AS {self.quote_identifier(source.alias)}"
        return sql

    def _visit_join(self, join: Join, ctx: _Context) -> str:
        return f"{join.kind.value} {self._visit_source(join.table, ctx)} ON {self._visit(join.condition, ctx)}"

    def _limit_clause(self, count: Optional[int], offset: Optional[int]) -> str:
        parts = []
        if count is not None:
            parts.append(f"LIMIT {int(count)}")
        if offset:
            parts.append(f"OFFSET {int(offset)}")
        return " ".join(parts)

    def _visit_select(self, select: Select, ctx: _Context) -> str:
        # sqlite and postgres reject HAVING without GROUP BY
        select = select.fold_having()
        columns = ", ".join(self._visit_projection(p, ctx) for p in select.columns) or "*"
        sql = [f"SELECT {columns}", f"FROM {self._visit_source(select.source, ctx)}"]
        for join in select.joins:
            sql.append(self._visit_join(join, ctx))
        if select.wheres:
            sql.append("WHERE " + " AND ".join(self._visit(w, ctx) for w in select.wheres))
        if select.groups:
            sql.append("GROUP BY " + ", ".join(self._visit(g, ctx) for g in select.groups))
        if select.havings:
            sql.append("HAVING " + " AND ".join(self._visit(h, ctx) for h in select.havings))
        if select.orders:
            sql.append("ORDER BY " + ", ".join(f"{self._visit(o.expr, ctx)} {o.direction}" for o in select.orders))
        limit = self._limit_clause(select.limit_count, select.limit_offset)
        if limit:
            sql.append(limit)
        return " ".join(sql)
