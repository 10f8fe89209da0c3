"""Immutable SELECT statement value object.

A `Select` never changes after construction: each builder method returns a
new instance via `dataclasses.replace`, so two holders of the same statement
can never observe each other's edits. Collections keep a reference to the
current statement and swap it on every configuration call.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from subscriberq.exceptions import DuplicateAliasError, InvalidConditionError, InvalidFieldError

from .expressions import Column, Expression, Star, replace_columns

__all__ = (
    "JoinKind",
    "SelectPart",
    "TableRef",
    "SubqueryRef",
    "Projection",
    "Join",
    "OrderBy",
    "Select",
)


class JoinKind(str, Enum):
    INNER = "INNER JOIN"
    LEFT = "LEFT JOIN"


class SelectPart(str, Enum):
    """Statement parts that can be cleared with `Select.reset`."""

    COLUMNS = "columns"
    WHERE = "where"
    GROUP = "group"
    HAVING = "having"
    ORDER = "order"
    LIMIT = "limit"


@dataclass(frozen=True)
class TableRef:
    name: str
    alias: Optional[str] = None

    @property
    def ref_name(self) -> str:
        """Name other clauses use to refer to this table."""
        return self.alias or self.name


@dataclass(frozen=True)
class SubqueryRef:
    select: "Select"
    alias: str

    @property
    def ref_name(self) -> str:
        return self.alias


@dataclass(frozen=True)
class Projection:
    expr: Expression
    alias: Optional[str] = None


@dataclass(frozen=True)
class Join:
    kind: JoinKind
    table: TableRef
    condition: Expression


@dataclass(frozen=True)
class OrderBy:
    expr: Expression
    direction: str = "ASC"


ColumnSpec = Union[Sequence[str], Mapping[str, str], None]


def _join_projections(alias: str, columns: ColumnSpec) -> Tuple[Projection, ...]:
    """Turn the columns requested for a join into projections.

    A sequence of names projects each column under its own name; a mapping
    projects `{output_alias: column_name}`.
    """
    if not columns:
        return ()
    if isinstance(columns, Mapping):
        return tuple(Projection(Column(alias, name), out) for out, name in columns.items())
    return tuple(Projection(Column(alias, name)) for name in columns)


@dataclass(frozen=True)
class Select:
    """SELECT statement parts.

    Attributes:
        source: Main table (or subquery) in the FROM clause
        columns: Projected expressions, in output order
        joins: Joined tables, in join order
        wheres: Predicates ANDed into WHERE
        groups: GROUP BY expressions
        havings: Predicates ANDed into HAVING
        orders: ORDER BY terms
        limit_count: LIMIT, or None
        limit_offset: OFFSET, or None
    """

    source: Union[TableRef, SubqueryRef]
    columns: Tuple[Projection, ...] = ()
    joins: Tuple[Join, ...] = ()
    wheres: Tuple[Expression, ...] = ()
    groups: Tuple[Expression, ...] = ()
    havings: Tuple[Expression, ...] = ()
    orders: Tuple[OrderBy, ...] = ()
    limit_count: Optional[int] = None
    limit_offset: Optional[int] = None

    @classmethod
    def from_table(cls, name: str, alias: Optional[str] = None, all_columns: bool = True) -> "Select":
        """Start a statement over `name AS alias`, selecting `alias.*` by default."""
        table = TableRef(name, alias)
        columns = (Projection(Star(table.ref_name)),) if all_columns else ()
        return cls(source=table, columns=columns)

    @classmethod
    def from_subquery(cls, select: "Select", alias: str) -> "Select":
        return cls(source=SubqueryRef(select, alias))

    # -------------------
    # Introspection
    # -------------------
    def joined_aliases(self) -> Tuple[str, ...]:
        return tuple(j.table.ref_name for j in self.joins)

    def has_join(self, alias: str) -> bool:
        return alias in self.joined_aliases()

    def has_column(self, alias: str) -> bool:
        """Whether a projection is already output under `alias`."""
        return any(p.alias == alias for p in self.columns)

    def aliases(self) -> Tuple[str, ...]:
        """All table aliases visible to column references."""
        return (self.source.ref_name,) + self.joined_aliases()

    def _check_references(self, exprs: Iterable[Expression], extra: Tuple[str, ...] = ()) -> None:
        known = self.aliases() + extra
        for expr in exprs:
            for alias in expr.references():
                if alias not in known:
                    raise InvalidFieldError(
                        "Expression references a table alias that is not part of the statement",
                        alias=alias,
                        aliases=known,
                    )

    # -------------------
    # Builders
    # -------------------
    def add_column(self, expr: Expression, alias: Optional[str] = None) -> "Select":
        return replace(self, columns=self.columns + (Projection(expr, alias),))

    def add_columns(self, columns: Mapping[str, Expression]) -> "Select":
        """Project each `{alias: expression}` pair."""
        return replace(
            self,
            columns=self.columns + tuple(Projection(expr, alias) for alias, expr in columns.items()),
        )

    def _join(
        self,
        kind: JoinKind,
        table: str,
        alias: str,
        on: Expression,
        columns: ColumnSpec,
    ) -> "Select":
        if alias in self.aliases():
            raise DuplicateAliasError("Table alias already used in statement", alias=alias, table=table)
        self._check_references([on], extra=(alias,))
        join = Join(kind, TableRef(table, alias), on)
        return replace(
            self,
            joins=self.joins + (join,),
            columns=self.columns + _join_projections(alias, columns),
        )

    def join(self, table: str, alias: str, on: Expression, columns: ColumnSpec = None) -> "Select":
        """INNER JOIN `table AS alias ON on`, projecting `columns` from it."""
        return self._join(JoinKind.INNER, table, alias, on, columns)

    def join_left(self, table: str, alias: str, on: Expression, columns: ColumnSpec = None) -> "Select":
        """LEFT JOIN `table AS alias ON on`, projecting `columns` from it."""
        return self._join(JoinKind.LEFT, table, alias, on, columns)

    def where(self, *conditions: Expression) -> "Select":
        self._check_references(conditions)
        return replace(self, wheres=self.wheres + tuple(conditions))

    def having(self, *conditions: Expression) -> "Select":
        self._check_references(conditions)
        return replace(self, havings=self.havings + tuple(conditions))

    def group(self, *exprs: Expression) -> "Select":
        return replace(self, groups=self.groups + tuple(exprs))

    def order(self, expr: Expression, direction: str = "ASC") -> "Select":
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise InvalidConditionError("Order direction must be ASC or DESC", direction=direction)
        self._check_references([expr])
        return replace(self, orders=self.orders + (OrderBy(expr, direction),))

    def limit(self, count: Optional[int], offset: Optional[int] = None) -> "Select":
        return replace(
            self,
            limit_count=None if count is None else int(count),
            limit_offset=None if offset is None else int(offset),
        )

    def limit_page(self, page: int, page_size: int) -> "Select":
        """LIMIT/OFFSET for 1-based `page` of `page_size` rows."""
        page = max(int(page), 1)
        return self.limit(page_size, (page - 1) * int(page_size))

    def reset(self, *parts: Union[SelectPart, str]) -> "Select":
        """Return a copy with the given parts cleared (all parts when none given)."""
        targets: Iterable[SelectPart] = [SelectPart(p) for p in parts] if parts else list(SelectPart)
        changes = {}
        for part in targets:
            if part is SelectPart.COLUMNS:
                changes["columns"] = ()
            elif part is SelectPart.WHERE:
                changes["wheres"] = ()
            elif part is SelectPart.GROUP:
                changes["groups"] = ()
            elif part is SelectPart.HAVING:
                changes["havings"] = ()
            elif part is SelectPart.ORDER:
                changes["orders"] = ()
            elif part is SelectPart.LIMIT:
                changes["limit_count"] = None
                changes["limit_offset"] = None
        return replace(self, **changes)

    def fold_having(self) -> "Select":
        """Move HAVING conditions of an ungrouped statement into WHERE.

        Without GROUP BY every row is its own group, so the conditions keep
        the same rows either way. Unqualified columns named after a projection
        alias are replaced by the projected expression.
        """
        if self.groups or not self.havings:
            return self
        outputs = {Column(None, p.alias): p.expr for p in self.columns if p.alias}
        folded = tuple(replace_columns(h, outputs) for h in self.havings)
        return replace(self, wheres=self.wheres + folded, havings=())
