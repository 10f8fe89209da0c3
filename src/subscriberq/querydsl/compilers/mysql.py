"""MySQL compiler.

Backtick identifiers and `IF(cond, a, b)` for conditionals, the form MySQL
tooling commonly emits for check expressions.
"""

from typing import Optional

from subscriberq.querydsl.expressions import Conditional

from .base import BaseCompiler, _Context

__all__ = ("MySQLCompiler", "mysql_compiler")

# MySQL has no OFFSET-only form; this is the documented "all rows" LIMIT
_MAX_ROWS = 18446744073709551615


class MySQLCompiler(BaseCompiler):
    dialect = "mysql"
    placeholder = "%s"
    quote_char = "`"

    def _visit_conditional(self, node: Conditional, ctx: _Context) -> str:
        condition = self._visit(node.condition, ctx)
        then = self._visit(node.then, ctx)
        otherwise = self._visit(node.otherwise, ctx)
        return f"IF({condition}, {then}, {otherwise})"

    def _limit_clause(self, count: Optional[int], offset: Optional[int]) -> str:
        if count is None and offset:
            count = _MAX_ROWS
        return super()._limit_clause(count, offset)


mysql_compiler = MySQLCompiler()
