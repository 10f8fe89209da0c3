"""SQLite compiler: qmark placeholders, double-quoted identifiers."""

from typing import Optional

from .base import BaseCompiler

__all__ = ("SQLiteCompiler", "sqlite_compiler")


class SQLiteCompiler(BaseCompiler):
    dialect = "sqlite"
    placeholder = "?"
    quote_char = '"'

    def _limit_clause(self, count: Optional[int], offset: Optional[int]) -> str:
        # OFFSET requires a LIMIT; -1 means no upper bound
        if count is None and offset:
            count = -1
        return super()._limit_clause(count, offset)


sqlite_compiler = SQLiteCompiler()
