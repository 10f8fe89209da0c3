from subscriberq.exceptions import UnsupportedDialectError

from .base import BaseCompiler, CompiledQuery
from .mysql import MySQLCompiler, mysql_compiler
from .postgres import PostgresCompiler, postgres_compiler
from .sqlite import SQLiteCompiler, sqlite_compiler

__all__ = (
    "BaseCompiler",
    "CompiledQuery",
    "MySQLCompiler",
    "mysql_compiler",
    "PostgresCompiler",
    "postgres_compiler",
    "SQLiteCompiler",
    "sqlite_compiler",
    "get_compiler",
)

_COMPILERS = {
    "postgres": postgres_compiler,
    "postgresql": postgres_compiler,
    "mysql": mysql_compiler,
    "sqlite": sqlite_compiler,
}


def get_compiler(dialect: str) -> BaseCompiler:
    """Return the shared compiler instance for a dialect name."""
    try:
        return _COMPILERS[dialect.lower()]
    except KeyError:
        raise UnsupportedDialectError(
            "No compiler for dialect",
            dialect=dialect,
            supported=sorted(_COMPILERS),
        ) from None
