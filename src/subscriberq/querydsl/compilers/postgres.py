"""PostgreSQL compiler.

Renders statements for psycopg2: `%s` placeholders, double-quoted identifiers,
searched CASE for conditionals. PostgreSQL accepts OFFSET without LIMIT, so
the base clause rendering is used unchanged.
"""

from .base import BaseCompiler

__all__ = ("PostgresCompiler", "postgres_compiler")


class PostgresCompiler(BaseCompiler):
    dialect = "postgres"
    placeholder = "%s"
    quote_char = '"'


postgres_compiler = PostgresCompiler()
