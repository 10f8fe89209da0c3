"""Adapter for SQLite databases through the standard library driver.

Handy for local tooling and fixtures; the same collections run unchanged
against it because statements are compiled per dialect.
"""

import sqlite3
from typing import List, Optional

from subscriberq.abc import DatabaseAdapter
from subscriberq.exceptions import ConnectionError, QueryExecutionError
from subscriberq.logger import Logger
from subscriberq.querydsl.compilers import CompiledQuery
from subscriberq.settings import settings as api_settings
from subscriberq.types import Row


class SQLiteAdapter(DatabaseAdapter):
    dialect = "sqlite"

    def __init__(self, path: Optional[str] = None, connection: Optional[sqlite3.Connection] = None) -> None:
        self.path = path or api_settings.SQLITE_PATH
        self._client = connection
        self.logger = Logger(self.__class__.__name__)

    @property
    def client(self) -> sqlite3.Connection:
        if self._client is None:
            try:
                self._client = sqlite3.connect(self.path)
            except sqlite3.Error as e:
                raise ConnectionError(
                    "SQLite connection failed", adapter="SQLite", path=self.path, original_error=str(e)
                ) from e
            self.logger.message("SQLite connection established (path=%s).", self.path)
        return self._client

    def executescript(self, script: str) -> None:
        """Run a multi-statement script (schema setup, fixtures)."""
        self.client.executescript(script)

    def fetch_all(self, query: CompiledQuery) -> List[Row]:
        try:
            cur = self.client.execute(query.sql, query.params)
        except sqlite3.Error as e:
            raise QueryExecutionError(
                "SQLite query failed", sql=query.sql, adapter="SQLite", original_error=str(e)
            ) from e
        names = [d[0] for d in cur.description or ()]
        return [dict(zip(names, row)) for row in cur.fetchall()]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __repr__(self) -> str:
        return f"<SQLiteAdapter path={self.path!r}>"
