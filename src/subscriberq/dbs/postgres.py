"""Concrete adapter for PostgreSQL via psycopg2.

Key Features:
    - Lazy connection initialization
    - Rows returned as plain dicts (RealDictCursor)
    - Driver errors surfaced as ConnectionError / QueryExecutionError
"""

from typing import Any, List, Optional

import psycopg2
import psycopg2.extras

from subscriberq.abc import DatabaseAdapter
from subscriberq.exceptions import ConnectionError, MissingConfigError, QueryExecutionError
from subscriberq.logger import Logger
from subscriberq.querydsl.compilers import CompiledQuery
from subscriberq.settings import settings as api_settings
from subscriberq.types import Row


class PostgresAdapter(DatabaseAdapter):
    """Database adapter for PostgreSQL.

    Connection parameters default to the DB_* settings; any keyword given to
    the constructor overrides the matching setting.

    Attributes:
        dbname: Target database name
        host: Server host
        port: Server port
    """

    dialect = "postgres"

    def __init__(
        self,
        dbname: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[str] = None,
        connection: Any = None,
    ) -> None:
        self.dbname = dbname or api_settings.DB_NAME
        self.user = user or api_settings.DB_USER
        self.password = password or api_settings.DB_PASSWORD
        self.host = host or api_settings.DB_HOST
        self.port = port or api_settings.DB_PORT
        self._client = connection
        self.logger = Logger(self.__class__.__name__)

    @property
    def client(self) -> Any:
        """Lazily initialize and return the PostgreSQL connection.

        Raises:
            MissingConfigError: If no database name is configured
            ConnectionError: If the server refuses the connection
        """
        if self._client is None:
            if not self.dbname:
                raise MissingConfigError(
                    "DB_NAME is not set. Set it via environment variable or .env file.",
                    config_key="DB_NAME",
                    adapter="Postgres",
                )
            try:
                self._client = psycopg2.connect(
                    dbname=self.dbname,
                    user=self.user,
                    password=self.password,
                    host=self.host,
                    port=self.port,
                )
            except psycopg2.OperationalError as e:
                raise ConnectionError(
                    "PostgreSQL connection failed",
                    database=self.dbname,
                    adapter="Postgres",
                    host=self.host,
                    port=self.port,
                    user=self.user,
                    original_error=str(e),
                ) from e
            self.logger.message("PostgreSQL connection established (db=%s).", self.dbname)
        return self._client

    def fetch_all(self, query: CompiledQuery) -> List[Row]:
        try:
            with self.client.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query.sql, query.params)
                return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            self.client.rollback()
            raise QueryExecutionError(
                "PostgreSQL query failed",
                sql=query.sql,
                adapter="Postgres",
                original_error=str(e),
            ) from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self.logger.message("PostgreSQL connection closed (db=%s).", self.dbname)
