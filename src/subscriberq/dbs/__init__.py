from typing import Any, Optional

from subscriberq.abc import DatabaseAdapter
from subscriberq.exceptions import UnsupportedDialectError
from subscriberq.settings import settings as api_settings

from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

__all__ = ("PostgresAdapter", "SQLiteAdapter", "get_adapter")

_ADAPTERS = {
    "postgres": PostgresAdapter,
    "postgresql": PostgresAdapter,
    "sqlite": SQLiteAdapter,
}


def get_adapter(dialect: Optional[str] = None, **kwargs: Any) -> DatabaseAdapter:
    """Build the bundled adapter for `dialect` (DB_DIALECT when omitted).

    Keyword arguments are passed to the adapter constructor. MySQL statements
    can be compiled but no adapter ships for them; pass your own
    `DatabaseAdapter` with ``dialect = "mysql"`` to collections instead.
    """
    name = (dialect or api_settings.DB_DIALECT).lower()
    try:
        adapter_class = _ADAPTERS[name]
    except KeyError:
        raise UnsupportedDialectError(
            "No bundled adapter for dialect",
            dialect=name,
            supported=sorted(_ADAPTERS),
        ) from None
    return adapter_class(**kwargs)
