"""Abstract contracts for collaborators used by collections.

Collections never talk to a driver or a metadata store directly: they go
through a `DatabaseAdapter` for execution and an `AttributeMetadataProvider`
for EAV lookups.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .querydsl.compilers import BaseCompiler, CompiledQuery, get_compiler
from .schema import AttributeMetadata
from .types import Row


class DatabaseAdapter(ABC):
    """Executes compiled statements and returns rows as dicts.

    Subclasses set `dialect` (used to pick the SQL compiler) and implement
    `fetch_all` and `close`. Adapters are context managers.
    """

    dialect: str = "postgres"

    @property
    def compiler(self) -> BaseCompiler:
        return get_compiler(self.dialect)

    @abstractmethod
    def fetch_all(self, query: CompiledQuery) -> List[Row]:
        """Execute `query` and return every row."""
        raise NotImplementedError

    def fetch_one(self, query: CompiledQuery) -> Optional[Row]:
        rows = self.fetch_all(query)
        return rows[0] if rows else None

    def fetch_value(self, query: CompiledQuery) -> Any:
        """Return the first column of the first row, or None."""
        row = self.fetch_one(query)
        if not row:
            return None
        return next(iter(row.values()))

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> "DatabaseAdapter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class AttributeMetadataProvider(ABC):
    """Resolves where an entity attribute's values are stored."""

    @abstractmethod
    def get_attribute_metadata(self, entity_type: str, attribute_code: str) -> AttributeMetadata:
        """Return metadata for `attribute_code` of `entity_type`.

        Raises:
            AttributeNotFoundError: If the attribute is not defined for the entity type
        """
        raise NotImplementedError
