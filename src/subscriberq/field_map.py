"""Field-name to SQL-expression mapping.

Collections expose logical field names (``type``, ``website_id``, ...) that
live in joined tables or are computed. A `FieldMap` is built once when the
collection is constructed and is read-only afterwards.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .exceptions import InvalidFieldError
from .querydsl.expressions import Column, Expression


class FieldMap(Mapping[str, Expression]):
    """Read-only mapping of logical field names to expressions.

    Names that are not mapped still resolve: ``alias.column`` becomes a
    column on that alias and a bare ``column`` becomes a column on the
    default alias (the collection's main table). Every resolvable name
    therefore yields exactly one expression.
    """

    def __init__(self, fields: Optional[Mapping[str, Expression]] = None, default_alias: Optional[str] = None) -> None:
        self._fields = MappingProxyType(dict(fields or {}))
        self.default_alias = default_alias

    def __getitem__(self, name: str) -> Expression:
        return self._fields[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FieldMap({dict(self._fields)!r}, default_alias={self.default_alias!r})"

    def is_mapped(self, name: str) -> bool:
        return name in self._fields

    def resolve(self, name: str) -> Expression:
        """Resolve a field name to its SQL expression.

        Raises:
            InvalidFieldError: If the name is empty or has more than one dot
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidFieldError("Field name must be a non-empty string", field=name)
        name = name.strip()
        if name in self._fields:
            return self._fields[name]
        parts = name.split(".")
        if len(parts) == 1:
            return Column(self.default_alias, name)
        if len(parts) == 2 and all(parts):
            return Column(parts[0], parts[1])
        raise InvalidFieldError("Field name must be 'column' or 'alias.column'", field=name)

    def with_fields(self, **fields: Expression) -> "FieldMap":
        """Return a new map extended with `fields`; this map is left untouched."""
        merged = dict(self._fields)
        merged.update(fields)
        return FieldMap(merged, self.default_alias)
