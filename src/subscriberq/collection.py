"""
Base record collection.

A `Collection` owns one SELECT over a main table (aliased ``main_table``), a
read-only field map, and the adapter used to run it. Configuration methods
replace the collection's immutable `Select` and return ``self`` so calls
chain; terminal methods (`load`, iteration, `get_size`) compile the
statement for the adapter's dialect, execute it and hydrate rows.
"""

import copy
from typing import Any, Iterator, List, Optional, Sequence, Type, Union

from pydantic import BaseModel

from .abc import DatabaseAdapter
from .constants import MAIN_TABLE_ALIAS
from .exceptions import InvalidConditionError
from .field_map import FieldMap
from .logger import Logger
from .querydsl.compilers import CompiledQuery
from .querydsl.compilers.utils import normalize_where_input
from .querydsl.expressions import Count, Expression, or_
from .querydsl.q import Q
from .querydsl.select import Select, SelectPart
from .querydsl.where import build_condition, condition_to_node
from .settings import settings as api_settings
from .types import Condition, Row


class Collection:
    """Chainable, lazily loaded result set over a single main table.

    Subclasses override `_init_field_map` to register logical fields and set
    `item_class` to hydrate rows into a pydantic model.

    Attributes:
        id_field_name: Primary key column of the main table
        item_class: Model rows are validated into, or None for plain dicts
    """

    item_class: Optional[Type[BaseModel]] = None
    id_field_name: str = "id"

    def __init__(
        self,
        db: DatabaseAdapter,
        main_table: str,
        id_field_name: Optional[str] = None,
        table_prefix: Optional[str] = None,
    ) -> None:
        self._db = db
        self._table_prefix = api_settings.TABLE_PREFIX if table_prefix is None else table_prefix
        if id_field_name:
            self.id_field_name = id_field_name
        self._main_table = self.get_table(main_table)
        self._field_map = self._init_field_map()
        self._select = Select.from_table(self._main_table, MAIN_TABLE_ALIAS)
        self._page_size: Optional[int] = None
        self._cur_page = 1
        self._items: Optional[List[Any]] = None
        self._total: Optional[int] = None
        self.logger = Logger(self.__class__.__name__)

    def _init_field_map(self) -> FieldMap:
        return FieldMap(default_alias=MAIN_TABLE_ALIAS)

    # -------------------
    # Accessors
    # -------------------
    @property
    def field_map(self) -> FieldMap:
        return self._field_map

    @property
    def main_table(self) -> str:
        return self._main_table

    def get_table(self, name: str) -> str:
        """Physical table name for a logical one (applies TABLE_PREFIX)."""
        return f"{self._table_prefix}{name}"

    def get_connection(self) -> DatabaseAdapter:
        return self._db

    def get_select(self) -> Select:
        return self._select

    def _set_select(self, select: Select) -> "Collection":
        self._select = select
        self.clear()
        return self

    def get_mapped_field(self, name: str) -> Expression:
        return self._field_map.resolve(name)

    def clone(self) -> "Collection":
        """Independent copy; the immutable statement is shared safely."""
        other = copy.copy(self)
        other.clear()
        return other

    # -------------------
    # Filters, order, paging
    # -------------------
    def _condition_expression(self, field: Union[str, Sequence[str]], condition: Any) -> Expression:
        if isinstance(field, str):
            if isinstance(condition, (list, tuple)):
                # plain list: OR of one condition per element
                if not condition:
                    raise InvalidConditionError("Empty condition list", field=field)
                return or_(*(self._condition_expression(field, c) for c in condition))
            return build_condition(condition_to_node(field, condition), self._field_map)
        # several fields: OR of one condition per field
        fields = list(field)
        conditions = list(condition) if isinstance(condition, (list, tuple)) else [condition] * len(fields)
        if not fields or len(conditions) != len(fields):
            raise InvalidConditionError(
                "Field list and condition list must be non-empty and of equal length",
                fields=fields,
                conditions=conditions,
            )
        return or_(*(self._condition_expression(f, c) for f, c in zip(fields, conditions)))

    def add_field_to_filter(
        self, field: Union[str, Sequence[str]], condition: Union[Condition, Sequence[Condition]] = None
    ) -> "Collection":
        """Add a WHERE condition on a field.

        Args:
            field: Logical field, ``alias.column``, or a list of fields to OR together
            condition: Scalar (equality), None (IS NULL), or dict of lookups,
                e.g. ``{"gt": 0}``, ``{"in": [1, 2]}``, ``{"null": True}``.
                A plain list ORs its elements: ``[1, {"gt": 5}]``. With a list
                of fields, a list pairs one condition with each field.
        """
        return self._set_select(self._select.where(self._condition_expression(field, condition)))

    def add_filter(self, where: Union[Q, dict]) -> "Collection":
        """Add a `Q` node (or universal dict) as a WHERE condition."""
        node = normalize_where_input(where)
        return self._set_select(self._select.where(build_condition(node, self._field_map)))

    def add_having_filter(self, field: str, condition: Condition = None) -> "Collection":
        return self._set_select(self._select.having(self._condition_expression(field, condition)))

    def set_order(self, field: str, direction: str = "DESC") -> "Collection":
        return self._set_select(self._select.order(self.get_mapped_field(field), direction))

    def set_page_size(self, size: Optional[int]) -> "Collection":
        self._page_size = None if size is None else int(size)
        self._items = None
        return self

    def set_cur_page(self, page: int) -> "Collection":
        self._cur_page = max(int(page), 1)
        self._items = None
        return self

    # -------------------
    # SQL
    # -------------------
    def _paged_select(self) -> Select:
        if self._page_size:
            return self._select.limit_page(self._cur_page, self._page_size)
        return self._select

    def get_select_sql(self, debug: bool = False) -> Union[CompiledQuery, str]:
        """Compiled statement for loading, or its inlined debug string."""
        compiler = self._db.compiler
        select = self._paged_select()
        return compiler.to_expr(select) if debug else compiler.compile(select)

    def _build_count_select(self, select: Select) -> Select:
        if select.groups:
            inner = select.reset(SelectPart.ORDER, SelectPart.LIMIT)
            return Select.from_subquery(inner, "grouped").add_column(Count())
        return select.reset(SelectPart.ORDER, SelectPart.LIMIT, SelectPart.COLUMNS).add_column(Count())

    def get_select_count_sql(self) -> Select:
        """Statement counting all rows matched by the current filters (paging ignored)."""
        return self._build_count_select(self._select)

    # -------------------
    # Loading
    # -------------------
    def _hydrate(self, row: Row) -> Any:
        if self.item_class is None:
            return row
        return self.item_class.model_validate(row)

    def get_size(self) -> int:
        """Total number of matching rows, cached until the statement changes."""
        if self._total is None:
            query = self._db.compiler.compile(self.get_select_count_sql())
            self.logger.sql(query, "Count")
            self._total = int(self._db.fetch_value(query) or 0)
        return self._total

    def load(self) -> "Collection":
        if self._items is not None:
            return self
        query = self.get_select_sql()
        self.logger.sql(query, "Load")
        rows = self._db.fetch_all(query)
        self._items = [self._hydrate(row) for row in rows]
        self.logger.debug("Loaded %d row(s) from %s", len(self._items), self._main_table)
        return self

    def is_loaded(self) -> bool:
        return self._items is not None

    def clear(self) -> "Collection":
        """Drop loaded items and the cached size."""
        self._items = None
        self._total = None
        return self

    def get_items(self) -> List[Any]:
        self.load()
        return list(self._items or [])

    def get_first_item(self) -> Any:
        items = self.get_items()
        return items[0] if items else None

    def get_column_values(self, column: str) -> List[Any]:
        values = []
        for item in self.get_items():
            values.append(item.get(column) if isinstance(item, dict) else getattr(item, column, None))
        return values

    def get_all_ids(self) -> List[Any]:
        return self.get_column_values(self.id_field_name)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.get_items())

    def __len__(self) -> int:
        return len(self.get_items())

    def __str__(self) -> str:
        return str(self.get_select_sql(debug=True))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} table={self._main_table!r} loaded={self.is_loaded()}>"
