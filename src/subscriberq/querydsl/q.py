"""Query DSL filter nodes.

This module defines the `Q` class used to compose filter conditions for
collections. A `Q` node turns into a universal dict representation, which
`querydsl.where` resolves against a field map into an expression tree, and
a dialect compiler then renders into SQL.

Typical usage:

- Build filters: `Q(customer_id__gt=0) & Q(store_id__in=[1, 2])`
- Joined columns: `Q(link__letter_sent_at__isnull=True)` targets `link.letter_sent_at`
- Negate: `~Q(subscriber_status=3)`
- Compile: `q.to_expr("postgres")`
"""

from __future__ import annotations

from copy import deepcopy
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from subscriberq.field_map import FieldMap

    from .expressions import Expression


class Q:
    """Composable boolean filter node.

    A `Q` instance holds leaf-level filters (e.g., `field__op=value`) or
    boolean combinations of child `Q` nodes using `$and` / `$or` connectors.

    - Use `&` to combine with logical AND.
    - Use `|` to combine with logical OR.
    - Use `~` to negate a node.

    Filter keys follow the `field__lookup` convention where lookup is one
    of: `eq`, `ne`, `gt`, `gte`, `lt`, `lte`, `in`, `nin`, `like`, `isnull`.
    A double underscore inside the field part separates table alias and
    column: `link__queue_id` means `link.queue_id`.
    """

    _OP_MAP = {
        "eq": "$eq",
        "ne": "$ne",
        "gt": "$gt",
        "gte": "$gte",
        "lt": "$lt",
        "lte": "$lte",
        "in": "$in",
        "nin": "$nin",
        "like": "$like",
        "isnull": "$isnull",
    }

    def __init__(self, negate: bool = False, **filters: Any):
        self.filters: Dict[str, Any] = filters
        self.children: List["Q"] = []
        self.connector = "$and"
        self.negate = negate

    @classmethod
    def from_field(cls, field: str, **lookups: Any) -> "Q":
        """Build a leaf for a field whose name is not a valid keyword (e.g. `main_table.store_id`)."""
        node = cls()
        node.filters = {f"{field.replace('.', '__')}__{op}": value for op, value in lookups.items()}
        return node

    def __and__(self, other: "Q") -> "Q":
        node = Q()
        node.connector = "$and"
        node.children = [self, other]
        return node

    def __or__(self, other: "Q") -> "Q":
        node = Q()
        node.connector = "$or"
        node.children = [self, other]
        return node

    def __invert__(self) -> "Q":
        q = deepcopy(self)
        q.negate = not self.negate
        return q

    def __str__(self) -> str:
        return str(self.to_dict())

    def __repr__(self) -> str:
        return f"<Q: {self.to_dict()}>"

    # -------------------
    # Universal dict representation
    # -------------------
    def _leaf_to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Convert leaf filters to `{field: {op: value}}` with dotted field names."""
        result: Dict[str, Dict[str, Any]] = {}
        for key, value in self.filters.items():
            field, op = key, "$eq"
            if "__" in key:
                # "link__letter_sent_at__isnull" -> field="link__letter_sent_at", lookup="isnull"
                head, lookup = key.rsplit("__", 1)
                if lookup in self._OP_MAP:
                    field, op = head, self._OP_MAP[lookup]
            field_key = field.replace("__", ".")
            result.setdefault(field_key, {})
            result[field_key][op] = value
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Return the universal dict representation of this node.

        - Leaves become `{field: {op: value}}` mappings.
        - Boolean combinations use `{"$and": [...]}`, `{"$or": [...]}`.
        - Negation wraps with `{"$not": node}`.
        """
        if self.children:
            node = {self.connector: [child.to_dict() for child in self.children]}
        else:
            node = self._leaf_to_dict()
        if self.negate:
            return {"$not": node}
        return node

    # -------------------
    # Expression / SQL
    # -------------------
    def to_expression(self, field_map: Optional["FieldMap"] = None) -> "Expression":
        """Resolve this node into an expression tree."""
        from .where import build_condition

        return build_condition(self.to_dict(), field_map)

    def to_expr(self, dialect: str = "postgres", field_map: Optional["FieldMap"] = None) -> str:
        """Render as a SQL predicate with literals inlined, for debugging."""
        from .compilers import get_compiler

        return get_compiler(dialect).to_expr(self.to_expression(field_map))
