"""Universal filter dicts to expression trees.

Accepts the universal representation produced by `Q.to_dict()` (or written
by hand) and resolves every field name through a `FieldMap`:

    {"$and": [{"store_id": {"$in": [1, 2]}}, {"customer_id": {"$gt": 0}}]}
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from subscriberq.exceptions import InvalidConditionError

from .expressions import (
    Comparison,
    Expression,
    InList,
    IsNull,
    Like,
    Literal,
    Not,
    and_,
    or_,
)

if TYPE_CHECKING:
    from subscriberq.field_map import FieldMap

__all__ = ("LOOKUP_ALIASES", "build_condition", "condition_to_node")

_COMPARISON_OPS = {
    "$eq": "=",
    "$ne": "!=",
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
}

# Lookup names accepted in `add_field_to_filter` condition dicts
LOOKUP_ALIASES = {
    "eq": "$eq",
    "ne": "$ne",
    "neq": "$ne",
    "gt": "$gt",
    "gte": "$gte",
    "gteq": "$gte",
    "lt": "$lt",
    "lte": "$lte",
    "lteq": "$lte",
    "in": "$in",
    "nin": "$nin",
    "like": "$like",
    "isnull": "$isnull",
    "null": "$isnull",
    "notnull": "$notnull",
}


def _in_values(field: str, value: Any) -> tuple:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,)
    return tuple(value)


def condition_to_node(field: str, condition: Any) -> Dict[str, Any]:
    """Translate an `add_field_to_filter` condition into a universal leaf.

    - scalar -> `{field: {"$eq": value}}`
    - None -> `{field: {"$isnull": True}}`
    - dict of lookups -> one op per lookup (ANDed)
    """
    if condition is None:
        return {field: {"$isnull": True}}
    if not isinstance(condition, dict):
        return {field: {"$eq": condition}}
    if not condition:
        raise InvalidConditionError("Empty filter condition", field=field)
    ops: Dict[str, Any] = {}
    for lookup, value in condition.items():
        op = LOOKUP_ALIASES.get(lookup)
        if op is None:
            raise InvalidConditionError(
                "Unsupported lookup",
                field=field,
                lookup=lookup,
                supported=sorted(LOOKUP_ALIASES),
            )
        if op == "$notnull":
            op, value = "$isnull", not value
        ops[op] = value
    return {field: ops}


def _leaf(expr: Expression, field: str, op: str, value: Any) -> Expression:
    if op in _COMPARISON_OPS:
        if value is None and op in ("$eq", "$ne"):
            return IsNull(expr, negate=(op == "$ne"))
        return Comparison(expr, _COMPARISON_OPS[op], Literal(value))
    if op in ("$in", "$nin"):
        return InList(expr, _in_values(field, value), negate=(op == "$nin"))
    if op == "$isnull":
        return IsNull(expr, negate=not value)
    if op == "$like":
        return Like(expr, str(value))
    raise InvalidConditionError("Unsupported operator", field=field, operator=op)


def build_condition(node: Dict[str, Any], field_map: Optional["FieldMap"] = None) -> Expression:
    """Recursively transform a universal node into an expression tree."""
    if not isinstance(node, dict):
        raise TypeError(f"filter node must be a dict, got {type(node).__name__}")
    if "$and" in node:
        return and_(*(build_condition(x, field_map) for x in node["$and"]))
    if "$or" in node:
        return or_(*(build_condition(x, field_map) for x in node["$or"]))
    if "$not" in node:
        return Not(build_condition(node["$not"], field_map))
    if not node:
        raise InvalidConditionError("Empty filter node")

    if field_map is None:
        from subscriberq.field_map import FieldMap

        field_map = FieldMap()

    parts: List[Expression] = []
    for field, expr in node.items():
        target = field_map.resolve(field)
        if not isinstance(expr, dict):
            expr = {"$eq": expr}
        for op, value in expr.items():
            parts.append(_leaf(target, field, op, value))
    return and_(*parts)
