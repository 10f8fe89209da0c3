"""Compiler utility functions.

Provides helpers for quoting identifiers, formatting SQL values for debug
output, and normalizing filter input.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict


def normalize_where_input(where: Any) -> Dict[str, Any]:
    """Normalize Q object or dict to universal dict format.

    Args:
        where: Q object (with .to_dict() method) or dict

    Returns:
        Universal dict format ready for compilation

    Raises:
        TypeError: If input is neither Q object nor dict
    """
    if hasattr(where, "to_dict") and callable(where.to_dict):
        return where.to_dict()
    elif isinstance(where, dict):
        return where
    else:
        raise TypeError(f"where parameter must be a Q object or dict, got {type(where).__name__}")


def quote_identifier(name: str, quote_char: str = '"') -> str:
    """Quote a single SQL identifier, doubling any embedded quote characters."""
    escaped = name.replace(quote_char, quote_char * 2)
    return f"{quote_char}{escaped}{quote_char}"


def format_value_sql(v: Any) -> str:
    """Format a Python value as an SQL literal.

    Only used for debug rendering; executed statements always bind parameters.
    """
    if v is None:
        return "NULL"
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, (int, float, Decimal)):
        return str(v)
    if isinstance(v, datetime):
        return f"'{v.isoformat(sep=' ')}'"
    if isinstance(v, date):
        return f"'{v.isoformat()}'"
    if isinstance(v, (list, tuple)):
        inner = ", ".join(format_value_sql(x) for x in v)
        return f"({inner})"
    return "'" + str(v).replace("'", "''") + "'"
