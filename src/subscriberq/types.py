"""Type aliases for the subscriberq package."""

from typing import Any, Dict, Iterable, Union

from .schema import Queue, Store

# Rows as returned by database adapters
Row = Dict[str, Any]

# Store filter input - a store id or Store model, or any iterable of them
StoreIds = Union[int, Store, Iterable[Union[int, Store]]]

# Queue reference - a Queue model or its id
QueueRef = Union[Queue, int]

# Filter condition accepted by Collection.add_field_to_filter
Condition = Union[None, str, int, float, Dict[str, Any]]
