"""
subscriberq - query composition for newsletter subscriber lists.

Exposes the collections, the query DSL entry points and the schema models
for easy access.
"""

from .abc import AttributeMetadataProvider, DatabaseAdapter
from .collection import Collection
from .constants import SubscriberStatus, SubscriberType
from .field_map import FieldMap
from .metadata import DatabaseAttributeMetadata, StaticAttributeMetadata
from .querydsl import Q, Select
from .schema import AttributeMetadata, Queue, Store, Subscriber
from .subscriber import SubscriberCollection

__version__ = "0.1.0"

__all__ = [
    "SubscriberCollection",
    "Collection",
    "FieldMap",
    "Q",
    "Select",
    "DatabaseAdapter",
    "AttributeMetadataProvider",
    "StaticAttributeMetadata",
    "DatabaseAttributeMetadata",
    "Subscriber",
    "Queue",
    "Store",
    "AttributeMetadata",
    "SubscriberStatus",
    "SubscriberType",
]
