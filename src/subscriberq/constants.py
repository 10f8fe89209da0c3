"""
Fixed enumerations and default table names shared by collections and adapters.
"""

from enum import IntEnum


class SubscriberStatus(IntEnum):
    SUBSCRIBED = 1
    NOT_ACTIVE = 2
    UNSUBSCRIBED = 3
    UNCONFIRMED = 4


class SubscriberType(IntEnum):
    """Value of the computed ``type`` column."""

    GUEST = 1
    CUSTOMER = 2


ENTITY_TYPE_CUSTOMER = "customer"

MAIN_TABLE_ALIAS = "main_table"
QUEUE_LINK_ALIAS = "link"
STORE_ALIAS = "store"
