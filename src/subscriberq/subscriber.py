"""
Newsletter subscriber collection.

Adds the subscriber-specific query fragments on top of `Collection`:
queue linkage, customer names from the EAV value tables, store metadata,
and the computed subscriber ``type`` column.
"""

from typing import Optional

from .abc import AttributeMetadataProvider, DatabaseAdapter
from .collection import Collection
from .constants import (
    MAIN_TABLE_ALIAS,
    QUEUE_LINK_ALIAS,
    STORE_ALIAS,
    SubscriberStatus,
    SubscriberType,
)
from .field_map import FieldMap
from .querydsl.expressions import Comparison, Conditional, and_, col, lit
from .querydsl.select import Select, SelectPart
from .schema import Queue, Store, Subscriber
from .settings import settings as api_settings
from .types import QueueRef, StoreIds

__all__ = ("SubscriberCollection",)

_MAIN = MAIN_TABLE_ALIAS

# (table alias, output column, attribute code), in join order
_CUSTOMER_NAME_JOINS = (
    ("customer_lastname_table", "customer_lastname", "lastname"),
    ("customer_firstname_table", "customer_firstname", "firstname"),
)


class SubscriberCollection(Collection):
    """Query composer for newsletter subscribers.

    Every configuration method returns the collection itself, so calls chain:

        >>> subscribers = (
        ...     SubscriberCollection(db, metadata)
        ...     .use_queue(queue)
        ...     .use_only_unsent()
        ...     .show_customer_info()
        ... )

    The only state besides the statement is the queue-joined flag. It starts
    False, becomes True in `use_queue` and is never reset; `use_only_unsent`
    depends on it because the unsent filter references the ``link`` alias.
    """

    item_class = Subscriber

    def __init__(
        self,
        db: DatabaseAdapter,
        metadata: AttributeMetadataProvider,
        table_prefix: Optional[str] = None,
    ) -> None:
        super().__init__(
            db,
            api_settings.SUBSCRIBER_TABLE,
            id_field_name="subscriber_id",
            table_prefix=table_prefix,
        )
        self._metadata = metadata
        self._queue_link_table = self.get_table(api_settings.QUEUE_LINK_TABLE)
        self._store_table = self.get_table(api_settings.STORE_TABLE)
        self._queue_joined_flag = False
        self._queue_ids: frozenset = frozenset()
        self._unsent_only = False

    def _init_field_map(self) -> FieldMap:
        # fields represented in several tables
        subscriber_type = Conditional(
            Comparison(col(_MAIN, "customer_id"), "=", lit(0)),
            lit(int(SubscriberType.GUEST)),
            lit(int(SubscriberType.CUSTOMER)),
        )
        return super()._init_field_map().with_fields(
            customer_lastname=col("customer_lastname_table", "value"),
            customer_firstname=col("customer_firstname_table", "value"),
            type=subscriber_type,
            website_id=col(STORE_ALIAS, "website_id"),
            group_id=col(STORE_ALIAS, "group_id"),
            store_id=col(_MAIN, "store_id"),
        )

    @property
    def queue_joined_flag(self) -> bool:
        return self._queue_joined_flag

    def get_queue_joined_flag(self) -> bool:
        return self._queue_joined_flag

    def use_queue(self, queue: QueueRef) -> "SubscriberCollection":
        """Limit to subscribers linked to `queue` (a `Queue` or its id).

        The link table is joined once; each distinct queue id adds one
        ``link.queue_id`` condition.
        """
        queue_id = queue.id if isinstance(queue, Queue) else int(queue)
        select = self.get_select()
        if not select.has_join(QUEUE_LINK_ALIAS):
            select = select.join(
                self._queue_link_table,
                QUEUE_LINK_ALIAS,
                Comparison(col(QUEUE_LINK_ALIAS, "subscriber_id"), "=", col(_MAIN, "subscriber_id")),
            )
        if queue_id not in self._queue_ids:
            select = select.where(Comparison(col(QUEUE_LINK_ALIAS, "queue_id"), "=", lit(queue_id)))
            self._queue_ids = self._queue_ids | {queue_id}
        self._set_select(select)
        self._queue_joined_flag = True
        return self

    def use_only_unsent(self) -> "SubscriberCollection":
        """Keep only links whose letter has not been sent; no-op without a queue join."""
        if self._queue_joined_flag and not self._unsent_only:
            self.add_field_to_filter(f"{QUEUE_LINK_ALIAS}.letter_sent_at", {"null": True})
            self._unsent_only = True
        return self

    def show_customer_info(self) -> "SubscriberCollection":
        """Left-join customer last and first names as ``customer_lastname`` / ``customer_firstname``.

        Raises:
            AttributeNotFoundError: Propagated from the metadata provider
        """
        entity_type = api_settings.CUSTOMER_ENTITY_TYPE
        resolved = [
            (alias, column, self._metadata.get_attribute_metadata(entity_type, code))
            for alias, column, code in _CUSTOMER_NAME_JOINS
        ]
        select = self.get_select()
        for alias, column, attribute in resolved:
            if select.has_join(alias):
                continue
            on = and_(
                Comparison(col(alias, "entity_id"), "=", col(_MAIN, "customer_id")),
                Comparison(col(alias, "attribute_id"), "=", lit(int(attribute.attribute_id))),
            )
            select = select.join_left(attribute.attribute_table, alias, on, columns={column: "value"})
        self._set_select(select)
        return self

    def add_subscriber_type_field(self) -> "SubscriberCollection":
        """Project ``type``: 1 for guests (customer_id = 0), 2 for customers."""
        select = self.get_select()
        if not select.has_column("type"):
            self._set_select(select.add_column(self.get_mapped_field("type"), "type"))
        return self

    def show_store_info(self) -> "SubscriberCollection":
        """Join the store table, projecting ``group_id`` and ``website_id``."""
        select = self.get_select()
        if not select.has_join(STORE_ALIAS):
            self._set_select(
                select.join(
                    self._store_table,
                    STORE_ALIAS,
                    Comparison(col(STORE_ALIAS, "store_id"), "=", col(_MAIN, "store_id")),
                    columns=["group_id", "website_id"],
                )
            )
        return self

    def get_select_count_sql(self) -> Select:
        """Count statement built from a copy of the select without its HAVING part.

        HAVING conditions may reference projected columns that the count
        statement drops, so they are removed. The collection's own select is
        left as it is.
        """
        return self._build_count_select(self.get_select().reset(SelectPart.HAVING))

    def use_only_customers(self) -> "SubscriberCollection":
        self.add_field_to_filter(f"{_MAIN}.customer_id", {"gt": 0})
        return self

    def use_only_subscribed(self) -> "SubscriberCollection":
        self.add_field_to_filter(f"{_MAIN}.subscriber_status", int(SubscriberStatus.SUBSCRIBED))
        return self

    def add_store_filter(self, store_ids: StoreIds) -> "SubscriberCollection":
        """Filter by one store or several, given as ids or `Store` models.

        An empty collection of stores matches nothing.
        """
        if isinstance(store_ids, (int, Store)):
            store_ids = [store_ids]
        ids = [s.store_id if isinstance(s, Store) else int(s) for s in store_ids]
        self.add_field_to_filter(f"{_MAIN}.store_id", {"in": ids})
        return self
