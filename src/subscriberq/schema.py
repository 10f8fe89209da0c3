"""Pydantic schemas for rows and metadata handled by collections."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import SubscriberStatus, SubscriberType


class Subscriber(BaseModel):
    """Newsletter subscriber row.

    Columns projected by joins or computed fields (``customer_firstname``,
    ``type``, ``website_id``, ...) are kept as declared optional fields; any
    other extra column is retained on the model as well.
    """

    model_config = ConfigDict(extra="allow")

    subscriber_id: int = Field(..., description="Primary key.")
    store_id: Optional[int] = Field(None, description="Store the subscription belongs to.")
    customer_id: int = Field(0, description="Customer entity id, 0 for guests.")
    subscriber_email: Optional[str] = Field(None, description="Subscriber email address.")
    subscriber_status: Optional[int] = Field(None, description="One of SubscriberStatus.")
    change_status_at: Optional[datetime] = None
    subscriber_confirm_code: Optional[str] = None

    customer_firstname: Optional[str] = None
    customer_lastname: Optional[str] = None
    type: Optional[int] = Field(None, description="Computed SubscriberType.")
    group_id: Optional[int] = None
    website_id: Optional[int] = None

    @property
    def id(self) -> int:
        return self.subscriber_id

    @property
    def email(self) -> Optional[str]:
        return self.subscriber_email

    @property
    def is_subscribed(self) -> bool:
        return self.subscriber_status == SubscriberStatus.SUBSCRIBED

    @property
    def is_guest(self) -> bool:
        return not self.customer_id

    @property
    def subscriber_type(self) -> SubscriberType:
        """Type from the projected column when present, else derived from customer_id."""
        if self.type is not None:
            return SubscriberType(self.type)
        return SubscriberType.GUEST if self.is_guest else SubscriberType.CUSTOMER

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Subscriber":
        return cls.model_validate(dict(row))


class Queue(BaseModel):
    """Newsletter send batch; collections only need its id."""

    queue_id: int
    queue_status: Optional[int] = None
    queue_start_at: Optional[datetime] = None

    @property
    def id(self) -> int:
        return self.queue_id


class Store(BaseModel):
    store_id: int
    code: Optional[str] = None
    website_id: Optional[int] = None
    group_id: Optional[int] = None
    name: Optional[str] = None


class AttributeMetadata(BaseModel):
    """Where an EAV attribute's values live.

    ``attribute_table`` holds rows of (entity_id, attribute_id, value).
    """

    model_config = ConfigDict(frozen=True)

    entity_type: str
    attribute_code: str
    attribute_id: int
    attribute_table: str
    backend_type: str = "varchar"
    entity_type_id: Optional[int] = None
