from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

ORDER_POST_TYPE = "shop_order"
ORDER_NOTE_TYPE = "order_note"


class Address(BaseModel):
    """Shipping address as stored on the order."""

    first_name: str = ""
    last_name: str = ""
    company: str = ""
    address_1: str = ""
    address_2: str = ""
    city: str = ""
    state: str = ""
    postcode: str = ""
    country: str = ""  # ISO 3166-1 alpha-2


class BillingAddress(Address):
    """Billing address; carries the customer's contact details."""

    email: str = ""
    phone: str = ""


class LineItem(BaseModel):
    id: int
    name: str
    quantity: int


class TrackingRecord(BaseModel):
    """One shipment tracking entry attached to an order."""

    tracking_provider: str | None = None  # carrier slug, e.g. "ups"
    tracking_number: str | None = None
    tracking_ship_date: str | None = None
    tracking_postal_code: str | None = None
    tracking_account_number: str | None = None
    tracking_key: str | None = None
    tracking_destination_country: str | None = None


class OrderNote(BaseModel):
    """A comment attached to an order.

    Order notes share storage with other comment types; ``comment_type`` and
    ``approved`` are what the store filters on. The customer visibility flag
    is kept in ``meta["is_customer_note"]``.
    """

    id: int
    order_id: int
    created_at: datetime
    content: str
    comment_type: str = ORDER_NOTE_TYPE
    approved: bool = True
    meta: dict[str, Any] = Field(default_factory=dict)


class Order(BaseModel):
    """Domain model representing a store order."""

    id: int
    order_number: str  # Human-readable order number, e.g. "1001"
    order_type: str = ORDER_POST_TYPE
    status: str  # e.g. "processing", without the "wc-" prefix
    created_at: datetime
    updated_at: datetime
    billing_address: BillingAddress = Field(default_factory=BillingAddress)
    shipping_address: Address = Field(default_factory=Address)
    customer_note: str = ""
    line_items: list[LineItem] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
