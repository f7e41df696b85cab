from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from aftership_orders.application.response_filters import ResponseFilters
from aftership_orders.application.tracking import (
    TrackingExtractor,
    extract_trackings,
    tracking_extractors,
)
from aftership_orders.domain.order import (
    Address,
    BillingAddress,
    LineItem,
    Order,
    OrderNote,
)

CUSTOMER_NOTE_META_KEY = "is_customer_note"


def format_datetime(value: datetime | None) -> str | None:
    """Format as ISO 8601 in UTC, e.g. ``2025-02-01T10:00:00Z``.

    Naive datetimes are taken to already be in UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_fields(fields: str | Iterable[str] | None) -> list[str] | None:
    """Normalise a ``fields`` parameter to a list of top-level keys, or None."""
    if fields is None:
        return None
    if isinstance(fields, str):
        fields = fields.split(",")
    names = [name.strip() for name in fields if name and name.strip()]
    return names or None


def filter_fields(view: dict, fields: list[str] | None) -> dict:
    if not fields:
        return view
    return {key: value for key, value in view.items() if key in fields}


def is_truthy(value: Any) -> bool:
    # Stored meta values arrive as strings; "0" is false
    if isinstance(value, str):
        return value not in ("", "0")
    return bool(value)


def _map_address(addr: Address) -> dict:
    return {
        "first_name": addr.first_name,
        "last_name": addr.last_name,
        "company": addr.company,
        "address_1": addr.address_1,
        "address_2": addr.address_2,
        "city": addr.city,
        "state": addr.state,
        "postcode": addr.postcode,
        "country": addr.country,
    }


def _map_billing_address(addr: BillingAddress) -> dict:
    return {
        **_map_address(addr),
        "email": addr.email,
        "phone": addr.phone,
    }


def map_line_item(item: LineItem) -> dict:
    return {
        "id": item.id,
        "quantity": int(item.quantity),
        "name": item.name,
    }


def map_order_note(note: OrderNote) -> dict:
    return {
        "id": note.id,
        "created_at": format_datetime(note.created_at),
        "note": note.content,
        "customer_note": is_truthy(note.meta.get(CUSTOMER_NOTE_META_KEY)),
    }


class OrderProjector:
    """Turns domain orders and notes into the public response shape."""

    def __init__(
        self,
        tracking_plugin: str | None = None,
        filters: ResponseFilters | None = None,
        extractors: list[TrackingExtractor] | None = None,
    ) -> None:
        self._filters = filters or ResponseFilters()
        self._extractors = (
            extractors if extractors is not None else tracking_extractors(tracking_plugin)
        )

    def order_view(self, order: Order, fields: list[str] | None = None) -> dict:
        trackings = extract_trackings(order.meta, self._extractors)
        view = {
            "id": order.id,
            "order_number": order.order_number,
            "created_at": format_datetime(order.created_at),
            "updated_at": format_datetime(order.updated_at),
            "status": order.status,
            "billing_address": _map_billing_address(order.billing_address),
            "shipping_address": _map_address(order.shipping_address),
            "note": order.customer_note,
            "line_items": [map_line_item(item) for item in order.line_items],
            "aftership": {
                "woocommerce": {
                    "trackings": [
                        record.model_dump(exclude_none=True) for record in trackings
                    ]
                }
            },
        }
        view = self._filters.apply_order(view, order, fields)
        return filter_fields(view, fields)

    def order_note_views(
        self,
        order_id: int,
        notes: list[OrderNote],
        fields: list[str] | None = None,
    ) -> list[dict]:
        views = [map_order_note(note) for note in notes]
        views = self._filters.apply_order_notes(views, order_id, fields, notes)
        return [filter_fields(view, fields) for view in views]
