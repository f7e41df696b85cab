"""Tracking metadata extraction.

Orders may carry tracking data written by one of three integrations. Each is
read by an extractor function; extractors are tried in priority order and the
first one that yields records wins:

1. the AfterShip plugin (only when it is the configured tracking plugin)
2. the old Shipment Tracking plugin (single ``_tracking_number`` meta)
3. Shipment Tracking 1.6.4 and later (``_wc_shipment_tracking_items`` list)
"""

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from aftership_orders.domain.order import TrackingRecord

TrackingExtractor = Callable[[Mapping[str, Any]], list[TrackingRecord]]

AFTERSHIP_PLUGIN = "aftership"

# Record field -> order meta key written by the AfterShip plugin
AFTERSHIP_META_KEYS: dict[str, str] = {
    "tracking_provider": "_aftership_tracking_provider",
    "tracking_number": "_aftership_tracking_number",
    "tracking_ship_date": "_aftership_tracking_shipdate",
    "tracking_postal_code": "_aftership_tracking_postal",
    "tracking_account_number": "_aftership_tracking_account",
    "tracking_key": "_aftership_tracking_key",
    "tracking_destination_country": "_aftership_tracking_destination_country",
}

LEGACY_TRACKING_NUMBER_KEY = "_tracking_number"
SHIPMENT_TRACKING_ITEMS_KEY = "_wc_shipment_tracking_items"


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_list(value: Any) -> list:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def aftership_tracking(meta: Mapping[str, Any]) -> list[TrackingRecord]:
    """Read the AfterShip plugin's tracking fields."""
    values = {field: _text(meta.get(key)) for field, key in AFTERSHIP_META_KEYS.items()}
    if not values["tracking_number"]:
        return []
    return [TrackingRecord(**values)]


def legacy_tracking_number(meta: Mapping[str, Any]) -> list[TrackingRecord]:
    """Read the number-only field of the old Shipment Tracking plugin."""
    return [
        TrackingRecord(tracking_number=number)
        for raw in _as_list(meta.get(LEGACY_TRACKING_NUMBER_KEY))
        if (number := _text(raw))
    ]


def _ship_date(timestamp: Any) -> str | None:
    if timestamp in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(timestamp), tz=UTC).strftime("%Y-%m-%d")
    except (TypeError, ValueError):
        return _text(timestamp)


def shipment_tracking_items(meta: Mapping[str, Any]) -> list[TrackingRecord]:
    """Read the structured item list of Shipment Tracking 1.6.4+."""
    records: list[TrackingRecord] = []
    for item in _as_list(meta.get(SHIPMENT_TRACKING_ITEMS_KEY)):
        if not isinstance(item, Mapping):
            continue
        number = _text(item.get("tracking_number"))
        if not number:
            continue
        records.append(
            TrackingRecord(
                tracking_number=number,
                # custom provider name takes precedence over the built-in slug
                tracking_provider=_text(item.get("custom_tracking_provider"))
                or _text(item.get("tracking_provider")),
                tracking_ship_date=_ship_date(item.get("date_shipped")),
            )
        )
    return records


def tracking_extractors(plugin: str | None) -> list[TrackingExtractor]:
    """Return the extractors to try, highest priority first."""
    extractors: list[TrackingExtractor] = []
    if plugin == AFTERSHIP_PLUGIN:
        extractors.append(aftership_tracking)
    extractors.extend([legacy_tracking_number, shipment_tracking_items])
    return extractors


def extract_trackings(
    meta: Mapping[str, Any], extractors: list[TrackingExtractor]
) -> list[TrackingRecord]:
    for extractor in extractors:
        if records := extractor(meta):
            return records
    return []
