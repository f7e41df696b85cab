from datetime import UTC, datetime

from loguru import logger

from aftership_orders.domain.order import (
    ORDER_NOTE_TYPE,
    Address,
    BillingAddress,
    LineItem,
    Order,
    OrderNote,
)
from aftership_orders.domain.query import UNLIMITED, OrderQuery, OrderQueryResult
from aftership_orders.infrastructure.woocommerce_client import WooCommerceClient


def _parse_gmt(value: str | None) -> datetime:
    """WooCommerce ``*_gmt`` fields are UTC timestamps without an offset."""
    if not value:
        return datetime.fromtimestamp(0, tz=UTC)
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S")


class WooCommerceOrderRepository:
    """Reads and updates orders through the WooCommerce REST API."""

    # WooCommerce rejects per_page above 100
    MAX_PAGE_SIZE = 100

    def __init__(self, client: WooCommerceClient) -> None:
        self._client = client

    def _params(self, query: OrderQuery) -> dict:
        params: dict = {
            "_fields": "id",
            "orderby": query.orderby,
            "order": query.order,
            "status": ",".join(query.statuses) if query.statuses else "any",
        }
        if query.offset:
            params["offset"] = query.offset
        if query.search:
            params["search"] = query.search
        for name in ("created_after", "created_before", "modified_after", "modified_before"):
            if value := getattr(query, name):
                params[name.replace("created_", "")] = _iso(value)
                # _iso renders UTC
                params["dates_are_gmt"] = "true"
        return params

    def _fetch_page(self, params: dict, page: int, per_page: int) -> tuple[list[int], int, int]:
        response = self._client.execute(
            "GET", "orders", params={**params, "page": page, "per_page": per_page}
        )
        ids = [int(row["id"]) for row in response.json()]
        total = int(response.headers.get("X-WP-Total", len(ids)))
        total_pages = int(response.headers.get("X-WP-TotalPages", 1 if ids else 0))
        return ids, total, total_pages

    def query(self, query: OrderQuery) -> OrderQueryResult:
        if query.statuses is not None and not query.statuses:
            return OrderQueryResult(page=query.page, per_page=query.per_page)

        params = self._params(query)

        if query.per_page != UNLIMITED:
            per_page = min(query.per_page, self.MAX_PAGE_SIZE)
            ids, total, total_pages = self._fetch_page(params, query.page, per_page)
            return OrderQueryResult(
                ids=ids,
                total=total,
                page=query.page,
                per_page=per_page,
                total_pages=total_pages,
            )

        # Unlimited: walk every page and merge into one
        ids: list[int] = []
        page = 1
        while True:
            batch, total, total_pages = self._fetch_page(params, page, self.MAX_PAGE_SIZE)
            ids.extend(batch)
            if page >= total_pages:
                break
            page += 1
        logger.debug(f"Fetched {len(ids)} order id(s) over {page} page(s)")
        return OrderQueryResult(
            ids=ids,
            total=len(ids),
            page=1,
            per_page=len(ids),
            total_pages=1 if ids else 0,
        )

    def get(self, order_id: int) -> Order | None:
        response = self._client.execute("GET", f"orders/{order_id}", allow_not_found=True)
        if response.status_code == 404:
            return None
        return self._map(response.json())

    def update_status(self, order_id: int, status: str, note: str = "") -> None:
        status = status.removeprefix("wc-")
        current = self.get(order_id)
        if current is not None and current.status == status:
            logger.debug(f"Order {order_id} already '{status}', nothing to record")
            return

        self._client.execute("PUT", f"orders/{order_id}", json={"status": status})
        if note:
            self._client.execute(
                "POST", f"orders/{order_id}/notes", json={"note": note}
            )

    def get_notes(
        self,
        order_id: int,
        *,
        comment_type: str | None = None,
        approved_only: bool = True,
        include_order_notes: bool = False,
    ) -> list[OrderNote]:
        # The notes endpoint only ever serves approved order notes
        if not include_order_notes or comment_type not in (None, ORDER_NOTE_TYPE):
            return []
        response = self._client.execute(
            "GET", f"orders/{order_id}/notes", params={"type": "any"}
        )
        return [self._map_note(order_id, row) for row in response.json()]

    def delete(self, order_id: int, force: bool = False) -> bool:
        response = self._client.execute(
            "DELETE",
            f"orders/{order_id}",
            params={"force": "true" if force else "false"},
            allow_not_found=True,
        )
        return response.status_code != 404

    @staticmethod
    def _map_address(raw: dict | None, cls: type[Address] = Address) -> Address:
        raw = raw or {}
        return cls(**{name: str(raw.get(name) or "") for name in cls.model_fields})

    @staticmethod
    def _map(node: dict) -> Order:
        """Map a raw REST order payload to an ``Order`` domain object."""
        return Order(
            id=node["id"],
            order_number=str(node.get("number") or node["id"]),
            status=node["status"],
            created_at=_parse_gmt(node.get("date_created_gmt")),
            updated_at=_parse_gmt(node.get("date_modified_gmt")),
            billing_address=WooCommerceOrderRepository._map_address(
                node.get("billing"), BillingAddress
            ),
            shipping_address=WooCommerceOrderRepository._map_address(node.get("shipping")),
            customer_note=node.get("customer_note") or "",
            line_items=[
                LineItem(id=item["id"], name=item["name"], quantity=int(item["quantity"]))
                for item in node.get("line_items", [])
            ],
            meta={m["key"]: m.get("value") for m in node.get("meta_data", [])},
        )

    @staticmethod
    def _map_note(order_id: int, row: dict) -> OrderNote:
        return OrderNote(
            id=row["id"],
            order_id=order_id,
            created_at=_parse_gmt(row.get("date_created_gmt")),
            content=row.get("note", ""),
            meta={"is_customer_note": bool(row.get("customer_note"))},
        )
