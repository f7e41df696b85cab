"""Tests for the HTTP routes, using FastAPI's TestClient."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from aftership_orders.application.response_filters import ResponseFilters
from aftership_orders.domain.caller import (
    EDIT_ORDER,
    READ_ORDER,
    READ_PRIVATE_ORDERS,
)
from aftership_orders.domain.order import Order, OrderNote
from aftership_orders.entrypoints.api import create_app
from aftership_orders.entrypoints.settings import Config
from aftership_orders.infrastructure.memory_repository import InMemoryOrderRepository
from aftership_orders.infrastructure.woocommerce_client import WooCommerceClient
from aftership_orders.infrastructure.woocommerce_repository import (
    WooCommerceOrderRepository,
)

PREFIX = "/wc-api/aftership/v1"
ADMIN_KEY = "ck_admin"
READER_KEY = "ck_reader"
BASE = datetime(2025, 2, 1, 10, 0, 0, tzinfo=UTC)


def _make_order(order_id: int, **kwargs) -> Order:
    defaults = dict(
        id=order_id,
        order_number=str(1000 + order_id),
        status="processing",
        created_at=BASE + timedelta(days=order_id),
        updated_at=BASE + timedelta(days=order_id),
    )
    return Order(**{**defaults, **kwargs})


def _settings(**kwargs) -> Config:
    defaults = dict(
        ORDER_STORE="memory",
        WOOCOMMERCE_VERSION="8.5.1",
        TRACKING_PLUGIN="aftership",
        DEFAULT_PAGE_SIZE=2,
        API_PREFIX=PREFIX,
        API_KEYS={
            ADMIN_KEY: [READ_ORDER, EDIT_ORDER, READ_PRIVATE_ORDERS],
            READER_KEY: [READ_ORDER],
        },
    )
    return Config(_env_file=None, **{**defaults, **kwargs})


@pytest.fixture
def repository() -> InMemoryOrderRepository:
    orders = [_make_order(i) for i in range(1, 6)]
    orders[0] = _make_order(1, meta={"_tracking_number": "1Z999"})
    notes = [OrderNote(id=1, order_id=1, created_at=BASE, content="Packed", meta={"is_customer_note": 1})]
    return InMemoryOrderRepository(orders, notes)


@pytest.fixture
def client(repository: InMemoryOrderRepository) -> TestClient:
    return TestClient(create_app(_settings(), repository))


def _admin() -> dict:
    return {"X-AfterShip-Key": ADMIN_KEY}


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def test_ping_needs_no_credentials(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/ping")
    assert response.status_code == 200
    assert response.json() == "pong"


@pytest.mark.parametrize("path", ["/orders/abc", "/orders/1x/notes", "/orders/-1"])
def test_non_numeric_ids_do_not_route(client: TestClient, path: str) -> None:
    assert client.get(f"{PREFIX}{path}", headers=_admin()).status_code == 404


# ---------------------------------------------------------------------------
# GET /orders
# ---------------------------------------------------------------------------


def test_list_orders_with_pagination_headers(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders", params={"page": 2}, headers=_admin())

    assert response.status_code == 200
    assert [o["id"] for o in response.json()["orders"]] == [3, 2]
    assert response.headers["X-WC-Total"] == "5"
    assert response.headers["X-WC-TotalPages"] == "3"
    link = response.headers["Link"]
    assert 'rel="first"' in link
    assert 'rel="prev"' in link
    assert 'rel="next"' in link
    assert 'rel="last"' in link
    assert "page=3" in link


def test_list_orders_filter_params(client: TestClient) -> None:
    response = client.get(
        f"{PREFIX}/orders",
        params={"filter[limit]": "-1", "filter[order]": "asc", "fields": "id"},
        headers=_admin(),
    )

    assert response.json() == {"orders": [{"id": i} for i in range(1, 6)]}
    assert "Link" not in response.headers


def test_list_orders_invalid_filter_is_400(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders", params={"filter[limit]": "lots"}, headers=_admin())

    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "aftership_api_invalid_filter"


def test_list_orders_anonymous_gets_empty_page(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders")

    assert response.status_code == 200
    assert response.json() == {"orders": []}
    assert response.headers["X-WC-Total"] == "5"


def test_unknown_api_key_is_anonymous(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/1", headers={"X-AfterShip-Key": "nope"})
    assert response.status_code == 401


# ---------------------------------------------------------------------------
# GET /orders/count
# ---------------------------------------------------------------------------


def test_count_orders(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/count", headers=_admin())
    assert response.json() == {"count": 5}


def test_count_orders_forbidden_for_reader(client: TestClient) -> None:
    response = client.get(
        f"{PREFIX}/orders/count", params={"status": "completed"}, headers={"X-AfterShip-Key": READER_KEY}
    )

    assert response.status_code == 401
    assert response.json() == {
        "errors": [
            {
                "code": "aftership_api_user_cannot_read_orders_count",
                "message": "You do not have permission to read the orders count",
            }
        ]
    }


# ---------------------------------------------------------------------------
# GET / PUT /orders/{id}
# ---------------------------------------------------------------------------


def test_get_order(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/1", headers={"X-AfterShip-Key": READER_KEY})

    order = response.json()["order"]
    assert order["id"] == 1
    assert order["created_at"] == "2025-02-02T10:00:00Z"
    assert order["aftership"]["woocommerce"]["trackings"] == [{"tracking_number": "1Z999"}]


def test_get_missing_order_is_404(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/999", headers=_admin())

    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == "aftership_api_invalid_order_id"


def test_edit_order_status(client: TestClient, repository: InMemoryOrderRepository) -> None:
    response = client.put(
        f"{PREFIX}/orders/2",
        json={"status": "shipped", "note": "left with neighbor"},
        headers=_admin(),
    )

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "shipped"
    assert repository.get(2).status == "shipped"


def test_edit_order_without_body(client: TestClient) -> None:
    response = client.put(f"{PREFIX}/orders/2", headers=_admin())

    assert response.status_code == 200
    assert response.json()["order"]["status"] == "processing"


def test_edit_order_forbidden_for_reader(client: TestClient) -> None:
    response = client.put(
        f"{PREFIX}/orders/2", json={"status": "shipped"}, headers={"X-AfterShip-Key": READER_KEY}
    )
    assert response.status_code == 401
    assert response.json()["errors"][0]["code"] == "aftership_api_user_cannot_edit_order"


def test_delete_is_not_routed(client: TestClient, repository: InMemoryOrderRepository) -> None:
    response = client.delete(f"{PREFIX}/orders/2", headers=_admin())

    assert response.status_code == 405
    assert repository.get(2) is not None


# ---------------------------------------------------------------------------
# GET /orders/{id}/notes
# ---------------------------------------------------------------------------


def test_get_order_notes(client: TestClient) -> None:
    response = client.get(f"{PREFIX}/orders/1/notes", headers=_admin())

    assert response.json() == {
        "order_notes": [
            {"id": 1, "created_at": "2025-02-01T10:00:00Z", "note": "Packed", "customer_note": True}
        ]
    }


def test_response_filters_are_applied(repository: InMemoryOrderRepository) -> None:
    filters = ResponseFilters()
    filters.add_order_filter(lambda view, order, fields: {**view, "currency": "EUR"})
    client = TestClient(create_app(_settings(), repository, filters=filters))

    response = client.get(f"{PREFIX}/orders/1", headers=_admin())

    assert response.json()["order"]["currency"] == "EUR"


# ---------------------------------------------------------------------------
# WooCommerce store errors
# ---------------------------------------------------------------------------


def _store_node(order_id: int) -> dict:
    return {
        "id": order_id,
        "number": str(1000 + order_id),
        "status": "processing",
        "date_created_gmt": "2025-02-01T10:00:00",
        "date_modified_gmt": "2025-02-01T10:00:00",
    }


def _store_client(handler) -> TestClient:
    store = WooCommerceOrderRepository(
        WooCommerceClient(httpx.Client(transport=httpx.MockTransport(handler)), "https://shop.example.com")
    )
    return TestClient(create_app(_settings(ORDER_STORE="woocommerce"), store))


def test_store_rejection_keeps_its_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=_store_node(5))
        return httpx.Response(
            400, json={"code": "rest_invalid_param", "message": "Invalid parameter(s): status"}
        )

    response = _store_client(handler).put(f"{PREFIX}/orders/5", json={"status": "bogus"}, headers=_admin())

    assert response.status_code == 400
    error = response.json()["errors"][0]
    assert error["code"] == "aftership_api_store_error"
    assert "Invalid parameter(s): status" in error["message"]


def test_store_failure_is_bad_gateway() -> None:
    response = _store_client(lambda request: httpx.Response(500, text="Internal Server Error")).get(
        f"{PREFIX}/orders/5", headers=_admin()
    )

    assert response.status_code == 502
    assert response.json()["errors"][0]["code"] == "aftership_api_store_error"
