from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from aftership_orders.application.order_mapper import OrderProjector, parse_fields
from aftership_orders.application.order_query import OrderQueryBuilder
from aftership_orders.domain.caller import READ_PRIVATE_ORDERS, Caller
from aftership_orders.domain.errors import ApiError, Forbidden, NotFound
from aftership_orders.domain.interfaces import IOrderRepository, IPermissionService
from aftership_orders.domain.order import ORDER_NOTE_TYPE, ORDER_POST_TYPE, Order
from aftership_orders.domain.query import OrderPage, Pagination

Fields = str | Iterable[str] | None


class OrdersResource:
    """Handles the ``/orders`` resource on behalf of a single caller.

    One instance is built per request; it holds no state between calls.
    Failures are raised as ``ApiError`` subclasses and rendered by the web
    layer.
    """

    def __init__(
        self,
        repository: IOrderRepository,
        permissions: IPermissionService,
        caller: Caller,
        query_builder: OrderQueryBuilder,
        projector: OrderProjector,
    ) -> None:
        self._repository = repository
        self._permissions = permissions
        self._caller = caller
        self._query_builder = query_builder
        self._projector = projector

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _load(self, order_id: Any) -> Order | None:
        try:
            order_id = int(order_id)
        except (TypeError, ValueError):
            return None
        if order_id <= 0:
            return None
        order = self._repository.get(order_id)
        if order is None or order.order_type != ORDER_POST_TYPE:
            return None
        return order

    def _validate_request(self, order_id: Any, action: str) -> Order:
        """Resolve ``order_id`` and check the caller may perform ``action`` on it.

        Raises:
            NotFound: if the id is malformed or does not resolve to an order.
            Forbidden: if the caller lacks the capability for ``action``.
        """
        order = self._load(order_id)
        if order is None:
            raise NotFound("aftership_api_invalid_order_id", "Invalid order ID")

        if not self._permissions.can(self._caller, order, action):
            logger.warning(
                f"Caller {self._caller.user_id} refused '{action}' on order {order.id}"
            )
            raise Forbidden(
                f"aftership_api_user_cannot_{action}_order",
                f"You do not have permission to {action} this order",
            )
        return order

    def _is_readable(self, order: Order) -> bool:
        return self._permissions.can(self._caller, order, "read")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list_orders(
        self,
        filter: Mapping[str, Any] | None = None,
        status: str | None = None,
        page: int = 1,
        fields: Fields = None,
    ) -> OrderPage:
        """Return one page of orders the caller can read.

        Orders that vanished since the query ran, or that the caller may not
        read, are left out of the page without failing the request.
        """
        query = self._query_builder.build(filter, status, page)
        result = self._repository.query(query)
        field_names = parse_fields(fields)

        orders: list[dict] = []
        for order_id in result.ids:
            order = self._load(order_id)
            if order is None or not self._is_readable(order):
                continue
            orders.append(self._projector.order_view(order, field_names))

        return OrderPage(
            orders=orders,
            pagination=Pagination(
                total=result.total,
                per_page=result.per_page,
                total_pages=result.total_pages,
                page=result.page,
            ),
        )

    def count_orders(
        self, filter: Mapping[str, Any] | None = None, status: str | None = None
    ) -> dict:
        if not self._permissions.has_capability(self._caller, READ_PRIVATE_ORDERS):
            raise Forbidden(
                "aftership_api_user_cannot_read_orders_count",
                "You do not have permission to read the orders count",
            )
        query = self._query_builder.build(filter, status)
        result = self._repository.query(query.model_copy(update={"per_page": 1}))
        return {"count": int(result.total)}

    def get_order(self, order_id: Any, fields: Fields = None) -> dict:
        order = self._validate_request(order_id, "read")
        return {"order": self._projector.order_view(order, parse_fields(fields))}

    def edit_order(self, order_id: Any, data: Mapping[str, Any] | None) -> dict:
        """Apply a status transition; every other key in ``data`` is ignored."""
        order = self._validate_request(order_id, "edit")
        data = data or {}

        if status := data.get("status"):
            note = data.get("note") or ""
            self._repository.update_status(order.id, str(status), str(note))
            logger.info(f"Order {order.id} status set to '{status}'")

        return self.get_order(order.id)

    def delete_order(self, order_id: Any, force: bool | str = False) -> dict:
        order = self._validate_request(order_id, "delete")
        force = force is True or str(force).lower() == "true"

        if not self._repository.delete(order.id, force=force):
            raise ApiError(
                "aftership_api_cannot_delete_order",
                "This order cannot be deleted",
                status_code=500,
            )

        logger.info(f"Order {order.id} {'deleted' if force else 'trashed'}")
        if force:
            return {"message": "Permanently deleted order"}
        return {"message": "Deleted order"}

    def get_order_notes(self, order_id: Any, fields: Fields = None) -> dict:
        order = self._validate_request(order_id, "read")
        notes = self._repository.get_notes(
            order.id,
            comment_type=ORDER_NOTE_TYPE,
            approved_only=True,
            include_order_notes=True,
        )
        return {
            "order_notes": self._projector.order_note_views(
                order.id, notes, parse_fields(fields)
            )
        }

    @staticmethod
    def ping() -> str:
        return "pong"
