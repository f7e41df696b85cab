from typing import Protocol

from .caller import Caller
from .order import Order, OrderNote
from .query import OrderQuery, OrderQueryResult


class IOrderRepository(Protocol):
    def query(self, query: OrderQuery) -> OrderQueryResult: ...

    def get(self, order_id: int) -> Order | None: ...

    def update_status(self, order_id: int, status: str, note: str = "") -> None:
        """Move the order to ``status`` and record ``note`` with the transition."""
        ...

    def get_notes(
        self,
        order_id: int,
        *,
        comment_type: str | None = None,
        approved_only: bool = True,
        include_order_notes: bool = False,
    ) -> list[OrderNote]:
        """Return the comments attached to an order.

        Order notes are hidden from generic comment listings unless
        ``include_order_notes`` is set for this call.
        """
        ...

    def delete(self, order_id: int, force: bool = False) -> bool: ...


class IPermissionService(Protocol):
    def can(self, caller: Caller, order: Order, action: str) -> bool: ...

    def has_capability(self, caller: Caller, capability: str) -> bool: ...
