from collections.abc import Callable

from aftership_orders.domain.order import Order, OrderNote

OrderResponseFilter = Callable[[dict, Order, list[str] | None], dict]
OrderNotesResponseFilter = Callable[
    [list[dict], int, list[str] | None, list[OrderNote]], list[dict]
]


class ResponseFilters:
    """Post-processing hooks applied to assembled views before they are returned.

    Filters run in registration order; each receives the output of the
    previous one and must return the (possibly new) view.
    """

    def __init__(self) -> None:
        self._order: list[OrderResponseFilter] = []
        self._order_notes: list[OrderNotesResponseFilter] = []

    def add_order_filter(self, func: OrderResponseFilter) -> OrderResponseFilter:
        self._order.append(func)
        return func

    def add_order_notes_filter(
        self, func: OrderNotesResponseFilter
    ) -> OrderNotesResponseFilter:
        self._order_notes.append(func)
        return func

    def apply_order(self, view: dict, order: Order, fields: list[str] | None) -> dict:
        for func in self._order:
            view = func(view, order, fields)
        return view

    def apply_order_notes(
        self,
        views: list[dict],
        order_id: int,
        fields: list[str] | None,
        notes: list[OrderNote],
    ) -> list[dict]:
        for func in self._order_notes:
            views = func(views, order_id, fields, notes)
        return views
