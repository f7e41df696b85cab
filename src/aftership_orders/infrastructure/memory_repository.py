import math
from datetime import UTC, datetime
from itertools import count

from loguru import logger

from aftership_orders.domain.order import ORDER_NOTE_TYPE, Order, OrderNote
from aftership_orders.domain.query import UNLIMITED, OrderQuery, OrderQueryResult

TRASH_STATUS = "trash"


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class InMemoryOrderRepository:
    """Process-local order store.

    Mirrors the behaviour of the host store that matters to the resource:
    order notes are hidden from generic comment listings, status transitions
    record an audit note, and deleting without ``force`` moves to the trash.
    """

    def __init__(
        self,
        orders: list[Order] | None = None,
        notes: list[OrderNote] | None = None,
    ) -> None:
        self._orders: dict[int, Order] = {o.id: o for o in orders or []}
        self._notes: list[OrderNote] = list(notes or [])
        start = max((n.id for n in self._notes), default=0) + 1
        self._note_ids = count(start)

    def add(self, order: Order) -> None:
        self._orders[order.id] = order

    def add_note(self, note: OrderNote) -> None:
        self._notes.append(note)

    # ------------------------------------------------------------------
    # IOrderRepository
    # ------------------------------------------------------------------

    def query(self, query: OrderQuery) -> OrderQueryResult:
        matches = [o for o in self._orders.values() if self._matches(o, query)]

        sort_key = {
            "date": lambda o: (_utc(o.created_at), o.id),
            "modified": lambda o: (_utc(o.updated_at), o.id),
            "id": lambda o: o.id,
        }[query.orderby]
        matches.sort(key=sort_key, reverse=query.order == "desc")

        if query.offset:
            matches = matches[query.offset :]
        total = len(matches)

        if query.per_page == UNLIMITED:
            page_ids = [o.id for o in matches]
            per_page, total_pages = total, 1 if total else 0
        else:
            per_page = query.per_page
            start = (query.page - 1) * per_page
            page_ids = [o.id for o in matches[start : start + per_page]]
            total_pages = math.ceil(total / per_page) if per_page > 0 else 0

        return OrderQueryResult(
            ids=page_ids,
            total=total,
            page=query.page,
            per_page=per_page,
            total_pages=total_pages,
        )

    @staticmethod
    def _matches(order: Order, query: OrderQuery) -> bool:
        if order.order_type != query.order_type:
            return False
        if query.statuses is not None and order.status not in query.statuses:
            return False
        if query.created_after and _utc(order.created_at) < _utc(query.created_after):
            return False
        if query.created_before and _utc(order.created_at) > _utc(query.created_before):
            return False
        if query.modified_after and _utc(order.updated_at) < _utc(query.modified_after):
            return False
        if query.modified_before and _utc(order.updated_at) > _utc(query.modified_before):
            return False
        if query.search:
            needle = query.search.lower()
            billing = order.billing_address
            haystack = " ".join(
                [
                    order.order_number,
                    billing.first_name,
                    billing.last_name,
                    billing.email,
                    order.customer_note,
                ]
            ).lower()
            if needle not in haystack:
                return False
        return True

    def get(self, order_id: int) -> Order | None:
        return self._orders.get(order_id)

    def update_status(self, order_id: int, status: str, note: str = "") -> None:
        order = self._orders[order_id]
        new_status = status.removeprefix("wc-")
        if order.status == new_status:
            logger.debug(f"Order {order_id} already '{new_status}', nothing to record")
            return

        now = datetime.now(UTC)
        transition = f"Order status changed from {order.status} to {new_status}."
        self._orders[order_id] = order.model_copy(
            update={"status": new_status, "updated_at": now}
        )
        self._notes.append(
            OrderNote(
                id=next(self._note_ids),
                order_id=order_id,
                created_at=now,
                content=f"{note} {transition}".strip(),
            )
        )

    def get_notes(
        self,
        order_id: int,
        *,
        comment_type: str | None = None,
        approved_only: bool = True,
        include_order_notes: bool = False,
    ) -> list[OrderNote]:
        notes = []
        for note in self._notes:
            if note.order_id != order_id:
                continue
            if note.comment_type == ORDER_NOTE_TYPE and not include_order_notes:
                continue
            if comment_type is not None and note.comment_type != comment_type:
                continue
            if approved_only and not note.approved:
                continue
            notes.append(note)
        return sorted(notes, key=lambda n: (n.created_at, n.id), reverse=True)

    def delete(self, order_id: int, force: bool = False) -> bool:
        order = self._orders.get(order_id)
        if order is None:
            return False
        if force:
            del self._orders[order_id]
            self._notes = [n for n in self._notes if n.order_id != order_id]
        else:
            self._orders[order_id] = order.model_copy(update={"status": TRASH_STATUS})
        return True
