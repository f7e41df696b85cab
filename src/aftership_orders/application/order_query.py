from collections.abc import Iterable, Mapping
from typing import Any

import pydantic
from loguru import logger

from aftership_orders.domain.errors import ValidationError
from aftership_orders.domain.query import OrderFilter, OrderQuery

# Store releases from this one on keep the order status on the order itself,
# so queries can be restricted to the registered statuses.
STATUS_POSTS_SINCE = (2, 2)

STATUS_PREFIX = "wc-"


def version_tuple(version: str | None) -> tuple[int, ...] | None:
    """Parse ``"2.6.14"`` into ``(2, 6, 14)``; None when unparseable."""
    if not version:
        return None
    parts: list[int] = []
    for piece in version.strip().split("."):
        digits = ""
        for char in piece:
            if not char.isdigit():
                break
            digits += char
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts) or None


def parse_statuses(status: str | Iterable[str] | None) -> list[str] | None:
    """Split a comma-separated status list and drop the ``wc-`` prefix."""
    if status is None:
        return None
    if isinstance(status, str):
        status = status.split(",")
    statuses = []
    for raw in status:
        slug = raw.strip().lower()
        if slug.startswith(STATUS_PREFIX):
            slug = slug[len(STATUS_PREFIX) :]
        if slug and slug not in statuses:
            statuses.append(slug)
    return statuses or None


class OrderQueryBuilder:
    """Builds store queries from request parameters."""

    def __init__(
        self,
        registered_statuses: Iterable[str],
        store_version: str | None = None,
        default_page_size: int = 10,
    ) -> None:
        self._registered = [s.removeprefix(STATUS_PREFIX) for s in registered_statuses]
        self._store_version = version_tuple(store_version)
        self._default_page_size = default_page_size

    @property
    def restricts_to_registered_statuses(self) -> bool:
        return (
            self._store_version is not None
            and self._store_version >= STATUS_POSTS_SINCE
        )

    def base_statuses(self) -> list[str] | None:
        """Statuses every query is limited to, or None for no restriction."""
        if self.restricts_to_registered_statuses:
            return list(self._registered)
        return None

    def _statuses(self, status: str | Iterable[str] | None) -> list[str] | None:
        requested = parse_statuses(status)
        base = self.base_statuses()
        if base is None:
            return requested
        if requested is None:
            return base
        return [s for s in requested if s in base]

    def build(
        self,
        filter: Mapping[str, Any] | None = None,
        status: str | Iterable[str] | None = None,
        page: int = 1,
    ) -> OrderQuery:
        try:
            parsed = OrderFilter.model_validate(dict(filter or {}))
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "aftership_api_invalid_filter", f"Invalid order filter: {exc}"
            ) from exc

        query = OrderQuery(
            statuses=self._statuses(status),
            page=max(int(page or 1), 1),
            per_page=parsed.limit or self._default_page_size,
            offset=parsed.offset,
            created_after=parsed.created_at_min,
            created_before=parsed.created_at_max,
            modified_after=parsed.updated_at_min,
            modified_before=parsed.updated_at_max,
            search=parsed.q,
            orderby=parsed.orderby,
            order=parsed.order,
        )
        logger.debug(f"Order query: {query.model_dump(exclude_none=True)}")
        return query
