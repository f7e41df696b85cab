"""Query and pagination models exchanged between the resource and the store."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .order import ORDER_POST_TYPE

# Page size sentinel meaning "return every match on one page"
UNLIMITED = -1


class OrderFilter(BaseModel):
    """Validated ``filter[...]`` request parameters."""

    model_config = ConfigDict(extra="ignore")

    created_at_min: datetime | None = None
    created_at_max: datetime | None = None
    updated_at_min: datetime | None = None
    updated_at_max: datetime | None = None
    q: str | None = None
    limit: int | None = Field(default=None, ge=UNLIMITED)
    offset: int | None = Field(default=None, ge=0)
    orderby: Literal["date", "id", "modified"] = "date"
    order: Literal["asc", "desc"] = "desc"


class OrderQuery(BaseModel):
    # None means any status; an empty list matches nothing
    statuses: list[str] | None = None
    page: int = 1
    per_page: int = 10
    offset: int | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None
    modified_after: datetime | None = None
    modified_before: datetime | None = None
    search: str | None = None
    orderby: Literal["date", "id", "modified"] = "date"
    order: Literal["asc", "desc"] = "desc"
    order_type: str = ORDER_POST_TYPE


class OrderQueryResult(BaseModel):
    ids: list[int] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10
    total_pages: int = 0


class Pagination(BaseModel):
    total: int
    per_page: int
    total_pages: int
    page: int


class OrderPage(BaseModel):
    """One page of projected orders plus its pagination metadata."""

    orders: list[dict]
    pagination: Pagination
