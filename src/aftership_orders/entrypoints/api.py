import re
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Header, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

from aftership_orders.application.order_mapper import OrderProjector
from aftership_orders.application.order_query import OrderQueryBuilder
from aftership_orders.application.orders_resource import OrdersResource
from aftership_orders.application.permissions import CapabilityPermissionService
from aftership_orders.application.response_filters import ResponseFilters
from aftership_orders.domain.caller import Caller
from aftership_orders.domain.errors import ApiError
from aftership_orders.domain.interfaces import IOrderRepository, IPermissionService
from aftership_orders.domain.query import Pagination
from aftership_orders.entrypoints.settings import Config

FILTER_PARAM = re.compile(r"^filter\[(\w+)\]$")


def filter_params(request: Request) -> dict[str, str]:
    """Collect ``filter[key]=value`` query parameters into ``{key: value}``."""
    params: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        if match := FILTER_PARAM.match(key):
            params[match.group(1)] = value
    return params


def add_pagination_headers(
    response: Response, request: Request, pagination: Pagination
) -> None:
    response.headers["X-WC-Total"] = str(pagination.total)
    response.headers["X-WC-TotalPages"] = str(pagination.total_pages)

    links: list[str] = []

    def link(page: int, rel: str) -> None:
        url = request.url.include_query_params(page=page)
        links.append(f'<{url}>; rel="{rel}"')

    page, last = pagination.page, pagination.total_pages
    if page > 1:
        link(1, "first")
        link(min(page - 1, last) if last else 1, "prev")
    if page < last:
        link(page + 1, "next")
    if last > 1 and page != last:
        link(last, "last")
    if links:
        response.headers["Link"] = ", ".join(links)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.info(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}"
    )
    return JSONResponse(status_code=exc.status_code, content={"errors": [exc.to_dict()]})


def create_app(
    settings: Config,
    repository: IOrderRepository,
    permissions: IPermissionService | None = None,
    filters: ResponseFilters | None = None,
) -> FastAPI:
    """Build the FastAPI application serving the orders resource."""
    permissions = permissions or CapabilityPermissionService()
    query_builder = OrderQueryBuilder(
        settings.ORDER_STATUSES,
        store_version=settings.WOOCOMMERCE_VERSION,
        default_page_size=settings.DEFAULT_PAGE_SIZE,
    )
    projector = OrderProjector(settings.TRACKING_PLUGIN, filters)

    def get_caller(x_aftership_key: str | None = Header(default=None)) -> Caller:
        if x_aftership_key and x_aftership_key in settings.API_KEYS:
            return Caller(capabilities=frozenset(settings.API_KEYS[x_aftership_key]))
        return Caller.anonymous()

    def get_resource(caller: Caller = Depends(get_caller)) -> OrdersResource:
        return OrdersResource(repository, permissions, caller, query_builder, projector)

    router = APIRouter(prefix="/orders", tags=["orders"])

    @router.get("")
    def list_orders(
        request: Request,
        response: Response,
        status: str | None = None,
        page: int = 1,
        fields: str | None = None,
        resource: OrdersResource = Depends(get_resource),
    ) -> dict:
        result = resource.list_orders(filter_params(request), status, page, fields)
        add_pagination_headers(response, request, result.pagination)
        return {"orders": result.orders}

    @router.get("/count")
    def count_orders(
        request: Request,
        status: str | None = None,
        resource: OrdersResource = Depends(get_resource),
    ) -> dict:
        return resource.count_orders(filter_params(request), status)

    @router.get("/ping")
    def ping() -> str:
        return OrdersResource.ping()

    @router.get("/{order_id:int}")
    def get_order(
        order_id: int,
        fields: str | None = None,
        resource: OrdersResource = Depends(get_resource),
    ) -> dict:
        return resource.get_order(order_id, fields)

    @router.put("/{order_id:int}")
    def edit_order(
        order_id: int,
        data: dict[str, Any] | None = Body(default=None),
        resource: OrdersResource = Depends(get_resource),
    ) -> dict:
        return resource.edit_order(order_id, data)

    # TODO: route DELETE /orders/{id} to OrdersResource.delete_order once
    # order creation (POST) is exposed as well.

    @router.get("/{order_id:int}/notes")
    def get_order_notes(
        order_id: int,
        fields: str | None = None,
        resource: OrdersResource = Depends(get_resource),
    ) -> dict:
        return resource.get_order_notes(order_id, fields)

    app = FastAPI(title="AfterShip Orders API")
    app.add_exception_handler(ApiError, api_error_handler)
    app.include_router(router, prefix=settings.API_PREFIX.rstrip("/"))
    return app
