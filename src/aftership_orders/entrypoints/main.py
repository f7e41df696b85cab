import sys

import httpx
import uvicorn
from fastapi import FastAPI
from loguru import logger

from aftership_orders.domain.interfaces import IOrderRepository
from aftership_orders.entrypoints.api import create_app
from aftership_orders.entrypoints.settings import Config, config
from aftership_orders.infrastructure.memory_repository import InMemoryOrderRepository
from aftership_orders.infrastructure.woocommerce_client import WooCommerceClient
from aftership_orders.infrastructure.woocommerce_repository import (
    WooCommerceOrderRepository,
)


def build_repository(settings: Config) -> IOrderRepository:
    if settings.ORDER_STORE == "woocommerce":
        http_client = httpx.Client(
            auth=(settings.WOOCOMMERCE_CONSUMER_KEY, settings.WOOCOMMERCE_CONSUMER_SECRET),
            timeout=30.0,
        )
        client = WooCommerceClient(
            http_client,
            base_url=settings.WOOCOMMERCE_URL,
            api_version=settings.WOOCOMMERCE_API_VERSION,
        )
        logger.info(f"Using WooCommerce store at {settings.WOOCOMMERCE_URL}")
        return WooCommerceOrderRepository(client)

    logger.warning("Using the in-memory order store; data is lost on restart")
    return InMemoryOrderRepository()


def build_app(settings: Config = config) -> FastAPI:
    return create_app(settings, build_repository(settings))


def main() -> None:
    logger.remove()
    logger.add(sys.stderr, level=config.LOG_LEVEL)

    app = build_app(config)
    logger.info(f"Serving orders API under {config.API_PREFIX} on {config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
