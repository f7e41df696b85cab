from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from aftership_orders.application.tracking import AFTERSHIP_PLUGIN


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    ORDER_STORE: Literal["memory", "woocommerce"] = "memory"

    WOOCOMMERCE_URL: str = "http://localhost"
    WOOCOMMERCE_CONSUMER_KEY: str = ""
    WOOCOMMERCE_CONSUMER_SECRET: str = ""
    WOOCOMMERCE_API_VERSION: str = "wc/v3"
    # Store release, e.g. "8.5.1"; decides which statuses are queryable
    WOOCOMMERCE_VERSION: str | None = None

    TRACKING_PLUGIN: str = AFTERSHIP_PLUGIN
    ORDER_STATUSES: list[str] = [
        "pending",
        "processing",
        "on-hold",
        "completed",
        "cancelled",
        "refunded",
        "failed",
    ]
    DEFAULT_PAGE_SIZE: int = 10

    API_PREFIX: str = "/wc-api/aftership/v1"
    # API key -> capabilities granted to callers presenting it (JSON in env)
    API_KEYS: dict[str, list[str]] = {}

    LOG_LEVEL: str = "INFO"
    HOST: str = "127.0.0.1"
    PORT: int = 8000


config = Config()
