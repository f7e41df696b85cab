from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from loguru import logger

from aftership_orders.domain.errors import ApiError

P = ParamSpec("P")
R = TypeVar("R")


def log_errors(func: Callable[P, R]) -> Callable[P, R]:
    """Log anything a WooCommerce store call raises, then let it propagate.

    A store rejection of the request (an ``ApiError`` carrying a 4xx status)
    is logged as a warning; a failing store or any other exception is logged
    as an error.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return func(*args, **kwargs)
        except ApiError as exc:
            level = "WARNING" if exc.status_code < 500 else "ERROR"
            logger.log(level, f"[{func.__qualname__}] {exc.code} ({exc.status_code}): {exc.message}")
            raise
        except Exception as exc:
            logger.error(f"[{func.__qualname__}] {type(exc).__name__}: {exc}")
            raise

    return wrapper
