import httpx

from aftership_orders.domain.errors import ApiError
from aftership_orders.shared.decorators import log_errors

STORE_ERROR = "aftership_api_store_error"


class WooCommerceAPIError(ApiError):
    """Raised when the WooCommerce REST API returns a non-2xx response.

    A 4xx from the store is passed through to the caller as-is; anything else
    is reported as 502 Bad Gateway. The store's own status is kept on
    ``store_status``.
    """

    def __init__(self, store_status: int, message: str) -> None:
        status_code = store_status if 400 <= store_status < 500 else 502
        super().__init__(STORE_ERROR, f"WooCommerce API error {store_status}: {message}", status_code)
        self.store_status = store_status


def _error_message(response: httpx.Response) -> str:
    # WooCommerce error bodies look like {"code": ..., "message": ..., "data": ...}
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text


class WooCommerceClient:
    """Thin httpx wrapper for the WooCommerce REST API."""

    def __init__(
        self, client: httpx.Client, base_url: str, api_version: str = "wc/v3"
    ) -> None:
        self._client = client
        self._endpoint = f"{base_url.rstrip('/')}/wp-json/{api_version.strip('/')}"

    @log_errors
    def execute(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response:
        """Send a request to ``path`` below the API root and return the response.

        A 404 is returned as-is when ``allow_not_found`` is set, so lookups
        can treat it as "no such record" without it being logged as a failure.

        Raises:
            WooCommerceAPIError: on any other non-2xx response.
            ApiError: with status 502 when the store cannot be reached.
        """
        try:
            response = self._client.request(
                method, f"{self._endpoint}/{path.lstrip('/')}", params=params, json=json
            )
        except httpx.TransportError as exc:
            raise ApiError(STORE_ERROR, f"WooCommerce store unreachable: {exc}", 502) from exc

        if response.status_code == 404 and allow_not_found:
            return response

        if not response.is_success:
            raise WooCommerceAPIError(response.status_code, _error_message(response))

        return response
