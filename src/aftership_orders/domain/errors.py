"""Structured API errors.

Each error carries a machine-readable ``code``, a human-readable ``message``
and the HTTP status the web layer answers with.
"""


class ApiError(Exception):
    """Base class for errors rendered as ``{"errors": [{code, message}]}``."""

    status_code: int = 500

    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFound(ApiError):
    """Raised when an id does not resolve to an order."""

    status_code = 404


class Forbidden(ApiError):
    """Raised when the caller lacks the capability for an action."""

    status_code = 401


class ValidationError(ApiError):
    """Raised for malformed request parameters."""

    status_code = 400
