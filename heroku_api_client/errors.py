"""Error types for the Heroku API client."""

from typing import Optional


class HerokuApiError(Exception):
    """Base exception for Heroku API client errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInputError(HerokuApiError, ValueError):
    """Raised when a caller-supplied value fails local validation.

    Always raised before any request is sent.
    """


class ApiFailure(HerokuApiError):
    """Raised when a request fails or its response is unusable.

    Attributes:
        operation: Human readable name of the failed operation.
        path: Request path relative to the API base URL.
        status: HTTP status code, if the server answered at all.
        detail: Transport error message or the raw response body.
    """

    def __init__(
        self,
        operation: str,
        path: str,
        detail: str,
        status: Optional[int] = None,
    ):
        self.operation = operation
        self.path = path
        self.detail = detail
        self.status = status
        super().__init__(f"Heroku API-request to {operation} failed ({detail})")


class QuotaExceededError(HerokuApiError):
    """Raised when Heroku refuses to scale a formation above the account limit."""

    def __init__(self, process_type: str, quantity: int, dyno_type: str):
        self.process_type = process_type
        self.quantity = quantity
        self.dyno_type = dyno_type
        super().__init__(
            f"Cannot update formation \"{process_type}\" to {quantity} x "
            f"{dyno_type}: above limit"
        )


class NameNotFoundError(HerokuApiError):
    """Raised when the named dyno does not exist."""

    def __init__(self, dyno_name: str):
        self.dyno_name = dyno_name
        super().__init__(f"Dyno not found: {dyno_name}")


class TransportError(HerokuApiError):
    """Raised by the transport for network errors and non-2xx responses."""

    def __init__(
        self,
        status: Optional[int],
        message: str,
        body: str = "",
    ):
        self.status = status
        self.body = body
        if status is None:
            super().__init__(f"Connection error: {message}")
        else:
            super().__init__(f"HTTP {status}: {message}")

    def is_retryable(self) -> bool:
        return True


class SchemaViolation(HerokuApiError):
    """Raised when a response decodes but lacks the fields an operation needs."""

    def __init__(self, message: str, body: str = ""):
        self.body = body
        super().__init__(message)

    def is_retryable(self) -> bool:
        return True
