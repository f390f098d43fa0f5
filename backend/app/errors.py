"""Error types raised by request handlers."""


class ApiError(Exception):
    """Base error carrying the HTTP status and the error kind sent to clients."""

    status_code: int = 500
    name: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class RequestValidationFailed(ApiError):
    """Missing or malformed input."""

    status_code = 400
    name = "VALIDATION_ERROR"


class PayloadTooLarge(ApiError):
    """Request body exceeds the configured cap."""

    status_code = 413
    name = "PAYLOAD_TOO_LARGE"
