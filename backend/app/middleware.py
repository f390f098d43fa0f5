"""Cross-cutting request handling: security headers, body cap, logging, errors."""

import time
import logging
import traceback
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .config import Settings
from .errors import ApiError, PayloadTooLarge
from .models import ErrorResponse

logger = logging.getLogger(__name__)

# Hardening headers added to every response (no CSP, no COEP)
SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

NOT_FOUND_MESSAGE = "The requested endpoint does not exist"
DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


def error_response(
    status_code: int,
    error: str,
    message: str,
    path: Optional[str] = None,
    stack: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build a JSON error response with the standard body."""
    body = ErrorResponse(error=error, message=message, path=path, stack=stack)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _error_name(exc: Exception) -> str:
    """Error kind declared as a class attribute, else the generic kind."""
    # Instance attributes such as AttributeError.name hold identifiers, not kinds
    name = getattr(type(exc), "name", None)
    return name if isinstance(name, str) else "INTERNAL_SERVER_ERROR"


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_bytes`` with 413.

    A declared Content-Length over the cap is refused before the app runs.
    Otherwise bytes are counted as they are received, so chunked bodies are
    capped too.
    """

    def __init__(self, app: ASGIApp, max_bytes: int, max_mb: int):
        self.app = app
        self.max_bytes = max_bytes
        self.message = f"Request body exceeds {max_mb}MB limit"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            logger.warning(f"{scope['method']} {scope['path']} rejected: {self.message}")
            response = error_response(PayloadTooLarge.status_code, PayloadTooLarge.name, self.message)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(f"{scope['method']} {scope['path']} rejected: {self.message}")
                    # HTTPException passes through FastAPI's body parsing unchanged
                    raise StarletteHTTPException(
                        status_code=PayloadTooLarge.status_code, detail=self.message
                    )
            return message

        await self.app(scope, limited_receive, send)


def install_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Register the middleware chain.

    Starlette runs the most recently added middleware first, so the chain is
    added innermost first. Resulting order, outermost to innermost:
    security headers, CORS, compression, request logging, body cap, errors.
    """

    async def handle_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            message = str(exc) or DEFAULT_ERROR_MESSAGE
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            logger.error(
                f"Error occurred: {request.method} {request.url.path} - {message}",
                exc_info=exc,
            )
            status_code = getattr(exc, "status_code", None)
            return error_response(
                status_code=status_code if isinstance(status_code, int) else 500,
                error=_error_name(exc),
                message=message,
                stack=stack if settings.is_development else None,
            )

    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        logger.info(
            f"Incoming request: {request.method} {request.url.path} from {_client_address(request)}"
        )
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"{response.status_code} ({duration_ms}ms)"
        )
        return response

    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    app.middleware("http")(handle_errors)
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_bytes=settings.max_body_size_bytes,
        max_mb=settings.max_body_size_mb,
    )
    app.middleware("http")(log_requests)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )
    app.middleware("http")(add_security_headers)


def register_error_handlers(app: FastAPI) -> None:
    """Map raised API errors and framework-level errors onto the standard error body."""

    @app.exception_handler(ApiError)
    async def api_error(request: Request, exc: ApiError):
        # Expected failures: no stack in the body
        if exc.status_code >= 500:
            logger.error(
                f"Error occurred: {request.method} {request.url.path} - {exc.message}",
                exc_info=exc,
            )
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        return error_response(exc.status_code, exc.name, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                404, "NOT_FOUND", NOT_FOUND_MESSAGE, path=request.url.path, headers=exc.headers
            )
        if exc.status_code == PayloadTooLarge.status_code:
            return error_response(exc.status_code, PayloadTooLarge.name, str(exc.detail))
        try:
            error = HTTPStatus(exc.status_code).phrase.upper().replace(" ", "_")
        except ValueError:
            error = "HTTP_ERROR"
        return error_response(exc.status_code, error, str(exc.detail), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{field}: {first['msg']}" if field else first["msg"]
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return error_response(400, "VALIDATION_ERROR", message)
