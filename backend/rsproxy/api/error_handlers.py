"""Error Handlers — global exception handlers for the relay API.

Invariants:
    - RelayError → flat JSON {ok|success: false, error, code, ...} with its status
    - RequestValidationError → 400 with field-level details
    - Routing errors (404, 405) → the same flat envelope, never {detail}
    - Exception (catch-all) → 500, never leaks internal details
    - No exception crosses the HTTP boundary unconverted

Design Decisions:
    - Layered handlers: domain (RelayError), validation (Pydantic), routing
      (Starlette HTTPException), catch-all (Exception)
    - Portal variant answers 404 with the list of endpoints it serves
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rsproxy.core.errors import RelayError

logger = logging.getLogger(__name__)

PORTAL_ENDPOINTS = [
    "GET /health",
    "GET /api/sms/balance",
    "GET /api/sms/history",
    "POST /api/sms/send",
    "GET /api/sms/test",
]

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_relay_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_relay_error_handler(app: FastAPI) -> None:
    """Register relay domain/upstream error handler."""

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        """Handle all relay validation/configuration/upstream errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"RelayError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "stage": exc.context.stage,
                "upstream": exc.context.upstream,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(request, exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {type(exc).__name__}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                _envelope_key(request): False,
                "error": "Internal proxy server error",
                "code": "INTERNAL_ERROR",
                "type": "proxy_error",
            },
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register routing error handler (unknown path, unsupported method)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """404/405 and friends in the relay envelope, never FastAPI's {detail}."""
        if exc.status_code == status.HTTP_404_NOT_FOUND and _is_portal(request):
            content = {
                "success": False,
                "error": "Endpoint not found",
                "available_endpoints": PORTAL_ENDPOINTS,
            }
        else:
            content = {
                _envelope_key(request): False,
                "error": exc.detail,
                "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            }
        return JSONResponse(
            status_code=exc.status_code, content=content, headers=exc.headers,
        )


def _is_portal(request: Request) -> bool:
    return getattr(request.app.state, "portal", False)


def _envelope_key(request: Request) -> str:
    if _is_portal(request) and request.url.path.startswith("/api/sms"):
        return "success"
    return "ok"


def _build_validation_error_response(
    request: Request, exc: RequestValidationError,
) -> dict:
    """Build structured validation error response."""
    return {
        _envelope_key(request): False,
        "error": "Invalid request data",
        "code": "VALIDATION_ERROR",
        "details": [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ],
    }
