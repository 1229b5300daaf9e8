"""
HTTP middleware: request correlation, access logging and security headers.
"""

import time
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from examcase.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


# Health checks and API docs are polled constantly and would drown the access log
QUIET_PATHS = frozenset({"/", "/health", "/api/v1/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (honouring an incoming X-Request-ID),
    logs method, path, status and timing, and echoes the id and timing
    back as X-Request-ID and X-Response-Time.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        set_user_id('')

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.log_error_with_context(
                e,
                context=f"{request.method} {request.url.path}",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

        if request.url.path not in QUIET_PATHS:
            logger.log_request(
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                client_ip=request.client.host if request.client else None,
            )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response
