"""
Notes API — Request Logging Middleware
========================================

What:  One access-log line per HTTP request.
How:   Measures time from arrival to response and logs the request line,
       status, response size, duration, request ID and client IP.
       Request bodies are never logged.

Log level by status class:
    5xx → ERROR, 4xx → WARNING, healthcheck → DEBUG, everything else → INFO
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notes_api.middleware.request_id import request_id_var

logger = logging.getLogger("notes_api.access")

QUIET_PATHS = {"/v1/healthcheck"}


def access_log_level(status: int, path: str) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"

        # request.client is None under some test transports
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        size = response.headers.get("content-length", "-")

        logger.log(
            access_log_level(response.status_code, request.url.path),
            '[%s] %s "%s %s" %d %s %.1fms',
            rid,
            client_ip,
            request.method,
            target,
            response.status_code,
            size,
            elapsed_ms,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
