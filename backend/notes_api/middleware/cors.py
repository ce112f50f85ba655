"""
Notes API — CORS Middleware
=============================

What:  Origin-based CORS negotiation against an exact-match allow-list.
How:
    - Every response carries `Vary: Origin`.
    - A request whose Origin is trusted gets it echoed back in
      `Access-Control-Allow-Origin`.
    - A preflight (OPTIONS + Access-Control-Request-Method) from a trusted
      origin is answered here with 200, no body, the allowed methods and
      headers, and the extra Vary entries.
    - Untrusted or absent origins get no CORS headers and continue to the
      router unchanged (a browser will then refuse the response).

Starlette's bundled CORSMiddleware answers untrusted preflights with 400 and
only adds Vary when an Origin is present, so this project keeps its own.
"""

import logging
from typing import AbstractSet, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

PREFLIGHT_ALLOW_METHODS = "OPTIONS, PUT, PATCH, DELETE"
PREFLIGHT_ALLOW_HEADERS = "Authorization, Content-Type"


def is_preflight(request: Request) -> bool:
    return request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers


def apply_cors_headers(
    request: Request, response: Response, trusted_origins: AbstractSet[str]
) -> None:
    """
    Add the Vary entries and, for a trusted Origin, Access-Control-Allow-Origin.

    RecoverPanicMiddleware applies it to the 500 it builds outside this layer.
    """
    response.headers.append("Vary", "Origin")
    if is_preflight(request):
        response.headers.append("Vary", "Access-Control-Request-Method")
        response.headers.append("Vary", "Access-Control-Request-Headers")

    origin = request.headers.get("Origin", "")
    if origin and origin in trusted_origins:
        response.headers["Access-Control-Allow-Origin"] = origin


class CORSMiddleware(BaseHTTPMiddleware):
    """
    Adds CORS headers for trusted origins.

    Args:
        trusted_origins: exact origins (scheme://host[:port]) allowed to read
        responses from this API.
    """

    def __init__(self, app: ASGIApp, trusted_origins: Iterable[str] = ()) -> None:
        super().__init__(app)
        self.trusted_origins = frozenset(trusted_origins)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        origin = request.headers.get("Origin", "")
        trusted = bool(origin) and origin in self.trusted_origins

        if trusted and is_preflight(request):
            response = Response(status_code=200)
            apply_cors_headers(request, response, self.trusted_origins)
            response.headers["Access-Control-Allow-Methods"] = PREFLIGHT_ALLOW_METHODS
            response.headers["Access-Control-Allow-Headers"] = PREFLIGHT_ALLOW_HEADERS
            return response

        if origin and not trusted:
            logger.debug("Untrusted origin %s on %s %s", origin, request.method, request.url.path)

        response = await call_next(request)
        apply_cors_headers(request, response, self.trusted_origins)
        return response
