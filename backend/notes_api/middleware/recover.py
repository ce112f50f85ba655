"""
Notes API — Panic Recovery Middleware
=======================================

What:  Contains any exception that escapes the rest of the stack.
How:   Wraps the downstream chain; an unhandled exception is logged with its
       traceback and answered with the standard 500 envelope plus
       `Connection: close`, so the client does not reuse a connection whose
       handler state may be inconsistent. CORS headers are applied here
       too, since the CORS layer never sees the failed response.
When:  Outermost middleware; everything else runs inside it.
"""

import logging
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from notes_api.codec import write_json
from notes_api.middleware.cors import apply_cors_headers

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"


class RecoverPanicMiddleware(BaseHTTPMiddleware):
    """
    Turns unhandled exceptions into a well-formed 500 response.

    Args:
        trusted_origins: the CORS allow-list; the 500 carries the same
        Vary and Access-Control-Allow-Origin headers as any other response.
    """

    def __init__(self, app: ASGIApp, trusted_origins: Iterable[str] = ()) -> None:
        super().__init__(app)
        self.trusted_origins = frozenset(trusted_origins)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "[%s] Unhandled error on %s %s: %s",
                getattr(request.state, "request_id", ""),
                request.method,
                request.url.path,
                str(exc),
                exc_info=True,
            )
            response = write_json(
                500,
                {"error": SERVER_ERROR_MESSAGE},
                headers={"Connection": "close"},
            )
            apply_cors_headers(request, response, self.trusted_origins)
            return response
