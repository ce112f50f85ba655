"""
Notes API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers and
       returns the app; uvicorn serves the module-level `app`.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │  Middleware (outermost first):                           │
    │  Recover → CORS → Request ID → Logging                   │
    │                                                          │
    │  Routes:                                                 │
    │  GET /v1/healthcheck                                     │
    │  POST /v1/notes · GET|PUT|DELETE /v1/notes/{id}          │
    │                                                          │
    │  Exception Handlers:                                     │
    │  BadRequest→400 │ NotFound→404 │ 405 │ Conflict→409      │
    │  FailedValidation→422 │ Database/Encoding→500            │
    └──────────────────────────────────────────────────────────┘

Anything not covered by a handler propagates to the Recover middleware.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from notes_api import __version__
from notes_api.codec import write_json
from notes_api.config import Settings, settings as default_settings
from notes_api.database import dispose_engine
from notes_api.exceptions import (
    BadRequestError,
    DatabaseError,
    EditConflictError,
    FailedValidationError,
    RecordNotFoundError,
    ResponseEncodingError,
)
from notes_api.middleware.cors import CORSMiddleware
from notes_api.middleware.logging import RequestLoggingMiddleware
from notes_api.middleware.recover import SERVER_ERROR_MESSAGE, RecoverPanicMiddleware
from notes_api.middleware.request_id import RequestIDMiddleware
from notes_api.routes import health, notes

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once from the lifespan before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging and config checks. Shutdown: close pooled connections."""
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("Notes API %s starting (env=%s)", __version__, app_settings.environment)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Trusted CORS origins: %s", app_settings.trusted_origins_list or "none")
    logger.info("Listening on http://%s:%d", app_settings.backend_host, app_settings.backend_port)

    yield

    logger.info("Notes API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def server_error_response(request: Request, exc: Exception, context: Optional[dict] = None) -> Response:
    """Log the failure with the request line; answer with the fixed 500 message."""
    logger.error(
        "[%s] %s on %s %s | Context: %s",
        _request_id(request),
        type(exc).__name__,
        request.method,
        request.url.path,
        context or {},
    )
    return write_json(500, {"error": SERVER_ERROR_MESSAGE})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to JSON error envelopes.

    Handler hierarchy:
        BadRequestError         → 400 {"error": "<decode defect>"}
        RecordNotFoundError     → 404 {"error": NOT_FOUND_MESSAGE}
        HTTPException 404/405   → router messages
        EditConflictError       → 409
        FailedValidationError   → 422 {"error": {"field": "message"}}
        DatabaseError           → 500 (details logged, never returned)
        ResponseEncodingError   → 500
    """

    @app.exception_handler(BadRequestError)
    async def handle_bad_request(request: Request, exc: BadRequestError):
        logger.warning("[%s] Bad request: %s", _request_id(request), exc.message)
        return write_json(400, {"error": exc.message})

    @app.exception_handler(RecordNotFoundError)
    async def handle_not_found(request: Request, exc: RecordNotFoundError):
        return write_json(404, {"error": NOT_FOUND_MESSAGE})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return write_json(404, {"error": NOT_FOUND_MESSAGE}, headers=exc.headers)
        if exc.status_code == 405:
            return write_json(
                405,
                {"error": f"the {request.method} method is not supported for this resource"},
                headers=exc.headers,
            )
        return write_json(exc.status_code, {"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(EditConflictError)
    async def handle_edit_conflict(request: Request, exc: EditConflictError):
        logger.warning("[%s] Edit conflict: %s", _request_id(request), exc.context)
        return write_json(409, {"error": exc.message})

    @app.exception_handler(FailedValidationError)
    async def handle_failed_validation(request: Request, exc: FailedValidationError):
        return write_json(422, {"error": exc.errors})

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        return server_error_response(request, exc, exc.context)

    @app.exception_handler(ResponseEncodingError)
    async def handle_encoding_error(request: Request, exc: ResponseEncodingError):
        return server_error_response(request, exc, exc.context)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: configuration to use; defaults to the environment-loaded
            singleton. Tests pass their own to control origins and labels.
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Notes API",
        description="JSON API for creating, reading, updating and deleting notes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: Recover → CORS → RequestID → Logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(CORSMiddleware, trusted_origins=app_settings.trusted_origins_list)
    app.add_middleware(RecoverPanicMiddleware, trusted_origins=app_settings.trusted_origins_list)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(notes.router)

    return app


app = create_app()
