"""
Userbase Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error handling,
       and the database lifecycle in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`app.main:app`), app/server.py, and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain (outermost first):                     │
    │  Security headers → CORS → Request ID → Logging →        │
    │  Timeout (408) → GZip                                    │
    │                                                          │
    │  Routes:                                                 │
    │  /api/users[/{id}]   /api/health   /                     │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ValidationError→400 │ NotFound→404 │ HTTPException→code │
    │  DatabaseError→500   │ Exception→500                     │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config checks → database ping (+ create tables when
              DATABASE_SYNCHRONIZE) → ready. An unreachable database disposes
              the engine and aborts startup, so uvicorn exits non-zero.
    Shutdown: dispose the engine (SIGINT/SIGTERM reach here through uvicorn's
              graceful shutdown).
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings, settings
from app.database import Database
from app.exceptions import UserbaseError, ValidationError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, current_request_id
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.middleware.timeout import TimeoutMiddleware
from app.routes import health, users
from app.schemas.envelope import ErrorEnvelope

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(app_settings: Settings = settings) -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout
    (container runtimes collect stdout).
    """
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # RequestLoggingMiddleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if not app_settings.database_logging:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings)
    logger.info("%s %s starting up (%s)", app_settings.app_name, __version__, app_settings.environment)

    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        # Reported, not fatal: the service still answers and the log says why
        logger.error("Configuration error: %s", str(e))

    try:
        await database.ping()
        if app_settings.database_synchronize:
            await database.create_all()
            logger.info("Database schema synchronized")
    except Exception as e:
        logger.critical("Database unavailable at startup: %s", str(e), exc_info=True)
        await database.dispose()
        raise

    logger.info("Database connection established (%s)", database.url.render_as_string(hide_password=True))

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("%s shutting down...", app_settings.app_name)
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def failure(status_code: int, envelope: ErrorEnvelope) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope.to_content())


def register_exception_handlers(app: FastAPI, app_settings: Settings) -> None:
    """
    Map every failure to the FAILED envelope.

    Handler hierarchy:
        UserbaseError subclasses  → their status_code (400 / 404 / 500)
        HTTPException             → carried status code (unmatched route → 404)
        RequestValidationError    → 400 (malformed JSON body)
        Exception (fallback)      → 500

    500 responses never include internal detail in production; the full
    context and traceback go to the server log.
    """

    @app.exception_handler(UserbaseError)
    async def handle_app_error(request: Request, exc: UserbaseError):
        rid = current_request_id(request)
        if exc.status_code >= 500:
            logger.error("[%s] %s | Context: %s", rid, exc.message, exc.context)
            return failure(exc.status_code, ErrorEnvelope(message=GENERIC_ERROR_MESSAGE, request_id=rid))

        logger.info("[%s] %s %s rejected: %s", rid, request.method, request.url.path, exc.message)
        data = exc.violations if isinstance(exc, ValidationError) else None
        return failure(exc.status_code, ErrorEnvelope(message=exc.message, data=data, request_id=rid))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = current_request_id(request)
        if exc.status_code == 404:
            message = f"Route {request.url.path} not found, the requested resource does not exist"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorEnvelope(message=message, request_id=rid).to_content(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = current_request_id(request)
        violations = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "constraints": {error.get("type", "invalid"): error.get("msg", "Invalid value")},
            }
            for error in exc.errors()
        ]
        return failure(400, ErrorEnvelope(message="Malformed request", data=violations, request_id=rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = current_request_id(request)
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            rid,
            request.method,
            request.url.path,
            str(exc),
            exc_info=True,
        )
        detail = None if app_settings.is_production else f"{type(exc).__name__}: {exc}"
        response = failure(
            500,
            ErrorEnvelope(message=GENERIC_ERROR_MESSAGE, request_id=rid, error=detail),
        )
        # ServerErrorMiddleware sits outside RequestIDMiddleware, so add the header here
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    database: Optional[Database] = None,
    app_settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database:     Store handle to use; built from settings when omitted.
        app_settings: Settings to use; the module singleton when omitted.
    """
    app_settings = app_settings or settings
    database = database or Database.from_settings(app_settings)

    app = FastAPI(
        title="Userbase API",
        description="RESTful CRUD service for user records.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.database = database

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(TimeoutMiddleware, timeout=app_settings.request_timeout)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(SecurityHeadersMiddleware, hsts=app_settings.environment != "development")

    register_exception_handlers(app, app_settings)

    app.include_router(users.router)
    app.include_router(health.router)

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()
