"""
OwnerGate Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware, exception handlers, routes and lifecycle.
How:   create_app() returns a configured FastAPI instance; `app` is the module-level
       instance uvicorn serves (uvicorn app.main:app).

Exception Handlers:
    UnauthenticatedError → 401    AccessDeniedError      → 403
    NotFoundError        → 404    RecordNotFoundError    → 404
    ValidationError      → 400    IntegrityError (store) → 409
    OwnerGateError       → 500    Exception (fallback)   → 500

Lifecycle:
    Startup:  configure logging, validate configuration, log readiness
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    AccessDeniedError,
    NotFoundError,
    OwnerGateError,
    RecordNotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import FixedWindowLimiter, RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes import auth, health, records, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once from the lifespan handler, before any other startup work.
    Access-control denials log at WARNING from app.services.access_control;
    admin bypasses log at DEBUG.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("OwnerGate backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and local development still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("OwnerGate backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": code, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP responses.

    Handlers never return exception context for authorization errors:
    the context names the operation and caller, which is for the logs only.
    """

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return JSONResponse(
            status_code=401,
            content=error_body("unauthenticated", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AccessDeniedError)
    async def handle_access_denied(request: Request, exc: AccessDeniedError):
        # Same body whether the record is missing or belongs to someone else
        return JSONResponse(
            status_code=403,
            content=error_body("access_denied", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(RecordNotFoundError)
    async def handle_record_not_found(request: Request, exc: RecordNotFoundError):
        logger.info("[%s] Store reported no match: %s", request_id_var.get(""), exc.context)
        return JSONResponse(
            status_code=404,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        # Constraint names and SQL stay server-side
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), exc.orig)
        return JSONResponse(
            status_code=409,
            content=error_body("conflict", "The record conflicts with existing data."),
        )

    @app.exception_handler(OwnerGateError)
    async def handle_app_error(request: Request, exc: OwnerGateError):
        logger.error(
            "[%s] Unhandled application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(rate_limiter: Optional[FixedWindowLimiter] = None) -> FastAPI:
    """Build the app. `rate_limiter` replaces the settings-sized limiter (tests use a small one)."""
    app = FastAPI(
        title="OwnerGate API",
        description=(
            "Tenant-scoped access to users, projects, client profiles and invoices. "
            "Every request is filtered by record ownership; admins bypass the filter."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition (last added = outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # the auth-token cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(records.projects_router)
    app.include_router(records.client_profiles_router)
    app.include_router(records.invoices_router)
    app.include_router(health.router)

    return app


app = create_app()
