"""
MindVault Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error handling
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn mindvault.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────┐ ┌─────┐  │
    │  │  Req ID  │→│  Logging        │→│ GZip │→│CORS │  │
    │  └──────────┘ └─────────────────┘ └──────┘ └─────┘  │
    │                                                     │
    │  Routes:                                            │
    │  /api/journal  /api/chat  /api/wellness  /health    │
    │                                                     │
    │  Services ──protect()/reveal()──▶ FieldCipher       │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (missing ENCRYPTION_KEY is reported, not fatal)
    3. Build the field cipher once so key derivation cost and any
       degraded-mode warning happen at boot, not on the first request
    Shutdown:
    1. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from mindvault.config import settings
from mindvault.database import dispose_engine
from mindvault.dependencies import get_field_cipher
from mindvault.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FieldCipherError,
    MindVaultError,
    NotFoundError,
    ValidationError,
)
from mindvault.middleware.logging import RequestLoggingMiddleware
from mindvault.middleware.request_id import RequestIDMiddleware, request_id_var
from mindvault.routes import chat, health, journal, wellness

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during app startup (before ANY other initialization).
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
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
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("MindVault Backend starting up (%s)...", settings.app_env)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: the cipher degrades to an ephemeral key
        logger.error("Configuration error: %s", str(e))

    cipher = get_field_cipher()
    logger.info(
        "Field encryption ready (key mode: %s)",
        "ephemeral" if cipher.ephemeral else "configured",
    )

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MindVault Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError      → 400 Bad Request
        AuthenticationError  → 401 Unauthorized
        NotFoundError        → 404 Not Found
        ConflictError        → 409 Conflict
        DatabaseError        → 500 Internal Server Error
        FieldCipherError     → 500 Internal Server Error (generic message)
        MindVaultError       → 500 (catch-all for custom)
        Exception            → 500 (unexpected errors)

    Security: Responses never include stack traces, SQL, tokens or keys.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=409,
            content={
                "error": "conflict",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(FieldCipherError)
    async def handle_field_cipher_error(request: Request, exc: FieldCipherError):
        """
        A protected field could not be encrypted or decrypted.

        Usually means ENCRYPTION_KEY changed (or is missing) since the data
        was written. The whole request fails; partial data is never returned.
        """
        rid = request_id_var.get("")
        logger.error(
            "[%s] Field cipher failure (%s) on %s %s: %s | Context: %s",
            rid, type(exc).__name__, request.method, request.url.path, exc.message, exc.context,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "data_protection_error",
                "message": "Stored data could not be processed. Please contact support.",
                "request_id": rid,
            },
        )

    @app.exception_handler(MindVaultError)
    async def handle_app_error(request: Request, exc: MindVaultError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="MindVault API",
        description=(
            "Journaling, chat and wellness check-in backend. Sensitive text "
            "fields are encrypted at rest with AES-256-GCM."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(journal.router)
    app.include_router(chat.router)
    app.include_router(wellness.router)
    app.include_router(health.router)

    return app


app = create_app()
