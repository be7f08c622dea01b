"""
Storefront Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn storefront.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐ ┌──────┐    │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │→│Bearer│    │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘ └──────┘    │
    │                                                          │
    │  Routes:                                                 │
    │  ┌────────────┐ ┌──────────────┐ ┌────────────────┐      │
    │  │ /api/login │ │ /api/product │ │ /api/categories│      │
    │  │ /api/me    │ │ /api/products│ │ /health        │      │
    │  └────────────┘ └──────────────┘ └────────────────┘      │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ StorefrontError→own status │ RequestValidation→400 │  │
    │  │ Exception→500                                      │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (missing secrets abort startup)
    3. Open the database engine and configure the asset store
    4. Attach both to app.state

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from storefront import __version__
from storefront.config import settings
from storefront.database import create_engine_and_factory, dispose_engine
from storefront.exceptions import StorefrontError, UnauthenticatedError, InvalidTokenError
from storefront.middleware.auth_guard import BearerHeaderGuardMiddleware
from storefront.middleware.logging import RequestLoggingMiddleware
from storefront.middleware.request_id import RequestIDMiddleware, request_id_var
from storefront.routes import auth, categories, health, products
from storefront.schemas.common import ErrorResponse
from storefront.services.image_service import AssetStore, ImagePipeline

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Level:  LOG_LEVEL from settings
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "PIL", "urllib3", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open process-wide resources on startup and release them on shutdown.

    Resources on app.state:
        engine, session_factory: database pool
        image_pipeline:          Pillow + Cloudinary pipeline

    A configuration error is fatal: the server refuses to start rather than
    sign tokens with an empty secret or fail every upload.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Storefront Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        raise

    engine, session_factory = create_engine_and_factory(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.image_pipeline = ImagePipeline(AssetStore.from_settings(settings))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Storefront Backend shutting down...")
    await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors, request_id=request_id_var.get(""))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers,
    )


def _field_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = loc[-1] if loc else "request"
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Every failure leaves as the same envelope:
        {"success": false, "message": ..., "errors": {...}?, "request_id": ...}

    Handler hierarchy:
        StorefrontError (all app errors) → exc.status_code
        RequestValidationError           → 400 (malformed query/body shape)
        Exception (fallback)             → 500

    Handlers never expose internals (stack traces, SQL). Details are logged.
    """

    @app.exception_handler(StorefrontError)
    async def handle_storefront_error(request: Request, exc: StorefrontError):
        rid = request_id_var.get("")
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            level,
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        headers = None
        if isinstance(exc, (UnauthenticatedError, InvalidTokenError)):
            headers = {"WWW-Authenticate": "Bearer"}
        return _envelope(exc.status_code, exc.message, exc.errors, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = _field_errors(exc)
        logger.warning("[%s] Request validation error: %s", rid, errors)
        return _envelope(400, "Validation failed", errors)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _envelope(500, "An unexpected error occurred. Please try again later.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers."""
    app = FastAPI(
        title="Storefront API",
        description=(
            "Product catalog backend: token-protected product CRUD with image "
            "upload (display + thumbnail), paginated listings and categories."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → BearerGuard → route
    # The guard sits inside CORS so its 401s still carry CORS headers.
    app.add_middleware(BearerHeaderGuardMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(categories.router)
    app.include_router(health.router)

    return app


app = create_app()
