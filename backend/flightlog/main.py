"""
FlightLog Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       the lifespan builds the shared HTTP client and the place pipeline.
Who:   Called by uvicorn to start the server (uvicorn flightlog.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────┐ ┌──────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│ Logging │→│ GZip/CORS│  │
    │  └──────────────┘ └──────────┘ └─────────┘ └──────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌───────────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ GET /api/places/{}│ │ GET /airports│ │ GET /health │  │
    │  └───────────────────┘ └──────────────┘ └─────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400 │ Upstream→status/502/504 │ DB→500       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Validate configuration (logged, not fatal)
    3. Probe the database (tenacity backoff, not fatal)
    4. Build httpx client → PlacesClient → PhotoResolver → PlaceRepository
       → PlaceService, stored on app.state

    Shutdown:
    1. Close the shared HTTP client
    2. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from flightlog import __version__
from flightlog.config import settings
from flightlog.database import async_session_factory, dispose_engine, wait_for_database
from flightlog.exceptions import (
    DatabaseError,
    FlightLogError,
    NotFoundUpstreamError,
    UpstreamError,
    ValidationError,
)
from flightlog.middleware.logging import RequestLoggingMiddleware
from flightlog.middleware.rate_limit import RateLimitMiddleware
from flightlog.middleware.request_id import RequestIDMiddleware, request_id_var
from flightlog.routes import airports, health, places
from flightlog.services.photo_resolver import PhotoResolver
from flightlog.services.place_repository import PlaceRepository
from flightlog.services.place_service import PlaceService
from flightlog.services.places_client import PlacesClient

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers emit a line per query / per request at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Place Pipeline Wiring
# ══════════════════════════════════════════════════════════════════════════

def build_http_client() -> httpx.AsyncClient:
    """Shared outbound client. Photo resolution reads redirects, so never follow them."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.places_http_timeout),
        follow_redirects=False,
        headers={"User-Agent": f"flightlog-backend/{__version__}"},
    )


def build_place_service(http_client: httpx.AsyncClient) -> PlaceService:
    provider = PlacesClient(
        http_client=http_client,
        api_key=settings.places_api_key,
        base_url=settings.places_base_url,
        photo_max_height_px=settings.places_photo_max_height_px,
    )
    return PlaceService(
        repository=PlaceRepository(async_session_factory),
        provider=provider,
        resolver=PhotoResolver(provider, timeout=settings.places_photo_timeout),
        request_timeout=settings.places_request_timeout,
        single_flight=settings.places_single_flight,
        reread_on_conflict=settings.places_reread_on_conflict,
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("FlightLog Backend starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Cached places can still be served; misses will fail upstream
        logger.error("Configuration error: %s", str(e))

    if await wait_for_database():
        logger.info("Database reachable")

    http_client = build_http_client()
    app.state.place_service = build_place_service(http_client)
    logger.info(
        "Place pipeline ready (single_flight=%s, request_timeout=%.1fs, photo_timeout=%.1fs)",
        settings.places_single_flight,
        settings.places_request_timeout,
        settings.places_photo_timeout,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("FlightLog Backend shutting down...")
    await http_client.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse body.

    Handler hierarchy:
        ValidationError           → 400 Bad Request
        NotFoundUpstreamError     → upstream status, upstream body in details
        UpstreamUnavailableError  → 502 Bad Gateway / 504 Gateway Timeout
        DatabaseError             → 500 (StorageConflictError included)
        FlightLogError (base)     → 500
        Exception (fallback)      → 500

    Storage and unexpected errors never expose internals in the response;
    details are logged server-side.
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

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        rid = request_id_var.get("")
        logger.warning("[%s] Upstream error (%d): %s", rid, exc.status_code, exc.message)
        error_code = "upstream_error" if isinstance(exc, NotFoundUpstreamError) else "upstream_unavailable"
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": error_code,
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error (%s): %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(FlightLogError)
    async def handle_app_error(request: Request, exc: FlightLogError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
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
    app = FastAPI(
        title="FlightLog API",
        description=(
            "Backend for a personal flight log: cached place-of-interest details "
            "enriched from Google Places, and airport lookup."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition: the last added
    # (RateLimit) runs first on the way in.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(places.router)
    app.include_router(airports.router)
    app.include_router(health.router)

    return app


# uvicorn expects `flightlog.main:app` to be importable
app = create_app()
