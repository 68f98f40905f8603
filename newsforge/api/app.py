"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsforge.api.dependencies import cleanup_dependencies
from newsforge.api.routes import ai, health, runs, sources, ws_progress
from newsforge.config.settings import get_settings

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("NewsForge API starting up", storage_backend=get_settings().storage_backend)

    yield

    logger.info("NewsForge API shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "runs", "description": "Fetch runs and collected headlines"},
        {"name": "sources", "description": "Per-user source management"},
        {"name": "ai", "description": "Model discovery and routed generation"},
        {"name": "websocket", "description": "Live fetch progress"},
    ]

    app = FastAPI(
        title="NewsForge API",
        description="""
Collects headlines from feeds, mailboxes, paper indexes and videos, and
routes text generation to interchangeable AI providers.

## Authentication

Requires `X-API-KEY` header for all requests except `/health` when
`API_KEYS` is configured. The WebSocket takes `api_key` as a query parameter.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # CORS origins from CORS_ORIGINS env var, comma-separated
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging and correlation ID
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal"},
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(runs.router, tags=["runs"])
    app.include_router(sources.router, tags=["sources"])
    app.include_router(ai.router, tags=["ai"])
    app.include_router(ws_progress.router, tags=["websocket"])

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "NewsForge API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app
