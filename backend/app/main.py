"""
Tubely API - FastAPI Application Entry Point.

This module builds the FastAPI application for the Tubely video upload service:
- Lifespan management for logging setup and the MongoDB connection
- CORS middleware for the web client
- Request logging middleware adding X-Request-ID and X-Process-Time headers
- API router registration under the /api/v1 prefix
- Root, liveness and readiness endpoints

API Structure:
    /api/v1/video_upload/{video_id} - Upload the video file for a video record

Usage:
    # Run with uvicorn directly (from the backend/ directory)
    uvicorn app.main:app --host 0.0.0.0 --port 8091 --reload

    # Run as Python script
    python -m app.main
"""

import logging
import time
import uuid

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.api.v1 import api_router
from app.config import get_settings
from app.core.database import close_db, get_db_client, init_db
from app.utils.logger import setup_logging


logger = logging.getLogger(__name__)

# Status codes >= 400 are logged as warnings
HTTP_ERROR_THRESHOLD = 400


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """
    Configure logging and manage the MongoDB connection.

    Startup fails if MongoDB cannot be reached, since every upload reads and
    writes a video record.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        f"{settings.app_name} API starting (env={settings.app_env}, "
        f"host={settings.host}:{settings.port}, bucket={settings.s3_bucket_name})"
    )

    try:
        await init_db(settings)
    except Exception as e:
        logger.exception("Failed to initialize MongoDB")
        raise RuntimeError(f"MongoDB initialization failed: {e}") from e

    logger.info(f"{settings.app_name} API ready to accept requests")

    yield

    logger.info(f"{settings.app_name} API shutting down")
    await close_db()


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title="Tubely API",
    description=(
        "Video upload service for Tubely. Uploaded MP4s are remuxed for fast start, "
        "filed in S3 by aspect ratio and linked to their video record."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log each request with its timing and tag the response with a request ID."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.perf_counter()

    logger.debug(f"Request started: {request.method} {request.url.path} [Request-ID: {request_id}]")

    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "Request failed: %s %s [Request-ID: %s]",
            request.method,
            request.url.path,
            request_id,
        )
        raise

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)

    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.INFO if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        f"Request completed: {request.method} {request.url.path} "
        f"[Status: {response.status_code}] [Time: {process_time_ms}ms] "
        f"[Request-ID: {request_id}]",
    )

    return response


# =============================================================================
# API Router Registration
# =============================================================================

app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Core Endpoints
# =============================================================================


@app.get("/", tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    """Service name, version and documentation links."""
    return {
        "name": "Tubely API",
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
        "endpoints": {
            "video_upload": "/api/v1/video_upload/{video_id}",
        },
    }


@app.get("/health", tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness probe. Does not touch any dependency."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
    }


@app.get("/ready", tags=["health"], summary="Readiness Check")
async def readiness_check() -> JSONResponse:
    """
    Readiness probe.

    Returns 200 when MongoDB answers a ping and 503 otherwise.
    """
    try:
        mongodb_ready = await get_db_client().ping()
    except RuntimeError:
        mongodb_ready = False

    return JSONResponse(
        status_code=200 if mongodb_ready else 503,
        content={
            "ready": mongodb_ready,
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": {"mongodb": mongodb_ready},
        },
    )


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and return a generic payload without internal details."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {exc!s}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": "internal_error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        },
    )


# =============================================================================
# Main Execution Block
# =============================================================================

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
    )
