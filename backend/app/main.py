"""
Clipstream FastAPI Application Entry Point

- FastAPI application with lifespan-managed logging and MongoDB connection
- CORS middleware for frontend access
- Request body ceilings on the upload routes
- Request timing middleware adding X-Process-Time and X-Request-ID
- Root, health and readiness endpoints
- Versioned API router under /api/v1

Usage:
    uvicorn app.main:app --host 0.0.0.0 --port 8091 --reload
"""

import logging
import time
import uuid

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
from app.core.middleware import MaxBodySizeMiddleware
from app.utils.logger import setup_logging


logger = logging.getLogger(__name__)

HTTP_ERROR_THRESHOLD = 400  # Status codes >= 400 indicate errors

VIDEO_UPLOAD_PATH_PATTERN = r"^/api/v1/videos/[^/]+/video$"
THUMBNAIL_UPLOAD_PATH_PATTERN = r"^/api/v1/videos/[^/]+/thumbnail$"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Configure logging and open MongoDB on startup; close MongoDB on shutdown.

    A failed MongoDB connection aborts startup.
    """
    settings = get_settings()

    setup_logging(log_level=settings.log_level, json_logs=settings.json_logs)

    logger.info(
        "%s starting (env=%s, debug=%s, bucket=%s)",
        settings.app_name,
        settings.app_env,
        settings.debug,
        settings.s3_bucket_name,
    )

    await init_db(settings)

    logger.info("%s ready on %s:%d", settings.app_name, settings.host, settings.port)

    yield

    logger.info("%s shutting down", settings.app_name)
    await close_db()


_settings = get_settings()

app = FastAPI(
    title="Clipstream API",
    description=(
        "Video ingestion and publishing. Uploaded MP4s are remuxed for fast-start "
        "playback, stored under aspect-routed keys and served through time-limited URLs."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    MaxBodySizeMiddleware,
    limits={
        VIDEO_UPLOAD_PATH_PATTERN: _settings.max_video_upload_bytes,
        THUMBNAIL_UPLOAD_PATH_PATTERN: _settings.max_thumbnail_upload_bytes,
    },
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request and add X-Process-Time and X-Request-ID headers."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    start_time = time.perf_counter()

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

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        "Request completed: %s %s [Status: %d] [Time: %sms] [Request-ID: %s]",
        request.method,
        request.url.path,
        response.status_code,
        process_time_ms,
        request_id,
    )
    return response


app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Service Endpoints
# =============================================================================


@app.get("/", response_class=JSONResponse, tags=["root"], summary="API Root")
async def root() -> dict[str, Any]:
    return {
        "name": "Clipstream API",
        "version": __version__,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "api_prefix": "/api/v1",
        "endpoints": {"videos": "/api/v1/videos"},
    }


@app.get("/health", response_class=JSONResponse, tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness probe; does not touch dependencies."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": "Clipstream API",
    }


@app.get("/ready", tags=["health"], summary="Readiness Check")
async def readiness_check() -> JSONResponse:
    """Readiness probe; 503 until MongoDB answers a ping."""
    try:
        mongodb_ready = await get_db_client().ping()
    except RuntimeError:
        mongodb_ready = False

    return JSONResponse(
        status_code=200 if mongodb_ready else 503,
        content={"ready": mongodb_ready, "checks": {"mongodb": mongodb_ready}},
    )


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=_settings.host,
        port=_settings.port,
        reload=_settings.debug,
        log_level=_settings.log_level,
    )
