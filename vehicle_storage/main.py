"""
Vehicle Storage Engine - Main Application
FastAPI application exposing storage administration for the image bucket.
"""
from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from contextlib import asynccontextmanager

from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from vehicle_storage.api.deps import get_gateway
from vehicle_storage.api.v1 import api_router
from vehicle_storage.core.config import settings
from vehicle_storage.core.exceptions import (
    CleanupInProgressError,
    ImageDecodeError,
    StorageEngineError,
    TransientStoreError,
    ValidationError,
)
from vehicle_storage.core.logging import setup_json_logging
from vehicle_storage.db import check_db_connection
from vehicle_storage.storage.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    setup_json_logging(settings.LOG_LEVEL, json_format=settings.LOG_FORMAT == "json")
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}...")

    if check_db_connection():
        logger.info("Database connection: OK")
    else:
        logger.error("Database connection: FAILED")

    # Startup must survive a store outage; uploads fail until it is back
    if get_gateway().ensure_bucket(location=settings.MINIO_REGION):
        logger.info(f"Bucket '{settings.MINIO_BUCKET}': OK")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Object-storage lifecycle and garbage collection for vehicle photos and store logos.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CleanupInProgressError, status.HTTP_409_CONFLICT),
    (ImageDecodeError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (TransientStoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


@app.exception_handler(StorageEngineError)
async def storage_exception_handler(request: Request, exc: StorageEngineError):
    """Map engine errors to HTTP status codes."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"Storage error: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "status_code": status_code},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code,
        },
    )


@app.get("/health", tags=["health"])
def health_check(gateway: ObjectStoreGateway = Depends(get_gateway)):
    """
    Basic health check endpoint.
    Reports database and bucket reachability.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "healthy" if check_db_connection() else "unhealthy",
        "storage": "healthy" if gateway.is_available() else "unavailable",
    }


app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    """
    Prometheus metrics endpoint.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vehicle_storage.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
    )
