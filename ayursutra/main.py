"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis
import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ayursutra.api.v1.router import api_router
from ayursutra.config import settings
from ayursutra.core.exceptions import AppException
from ayursutra.core.redis_client import close_redis_connection, get_redis_client
from ayursutra.database import check_database_connection, engine
from ayursutra.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from ayursutra.middleware.logging import LoggingMiddleware, configure_logging

# Configure logging
configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Checks dependencies on startup and releases connections on shutdown.
    """
    logger.info(
        "application_startup",
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
    )

    if await check_database_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    if settings.cache_enabled or settings.rate_limit_enabled:
        try:
            get_redis_client().ping()
            logger.info("redis_connected")
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))

    yield

    logger.info("application_shutdown")

    try:
        await engine.dispose()
        logger.info("database_connections_closed")
    except SQLAlchemyError as e:
        logger.error("database_dispose_failed", error=str(e))

    close_redis_connection()
    logger.info("redis_connection_closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Appointment scheduling backend for Ayurvedic therapy clinics",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Add exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)  # type: ignore[arg-type]

# Include API router
app.include_router(api_router, prefix=settings.api_v1_prefix)

# Setup Prometheus instrumentation
Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_instrument_requests_inprogress=True,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
    inprogress_name="http_requests_inprogress",
    inprogress_labels=True,
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """
    Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ayursutra.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
