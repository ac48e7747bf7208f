"""Logging middleware and configuration."""

import logging
import sys
import time
import uuid
from collections.abc import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ayursutra.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging() -> None:
    """Configure structlog and route stdlib logging to stdout."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    # SQL echo is controlled by DEBUG, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with a request id bound to every event it emits."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Log request and response details.

        Args:
            request: Request object
            call_next: Next middleware in chain

        Returns:
            Response object with timing and request id headers
        """
        logger = structlog.get_logger()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        logger.info(
            "request_started",
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration=time.perf_counter() - start_time,
            )
            raise

        duration = time.perf_counter() - start_time
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration=duration,
        )

        response.headers["X-Process-Time"] = f"{duration:.6f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
