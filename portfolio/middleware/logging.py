"""
Logging Middleware for Request/Response Logging

This middleware logs all HTTP requests and responses for observability.
It captures:
- Request method and path
- Response status code
- Request processing time
- Client IP address

configure_logging() sets up the application's loggers at app creation.
"""

import logging
import logging.config
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.core.request_utils import get_client_ip

logger = logging.getLogger("portfolio.access")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure the portfolio loggers.

    Uvicorn keeps its own handlers; only the application's namespace is set up.
    """
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "portfolio": {
                "handlers": ["console"],
                "level": level.upper(),
                "propagate": False,
            },
        },
    })


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request)

        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time

        # Format: METHOD PATH STATUS_CODE PROCESS_TIME_MS CLIENT_IP
        logger.info(
            f"{request.method} {request.url.path} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{client_ip}"
        )

        response.headers["X-Process-Time"] = str(process_time)

        return response


def add_logging_middleware(app):
    """
    Add logging middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(LoggingMiddleware)
