"""
FastAPI Application Entry Point

This module builds the FastAPI application and configures:
- API routes (public site API and admin dashboard)
- Middleware (request logging, visitor tracking, HTTPS redirect)
- The application context, created once per app and started in the lifespan

Design Decisions:
- create_app() instead of a module-level app with global state, so tests can
  build isolated applications against their own database
- `app` at module level for `uvicorn portfolio.main:app`
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from portfolio.api import admin, endpoints
from portfolio.core.context import AppContext
from portfolio.core.rate_limit import limiter
from portfolio.core.setting import Settings, settings as default_settings
from portfolio.middleware.https_redirect import add_https_redirect_middleware
from portfolio.middleware.logging import add_logging_middleware, configure_logging
from portfolio.middleware.visitor_tracking import add_visitor_tracking_middleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run migrations and background jobs for the app's lifetime."""
    context: AppContext = app.state.context
    await context.startup()
    yield
    await context.shutdown()


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (environment-derived settings by default)
        context: Pre-built application context (built from settings otherwise)
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Portfolio Site",
        description="Portfolio backend: link shortener, contact form and admin analytics",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.context = context or AppContext(settings)

    limiter.enabled = settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Last added runs first: HTTPS redirect, then logging, then tracking
    add_visitor_tracking_middleware(app)
    add_logging_middleware(app)
    if settings.FORCE_HTTPS and settings.is_production:
        add_https_redirect_middleware(app)

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "message": "Portfolio Site",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy"}

    app.include_router(endpoints.router, tags=["Site"])
    app.include_router(admin.router, tags=["Admin"])

    return app


app = create_app()
