"""
Visitor Tracking Middleware

Hands every trackable request to the visitor ledger as a detached task.
Paths listed in VISITOR_TRACKING_SENSITIVE_PATHS are never recorded, whatever
the response. The decision is made after the handler ran, so a handler can
also opt its request out by setting request.state.skip_visitor_tracking = True.
"""

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from portfolio.core.request_utils import get_client_ip

logger = logging.getLogger(__name__)


class VisitorTrackingMiddleware(BaseHTTPMiddleware):
    """Schedules visitor ledger writes without delaying the response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        context = request.app.state.context
        path = request.url.path
        sensitive = getattr(request.state, "skip_visitor_tracking", False)

        if context.should_track(path, request.headers, sensitive=sensitive):
            try:
                context.schedule_visit(
                    get_client_ip(request),
                    request.headers.get("User-Agent"),
                    path
                )
            except Exception as e:
                logger.error(f"Failed to schedule visitor record for {path}: {str(e)}", exc_info=True)

        return response


def add_visitor_tracking_middleware(app):
    app.add_middleware(VisitorTrackingMiddleware)
