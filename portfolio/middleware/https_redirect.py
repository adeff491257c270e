"""
HTTPS Redirect Middleware

Behind a TLS-terminating proxy, redirects requests the proxy received over
plain http (X-Forwarded-Proto: http) to the https URL.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.headers.get("X-Forwarded-Proto") == "http":
            https_url = request.url.replace(scheme="https")
            return RedirectResponse(str(https_url), status_code=301)
        return await call_next(request)


def add_https_redirect_middleware(app):
    app.add_middleware(HTTPSRedirectMiddleware)
