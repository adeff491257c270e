"""
Request helpers shared by endpoints, middleware and the rate limiter.
"""

from starlette.requests import Request


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Forwarding headers are not read here. Behind a reverse proxy, uvicorn's
    proxy_headers (limited to FORWARDED_ALLOW_IPS) rewrites request.client
    from X-Forwarded-For, so every consumer sees the same address.

    Args:
        request: Incoming request

    Returns:
        IP address as string
    """
    return request.client.host if request.client else "unknown"


def opted_out_of_tracking(headers) -> bool:
    """True when the client sent a Do-Not-Track or Global Privacy Control signal."""
    return headers.get("DNT") == "1" or headers.get("Sec-GPC") == "1"
