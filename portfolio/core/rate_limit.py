"""
Rate Limiting Configuration

Rate limits for the public form endpoints (link creation, contact mail).
Redirects are not limited: they must stay on the fast path.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Keyed on get_client_ip, the same address the visitor ledger hashes
- The limiter is toggled per application via Settings.RATE_LIMIT_ENABLED
"""

from slowapi import Limiter

from portfolio.core.request_utils import get_client_ip

limiter = Limiter(key_func=get_client_ip)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "shorten": "10/minute",  # Link creation: 10 per minute per client
    "contact": "5/minute",  # Contact form: 5 per minute per client
}
