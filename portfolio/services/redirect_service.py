"""
Redirect Service

This service handles short link redirection.

The lookup is the only awaited database work on this path. The click
increment is scheduled by the link store's hit callback and visitor logging
by the tracking middleware, both detached, so neither can slow down or fail
a redirect.
"""

from typing import Optional

from portfolio.core.validators import sanitize_short_code
from portfolio.services.link_store import BaseLinkStore


class RedirectService:
    """
    Service for handling URL redirections.
    """

    def __init__(self, store: BaseLinkStore):
        """
        Args:
            store: Link store whose hit callback schedules click increments
        """
        self.store = store

    async def get_redirect_url(self, short_code: str) -> Optional[str]:
        """
        Get the original URL for redirection.

        Returns:
            The original URL, or None when the code is malformed or unknown
        """
        sanitized_code = sanitize_short_code(short_code)
        if not sanitized_code:
            return None

        original_url, found = await self.store.lookup(sanitized_code)
        return original_url if found else None
