"""
URL Shortening Service

This service handles the business logic for creating short links:
- Validating submitted URLs (absolute http/https only)
- Generating random short codes
- Retrying with a fresh code when a generated code is already taken

Design Decisions:
- Random codes instead of counter-based ones: codes don't reveal how many
  links exist and can't be enumerated
- Collisions are detected by the store's primary key, not by a lookup
  before insert, so there's no check-then-insert race
"""

import logging

from portfolio.core.exceptions import DuplicateCodeError, InvalidURLError, ShortCodeExhaustedError
from portfolio.core.validators import url_validation_error
from portfolio.db.models import LinkEntry
from portfolio.services.link_store import BaseLinkStore
from portfolio.services.short_code import ShortCodeGenerator

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class URLShorteningService:
    """
    Creates short links on top of a link store.

    Separated from API layer for testability and maintainability.
    """

    def __init__(
        self,
        store: BaseLinkStore,
        generator: ShortCodeGenerator,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ):
        """
        Args:
            store: Link store the new mapping is saved to
            generator: Short code source
            max_attempts: Codes to try before giving up
        """
        self.store = store
        self.generator = generator
        self.max_attempts = max_attempts

    async def create_short_url(self, original_url: str) -> LinkEntry:
        """
        Create a new short link.

        Args:
            original_url: The long URL to shorten

        Returns:
            The stored LinkEntry

        Raises:
            InvalidURLError: If URL format is invalid
            ShortCodeExhaustedError: If every attempt collided
            EntropyUnavailableError: If no random code could be generated
            StorageError: If database operation fails
        """
        original_url = (original_url or "").strip()
        reason = url_validation_error(original_url)
        if reason:
            raise InvalidURLError(original_url, reason=reason)

        for attempt in range(1, self.max_attempts + 1):
            short_code = self.generator.generate()
            try:
                entry = await self.store.save(short_code, original_url)
            except DuplicateCodeError:
                logger.warning(
                    f"Short code collision on attempt {attempt}/{self.max_attempts}: {short_code}"
                )
                continue

            logger.info(f"Created short code {short_code}")
            return entry

        raise ShortCodeExhaustedError(self.max_attempts)
