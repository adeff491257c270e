"""
Short Code Generator

Produces compact, unpredictable identifiers for short links.

Design Decisions:
- 6 random bytes from the OS CSPRNG, encoded with the URL-safe base64
  alphabet [A-Za-z0-9_-]: exactly 8 characters, 48 bits of entropy
- No uniqueness check here; the links table's primary key rejects
  collisions and the URL service retries with a fresh code
"""

import base64
import secrets
from typing import Callable

from portfolio.core.exceptions import EntropyUnavailableError

RANDOM_BYTES = 6
MAX_CODE_LENGTH = 8


class ShortCodeGenerator:
    """Generates random URL-safe short codes."""

    def __init__(self, random_bytes: Callable[[int], bytes] = secrets.token_bytes):
        """
        Args:
            random_bytes: Source of secure random bytes (token_bytes by default)
        """
        self._random_bytes = random_bytes

    def generate(self) -> str:
        """
        Generate a new short code.

        Returns:
            An 8 character URL-safe code

        Raises:
            EntropyUnavailableError: If the randomness source can't be read
        """
        try:
            raw = self._random_bytes(RANDOM_BYTES)
        except (OSError, NotImplementedError) as e:
            raise EntropyUnavailableError(e)

        code = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return code[:MAX_CODE_LENGTH]
