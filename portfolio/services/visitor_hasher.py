"""
Visitor Hasher

Turns a raw client address into a stable, salted, irreversible identifier.

The salt lives only in memory for the lifetime of the application context.
Restarting the process changes every future hash, so visitors can't be linked
across restarts. Truncating the digest to 16 hex characters keeps rows small;
it only has to keep raw addresses out of the database, it is not meant to
resist brute-forcing the small IPv4 space.
"""

import hashlib
import secrets
from typing import Optional

HASH_LENGTH = 16
SALT_BYTES = 32


class VisitorHasher:
    """Salted, truncated SHA-256 of client addresses."""

    def __init__(self, salt: Optional[bytes] = None):
        self._salt = salt if salt is not None else secrets.token_bytes(SALT_BYTES)

    def hash(self, address: str) -> str:
        digest = hashlib.sha256(address.encode("utf-8") + self._salt).hexdigest()
        return digest[:HASH_LENGTH]
