"""
Admin Authentication

A single admin credential pair from the environment and a random session
token generated per application context. The token is handed out as a
cookie after a successful login; restarting the process logs the admin out.
"""

import logging
import secrets
from typing import Optional

from portfolio.core.setting import DEFAULT_ADMIN_PASSWORD, DEFAULT_ADMIN_USERNAME, Settings

logger = logging.getLogger(__name__)

ADMIN_COOKIE_NAME = "admin_token"
TOKEN_BYTES = 32


class AdminAuthenticator:
    """Checks admin credentials and session tokens in constant time."""

    def __init__(self, settings: Settings, token: Optional[str] = None):
        self.settings = settings
        self.token = token or secrets.token_hex(TOKEN_BYTES)

    def _credentials(self) -> tuple:
        username = self.settings.ADMIN_USERNAME
        password = self.settings.ADMIN_PASSWORD
        if not username:
            username = DEFAULT_ADMIN_USERNAME
            logger.warning("Using default admin username. Set ADMIN_USERNAME environment variable.")
        if not password:
            password = DEFAULT_ADMIN_PASSWORD
            logger.warning("Using default admin password. Set ADMIN_PASSWORD environment variable.")
        return username, password

    def check_credentials(self, username: str, password: str) -> bool:
        expected_username, expected_password = self._credentials()
        username_ok = secrets.compare_digest(username.encode(), expected_username.encode())
        password_ok = secrets.compare_digest(password.encode(), expected_password.encode())
        return username_ok and password_ok

    def verify_token(self, token: Optional[str]) -> bool:
        if not token:
            return False
        return secrets.compare_digest(token.encode(), self.token.encode())
