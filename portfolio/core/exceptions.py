"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Propagation:
- Validation and not-found errors are surfaced to callers as user-facing messages
- Storage errors from tracking and click counting are logged, never fatal
- Configuration errors are raised eagerly so misconfiguration is visible
"""


class PortfolioError(Exception):
    """Base exception for the portfolio backend."""
    pass


class InvalidURLError(PortfolioError):
    """Raised when a submitted URL fails validation."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class DuplicateCodeError(PortfolioError):
    """Raised when a short code is already taken."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' already exists")


class ShortCodeExhaustedError(PortfolioError):
    """Raised when every generated short code collided with an existing one."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique short code after {attempts} attempts")


class EntropyUnavailableError(PortfolioError):
    """Raised when the secure randomness source cannot be read."""

    def __init__(self, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Secure random source unavailable: {original_error}")


class NotFoundError(PortfolioError):
    """Raised when a requested resource does not exist."""
    pass


class ShortCodeNotFoundError(NotFoundError):
    """Raised when a short code is not found in the database."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' not found")


class StorageError(PortfolioError):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class AggregationError(StorageError):
    """Raised when admin statistics cannot be computed in full."""
    pass


class ConfigurationError(PortfolioError):
    """Raised when required external credentials are missing."""

    def __init__(self, setting_name: str):
        self.setting_name = setting_name
        super().__init__(f"Required setting '{setting_name}' is not configured")


class MailDeliveryError(PortfolioError):
    """Raised when the SMTP transport rejects or fails to send a message."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Mail delivery failed: {message}")
