"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Only http/https URLs are stored, so redirects can't be abused for javascript: or file: URLs
- Short codes are limited to the URL-safe base64 alphabet
- Length limits prevent oversized rows
"""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
MAX_SHORT_CODE_LENGTH = 16
ALLOWED_SCHEMES = {"http", "https"}

_SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate short code format.

    Short codes only contain URL-safe base64 characters: [A-Za-z0-9_-]

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if len(short_code) > MAX_SHORT_CODE_LENGTH:
        return None

    if not _SHORT_CODE_PATTERN.match(short_code):
        return None

    return short_code


def url_validation_error(url: str) -> Optional[str]:
    """
    Explain why a submitted URL can't be shortened.

    Args:
        url: The URL string to validate (already stripped)

    Returns:
        A user-facing reason, or None when the URL is acceptable
    """
    if not url:
        return "Please enter a URL to shorten"

    if len(url) > MAX_URL_LENGTH:
        return f"URL is longer than {MAX_URL_LENGTH} characters"

    try:
        result = urlparse(url)
    except ValueError:
        return "Please enter a valid URL starting with http:// or https://"

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return "Please enter a valid URL starting with http:// or https://"

    if not result.netloc or not result.hostname:
        return "URL must include a host name"

    return None


def is_valid_url(url: str) -> bool:
    """Return True when url is an absolute http/https URL we accept."""
    if not isinstance(url, str):
        return False
    return url_validation_error(url.strip()) is None
