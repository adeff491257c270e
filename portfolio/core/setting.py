"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Defaults to a single SQLite file, matching the single-process deployment
- Admin and SMTP credentials have documented fallbacks; missing SMTP
  credentials make the contact mailer fail fast instead of dropping messages
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings"]

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"


class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for the application loggers"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./urls.db",
        description="Database connection string (single SQLite file)"
    )
    DATABASE_BUSY_TIMEOUT: float = Field(
        default=30.0,
        description="Seconds a connection waits on SQLite's write lock before failing"
    )

    # Server Configuration
    BASE_URL: str = Field(
        default="http://localhost:8080",
        description="Public base URL used to build short links"
    )
    HOST: str = Field(default="0.0.0.0", description="Interface uvicorn binds to")
    PORT: int = Field(default=8080, description="Listening port")
    FORWARDED_ALLOW_IPS: str = Field(
        default="127.0.0.1",
        description="Proxy addresses whose X-Forwarded-For/-Proto uvicorn trusts (comma separated, or *)"
    )
    FORCE_HTTPS: bool = Field(
        default=False,
        description="Redirect plain-http requests (X-Forwarded-Proto: http) in production"
    )

    # Admin Configuration
    ADMIN_USERNAME: Optional[str] = Field(
        default=None,
        description="Admin login name (falls back to 'admin' with a warning)"
    )
    ADMIN_PASSWORD: Optional[str] = Field(
        default=None,
        description="Admin password (falls back to 'admin123' with a warning)"
    )
    ADMIN_SESSION_MAX_AGE: int = Field(
        default=3600 * 24,
        description="Lifetime of the admin session cookie in seconds"
    )

    # Mail Configuration
    SMTP_HOST: str = Field(default="smtp.gmail.com", description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port (STARTTLS)")
    SMTP_USER: Optional[str] = Field(default=None, description="SMTP login")
    SMTP_PASS: Optional[str] = Field(default=None, description="SMTP password")
    TO_EMAIL: Optional[str] = Field(
        default=None,
        description="Recipient of contact form messages (defaults to SMTP_USER)"
    )
    SMTP_TIMEOUT: float = Field(default=10.0, description="SMTP socket timeout in seconds")

    # Short Code Configuration
    SHORT_CODE_MAX_ATTEMPTS: int = Field(
        default=5,
        description="How many fresh codes to try when a generated code collides"
    )

    # Visitor Tracking Configuration
    VISITOR_RETENTION_DAYS: int = Field(
        default=365,
        description="Visitor records older than this are pruned (12 months)"
    )
    VISITOR_PRUNE_INTERVAL_SECONDS: int = Field(
        default=3600 * 24,
        description="Interval of the periodic retention prune (0 disables the loop)"
    )
    VISITOR_TRACKING_EXCLUDED_PREFIXES: List[str] = Field(
        default=["/static/", "/images/", "/admin", "/favicon", "/health"],
        description="Request paths starting with any of these are never recorded"
    )
    VISITOR_TRACKING_SENSITIVE_PATHS: List[str] = Field(
        default=["/contact"],
        description="Paths carrying personal data; never recorded, whatever the response status"
    )

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(
        default=True,
        description="Enable slowapi rate limits on form endpoints"
    )

    @property
    def is_production(self) -> bool:
        return self.ENV_SETTING == EnvSettingsOptions.production


settings = Settings()
