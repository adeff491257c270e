"""
Database Models for the Portfolio Backend

This module defines the SQLModel database schemas for:
- LinkEntry: mapping between short codes and original URLs, with click counts
- VisitorRecord: anonymized page visits for the admin analytics

Design Decisions:
- short_code is the primary key (random codes, no surrogate id needed)
- clicks is denormalized on the link row and updated with an atomic UPDATE
- Visitor rows never store the raw client address, only a salted digest
- Timestamps are naive UTC, which is how SQLite stores them

The tables themselves are created by the versioned migrations in
portfolio/migrations, not by SQLModel.metadata.create_all().
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LinkEntry(SQLModel, table=True):
    """
    Short link table.

    Fields:
    - short_code: Unique code (6-8 URL-safe characters)
    - original_url: The absolute http/https URL that was shortened
    - created_at: When the link was created
    - clicks: Number of redirects served (updated asynchronously)
    """
    __tablename__ = "urls"

    short_code: str = Field(sa_column=Column(String(16), primary_key=True))
    original_url: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
    clicks: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0, server_default="0")
    )


class VisitorRecord(SQLModel, table=True):
    """
    Visitor ledger table.

    Append-only; rows are removed only by retention pruning.
    hashed_ip is a truncated digest of (client address, process salt).
    """
    __tablename__ = "visitors"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    hashed_ip: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    user_agent: Optional[str] = Field(default="", sa_column=Column(Text, nullable=True))
    path: Optional[str] = Field(default="", sa_column=Column(Text, nullable=True))
    timestamp: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime, nullable=False, index=True)
    )
    country: Optional[str] = Field(
        default=None,
        sa_column=Column(String(2), nullable=True)
    )
