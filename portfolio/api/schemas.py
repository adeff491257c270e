"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Templates are rendered elsewhere; the API returns plain JSON.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    # Plain str: validation happens in the service so the error message is ours
    url: str = Field(..., description="The long URL to shorten")


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    short_code: str = Field(..., description="The generated short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")


# Name and email end up in mail headers (Subject, Reply-To)
SINGLE_LINE_PATTERN = r"^[^\x00-\x1f\x7f]*$"


class ContactRequest(BaseModel):
    """Contact form submission."""
    name: str = Field(..., min_length=1, max_length=200, pattern=SINGLE_LINE_PATTERN)
    email: str = Field(..., min_length=3, max_length=320, pattern=SINGLE_LINE_PATTERN)
    message: str = Field(..., min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    message: str


class AdminLoginRequest(BaseModel):
    username: str
    password: str


class URLStat(BaseModel):
    short_code: str
    original_url: str
    created_at: datetime
    clicks: int


class VisitorMetric(BaseModel):
    id: int
    hashed_ip: str
    user_agent: Optional[str] = ""
    path: Optional[str] = ""
    timestamp: datetime
    country: Optional[str] = None


class AdminStatsResponse(BaseModel):
    """Admin dashboard statistics."""
    total_visitors: int
    unique_visitors: int
    total_urls: int
    total_clicks: int
    visitors_today: int
    visitors_this_week: int
    top_urls: List[URLStat]
    recent_visitors: List[VisitorMetric]
