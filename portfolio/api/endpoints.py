"""
Public Endpoints

This module defines the public API with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Error handling and HTTP responses
- Delegating to service layer
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.api.schemas import ContactRequest, MessageResponse, ShortenRequest, ShortenResponse
from portfolio.core.context import AppContext, get_context
from portfolio.core.exceptions import (
    ConfigurationError,
    EntropyUnavailableError,
    InvalidURLError,
    MailDeliveryError,
    ShortCodeExhaustedError,
    StorageError,
)
from portfolio.core.rate_limit import RATE_LIMITS, limiter
from portfolio.db.session import get_session
from portfolio.services.redirect_service import RedirectService
from portfolio.services.url_service import URLShorteningService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/shorten-url",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a shortened version with a random code"
)
@limiter.limit(RATE_LIMITS["shorten"])
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    session: AsyncSession = Depends(get_session),
    context: AppContext = Depends(get_context)
) -> ShortenResponse:
    """
    Create a new short URL from a long URL.

    Returns:
        ShortenResponse with short_code, short_url, and original_url
    """
    url_service = URLShorteningService(
        context.link_store(session),
        context.generator,
        max_attempts=context.settings.SHORT_CODE_MAX_ATTEMPTS
    )

    try:
        entry = await url_service.create_short_url(body.url)
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.reason)
    except (ShortCodeExhaustedError, EntropyUnavailableError) as e:
        logger.error(f"Error generating short code: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sorry, there was an error generating the short URL. Please try again."
        )
    except StorageError as e:
        logger.error(f"Error saving URL: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sorry, there was an error saving the short URL. Please try again."
        )

    base_url = context.settings.BASE_URL.rstrip("/")
    return ShortenResponse(
        short_code=entry.short_code,
        short_url=f"{base_url}/s/{entry.short_code}",
        original_url=entry.original_url
    )


@router.get(
    "/s/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the original long URL"
)
async def redirect_to_url(
    short_code: str,
    session: AsyncSession = Depends(get_session),
    context: AppContext = Depends(get_context)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The click count is incremented by a detached task after the lookup.

    Raises:
        HTTPException 404: If short code not found
    """
    redirect_service = RedirectService(context.link_store(session))

    try:
        original_url = await redirect_service.get_redirect_url(short_code)
    except StorageError as e:
        logger.error(f"Database error resolving {short_code}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Short URL lookup failed"
        )

    if not original_url:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Short URL not found"
        )

    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)


@router.post(
    "/contact",
    response_model=MessageResponse,
    summary="Send a contact message",
    description="Forwards a contact form submission to the site owner by email"
)
@limiter.limit(RATE_LIMITS["contact"])
async def send_contact_message(
    request: Request,
    body: ContactRequest,
    context: AppContext = Depends(get_context)
) -> MessageResponse:
    """
    Send a contact form message.

    Raises:
        HTTPException 503: If mail delivery is not configured
        HTTPException 502: If the mail server rejected the message
    """
    # Contact submissions carry personal data; keep them out of the visitor ledger
    request.state.skip_visitor_tracking = True

    try:
        await context.mailer.send(body.name, body.email, body.message)
    except ConfigurationError as e:
        logger.error(f"Contact form unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sorry, the contact form is not available right now."
        )
    except MailDeliveryError:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Sorry, there was an error sending your message. Please try again later."
        )

    return MessageResponse(message="Thank you for your message! I'll get back to you soon.")
