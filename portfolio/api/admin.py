"""
Admin Endpoints

Login/logout and the password-protected dashboard API. Every route except
login and logout requires the admin session cookie.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.api.schemas import (
    AdminLoginRequest,
    AdminStatsResponse,
    MessageResponse,
    URLStat,
    VisitorMetric,
)
from portfolio.core.context import AppContext, get_context
from portfolio.core.exceptions import AggregationError, ShortCodeNotFoundError, StorageError
from portfolio.core.request_utils import get_client_ip
from portfolio.db.session import get_session
from portfolio.services.admin_auth import ADMIN_COOKIE_NAME
from portfolio.services.admin_stats import AdminStatsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin")


async def require_admin(
    request: Request,
    context: AppContext = Depends(get_context)
) -> None:
    """Dependency rejecting requests without a valid admin session cookie."""
    if not context.admin_auth.verify_token(request.cookies.get(ADMIN_COOKIE_NAME)):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin login required"
        )


@router.post("/login", response_model=MessageResponse, summary="Admin login")
async def login(
    body: AdminLoginRequest,
    request: Request,
    response: Response,
    context: AppContext = Depends(get_context)
) -> MessageResponse:
    if not context.admin_auth.check_credentials(body.username, body.password):
        logger.warning(f"Failed admin login attempt from {get_client_ip(request)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    response.set_cookie(
        ADMIN_COOKIE_NAME,
        context.admin_auth.token,
        max_age=context.settings.ADMIN_SESSION_MAX_AGE,
        path="/admin",
        httponly=True,
        secure=context.settings.is_production,
        samesite="lax"
    )
    return MessageResponse(message="Logged in")


@router.get("/logout", response_model=MessageResponse, summary="Admin logout")
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/admin")
    return MessageResponse(message="Logged out")


@router.get(
    "/api/stats",
    response_model=AdminStatsResponse,
    dependencies=[Depends(require_admin)],
    summary="Dashboard statistics"
)
async def get_admin_stats(session: AsyncSession = Depends(get_session)) -> AdminStatsResponse:
    try:
        stats = await AdminStatsService(session).compute_stats()
    except AggregationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load statistics"
        )
    return AdminStatsResponse(**stats)


@router.get(
    "/urls",
    response_model=list[URLStat],
    dependencies=[Depends(require_admin)],
    summary="All short links, newest first"
)
async def list_urls(
    session: AsyncSession = Depends(get_session),
    context: AppContext = Depends(get_context)
) -> list[URLStat]:
    try:
        entries = await context.link_store(session).list_all()
    except StorageError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load URLs"
        )
    return [URLStat(**entry.model_dump()) for entry in entries]


@router.get(
    "/visitors",
    response_model=list[VisitorMetric],
    dependencies=[Depends(require_admin)],
    summary="Most recent visitors"
)
async def list_visitors(session: AsyncSession = Depends(get_session)) -> list[VisitorMetric]:
    try:
        visitors = await AdminStatsService(session).list_visitors()
    except AggregationError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load visitors"
        )
    return [VisitorMetric(**visitor) for visitor in visitors]


@router.delete(
    "/urls/{short_code}",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
    summary="Delete a short link"
)
async def delete_url(
    short_code: str,
    session: AsyncSession = Depends(get_session),
    context: AppContext = Depends(get_context)
) -> MessageResponse:
    try:
        deleted = await context.link_store(session).delete(short_code)
        if deleted == 0:
            raise ShortCodeNotFoundError(short_code)
    except ShortCodeNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL not found")
    except StorageError as e:
        logger.error(f"Error deleting URL {short_code}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete URL"
        )

    logger.info(f"URL {short_code} deleted by admin")
    return MessageResponse(message="URL deleted successfully")
