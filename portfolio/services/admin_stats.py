"""
Admin Statistics Service

Computes the admin dashboard figures on demand from the links and visitors
tables. Read only; the link store and visitor ledger own the rows.

All-or-nothing: if any query fails the whole computation raises
AggregationError and no partial statistics are returned.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import AggregationError
from portfolio.db.models import LinkEntry, VisitorRecord, utc_now

logger = logging.getLogger(__name__)

TOP_URLS_LIMIT = 10
DASHBOARD_VISITORS_LIMIT = 50
FULL_VISITORS_LIMIT = 200


class AdminStatsService:
    """
    Aggregates link and visitor statistics for the admin dashboard.
    """

    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session

    async def _scalar(self, statement) -> int:
        result = await self.session.execute(statement)
        return result.scalar() or 0

    async def compute_stats(self, now: Optional[datetime] = None) -> dict:
        """
        Compute the dashboard statistics.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            Dictionary with:
            - total_visitors, unique_visitors (distinct hashed addresses)
            - total_urls, total_clicks
            - visitors_today (since UTC midnight), visitors_this_week (last 7 days)
            - top_urls: 10 most clicked links, ties newest first
            - recent_visitors: 50 most recent visits

        Raises:
            AggregationError: If any underlying query fails
        """
        now = now or utc_now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = now - timedelta(days=7)

        try:
            stats = {
                "total_visitors": await self._scalar(
                    select(func.count()).select_from(VisitorRecord)
                ),
                "unique_visitors": await self._scalar(
                    select(func.count(func.distinct(VisitorRecord.hashed_ip)))
                ),
                "total_urls": await self._scalar(
                    select(func.count()).select_from(LinkEntry)
                ),
                "total_clicks": await self._scalar(
                    select(func.coalesce(func.sum(LinkEntry.clicks), 0))
                ),
                "visitors_today": await self._scalar(
                    select(func.count())
                    .select_from(VisitorRecord)
                    .where(VisitorRecord.timestamp >= start_of_day)
                ),
                "visitors_this_week": await self._scalar(
                    select(func.count())
                    .select_from(VisitorRecord)
                    .where(VisitorRecord.timestamp >= week_ago)
                ),
                "top_urls": [entry.model_dump() for entry in await self._top_urls()],
                "recent_visitors": [
                    visitor.model_dump()
                    for visitor in await self._recent_visitors(DASHBOARD_VISITORS_LIMIT)
                ],
            }
        except SQLAlchemyError as e:
            logger.error(f"Error loading admin stats: {str(e)}", exc_info=True)
            raise AggregationError(f"Failed to compute admin statistics: {str(e)}", original_error=e)

        return stats

    async def _top_urls(self) -> List[LinkEntry]:
        statement = (
            select(LinkEntry)
            .order_by(LinkEntry.clicks.desc(), LinkEntry.created_at.desc())
            .limit(TOP_URLS_LIMIT)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def _recent_visitors(self, limit: int) -> List[VisitorRecord]:
        statement = (
            select(VisitorRecord)
            .order_by(VisitorRecord.timestamp.desc(), VisitorRecord.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def list_visitors(self, limit: int = FULL_VISITORS_LIMIT) -> List[dict]:
        """Full visitor listing, newest first."""
        try:
            visitors = await self._recent_visitors(limit)
        except SQLAlchemyError as e:
            raise AggregationError(f"Failed to load visitors: {str(e)}", original_error=e)
        return [visitor.model_dump() for visitor in visitors]
