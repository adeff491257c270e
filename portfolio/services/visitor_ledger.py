"""
Visitor Ledger

Append-only log of anonymized page visits, used by the admin analytics.

Design Decisions:
- Only the salted hash of the client address is stored
- Recording is best effort: a failed insert is logged and dropped, it must
  never fail the page that triggered it
- Asset paths, the admin pages, requests the handler marked as privacy
  sensitive and requests carrying a Do-Not-Track signal are not recorded
- Rows older than the retention window (12 months) are pruned at startup
  and periodically afterwards
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import StorageError
from portfolio.core.request_utils import opted_out_of_tracking
from portfolio.db.models import VisitorRecord, utc_now
from portfolio.services.visitor_hasher import VisitorHasher

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365
DEFAULT_EXCLUDED_PREFIXES = ("/static/", "/images/", "/admin", "/favicon", "/health")
DEFAULT_SENSITIVE_PATHS = ("/contact",)


def should_track(
    path: str,
    headers,
    sensitive: bool = False,
    excluded_prefixes: Sequence[str] = DEFAULT_EXCLUDED_PREFIXES,
    sensitive_paths: Sequence[str] = DEFAULT_SENSITIVE_PATHS
) -> bool:
    """
    Decide whether a request belongs in the visitor ledger.

    Args:
        path: Request path
        headers: Request headers (mapping with .get)
        sensitive: True when the handler flagged the request as privacy sensitive
        excluded_prefixes: Path prefixes that are never recorded
        sensitive_paths: Paths that are never recorded, matched exactly or as a
            parent of the request path
    """
    if sensitive:
        return False
    if any(path == item or path.startswith(item.rstrip("/") + "/") for item in sensitive_paths):
        return False
    if any(path.startswith(prefix) for prefix in excluded_prefixes):
        return False
    if opted_out_of_tracking(headers):
        return False
    return True


class VisitorLedger:
    """
    Reads and writes the visitors table.

    Detached tasks build one per task with their own session.
    """

    def __init__(
        self,
        session: AsyncSession,
        hasher: Optional[VisitorHasher] = None,
        retention_days: int = DEFAULT_RETENTION_DAYS
    ):
        """
        Args:
            session: Async database session for database operations
            hasher: Hasher for client addresses (required for record())
            retention_days: Age in days after which prune() deletes records
        """
        self.session = session
        self.hasher = hasher
        self.retention_days = retention_days

    async def record(
        self,
        address: str,
        user_agent: Optional[str],
        path: str
    ) -> None:
        """
        Log a visit. Never raises for storage failures.

        Args:
            address: Raw client address (hashed before it reaches the database)
            user_agent: User agent string (optional)
            path: Requested path
        """
        visitor = VisitorRecord(
            hashed_ip=self.hasher.hash(address),
            user_agent=user_agent or "",
            path=path or "",
            timestamp=utc_now()
        )
        try:
            self.session.add(visitor)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error recording visitor for {path}: {str(e)}", exc_info=True)

    def retention_cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or utc_now()) - timedelta(days=self.retention_days)

    async def prune(self, now: Optional[datetime] = None) -> int:
        """
        Delete records older than the retention window.

        Returns:
            Number of deleted records
        """
        cutoff = self.retention_cutoff(now)
        statement = delete(VisitorRecord).where(VisitorRecord.timestamp < cutoff)
        try:
            result = await self.session.execute(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to prune visitor records: {str(e)}", original_error=e)

        deleted = result.rowcount or 0
        logger.info(f"Pruned {deleted} visitor records older than {cutoff.isoformat()}")
        return deleted
