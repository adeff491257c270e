"""
Link Store

Persists short code to URL mappings and their click counters.

Two implementations share the BaseLinkStore contract:
- LinkStore: SQLModel/SQLAlchemy, one instance per database session
- InMemoryLinkStore: non-persistent dict guarded by a single asyncio.Lock

Click counting on lookup is fire-and-forget: lookup() hands the code to an
`on_hit` callback (normally the application context, which schedules a
detached increment) and returns immediately. A failing callback is logged
and never fails the lookup.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.core.exceptions import DuplicateCodeError, StorageError
from portfolio.db.models import LinkEntry, utc_now

logger = logging.getLogger(__name__)

HitCallback = Callable[[str], None]


class BaseLinkStore(ABC):
    """Contract shared by the link store implementations."""

    def __init__(self, on_hit: Optional[HitCallback] = None):
        self._on_hit = on_hit

    @abstractmethod
    async def save(self, short_code: str, original_url: str) -> LinkEntry:
        """
        Store a new mapping.

        Raises:
            DuplicateCodeError: If short_code already exists
            StorageError: If the write fails for any other reason
        """

    @abstractmethod
    async def find(self, short_code: str) -> Optional[str]:
        """Original URL for short_code, or None. No side effects."""

    @abstractmethod
    async def list_all(self) -> List[LinkEntry]:
        """Every link, newest first."""

    @abstractmethod
    async def delete(self, short_code: str) -> int:
        """Delete a link. Returns rows affected (0 when the code is unknown)."""

    @abstractmethod
    async def increment_clicks(self, short_code: str) -> None:
        """Add one click to short_code. Unknown codes are ignored."""

    async def lookup(self, short_code: str) -> Tuple[str, bool]:
        """
        Resolve a short code.

        Returns:
            (original_url, True) on a hit, ("", False) on a miss

        On a hit the click increment is handed to the on_hit callback and
        not awaited.
        """
        original_url = await self.find(short_code)
        if original_url is None:
            return "", False

        if self._on_hit is not None:
            try:
                self._on_hit(short_code)
            except Exception as e:
                logger.error(
                    f"Failed to schedule click increment for {short_code}: {str(e)}",
                    exc_info=True
                )

        return original_url, True


class LinkStore(BaseLinkStore):
    """
    SQL-backed link store.

    Writes are committed by the store itself so a saved link is visible to
    the detached tasks that run on other sessions.
    """

    def __init__(self, session: AsyncSession, on_hit: Optional[HitCallback] = None):
        """
        Args:
            session: Async database session for database operations
            on_hit: Called with the short code after every successful lookup
        """
        super().__init__(on_hit)
        self.session = session

    async def save(self, short_code: str, original_url: str) -> LinkEntry:
        entry = LinkEntry(
            short_code=short_code,
            original_url=original_url,
            created_at=utc_now(),
            clicks=0
        )
        try:
            self.session.add(entry)
            await self.session.flush()
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateCodeError(short_code)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to save short code {short_code}: {str(e)}", original_error=e)

        return entry

    async def find(self, short_code: str) -> Optional[str]:
        statement = select(LinkEntry.original_url).where(LinkEntry.short_code == short_code)
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to look up short code {short_code}: {str(e)}", original_error=e)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[LinkEntry]:
        statement = select(LinkEntry).order_by(LinkEntry.created_at.desc())
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list links: {str(e)}", original_error=e)
        return list(result.scalars().all())

    async def delete(self, short_code: str) -> int:
        statement = delete(LinkEntry).where(LinkEntry.short_code == short_code)
        try:
            result = await self.session.execute(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageError(f"Failed to delete short code {short_code}: {str(e)}", original_error=e)
        return result.rowcount

    async def increment_clicks(self, short_code: str) -> None:
        """
        Increment the click count atomically.

        Uses a database-level UPDATE instead of read-modify-write, so
        concurrent increments can't overwrite each other. Commit is handled
        by the caller.
        """
        statement = (
            update(LinkEntry)
            .where(LinkEntry.short_code == short_code)
            .values(clicks=func.coalesce(LinkEntry.clicks, 0) + 1)
        )
        await self.session.execute(statement)


class InMemoryLinkStore(BaseLinkStore):
    """
    Non-persistent link store.

    One asyncio.Lock guards every read and write of the mapping.
    """

    def __init__(self, on_hit: Optional[HitCallback] = None):
        super().__init__(on_hit)
        self._links: Dict[str, LinkEntry] = {}
        self._lock = asyncio.Lock()

    async def save(self, short_code: str, original_url: str) -> LinkEntry:
        async with self._lock:
            if short_code in self._links:
                raise DuplicateCodeError(short_code)
            entry = LinkEntry(
                short_code=short_code,
                original_url=original_url,
                created_at=utc_now(),
                clicks=0
            )
            self._links[short_code] = entry
            return entry

    async def find(self, short_code: str) -> Optional[str]:
        async with self._lock:
            entry = self._links.get(short_code)
            return entry.original_url if entry else None

    async def list_all(self) -> List[LinkEntry]:
        async with self._lock:
            return sorted(self._links.values(), key=lambda entry: entry.created_at, reverse=True)

    async def delete(self, short_code: str) -> int:
        async with self._lock:
            return 1 if self._links.pop(short_code, None) is not None else 0

    async def increment_clicks(self, short_code: str) -> None:
        async with self._lock:
            entry = self._links.get(short_code)
            if entry is not None:
                entry.clicks += 1
