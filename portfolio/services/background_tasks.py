"""
Background Task Helpers

Detached side effects of a request: click increments, visitor logging and
retention pruning. The request hands the work to the TaskRunner and returns
without awaiting it; failures end up in the log, never in the response.

Background tasks create their own database sessions, since the request's
session is closed by the time they run.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from portfolio.services.link_store import LinkStore
from portfolio.services.visitor_hasher import VisitorHasher
from portfolio.services.visitor_ledger import VisitorLedger

logger = logging.getLogger(__name__)


class TaskRunner:
    """
    Spawns and tracks detached asyncio tasks.

    - spawn(): one-shot unit of work, exceptions logged with the task name
    - spawn_periodic(): repeats a unit of work until shutdown
    - drain(): waits for in-flight one-shot tasks (shutdown and tests)
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._periodic: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(
        self,
        func: Callable[..., Awaitable[Any]],
        *args,
        name: Optional[str] = None,
        **kwargs
    ) -> Optional[asyncio.Task]:
        """
        Run func(*args, **kwargs) as a detached task.

        Returns:
            The created task, or None when the runner is shut down
        """
        task_name = name or getattr(func, "__name__", "background-task")
        if self._closed:
            logger.warning(f"Task runner closed, dropping task {task_name}")
            return None

        task = asyncio.create_task(self._run(task_name, func, args, kwargs), name=task_name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def spawn_periodic(
        self,
        interval: float,
        func: Callable[..., Awaitable[Any]],
        *args,
        name: Optional[str] = None,
        **kwargs
    ) -> Optional[asyncio.Task]:
        """Run func every `interval` seconds until shutdown (first run after one interval)."""
        task_name = name or getattr(func, "__name__", "periodic-task")
        if self._closed or interval <= 0:
            return None

        async def loop() -> None:
            while True:
                await asyncio.sleep(interval)
                await self._run(task_name, func, args, kwargs)

        task = asyncio.create_task(loop(), name=task_name)
        self._periodic.add(task)
        task.add_done_callback(self._periodic.discard)
        return task

    async def _run(self, task_name: str, func, args, kwargs) -> None:
        try:
            await func(*args, **kwargs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Background task {task_name} failed: {str(e)}",
                exc_info=True,
                extra={"task_name": task_name}
            )

    async def drain(self) -> None:
        """Wait until every one-shot task spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Stop periodic loops, then let in-flight one-shot tasks finish."""
        self._closed = True
        for task in list(self._periodic):
            task.cancel()
        if self._periodic:
            await asyncio.gather(*list(self._periodic), return_exceptions=True)
        await self.drain()


async def increment_clicks_background(
    session_maker: async_sessionmaker,
    short_code: str
) -> None:
    """
    Background task to increment the click counter of a short link.

    Uses a database-level increment, so concurrent redirects don't lose updates.
    """
    async with session_maker() as session:
        store = LinkStore(session)
        await store.increment_clicks(short_code)
        await session.commit()


async def record_visit_background(
    session_maker: async_sessionmaker,
    hasher: VisitorHasher,
    address: str,
    user_agent: Optional[str],
    path: str
) -> None:
    """Background task to add a visit to the visitor ledger."""
    async with session_maker() as session:
        ledger = VisitorLedger(session, hasher)
        await ledger.record(address, user_agent, path)


async def prune_visitors_background(
    session_maker: async_sessionmaker,
    retention_days: int
) -> None:
    """Background task to delete visitor records past the retention window."""
    async with session_maker() as session:
        ledger = VisitorLedger(session, retention_days=retention_days)
        await ledger.prune()
