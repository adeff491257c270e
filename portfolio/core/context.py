"""
Application Context

Everything that lives for the whole process is created here once and handed
to endpoints and middleware through app.state.context:
- database engine and session factory
- visitor hasher (and with it the per-process salt)
- admin session token
- short code generator, contact mailer
- the task runner for detached work

There are no module-level singletons; tests build as many independent
contexts as they need.
"""

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from portfolio.core.setting import Settings
from portfolio.db.migrations import run_migrations
from portfolio.db.session import create_engine_from_settings, create_session_maker
from portfolio.services.admin_auth import AdminAuthenticator
from portfolio.services.background_tasks import (
    TaskRunner,
    increment_clicks_background,
    prune_visitors_background,
    record_visit_background,
)
from portfolio.services.link_store import LinkStore
from portfolio.services.mailer import ContactMailer
from portfolio.services.short_code import ShortCodeGenerator
from portfolio.services.visitor_hasher import VisitorHasher
from portfolio.services.visitor_ledger import should_track

logger = logging.getLogger(__name__)


class AppContext:
    """Process-lifetime state of one application instance."""

    def __init__(
        self,
        settings: Settings,
        engine: Optional[AsyncEngine] = None,
        hasher: Optional[VisitorHasher] = None,
        generator: Optional[ShortCodeGenerator] = None,
        mailer: Optional[ContactMailer] = None,
        admin_auth: Optional[AdminAuthenticator] = None,
    ):
        self.settings = settings
        self.engine = engine or create_engine_from_settings(settings)
        self.session_maker: async_sessionmaker = create_session_maker(self.engine)
        self.hasher = hasher or VisitorHasher()
        self.generator = generator or ShortCodeGenerator()
        self.mailer = mailer or ContactMailer(settings)
        self.admin_auth = admin_auth or AdminAuthenticator(settings)
        self.tasks = TaskRunner()

    async def startup(self) -> None:
        """
        Bring the database schema to head and start retention pruning.

        Migration failures propagate: the application can't serve without
        its schema.
        """
        try:
            await run_migrations(self.engine)
        except Exception as e:
            logger.critical(f"Failed to initialize database schema: {str(e)}", exc_info=True)
            raise

        self.schedule_prune()
        self.tasks.spawn_periodic(
            self.settings.VISITOR_PRUNE_INTERVAL_SECONDS,
            prune_visitors_background,
            self.session_maker,
            self.settings.VISITOR_RETENTION_DAYS,
            name="prune-visitors-periodic"
        )
        logger.info("Application context started")

    async def shutdown(self) -> None:
        await self.tasks.shutdown()
        await self.engine.dispose()
        logger.info("Application context stopped")

    def link_store(self, session: AsyncSession) -> LinkStore:
        """Link store whose lookups schedule detached click increments."""
        return LinkStore(session, on_hit=self.schedule_click)

    def schedule_click(self, short_code: str) -> None:
        self.tasks.spawn(
            increment_clicks_background,
            self.session_maker,
            short_code,
            name=f"increment-clicks:{short_code}"
        )

    def schedule_visit(self, address: str, user_agent: Optional[str], path: str) -> None:
        self.tasks.spawn(
            record_visit_background,
            self.session_maker,
            self.hasher,
            address,
            user_agent,
            path,
            name="record-visit"
        )

    def schedule_prune(self) -> None:
        self.tasks.spawn(
            prune_visitors_background,
            self.session_maker,
            self.settings.VISITOR_RETENTION_DAYS,
            name="prune-visitors"
        )

    def should_track(self, path: str, headers, sensitive: bool = False) -> bool:
        return should_track(
            path,
            headers,
            sensitive=sensitive,
            excluded_prefixes=self.settings.VISITOR_TRACKING_EXCLUDED_PREFIXES,
            sensitive_paths=self.settings.VISITOR_TRACKING_SENSITIVE_PATHS
        )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the application's context."""
    return request.app.state.context
