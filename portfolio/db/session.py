"""
Database Session Management

This module builds the async engine and session factory for an application
context and exposes the FastAPI session dependency.

Nothing here is created at import time: the engine and session factory are
owned by the AppContext built at startup and reached through request.app.state.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from portfolio.core.setting import Settings
from portfolio.db.sqlite_adapter import get_database_adapter


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine through the configured database adapter."""
    db_adapter = get_database_adapter(busy_timeout=settings.DATABASE_BUSY_TIMEOUT)
    return db_adapter.create_engine(settings.DATABASE_URL)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory producing SQLModel async sessions bound to engine."""
    return async_sessionmaker(
        engine,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session from the application's session factory
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            pass
    """
    session_maker = request.app.state.context.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
