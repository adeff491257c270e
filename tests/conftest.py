"""
Shared fixtures.

Every test gets its own SQLite file, its own started AppContext (schema
migrated to head) and, where needed, an httpx client bound to an app built
around that context.
"""

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from portfolio.core.context import AppContext
from portfolio.core.rate_limit import limiter
from portfolio.core.setting import Settings
from portfolio.db.models import LinkEntry, VisitorRecord
from portfolio.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'portfolio-test.db'}",
        BASE_URL="http://short.test",
        ADMIN_USERNAME="admin",
        ADMIN_PASSWORD="s3cret",
        SMTP_USER=None,
        SMTP_PASS=None,
        RATE_LIMIT_ENABLED=False,
        VISITOR_PRUNE_INTERVAL_SECONDS=0,
    )


@pytest_asyncio.fixture
async def context(settings):
    ctx = AppContext(settings)
    await ctx.startup()
    # Let the startup prune finish before tests write dated rows
    await ctx.tasks.drain()
    yield ctx
    await ctx.shutdown()


@pytest_asyncio.fixture
async def session(context):
    async with context.session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(settings, context):
    limiter.reset()
    app = create_app(settings, context=context)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    limiter.reset()


async def add_link(session, short_code, url, created_at=None, clicks=0):
    entry = LinkEntry(
        short_code=short_code,
        original_url=url,
        created_at=created_at or datetime(2024, 1, 1),
        clicks=clicks
    )
    session.add(entry)
    await session.commit()
    return entry


async def add_visitor(session, hashed_ip, timestamp, path="/", user_agent="pytest"):
    visitor = VisitorRecord(
        hashed_ip=hashed_ip,
        user_agent=user_agent,
        path=path,
        timestamp=timestamp
    )
    session.add(visitor)
    await session.commit()
    return visitor
