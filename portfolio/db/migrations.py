"""
Schema Migrations at Startup

Applies the Alembic revisions in portfolio/migrations to the application's
database. Revisions are recorded in the alembic_version table, so running
this on every start is idempotent: a database already at head is left alone.

The upgrade shares the application's async engine connection instead of
opening its own (see portfolio/migrations/env.py).
"""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def build_alembic_config(connection: Connection = None) -> Config:
    """
    Build an Alembic Config without an alembic.ini file.

    Args:
        connection: Optional connection the migrations should run on
    """
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.attributes["connection"] = connection
    return config


def _upgrade(connection: Connection, revision: str) -> None:
    command.upgrade(build_alembic_config(connection), revision)


def _current_revision(connection: Connection):
    return MigrationContext.configure(connection).get_current_revision()


async def run_migrations(engine: AsyncEngine, revision: str = "head") -> None:
    """
    Upgrade the database to the given revision.

    Args:
        engine: Application async engine
        revision: Target revision (default: head)

    Raises:
        Any error from Alembic or the database. Callers at startup treat
        this as fatal.
    """
    async with engine.begin() as connection:
        before = await connection.run_sync(_current_revision)
        await connection.run_sync(_upgrade, revision)
        after = await connection.run_sync(_current_revision)

    if before == after:
        logger.info(f"Database schema up to date at revision {after}")
    else:
        logger.info(f"Database schema migrated from {before or 'empty'} to {after}")


async def get_current_revision(engine: AsyncEngine):
    """Revision recorded in alembic_version, or None for an unmanaged database."""
    async with engine.connect() as connection:
        return await connection.run_sync(_current_revision)
