"""
Alembic Environment Configuration

This file configures Alembic for the portfolio database. It handles:
- Running on a connection handed over by the application at startup
  (config.attributes["connection"], see portfolio/db/migrations.py)
- Standalone CLI use, with the database URL taken from settings
- Model imports for autogenerate
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection
from sqlmodel import SQLModel

from portfolio.core.setting import settings
from portfolio.db import models  # noqa: F401  Import all models so Alembic can detect them

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def sync_database_url(database_url: str) -> str:
    """
    Convert the async SQLite URL to the sync driver Alembic's CLI uses.

    - sqlite+aiosqlite:///absolute/path -> sqlite:///absolute/path
    - sqlite+aiosqlite://./relative/path -> sqlite:///./relative/path
    """
    if database_url.startswith("sqlite+aiosqlite:///"):
        return database_url.replace("sqlite+aiosqlite:///", "sqlite:///")
    if database_url.startswith("sqlite+aiosqlite://"):
        return database_url.replace("sqlite+aiosqlite://", "sqlite:///")
    return database_url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    context.configure(
        url=sync_database_url(settings.DATABASE_URL),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with a connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connection = config.attributes.get("connection")
    if connection is not None:
        do_run_migrations(connection)
        return

    connectable = create_engine(
        sync_database_url(settings.DATABASE_URL),
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        do_run_migrations(connection)
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
