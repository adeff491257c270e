"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- Single writer at a time (file locking). Concurrent click increments and
  visitor inserts wait on the lock for up to `busy_timeout` seconds instead
  of failing immediately, which is how conflicting writes get serialized.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from portfolio.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.
    """

    def __init__(self, busy_timeout: float = 30.0):
        self.busy_timeout = busy_timeout

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create SQLite async engine with appropriate configuration.

        SQLite-specific configuration:
        - NullPool: one connection per session, closed afterwards
        - check_same_thread=False: Required for aiosqlite's worker thread
        - timeout: how long a writer waits for the database lock

        Args:
            database_url: SQLite connection string (sqlite+aiosqlite:///...)
            **kwargs: Additional engine options (merged with SQLite defaults)

        Returns:
            Configured AsyncEngine for SQLite
        """
        connect_args = self.get_connect_args()

        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        return create_async_engine(
            database_url,
            poolclass=self.get_pool_class(),
            connect_args=connect_args,
            **engine_kwargs
        )

    def get_pool_class(self) -> type[NullPool]:
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": self.busy_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"


def get_database_adapter(busy_timeout: float = 30.0) -> DatabaseAdapter:
    """
    Factory function to get the database adapter.

    Returns:
        DatabaseAdapter instance
    """
    return SQLiteAdapter(busy_timeout=busy_timeout)
