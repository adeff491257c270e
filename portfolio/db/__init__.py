"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter: SQLite-specific implementation
- Session management: engine/session factory builders and the FastAPI dependency
- Versioned schema migrations applied at startup
"""

from portfolio.db.interface import DatabaseAdapter
from portfolio.db.session import create_engine_from_settings, create_session_maker, get_session

__all__ = [
    "DatabaseAdapter",
    "create_engine_from_settings",
    "create_session_maker",
    "get_session",
]
