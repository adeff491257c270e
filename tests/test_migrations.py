"""
Tests for the startup schema migrations, in particular the conversion of
legacy raw-address visitor rows to hashed rows.
"""

import hashlib

import pytest
import pytest_asyncio
from sqlalchemy import inspect, text

from portfolio.db.migrations import get_current_revision, run_migrations
from portfolio.db.session import create_engine_from_settings

HEAD = "002_hash_visitor_addresses"

LEGACY_VISITORS = [
    {"id": 1, "ip": "203.0.113.7", "ua": "Mozilla/5.0", "path": "/", "ts": "2024-05-01 09:30:00"},
    {"id": 2, "ip": "203.0.113.7", "ua": "Mozilla/5.0", "path": "/projects", "ts": "2024-05-01 09:31:00"},
    {"id": 3, "ip": "198.51.100.23", "ua": "curl/8.0", "path": "/s/abc123", "ts": "2024-05-02 18:00:00"},
]


def placeholder(row_id):
    return hashlib.sha256(f"legacy-visitor:{row_id}".encode()).hexdigest()[:16]


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    yield engine
    await engine.dispose()


async def table_names(engine):
    async with engine.connect() as connection:
        return await connection.run_sync(lambda conn: set(inspect(conn).get_table_names()))


async def column_names(engine, table):
    async with engine.connect() as connection:
        return await connection.run_sync(
            lambda conn: {column["name"] for column in inspect(conn).get_columns(table)}
        )


async def index_names(engine, table):
    async with engine.connect() as connection:
        return await connection.run_sync(
            lambda conn: {index["name"] for index in inspect(conn).get_indexes(table)}
        )


async def fetch_all(engine, sql):
    async with engine.connect() as connection:
        result = await connection.execute(text(sql))
        return [dict(row) for row in result.mappings().all()]


async def insert_legacy_visitors(engine):
    async with engine.begin() as connection:
        await connection.execute(
            text(
                "INSERT INTO visitors (id, ip, user_agent, path, timestamp) "
                "VALUES (:id, :ip, :ua, :path, :ts)"
            ),
            LEGACY_VISITORS
        )


class TestFreshDatabase:

    @pytest.mark.asyncio
    async def test_creates_current_schema(self, engine):
        await run_migrations(engine)

        assert await get_current_revision(engine) == HEAD
        assert {"urls", "visitors", "alembic_version"} <= await table_names(engine)
        assert await column_names(engine, "urls") == {"short_code", "original_url", "created_at", "clicks"}
        assert await column_names(engine, "visitors") == {
            "id", "hashed_ip", "user_agent", "path", "timestamp", "country"
        }
        assert {"ix_visitors_hashed_ip", "ix_visitors_timestamp"} <= await index_names(engine, "visitors")

    @pytest.mark.asyncio
    async def test_running_again_is_a_no_op(self, engine):
        await run_migrations(engine)
        async with engine.begin() as connection:
            await connection.execute(
                text("INSERT INTO urls (short_code, original_url, clicks) VALUES ('abc123', 'https://example.com', 4)")
            )

        await run_migrations(engine)

        assert await get_current_revision(engine) == HEAD
        rows = await fetch_all(engine, "SELECT short_code, clicks FROM urls")
        assert rows == [{"short_code": "abc123", "clicks": 4}]

    @pytest.mark.asyncio
    async def test_unmanaged_database_has_no_revision(self, engine):
        assert await get_current_revision(engine) is None


class TestLegacyVisitorConversion:

    @pytest.mark.asyncio
    async def test_converts_raw_address_rows(self, engine):
        await run_migrations(engine, "001_initial")
        assert "ip" in await column_names(engine, "visitors")
        await insert_legacy_visitors(engine)

        await run_migrations(engine)

        columns = await column_names(engine, "visitors")
        assert "ip" not in columns
        assert "hashed_ip" in columns
        assert "visitors_legacy" not in await table_names(engine)

        rows = await fetch_all(engine, "SELECT * FROM visitors ORDER BY id")
        assert [row["id"] for row in rows] == [1, 2, 3]
        assert [row["path"] for row in rows] == ["/", "/projects", "/s/abc123"]
        assert [row["user_agent"] for row in rows] == ["Mozilla/5.0", "Mozilla/5.0", "curl/8.0"]
        assert [row["hashed_ip"] for row in rows] == [placeholder(1), placeholder(2), placeholder(3)]
        for row in rows:
            assert row["hashed_ip"]
            assert all(
                legacy["ip"] not in str(value)
                for legacy in LEGACY_VISITORS
                for value in row.values()
            )

    @pytest.mark.asyncio
    async def test_converted_rows_keep_their_timestamps(self, engine):
        await run_migrations(engine, "001_initial")
        await insert_legacy_visitors(engine)

        await run_migrations(engine)

        rows = await fetch_all(engine, "SELECT timestamp FROM visitors ORDER BY id")
        assert [str(row["timestamp"])[:16] for row in rows] == [
            "2024-05-01 09:30", "2024-05-01 09:31", "2024-05-02 18:00"
        ]

    @pytest.mark.asyncio
    async def test_new_rows_continue_after_legacy_ids(self, engine):
        await run_migrations(engine, "001_initial")
        await insert_legacy_visitors(engine)
        await run_migrations(engine)

        async with engine.begin() as connection:
            await connection.execute(
                text("INSERT INTO visitors (hashed_ip, path, timestamp) VALUES ('abcdef0123456789', '/', CURRENT_TIMESTAMP)")
            )

        rows = await fetch_all(engine, "SELECT id FROM visitors ORDER BY id")
        assert [row["id"] for row in rows] == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_converting_twice_changes_nothing(self, engine):
        await run_migrations(engine, "001_initial")
        await insert_legacy_visitors(engine)
        await run_migrations(engine)
        before = await fetch_all(engine, "SELECT * FROM visitors ORDER BY id")

        await run_migrations(engine)

        assert await fetch_all(engine, "SELECT * FROM visitors ORDER BY id") == before

    @pytest.mark.asyncio
    async def test_existing_hashes_are_kept(self, engine):
        """Deployments that added hashed_ip next to ip keep the hashes they have."""
        async with engine.begin() as connection:
            await connection.execute(text(
                "CREATE TABLE visitors (id INTEGER PRIMARY KEY AUTOINCREMENT, ip TEXT NOT NULL, "
                "hashed_ip TEXT, user_agent TEXT, path TEXT, timestamp DATETIME, country TEXT)"
            ))
            await connection.execute(text(
                "INSERT INTO visitors (id, ip, hashed_ip, path, timestamp) VALUES "
                "(1, '203.0.113.7', '0123456789abcdef', '/', '2024-05-01 09:30:00'), "
                "(2, '198.51.100.23', NULL, '/', '2024-05-01 09:31:00')"
            ))

        await run_migrations(engine)

        rows = await fetch_all(engine, "SELECT id, hashed_ip FROM visitors ORDER BY id")
        assert rows == [
            {"id": 1, "hashed_ip": "0123456789abcdef"},
            {"id": 2, "hashed_ip": placeholder(2)},
        ]

    @pytest.mark.asyncio
    async def test_table_without_address_columns_is_rebuilt(self, engine):
        """A visitors table with neither ip nor hashed_ip still ends up hashed."""
        async with engine.begin() as connection:
            await connection.execute(text(
                "CREATE TABLE visitors (id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "user_agent TEXT, path TEXT, timestamp DATETIME, country TEXT)"
            ))
            await connection.execute(text(
                "INSERT INTO visitors (id, user_agent, path, timestamp) VALUES "
                "(7, 'Mozilla/5.0', '/about', '2024-05-01 09:30:00')"
            ))

        await run_migrations(engine)

        columns = await column_names(engine, "visitors")
        assert "hashed_ip" in columns
        assert "ip" not in columns
        assert "visitors_legacy" not in await table_names(engine)
        rows = await fetch_all(engine, "SELECT id, hashed_ip, path FROM visitors")
        assert rows == [{"id": 7, "hashed_ip": placeholder(7), "path": "/about"}]

    @pytest.mark.asyncio
    async def test_tracking_works_after_rebuild(self, settings):
        """Visits can be recorded once a table without address columns was converged."""
        from portfolio.core.context import AppContext
        from portfolio.services.visitor_hasher import VisitorHasher
        from portfolio.services.visitor_ledger import VisitorLedger

        setup_engine = create_engine_from_settings(settings)
        async with setup_engine.begin() as connection:
            await connection.execute(text(
                "CREATE TABLE visitors (id INTEGER PRIMARY KEY AUTOINCREMENT, "
                "user_agent TEXT, path TEXT, timestamp DATETIME)"
            ))
        await setup_engine.dispose()

        context = AppContext(settings)
        await context.startup()
        try:
            hasher = VisitorHasher()
            async with context.session_maker() as session:
                await VisitorLedger(session, hasher).record("203.0.113.7", "pytest", "/")
            rows = await fetch_all(context.engine, "SELECT hashed_ip, country FROM visitors")
            assert rows == [{"hashed_ip": hasher.hash("203.0.113.7"), "country": None}]
        finally:
            await context.shutdown()


class TestUnversionedLegacyDatabase:
    """Databases created before migrations were tracked are adopted in place."""

    @pytest.mark.asyncio
    async def test_adopts_and_upgrades_tables(self, engine):
        async with engine.begin() as connection:
            await connection.execute(text(
                "CREATE TABLE urls (short_code TEXT PRIMARY KEY, original_url TEXT NOT NULL, "
                "created_at DATETIME DEFAULT CURRENT_TIMESTAMP)"
            ))
            await connection.execute(text(
                "CREATE TABLE visitors (id INTEGER PRIMARY KEY AUTOINCREMENT, ip TEXT NOT NULL, "
                "user_agent TEXT, path TEXT, timestamp DATETIME DEFAULT CURRENT_TIMESTAMP, country TEXT)"
            ))
            await connection.execute(text(
                "INSERT INTO urls (short_code, original_url) VALUES ('legacy01', 'https://example.com/legacy')"
            ))
        await insert_legacy_visitors(engine)

        await run_migrations(engine)

        assert await get_current_revision(engine) == HEAD
        assert "clicks" in await column_names(engine, "urls")
        links = await fetch_all(engine, "SELECT short_code, original_url, clicks FROM urls")
        assert links == [
            {"short_code": "legacy01", "original_url": "https://example.com/legacy", "clicks": 0}
        ]

        assert "ip" not in await column_names(engine, "visitors")
        visitors = await fetch_all(engine, "SELECT id, hashed_ip FROM visitors ORDER BY id")
        assert [row["id"] for row in visitors] == [1, 2, 3]
        assert all(row["hashed_ip"] for row in visitors)


class TestStartup:

    @pytest.mark.asyncio
    async def test_context_startup_migrates(self, context):
        assert await get_current_revision(context.engine) == HEAD
