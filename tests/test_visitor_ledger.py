"""
Tests for the visitor ledger: anonymized recording, tracking decisions and
retention pruning.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from portfolio.core.exceptions import StorageError
from portfolio.services.visitor_hasher import VisitorHasher
from portfolio.services.visitor_ledger import VisitorLedger, should_track
from tests.conftest import add_visitor


async def visitor_rows(session):
    result = await session.execute(text("SELECT * FROM visitors ORDER BY id"))
    return [dict(row) for row in result.mappings().all()]


class TestRecord:
    """Test how visits are written."""

    @pytest.mark.asyncio
    async def test_stores_only_the_hash(self, session):
        hasher = VisitorHasher()
        ledger = VisitorLedger(session, hasher)

        await ledger.record("203.0.113.7", "Mozilla/5.0", "/projects")

        rows = await visitor_rows(session)
        assert len(rows) == 1
        row = rows[0]
        assert "ip" not in row
        assert row["hashed_ip"] == hasher.hash("203.0.113.7")
        assert row["user_agent"] == "Mozilla/5.0"
        assert row["path"] == "/projects"
        assert row["timestamp"] is not None
        assert all("203.0.113.7" not in str(value) for value in row.values())

    @pytest.mark.asyncio
    async def test_missing_user_agent_is_stored_empty(self, session):
        ledger = VisitorLedger(session, VisitorHasher())
        await ledger.record("203.0.113.7", None, "/")

        rows = await visitor_rows(session)
        assert rows[0]["user_agent"] == ""

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self, session):
        await session.execute(text("DROP TABLE visitors"))
        await session.commit()

        ledger = VisitorLedger(session, VisitorHasher())
        # Must not raise
        await ledger.record("203.0.113.7", "Mozilla/5.0", "/")


class TestShouldTrack:
    """Test which requests end up in the ledger."""

    def test_regular_pages_are_tracked(self):
        assert should_track("/", {})
        assert should_track("/projects", {"User-Agent": "Mozilla/5.0"})
        assert should_track("/s/abc123", {})

    def test_assets_and_admin_are_excluded(self):
        for path in ["/static/app.css", "/images/me.png", "/admin", "/admin/api/stats",
                     "/favicon.ico", "/health"]:
            assert not should_track(path, {}), f"Should not track {path}"

    def test_do_not_track_is_honored(self):
        assert not should_track("/", {"DNT": "1"})
        assert not should_track("/", {"Sec-GPC": "1"})
        assert should_track("/", {"DNT": "0"})

    def test_sensitive_requests_are_excluded(self):
        assert not should_track("/", {}, sensitive=True)

    def test_sensitive_paths_are_excluded_without_the_handler_flag(self):
        assert not should_track("/contact", {})
        assert not should_track("/contact/", {})
        assert should_track("/contacts", {})
        assert not should_track("/newsletter/signup", {}, sensitive_paths=["/newsletter"])
        assert should_track("/contact", {}, sensitive_paths=[])

    def test_custom_prefixes(self):
        assert not should_track("/private/page", {}, excluded_prefixes=["/private"])
        assert should_track("/admin", {}, excluded_prefixes=["/private"])


class TestPrune:
    """Test retention pruning."""

    @pytest.mark.asyncio
    async def test_deletes_records_past_retention(self, session):
        now = datetime(2025, 6, 15, 12, 0)
        await add_visitor(session, "old-visitor-hash", now - timedelta(days=395))
        await add_visitor(session, "new-visitor-hash", now - timedelta(days=30))

        deleted = await VisitorLedger(session).prune(now)

        assert deleted == 1
        rows = await visitor_rows(session)
        assert [row["hashed_ip"] for row in rows] == ["new-visitor-hash"]

    @pytest.mark.asyncio
    async def test_nothing_to_prune(self, session):
        now = datetime(2025, 6, 15, 12, 0)
        await add_visitor(session, "new-visitor-hash", now - timedelta(days=1))

        assert await VisitorLedger(session).prune(now) == 0
        assert len(await visitor_rows(session)) == 1

    @pytest.mark.asyncio
    async def test_custom_retention(self, session):
        now = datetime(2025, 6, 15, 12, 0)
        await add_visitor(session, "week-old-hash", now - timedelta(days=8))

        assert await VisitorLedger(session, retention_days=7).prune(now) == 1

    def test_retention_cutoff(self):
        ledger = VisitorLedger(None, retention_days=365)
        assert ledger.retention_cutoff(datetime(2025, 6, 15)) == datetime(2024, 6, 15)

    @pytest.mark.asyncio
    async def test_prune_failure_raises(self, session):
        await session.execute(text("DROP TABLE visitors"))
        await session.commit()

        with pytest.raises(StorageError):
            await VisitorLedger(session).prune()
