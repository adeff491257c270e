"""Tests for the admin dashboard aggregation."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from portfolio.core.exceptions import AggregationError
from portfolio.services.admin_stats import AdminStatsService
from tests.conftest import add_link, add_visitor

NOW = datetime(2025, 6, 15, 12, 0)


class TestComputeStats:

    @pytest.mark.asyncio
    async def test_empty_database(self, session):
        stats = await AdminStatsService(session).compute_stats(NOW)

        assert stats["total_visitors"] == 0
        assert stats["unique_visitors"] == 0
        assert stats["total_urls"] == 0
        assert stats["total_clicks"] == 0
        assert stats["visitors_today"] == 0
        assert stats["visitors_this_week"] == 0
        assert stats["top_urls"] == []
        assert stats["recent_visitors"] == []

    @pytest.mark.asyncio
    async def test_totals(self, session):
        await add_link(session, "aaaa1111", "https://example.com/a", datetime(2025, 1, 1), clicks=5)
        await add_link(session, "bbbb2222", "https://example.com/b", datetime(2025, 2, 1), clicks=5)
        await add_link(session, "cccc3333", "https://example.com/c", datetime(2025, 3, 1), clicks=1)

        await add_visitor(session, "hash-one", NOW - timedelta(hours=1))
        await add_visitor(session, "hash-one", NOW - timedelta(days=3))
        await add_visitor(session, "hash-two", NOW - timedelta(days=30))

        stats = await AdminStatsService(session).compute_stats(NOW)

        assert stats["total_urls"] == 3
        assert stats["total_clicks"] == 11
        assert stats["total_visitors"] == 3
        assert stats["unique_visitors"] == 2
        assert stats["visitors_today"] == 1
        assert stats["visitors_this_week"] == 2

    @pytest.mark.asyncio
    async def test_today_starts_at_midnight(self, session):
        await add_visitor(session, "late-yesterday", datetime(2025, 6, 14, 23, 59))
        await add_visitor(session, "early-today", datetime(2025, 6, 15, 0, 1))

        stats = await AdminStatsService(session).compute_stats(NOW)

        assert stats["visitors_today"] == 1
        assert stats["visitors_this_week"] == 2

    @pytest.mark.asyncio
    async def test_top_urls_ties_newest_first(self, session):
        await add_link(session, "aaaa1111", "https://example.com/a", datetime(2025, 1, 1), clicks=5)
        await add_link(session, "bbbb2222", "https://example.com/b", datetime(2025, 2, 1), clicks=5)
        await add_link(session, "cccc3333", "https://example.com/c", datetime(2025, 3, 1), clicks=1)

        stats = await AdminStatsService(session).compute_stats(NOW)

        assert [url["short_code"] for url in stats["top_urls"]] == ["bbbb2222", "aaaa1111", "cccc3333"]
        assert stats["top_urls"][0]["original_url"] == "https://example.com/b"
        assert stats["top_urls"][0]["clicks"] == 5

    @pytest.mark.asyncio
    async def test_top_urls_limited_to_ten(self, session):
        for i in range(12):
            await add_link(session, f"code{i:04d}", f"https://example.com/{i}", clicks=i)

        stats = await AdminStatsService(session).compute_stats(NOW)

        assert len(stats["top_urls"]) == 10
        assert stats["top_urls"][0]["short_code"] == "code0011"

    @pytest.mark.asyncio
    async def test_recent_visitors_newest_first_and_limited(self, session):
        for i in range(55):
            await add_visitor(session, f"hash-{i}", NOW - timedelta(minutes=i))

        stats = await AdminStatsService(session).compute_stats(NOW)

        recent = stats["recent_visitors"]
        assert len(recent) == 50
        assert recent[0]["hashed_ip"] == "hash-0"
        assert recent[-1]["hashed_ip"] == "hash-49"
        assert "ip" not in recent[0]

    @pytest.mark.asyncio
    async def test_failure_returns_no_partial_stats(self, session):
        await session.execute(text("DROP TABLE visitors"))
        await session.commit()

        with pytest.raises(AggregationError):
            await AdminStatsService(session).compute_stats(NOW)


class TestListVisitors:

    @pytest.mark.asyncio
    async def test_lists_newest_first(self, session):
        await add_visitor(session, "older", NOW - timedelta(days=2), path="/a")
        await add_visitor(session, "newer", NOW - timedelta(days=1), path="/b")

        visitors = await AdminStatsService(session).list_visitors()

        assert [visitor["hashed_ip"] for visitor in visitors] == ["newer", "older"]
        assert visitors[0]["path"] == "/b"

    @pytest.mark.asyncio
    async def test_respects_limit(self, session):
        for i in range(5):
            await add_visitor(session, f"hash-{i}", NOW - timedelta(minutes=i))

        assert len(await AdminStatsService(session).list_visitors(limit=3)) == 3
