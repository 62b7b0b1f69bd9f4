from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import UUID

import psycopg
import pytest

from app.db import helpers
from app.db.helpers import DatabaseError
from app.features.browsing_insights.pipeline.hoarders.service import detect_hoarder_tabs
from app.features.browsing_insights.repository import visit_repository
from app.features.browsing_insights.repository.visit_repository import VisitRepository

MODULE = visit_repository


def _row(**overrides):
    row = {
        "id": UUID("00000000-0000-0000-0000-000000000001"),
        "user_id": "user-123",
        "url": "https://example.com/a",
        "domain": "example.com",
        "title": "A",
        "duration_seconds": None,
        "active_duration_seconds": None,
        "engagement_rate": None,
        "category": None,
        "metadata": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_fetch_visits_maps_null_columns(monkeypatch, now):
    fetch_mock = AsyncMock(return_value=[_row(visited_at=now)])
    monkeypatch.setattr(MODULE, "fetch_all", fetch_mock)

    visits = await VisitRepository.fetch_visits("user-123", now - timedelta(days=7), now, limit=50)

    assert len(visits) == 1
    visit = visits[0]
    assert visit.id == "00000000-0000-0000-0000-000000000001"
    assert visit.duration_seconds is None
    assert visit.engagement_rate is None
    assert visit.metadata == {}

    query, params = fetch_mock.await_args.args
    assert "LIMIT %s" in query
    assert "ORDER BY visited_at ASC" in query
    assert params == ("user-123", now - timedelta(days=7), now, 50)
    assert fetch_mock.await_args.kwargs["operation"] == "fetch_visits"


@pytest.mark.asyncio
async def test_fetch_visits_since_is_bounded(monkeypatch, now):
    fetch_mock = AsyncMock(return_value=[])
    monkeypatch.setattr(MODULE, "fetch_all", fetch_mock)

    assert await VisitRepository.fetch_visits_since("user-123", now, 1000) == []

    query, params = fetch_mock.await_args.args
    assert "ORDER BY visited_at DESC" in query
    assert params == ("user-123", now, 1000)


@pytest.mark.asyncio
async def test_fetch_closures_keyed_by_visit_id(monkeypatch, now):
    rows = [
        {
            "page_visit_id": "visit-1",
            "closed_at": now - timedelta(hours=2),
            "total_time_seconds": 600,
            "active_time_seconds": 120,
            "scroll_depth_percent": 40,
        },
        {
            "page_visit_id": "visit-1",
            "closed_at": now - timedelta(hours=1),
            "total_time_seconds": 900,
            "active_time_seconds": 200,
            "scroll_depth_percent": 80,
        },
    ]
    fetch_mock = AsyncMock(return_value=rows)
    monkeypatch.setattr(MODULE, "fetch_all", fetch_mock)

    closures = await VisitRepository.fetch_closures(["visit-1", "visit-2"])

    assert set(closures) == {"visit-1"}
    assert closures["visit-1"].closed_at == now - timedelta(hours=1)
    assert closures["visit-1"].scroll_depth_percent == 80
    fetch_mock.assert_awaited_once()


@pytest.mark.asyncio
async def test_fetch_closures_skips_query_without_ids(monkeypatch):
    fetch_mock = AsyncMock()
    monkeypatch.setattr(MODULE, "fetch_all", fetch_mock)

    assert await VisitRepository.fetch_closures([]) == {}
    fetch_mock.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_all_wraps_driver_errors(monkeypatch):
    monkeypatch.setattr(helpers, "get_db_connection", AsyncMock(side_effect=psycopg.OperationalError("gone")))

    with pytest.raises(DatabaseError) as exc_info:
        await helpers.fetch_all("SELECT 1", operation="fetch_visits")

    assert exc_info.value.operation == "fetch_visits"


@pytest.mark.asyncio
async def test_naive_timestamps_are_read_as_utc(monkeypatch, now):
    naive_visited_at = datetime(2025, 10, 10, 12, 0)
    monkeypatch.setattr(MODULE, "fetch_all", AsyncMock(return_value=[_row(visited_at=naive_visited_at)]))

    visits = await VisitRepository.fetch_visits("user-123", now - timedelta(days=30), now)

    assert visits[0].visited_at == datetime(2025, 10, 10, 12, 0, tzinfo=UTC)
    assert visits[0].visited_at.tzinfo is UTC


@pytest.mark.asyncio
async def test_naive_closure_timestamp_is_read_as_utc(monkeypatch):
    row = {
        "page_visit_id": "visit-1",
        "closed_at": datetime(2025, 10, 12, 8, 30),
        "total_time_seconds": 60,
        "active_time_seconds": 10,
        "scroll_depth_percent": 5,
    }
    monkeypatch.setattr(MODULE, "fetch_all", AsyncMock(return_value=[row]))

    closures = await VisitRepository.fetch_closures(["visit-1"])

    assert closures["visit-1"].closed_at == datetime(2025, 10, 12, 8, 30, tzinfo=UTC)


@pytest.mark.asyncio
async def test_naive_rows_flow_through_hoarder_detection(monkeypatch, now):
    row = _row(
        url="https://medium.com/@author/long-read",
        domain="medium.com",
        visited_at=datetime(2025, 10, 10, 12, 0),
        engagement_rate=0.0,
    )
    monkeypatch.setattr(MODULE, "fetch_all", AsyncMock(return_value=[row]))

    visits = await VisitRepository.fetch_visits("user-123", now - timedelta(days=30), now)
    tabs = detect_hoarder_tabs(visits, {}, now=now)

    assert len(tabs) == 1
    assert tabs[0]["tab_age_days"] == 5.0
    assert tabs[0]["confidence_level"] == "high"
