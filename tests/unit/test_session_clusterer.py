from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from app.features.browsing_insights.domain.models import SessionType
from app.features.browsing_insights.pipeline.sessions.service import (
    SESSION_GAP_SECONDS,
    RecentActivityService,
    clamp_limit,
    classify_session,
    cluster_sessions,
    parse_since,
)
from app.features.browsing_insights.repository.visit_repository import VisitRepository


def test_long_dense_session_is_research(now, make_visit):
    visits = [
        make_visit(url="https://docs.python.org/3/", visited_at=now - timedelta(seconds=150 * i), engagement_rate=0.85)
        for i in range(15)
    ]

    sessions = cluster_sessions(visits)

    assert len(sessions) == 1
    session = sessions[0]
    assert session.type == SessionType.RESEARCH_SESSION
    assert session.visit_count == 15
    assert session.duration_seconds == 2100
    assert session.duration_seconds >= 1800
    assert session.domains == ("docs.python.org",)
    assert session.avg_engagement == 0.85
    assert session.started_at == now - timedelta(seconds=2100)
    assert session.ended_at == now


def test_gap_over_threshold_starts_new_session(now, make_visit):
    visits = [
        make_visit(visited_at=now),
        make_visit(visited_at=now - timedelta(seconds=SESSION_GAP_SECONDS)),
        make_visit(visited_at=now - timedelta(seconds=2 * SESSION_GAP_SECONDS + 1)),
    ]

    sessions = cluster_sessions(visits)

    assert [s.visit_count for s in sessions] == [2, 1]
    assert sessions[0].started_at > sessions[1].started_at


def test_consecutive_gaps_within_session_never_exceed_threshold(now, make_visit):
    offsets = [0, 30, 500, 1200, 1300, 4000, 4100, 4700, 9000]
    visits = [make_visit(visited_at=now - timedelta(seconds=s)) for s in offsets]

    sessions = cluster_sessions(visits)

    assert sum(s.visit_count for s in sessions) == len(offsets)
    assert len(sessions) == 4
    for newer, older in zip(sessions, sessions[1:]):
        assert (newer.started_at - older.ended_at).total_seconds() > SESSION_GAP_SECONDS


def test_input_order_does_not_matter(now, make_visit):
    visits = [make_visit(visited_at=now - timedelta(minutes=m)) for m in (5, 0, 3, 60)]

    sessions = cluster_sessions(visits)

    assert [s.visit_count for s in sessions] == [3, 1]


def test_domains_keep_first_seen_order_and_engagement_counts_missing_as_zero(now, make_visit):
    visits = [
        make_visit(url="https://a.com/1", visited_at=now, engagement_rate=1.0),
        make_visit(url="https://b.com/1", visited_at=now - timedelta(seconds=60), engagement_rate=None),
        make_visit(url="https://a.com/2", visited_at=now - timedelta(seconds=120), engagement_rate=0.5),
    ]

    session = cluster_sessions(visits)[0]

    assert session.domains == ("a.com", "b.com")
    assert session.avg_engagement == 0.5


def test_no_visits_no_sessions():
    assert cluster_sessions([]) == []


@pytest.mark.parametrize(
    ("duration", "visits", "expected"),
    [
        (1801, 11, SessionType.RESEARCH_SESSION),
        (1800, 11, SessionType.BROWSING_SESSION),
        (1801, 10, SessionType.BROWSING_SESSION),
        (601, 2, SessionType.BROWSING_SESSION),
        (600, 6, SessionType.QUICK_SEARCH),
        (600, 5, SessionType.BRIEF_VISIT),
        (0, 1, SessionType.BRIEF_VISIT),
    ],
)
def test_classify_session(duration, visits, expected):
    assert classify_session(duration, visits) == expected


@pytest.mark.parametrize(("raw", "expected"), [(None, 20), (0, 1), (-4, 1), (5, 5), (100, 100), (500, 100)])
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw) == expected


def test_parse_since(now):
    assert parse_since(None, now) == now - timedelta(hours=24)
    assert parse_since("yesterday-ish", now) == now - timedelta(hours=24)
    assert parse_since("2025-10-15T08:00:00Z", now) == datetime(2025, 10, 15, 8, tzinfo=UTC)
    assert parse_since("2025-10-15T08:00:00", now) == datetime(2025, 10, 15, 8, tzinfo=UTC)


@pytest.mark.asyncio
async def test_service_truncates_to_limit(monkeypatch, now, make_visit):
    visits = [make_visit(visited_at=now - timedelta(hours=h)) for h in range(5)]
    fetch_mock = AsyncMock(return_value=visits)
    monkeypatch.setattr(VisitRepository, "fetch_visits_since", fetch_mock)

    result = await RecentActivityService().get_recent_activity("user-123", limit=2, now=now)

    assert result["count"] == 2
    assert [a["started_at"] for a in result["activities"]] == [
        now.isoformat(),
        (now - timedelta(hours=1)).isoformat(),
    ]
    assert result["activities"][0]["type"] == "brief_visit"
    fetch_mock.assert_awaited_once_with("user-123", now - timedelta(hours=24), 1000)


def test_session_domains_are_immutable_but_serialize_as_list(now, make_visit):
    session = cluster_sessions([make_visit(url="https://a.com/1", visited_at=now)])[0]

    assert isinstance(session.domains, tuple)
    assert session.to_dict()["domains"] == ["a.com"]
