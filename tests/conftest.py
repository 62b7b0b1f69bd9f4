from datetime import UTC, datetime, timedelta

import pytest

from app.auth.verify import current_user_id
from app.features.browsing_insights.domain.models import VisitRecord

FIXED_NOW = datetime(2025, 10, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def auth_override():
    def _override():
        return "user-123"

    return _override


@pytest.fixture
def apply_auth_override(auth_override):
    def _apply(app):
        app.dependency_overrides[current_user_id] = auth_override

    return _apply


@pytest.fixture
def make_visit():
    counter = {"n": 0}

    def _make(
        url: str = "https://example.com/article",
        visited_at: datetime | None = None,
        minutes_ago: float | None = None,
        **overrides,
    ) -> VisitRecord:
        counter["n"] += 1
        if visited_at is None:
            visited_at = FIXED_NOW - timedelta(minutes=minutes_ago or 0)
        fields = {
            "id": f"visit-{counter['n']}",
            "user_id": "user-123",
            "url": url,
            "domain": url.split("/")[2] if "://" in url else "",
            "title": "Example page",
            "visited_at": visited_at,
            "duration_seconds": 30,
            "active_duration_seconds": 10,
            "engagement_rate": 0.3,
            "category": None,
            "metadata": {},
        }
        fields.update(overrides)
        return VisitRecord(**fields)

    return _make
