"""
Recent activity - visits clustered into sessions by time gaps.
"""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from app.config import settings
from app.features.browsing_insights.domain.models import Session, SessionType, VisitRecord
from app.features.browsing_insights.repository.visit_repository import VisitRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

SESSION_GAP_SECONDS = 600
MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_SINCE = timedelta(hours=24)

RESEARCH_MIN_DURATION_SECONDS = 1800
RESEARCH_MIN_VISITS = 10
BROWSING_MIN_DURATION_SECONDS = 600
QUICK_SEARCH_MIN_VISITS = 5


def classify_session(duration_seconds: int, visit_count: int) -> SessionType:
    if duration_seconds > RESEARCH_MIN_DURATION_SECONDS and visit_count > RESEARCH_MIN_VISITS:
        return SessionType.RESEARCH_SESSION
    if duration_seconds > BROWSING_MIN_DURATION_SECONDS:
        return SessionType.BROWSING_SESSION
    if visit_count > QUICK_SEARCH_MIN_VISITS:
        return SessionType.QUICK_SEARCH
    return SessionType.BRIEF_VISIT


def _build_session(visits: list[VisitRecord]) -> Session:
    # visits are newest first
    ended_at = visits[0].visited_at
    started_at = visits[-1].visited_at
    duration = int((ended_at - started_at).total_seconds())
    avg_engagement = sum(v.engagement_rate or 0.0 for v in visits) / len(visits)

    return Session(
        started_at=started_at,
        ended_at=ended_at,
        duration_seconds=duration,
        domains=tuple(dict.fromkeys(v.domain for v in visits)),
        visit_count=len(visits),
        avg_engagement=round(avg_engagement, 2),
        type=classify_session(duration, len(visits)),
    )


def cluster_sessions(visits: Sequence[VisitRecord]) -> list[Session]:
    """
    Split visits into sessions wherever consecutive visits are more than
    ``SESSION_GAP_SECONDS`` apart. Sessions are returned newest first.
    """
    ordered = sorted(visits, key=lambda v: v.visited_at, reverse=True)
    sessions: list[Session] = []
    current: list[VisitRecord] = []

    for visit in ordered:
        if current and (current[-1].visited_at - visit.visited_at).total_seconds() > SESSION_GAP_SECONDS:
            sessions.append(_build_session(current))
            current = []
        current.append(visit)

    if current:
        sessions.append(_build_session(current))
    return sessions


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return settings.RECENT_ACTIVITY_DEFAULT_LIMIT
    return min(max(int(limit), MIN_LIMIT), MAX_LIMIT)


def parse_since(since: str | datetime | None, now: datetime) -> datetime:
    """ISO timestamp or datetime; anything unparseable falls back to 24 hours ago."""
    default = now - DEFAULT_SINCE
    if since is None or since == "":
        return default
    if isinstance(since, datetime):
        parsed = since
    else:
        try:
            parsed = datetime.fromisoformat(str(since).strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Invalid since parameter, using default", since=since)
            return default
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class RecentActivityService:
    async def get_recent_activity(
        self,
        user_id: str,
        limit: int | None = None,
        since: str | datetime | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        now = now or datetime.now(UTC)
        limit = clamp_limit(limit)
        cutoff = parse_since(since, now)

        visits = await VisitRepository.fetch_visits_since(
            user_id, cutoff, settings.RECENT_ACTIVITY_MAX_VISITS
        )
        sessions = cluster_sessions(visits)[:limit]

        logger.info(
            "Recent activity clustered",
            user_id=user_id,
            visits=len(visits),
            sessions=len(sessions),
            limit=limit,
        )
        return {
            "since": cutoff.isoformat(),
            "activities": [session.to_dict() for session in sessions],
            "count": len(sessions),
        }


recent_activity_service = RecentActivityService()
