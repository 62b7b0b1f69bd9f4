"""
Tab lifecycle metrics from grouped page visits.

Age and recency are measured against the tab's closure time when a
closure record exists, and against "now" only while the lifecycle is
unknown. Measuring a closed tab against "now" would inflate its age
indefinitely.
"""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from app.features.browsing_insights.domain.models import (
    TabClosureRecord,
    TabMetadata,
    TabStatus,
    VisitRecord,
)

LIKELY_OPEN_RECENCY = timedelta(hours=1)
LIKELY_OPEN_MIN_DURATION_SECONDS = 300
LIKELY_OPEN_TRAILING_SLACK = timedelta(minutes=5)


class TabAgeCalculator:
    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(UTC)

    def calculate(
        self, visits: Sequence[VisitRecord], closure: TabClosureRecord | None = None
    ) -> TabMetadata | None:
        """
        Reduce visits sharing one identity into TabMetadata.

        Returns None for an empty group. ``is_likely_still_open`` is a
        heuristic; callers must not treat it as proof the tab is open.
        """
        if not visits:
            return None

        ordered = sorted(visits, key=lambda v: v.visited_at)
        first_visit = ordered[0]
        last_visit = ordered[-1]

        closed = closure is not None
        anchor = closure.closed_at if closed else self.now

        tab_age_days = self._days_between(first_visit.visited_at, anchor)
        days_since_last_activity = min(
            self._days_between(last_visit.visited_at, anchor), tab_age_days
        )

        return TabMetadata(
            url=first_visit.url,
            domain=first_visit.domain,
            title=last_visit.title,
            visit_count=len(ordered),
            is_single_visit=len(ordered) == 1,
            first_visited_at=first_visit.visited_at,
            last_visited_at=last_visit.visited_at,
            tab_age_days=tab_age_days,
            days_since_last_activity=days_since_last_activity,
            total_duration_seconds=sum(v.duration_seconds or 0 for v in ordered),
            total_engagement_seconds=sum(v.active_duration_seconds or 0 for v in ordered),
            average_engagement_rate=self._average_engagement_rate(ordered),
            tab_status=TabStatus.CLOSED if closed else TabStatus.UNKNOWN,
            is_likely_still_open=False if closed else self._likely_still_open(last_visit),
            is_pinned=self._is_pinned(last_visit),
            most_recent_visit=last_visit,
            closed_at=closure.closed_at if closed else None,
            actual_tab_duration_seconds=closure.total_time_seconds if closed else None,
        )

    @staticmethod
    def _days_between(earlier: datetime, later: datetime) -> float:
        return round(max((later - earlier).total_seconds(), 0.0) / 86400, 1)

    @staticmethod
    def _average_engagement_rate(visits: Sequence[VisitRecord]) -> float:
        # Missing rates count as zero; dropping them would bias the mean upward
        return sum(v.engagement_rate or 0.0 for v in visits) / len(visits)

    def _likely_still_open(self, last_visit: VisitRecord) -> bool:
        duration = last_visit.duration_seconds
        if not duration or duration <= 0:
            return False

        if self.now - last_visit.visited_at >= LIKELY_OPEN_RECENCY:
            return False

        session_end = last_visit.visited_at + timedelta(seconds=duration)
        runs_to_now = session_end >= self.now - LIKELY_OPEN_TRAILING_SLACK
        return duration >= LIKELY_OPEN_MIN_DURATION_SECONDS or runs_to_now

    @staticmethod
    def _is_pinned(visit: VisitRecord) -> bool:
        if not isinstance(visit.metadata, dict):
            return False
        return visit.metadata.get("pinned") is True
