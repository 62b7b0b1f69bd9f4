"""
Read-only access to page visits and tab closures.

Each method issues a single bounded query; callers never loop per record.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from app.db.helpers import fetch_all
from app.features.browsing_insights.domain.models import TabClosureRecord, VisitRecord
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_VISIT_COLUMNS = """
    id,
    user_id,
    url,
    COALESCE(domain, '') AS domain,
    COALESCE(title, '') AS title,
    visited_at,
    duration_seconds,
    active_duration_seconds,
    engagement_rate,
    category,
    COALESCE(metadata, '{}'::jsonb) AS metadata
"""


def _as_utc(value: datetime) -> datetime:
    # page_visits and tab_aggregates use timestamp without time zone, stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _row_to_visit(row: dict[str, Any]) -> VisitRecord:
    return VisitRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        url=row["url"],
        domain=row.get("domain") or "",
        title=row.get("title") or "",
        visited_at=_as_utc(row["visited_at"]),
        duration_seconds=row.get("duration_seconds"),
        active_duration_seconds=row.get("active_duration_seconds"),
        engagement_rate=row.get("engagement_rate"),
        category=row.get("category"),
        metadata=row.get("metadata") or {},
    )


class VisitRepository:
    """Raw SQL helpers for the page_visits and tab_aggregates tables."""

    @classmethod
    async def fetch_visits(
        cls,
        user_id: str,
        start: datetime,
        end: datetime,
        limit: int | None = None,
        descending: bool = False,
    ) -> list[VisitRecord]:
        order = "DESC" if descending else "ASC"
        query = f"""
            SELECT {_VISIT_COLUMNS}
            FROM page_visits
            WHERE user_id = %s
              AND visited_at >= %s
              AND visited_at <= %s
            ORDER BY visited_at {order}
        """
        params: tuple = (user_id, start, end)
        if limit is not None:
            query += " LIMIT %s"
            params = (*params, limit)

        rows = await fetch_all(query, params, operation="fetch_visits")
        logger.debug("Fetched page visits", user_id=user_id, count=len(rows))
        return [_row_to_visit(row) for row in rows]

    @classmethod
    async def fetch_visits_since(cls, user_id: str, since: datetime, limit: int) -> list[VisitRecord]:
        """Newest first, at most ``limit`` rows."""
        query = f"""
            SELECT {_VISIT_COLUMNS}
            FROM page_visits
            WHERE user_id = %s
              AND visited_at >= %s
            ORDER BY visited_at DESC
            LIMIT %s
        """
        rows = await fetch_all(query, (user_id, since, limit), operation="fetch_visits_since")
        return [_row_to_visit(row) for row in rows]

    @staticmethod
    async def fetch_closures(visit_ids: Sequence[str]) -> dict[str, TabClosureRecord]:
        """Latest closure per page visit id; visits without one are absent from the map."""
        if not visit_ids:
            return {}

        query = """
            SELECT
                page_visit_id,
                closed_at,
                COALESCE(total_time_seconds, 0) AS total_time_seconds,
                COALESCE(active_time_seconds, 0) AS active_time_seconds,
                COALESCE(scroll_depth_percent, 0) AS scroll_depth_percent
            FROM tab_aggregates
            WHERE page_visit_id = ANY(%s)
            ORDER BY closed_at ASC
        """
        rows = await fetch_all(query, (list(visit_ids),), operation="fetch_closures")

        closures: dict[str, TabClosureRecord] = {}
        for row in rows:
            closures[str(row["page_visit_id"])] = TabClosureRecord(
                page_visit_id=str(row["page_visit_id"]),
                closed_at=_as_utc(row["closed_at"]),
                total_time_seconds=row["total_time_seconds"],
                active_time_seconds=row["active_time_seconds"],
                scroll_depth_percent=row["scroll_depth_percent"],
            )
        return closures
