"""
Hoarder tab detection - open tabs that have turned into abandoned clutter.

Visits in the lookback window are grouped by URL and each group runs
through TabAgeCalculator, DomainContextClassifier and HoarderScorer.
Groups whose most recent visit has a closure record are no longer open
and are skipped.
"""

import time
from collections import Counter, defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from app.config import settings
from app.features.browsing_insights.analyzers.domain_context import domain_context_classifier
from app.features.browsing_insights.analyzers.hoarder_scorer import hoarder_scorer
from app.features.browsing_insights.analyzers.value_ranker import value_ranker
from app.features.browsing_insights.calculators.tab_age import TabAgeCalculator
from app.features.browsing_insights.domain.models import (
    ConfidenceLevel,
    HoarderScoreResult,
    TabClosureRecord,
    TabMetadata,
    TabStatus,
    VisitRecord,
)
from app.features.browsing_insights.repository.visit_repository import VisitRepository
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MIN_LOOKBACK_DAYS = 1
MAX_LOOKBACK_DAYS = 90
SORT_OPTIONS = ("hoarder_score", "age", "value_rank")
TOP_DOMAINS = 5

SUGGESTED_ACTIONS = {
    ConfidenceLevel.HIGH: "save_to_reading_list_or_close",
    ConfidenceLevel.MEDIUM: "save_to_reading_list",
}
PREVIEW_FIELDS = {
    "image": "image",
    "favicon": "favicon",
    "description": "description",
    "siteName": "site_name",
    "author": "author",
}


def extract_preview(visit: VisitRecord) -> dict[str, Any] | None:
    """Link-preview fields from visit metadata, or None when nothing useful is there."""
    preview = (visit.metadata or {}).get("preview")
    if not isinstance(preview, dict):
        return None
    if not any(preview.get(key) for key in ("image", "favicon", "description")):
        return None
    return {name: preview[key] for key, name in PREVIEW_FIELDS.items() if preview.get(key)}


def build_hoarder_tab(meta: TabMetadata, score: HoarderScoreResult) -> dict[str, Any]:
    return {
        "page_visit_id": meta.most_recent_visit.id,
        "url": meta.url,
        "title": meta.title,
        "domain": meta.domain,
        "visited_at": meta.first_visited_at,
        "last_activity_at": meta.last_visited_at,
        "tab_age_days": meta.tab_age_days,
        "days_since_last_activity": meta.days_since_last_activity,
        "visit_count": meta.visit_count,
        "total_duration_seconds": meta.total_duration_seconds,
        "engagement_rate": round(meta.average_engagement_rate, 3),
        "hoarder_score": score.total_score,
        "confidence_level": score.confidence_level.value,
        "reason": score.reason,
        "score_breakdown": {name: factor.to_dict() for name, factor in score.score_breakdown.items()},
        "is_likely_still_open": meta.is_likely_still_open,
        "is_single_visit": meta.is_single_visit,
        "preview": extract_preview(meta.most_recent_visit),
        "suggested_action": SUGGESTED_ACTIONS.get(score.confidence_level, "review"),
    }


def detect_hoarder_tabs(
    visits: Sequence[VisitRecord],
    closures: dict[str, TabClosureRecord],
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Score every URL group and keep those flagged as hoarders (unsorted, unfiltered)."""
    calculator = TabAgeCalculator(now=now)
    groups: dict[str, list[VisitRecord]] = defaultdict(list)
    for visit in visits:
        groups[visit.url].append(visit)

    tabs = []
    for url, group in groups.items():
        latest = max(group, key=lambda v: v.visited_at)
        meta = calculator.calculate(group, closures.get(latest.id))
        if meta is None or meta.tab_status == TabStatus.CLOSED:
            continue

        context = domain_context_classifier.analyze(meta.domain, url, meta)
        score = hoarder_scorer.calculate(meta, context)
        if score.is_hoarder:
            tabs.append(build_hoarder_tab(meta, score))
    return tabs


def apply_filters(
    tabs: list[dict[str, Any]],
    min_score: float | None = None,
    age_min: float | None = None,
    domain: str | None = None,
    exclude_domains: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    filtered = tabs
    if min_score is not None:
        filtered = [t for t in filtered if t["hoarder_score"] >= min_score]
    if age_min is not None:
        filtered = [t for t in filtered if t["tab_age_days"] >= age_min]
    if domain:
        filtered = [t for t in filtered if t["domain"] == domain]
    if exclude_domains:
        excluded = set(exclude_domains)
        filtered = [t for t in filtered if t["domain"] not in excluded]
    return filtered


def apply_sorting(tabs: list[dict[str, Any]], sort_by: str | None) -> list[dict[str, Any]]:
    if sort_by == "value_rank":
        return value_ranker.rank(tabs)
    if sort_by == "age":
        return sorted(tabs, key=lambda t: -t["tab_age_days"])
    return sorted(tabs, key=lambda t: -t["hoarder_score"])


def top_domains(tabs: Sequence[dict[str, Any]]) -> dict[str, int]:
    return dict(Counter(t["domain"] for t in tabs).most_common(TOP_DOMAINS))


class HoarderDetectionService:
    async def get_hoarder_tabs(
        self,
        user_id: str,
        lookback_days: int | None = None,
        min_score: float | None = None,
        age_min: float | None = None,
        domain: str | None = None,
        exclude_domains: Sequence[str] | None = None,
        limit: int | None = None,
        sort_by: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Detect hoarder tabs over the lookback window.

        Returns the filtered, sorted and truncated tabs together with a
        summary computed over every detected tab.
        """
        started = time.perf_counter()
        now = now or datetime.now(UTC)
        lookback = min(
            max(lookback_days or settings.HOARDER_DEFAULT_LOOKBACK_DAYS, MIN_LOOKBACK_DAYS),
            MAX_LOOKBACK_DAYS,
        )
        limit = limit if limit and limit > 0 else settings.HOARDER_DEFAULT_LIMIT
        sort_by = sort_by if sort_by in SORT_OPTIONS else "hoarder_score"

        visits = await VisitRepository.fetch_visits(user_id, now - timedelta(days=lookback), now)
        closures = await VisitRepository.fetch_closures([v.id for v in visits])

        detected = detect_hoarder_tabs(visits, closures, now=now)
        filtered = apply_filters(detected, min_score, age_min, domain, exclude_domains)
        showing = apply_sorting(filtered, sort_by)[:limit]

        filters_applied = {
            key: value
            for key, value in {
                "min_score": min_score,
                "age_min": age_min,
                "domain": domain,
                "exclude_domains": list(exclude_domains) if exclude_domains else None,
                "limit": limit,
                "sort_by": sort_by,
            }.items()
            if value is not None
        }

        logger.info(
            "Hoarder tabs detected",
            user_id=user_id,
            lookback_days=lookback,
            visits=len(visits),
            detected=len(detected),
            showing=len(showing),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        return {
            "lookback_days": lookback,
            "hoarder_tabs": showing,
            "count": len(showing),
            "summary": {
                "total_detected": len(detected),
                "showing": len(showing),
                "filters_applied": filters_applied,
                "top_domains": top_domains(detected),
            },
        }


hoarder_detection_service = HoarderDetectionService()
