"""
Serial opener detection - resources re-opened often but never really read.
"""

import time
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from app.config import settings
from app.features.browsing_insights.calculators.adaptive_thresholds import AdaptiveThresholdCalculator
from app.features.browsing_insights.calculators.comparison import comparison_calculator
from app.features.browsing_insights.calculators.date_range import (
    days_in_range,
    parse_date_range,
    previous_period_range,
)
from app.features.browsing_insights.domain.models import DateRange, VisitRecord
from app.features.browsing_insights.repository.visit_repository import VisitRepository
from app.infrastructure.observability.logging import get_logger

from .insight_generator import SerialOpenerInsightGenerator
from .url_normalizer import normalize_url

logger = get_logger(__name__)


def group_by_resource(visits: Sequence[VisitRecord]) -> dict[str, list[VisitRecord]]:
    groups: dict[str, list[VisitRecord]] = defaultdict(list)
    for visit in visits:
        groups[normalize_url(visit.url)].append(visit)
    return groups


def summarize_group(normalized_url: str, visits: Sequence[VisitRecord], days: float) -> dict[str, Any]:
    """Frequency and engagement metrics for one resource."""
    ordered = sorted(visits, key=lambda v: v.visited_at)
    first, last = ordered[0], ordered[-1]
    visit_count = len(ordered)

    time_span_hours = (last.visited_at - first.visited_at).total_seconds() / 3600
    avg_hours_between = (
        time_span_hours / (visit_count - 1) if visit_count > 1 and time_span_hours > 0 else None
    )
    total_engagement = sum(v.active_duration_seconds or 0 for v in ordered)
    category = next((v.category for v in reversed(ordered) if v.category), None)

    return {
        "normalized_url": normalized_url,
        "url": last.url,
        "title": last.title,
        "domain": last.domain,
        "category": category,
        "visit_count": visit_count,
        "url_variations_count": len({v.url for v in ordered}),
        "first_visit_at": first.visited_at,
        "last_visit_at": last.visited_at,
        "time_span_hours": time_span_hours,
        "avg_hours_between_visits": avg_hours_between,
        "visits_per_day": visit_count / days if days > 0 else 0.0,
        "total_engagement_seconds": total_engagement,
        "avg_engagement_per_visit": round(total_engagement / visit_count, 1),
        "engagement_rate": round(sum(v.engagement_rate or 0.0 for v in ordered) / visit_count, 3),
    }


def detect_serial_openers(
    visits: Sequence[VisitRecord], calculator: AdaptiveThresholdCalculator
) -> list[dict[str, Any]]:
    """
    Group visits by normalized URL and keep resources that are opened at
    least at the baseline rate with little cumulative engagement.

    Results are enriched with insights and ranked by visit count, then by
    most recent visit.
    """
    days = calculator.days_in_period
    max_engagement = calculator.max_serial_opener_engagement_seconds
    generator = SerialOpenerInsightGenerator(calculator)

    openers = []
    for normalized_url, group in group_by_resource(visits).items():
        if not calculator.qualifies_as_serial_opener(len(group), days):
            continue
        summary = summarize_group(normalized_url, group, days)
        if summary["total_engagement_seconds"] > max_engagement:
            continue
        openers.append(generator.generate(summary, group))

    return sorted(
        openers,
        key=lambda o: (o["visit_count"], o["last_visit_at"]),
        reverse=True,
    )


class SerialOpenerService:
    async def get_serial_openers(
        self,
        user_id: str,
        period: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        include_comparison: bool = False,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Detect serial openers for a period or custom range.

        Raises:
            InvalidDateRange: custom bounds are invalid
            DatabaseError: visits could not be read
        """
        started = time.perf_counter()
        date_range = parse_date_range(period, start_date, end_date, now=now)
        days = days_in_range(date_range)
        calculator = AdaptiveThresholdCalculator(days)

        openers = await self._detect_for_range(user_id, date_range, calculator)

        result: dict[str, Any] = {
            "period": date_range.period,
            "date_range": {
                "start": date_range.start.date().isoformat(),
                "end": date_range.end.date().isoformat(),
                "days": round(days, 1),
            },
            "serial_openers": openers,
            "count": len(openers),
            "criteria": {
                "min_visits_per_day": calculator.min_visits_per_day_threshold,
                "effective_min_visits": calculator.effective_min_visits,
                "max_total_engagement_seconds": calculator.max_serial_opener_engagement_seconds,
            },
        }

        if include_comparison:
            comparison = await self._compare_with_previous(user_id, date_range, calculator, openers)
            if comparison is not None:
                result["comparison"] = comparison

        logger.info(
            "Serial openers detected",
            user_id=user_id,
            period=date_range.period,
            count=len(openers),
            include_comparison=include_comparison,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return result

    async def _detect_for_range(
        self, user_id: str, date_range: DateRange, calculator: AdaptiveThresholdCalculator
    ) -> list[dict[str, Any]]:
        # Newest first so the cap drops the oldest visits; groups are re-sorted downstream
        visits = await VisitRepository.fetch_visits(
            user_id,
            date_range.start,
            date_range.end,
            limit=settings.SERIAL_OPENER_MAX_VISITS,
            descending=True,
        )
        if len(visits) >= settings.SERIAL_OPENER_MAX_VISITS:
            logger.warning(
                "Serial opener visit cap reached, oldest visits ignored",
                user_id=user_id,
                period=date_range.period,
                cap=settings.SERIAL_OPENER_MAX_VISITS,
                oldest_included=visits[-1].visited_at.isoformat(),
            )
        return detect_serial_openers(visits, calculator)

    async def _compare_with_previous(
        self,
        user_id: str,
        date_range: DateRange,
        calculator: AdaptiveThresholdCalculator,
        current: list[dict[str, Any]],
    ) -> dict[str, Any] | None:
        try:
            previous_range = previous_period_range(date_range)
            previous = await self._detect_for_range(user_id, previous_range, calculator)
            comparison = comparison_calculator.calculate(current, previous)
            comparison["previous_period"] = {
                "start": previous_range.start.date().isoformat(),
                "end": previous_range.end.date().isoformat(),
                "count": len(previous),
            }
            return comparison
        except Exception as e:
            # The main result is still useful without the comparison block
            logger.error("Serial opener comparison failed", user_id=user_id, error=str(e))
            return None


serial_opener_service = SerialOpenerService()
