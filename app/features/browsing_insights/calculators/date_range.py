"""
Date range resolution for insight requests.

Turns a period preset (today / week / month) or an explicit pair of dates
into a concrete UTC window, and derives the equal-length window that
precedes it for period-over-period comparisons.
"""

from datetime import UTC, date, datetime, time, timedelta

from app.features.browsing_insights.domain.models import DateRange
from app.features.browsing_insights.errors import InvalidDateRange
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

VALID_PERIODS = ("today", "week", "month")
DEFAULT_PERIOD = "week"
MAX_CUSTOM_RANGE_DAYS = 90

_PERIOD_LENGTHS = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def parse_date_range(
    period: str | None = None,
    start_date: str | date | datetime | None = None,
    end_date: str | date | datetime | None = None,
    now: datetime | None = None,
) -> DateRange:
    """
    Resolve a period preset or custom bounds into a DateRange.

    Custom bounds win when both are supplied. Unknown or missing periods
    fall back to ``week``; custom bounds are validated and never corrected.

    Raises:
        InvalidDateRange: unparsable bound, start not before end, or a span
            longer than 90 days.
    """
    if start_date and end_date:
        return _parse_custom_range(start_date, end_date)

    now = now or datetime.now(UTC)
    validated = _validate_period(period)

    if validated == "today":
        start = _start_of_day(now.date())
        end = _end_of_day(now.date())
    else:
        end = now
        start = now - _PERIOD_LENGTHS[validated]

    return DateRange(start=start, end=end, period=validated, is_custom=False)


def previous_period_range(current: DateRange) -> DateRange:
    """Window of the same duration ending just before ``current`` starts."""
    duration = current.end - current.start
    previous_end = current.start - timedelta(microseconds=1)
    previous_start = previous_end - duration

    return DateRange(
        start=previous_start,
        end=previous_end,
        period=f"previous_{current.period}",
        is_custom=current.is_custom,
    )


def days_in_range(date_range: DateRange) -> float:
    """Fractional number of days covered by the range ("today" is 1.0)."""
    return round((date_range.end - date_range.start).total_seconds() / 86400, 2)


def _validate_period(period: str | None) -> str:
    if not period or str(period) not in VALID_PERIODS:
        if period:
            logger.debug("Unknown period, using default", period=period, default=DEFAULT_PERIOD)
        return DEFAULT_PERIOD
    return str(period)


def _parse_custom_range(start_date, end_date) -> DateRange:
    start_day = _parse_date(start_date, "start_date")
    end_day = _parse_date(end_date, "end_date")

    if start_day >= end_day:
        raise InvalidDateRange(
            "start_date must be before end_date", condition="start_not_before_end"
        )

    start = _start_of_day(start_day)
    end = _end_of_day(end_day)

    span_days = round((end - start).total_seconds() / 86400)
    if span_days > MAX_CUSTOM_RANGE_DAYS:
        raise InvalidDateRange(
            f"Date range cannot exceed {MAX_CUSTOM_RANGE_DAYS} days (got {span_days})",
            condition="range_too_long",
        )

    return DateRange(start=start, end=end, period="custom", is_custom=True)


def _parse_date(value, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as e:
            raise InvalidDateRange(
                f"Failed to parse {field_name}: {value!r}", condition="unparsable_date"
            ) from e
    raise InvalidDateRange(
        f"Invalid date format for {field_name}: {value!r}", condition="unparsable_date"
    )


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)
