from datetime import UTC, date, datetime, timedelta

import pytest

from app.features.browsing_insights.calculators.date_range import (
    days_in_range,
    parse_date_range,
    previous_period_range,
)
from app.features.browsing_insights.errors import InvalidDateRange


def test_today_covers_the_whole_day(now):
    date_range = parse_date_range("today", now=now)

    assert date_range.start == datetime(2025, 10, 15, tzinfo=UTC)
    assert date_range.end.date() == date(2025, 10, 15)
    assert date_range.period == "today"
    assert date_range.is_custom is False
    assert days_in_range(date_range) == 1.0


@pytest.mark.parametrize(("period", "days"), [("week", 7), ("month", 30)])
def test_rolling_presets_end_now(now, period, days):
    date_range = parse_date_range(period, now=now)

    assert date_range.end == now
    assert date_range.start == now - timedelta(days=days)
    assert days_in_range(date_range) == float(days)


@pytest.mark.parametrize("period", [None, "", "fortnight"])
def test_unknown_period_falls_back_to_week(now, period):
    date_range = parse_date_range(period, now=now)

    assert date_range.period == "week"
    assert date_range.start == now - timedelta(days=7)


def test_custom_range_takes_precedence_over_period(now):
    date_range = parse_date_range("today", "2025-10-01", "2025-10-10", now=now)

    assert date_range.is_custom is True
    assert date_range.period == "custom"
    assert date_range.start == datetime(2025, 10, 1, tzinfo=UTC)
    assert date_range.end.date() == date(2025, 10, 10)


def test_custom_range_requires_both_bounds(now):
    date_range = parse_date_range(None, start_date="2025-10-01", now=now)

    assert date_range.is_custom is False
    assert date_range.period == "week"


def test_custom_range_accepts_date_objects(now):
    date_range = parse_date_range(start_date=date(2025, 9, 1), end_date=date(2025, 9, 2), now=now)

    assert days_in_range(date_range) == 2.0


def test_start_after_end_is_rejected():
    with pytest.raises(InvalidDateRange) as exc_info:
        parse_date_range(start_date="2025-10-15", end_date="2025-10-01")

    assert exc_info.value.condition == "start_not_before_end"


def test_same_start_and_end_is_rejected():
    with pytest.raises(InvalidDateRange) as exc_info:
        parse_date_range(start_date="2025-10-15", end_date="2025-10-15")

    assert exc_info.value.condition == "start_not_before_end"


def test_span_over_ninety_days_is_rejected():
    with pytest.raises(InvalidDateRange) as exc_info:
        parse_date_range(start_date="2025-01-01", end_date="2025-04-15")

    assert exc_info.value.condition == "range_too_long"
    assert "90" in str(exc_info.value)


def test_ninety_day_span_is_allowed():
    date_range = parse_date_range(start_date="2025-01-01", end_date="2025-03-31")

    assert date_range.is_custom is True


def test_unparsable_bound_is_rejected():
    with pytest.raises(InvalidDateRange) as exc_info:
        parse_date_range(start_date="not-a-date", end_date="2025-10-01")

    assert exc_info.value.condition == "unparsable_date"


def test_previous_period_has_same_duration_and_precedes(now):
    current = parse_date_range("week", now=now)
    previous = previous_period_range(current)

    assert previous.end < current.start
    assert current.start - previous.end == timedelta(microseconds=1)
    assert previous.end - previous.start == current.end - current.start
    assert previous.period == "previous_week"
    assert previous.is_custom is False


def test_previous_period_preserves_custom_flag():
    current = parse_date_range(start_date="2025-10-01", end_date="2025-10-07")
    previous = previous_period_range(current)

    assert previous.is_custom is True
    assert previous.period == "previous_custom"
