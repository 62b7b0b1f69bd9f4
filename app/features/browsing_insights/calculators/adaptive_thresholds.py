"""
Adaptive thresholds for behaviour classification.

Baselines are defined for a 7-day window and scale linearly with the
length of the requested window, so a 1-day and a 30-day request apply a
comparable intensity of scrutiny. Classification helpers are total: empty
or zero inputs degrade to the most conservative label instead of raising.
"""

import math

from app.features.browsing_insights.errors import InvalidArgument

BASE_PERIOD_DAYS = 7.0

# Behaviour tiers (visits per 7 days)
COMPULSIVE_CHECKING_VISITS_PER_WEEK = 50
FREQUENT_MONITORING_VISITS_PER_WEEK = 20
REGULAR_REFERENCE_VISITS_PER_WEEK = 10

# Serial opener detection
SERIAL_OPENER_MIN_VISITS_PER_DAY = 0.43  # ~3 visits per week, period-invariant
SERIAL_OPENER_BASE_MIN_VISITS = 3
SERIAL_OPENER_ABSOLUTE_MIN_VISITS = 2
SERIAL_OPENER_MAX_ENGAGEMENT_SECONDS = 300  # cumulative active time per week

# Hours between visits
COMPULSIVE_HOURS_BETWEEN = 0.5
FREQUENT_HOURS_BETWEEN = 2.0
REGULAR_HOURS_BETWEEN = 6.0

# Seconds of engagement per visit
QUICK_GLANCE_SECONDS = 5
BRIEF_CHECK_SECONDS = 15
SCAN_SECONDS = 60

_TIER_BASELINES = {
    "compulsive": COMPULSIVE_CHECKING_VISITS_PER_WEEK,
    "frequent": FREQUENT_MONITORING_VISITS_PER_WEEK,
    "regular": REGULAR_REFERENCE_VISITS_PER_WEEK,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AdaptiveThresholdCalculator:
    """Scales fixed weekly baselines to an arbitrary analysis window."""

    def __init__(self, days_in_period: float | None):
        self.days_in_period = float(days_in_period or 0.0)
        self._scale_factor = max(self.days_in_period, 0.0) / BASE_PERIOD_DAYS
        self._tier_minimums = self._build_tier_minimums()

    def _build_tier_minimums(self) -> dict[str, int]:
        # Rounding can collapse neighbouring tiers on short windows; keep them strictly ordered
        regular = max(self._scale(REGULAR_REFERENCE_VISITS_PER_WEEK), 1)
        frequent = max(self._scale(FREQUENT_MONITORING_VISITS_PER_WEEK), regular + 1)
        compulsive = max(self._scale(COMPULSIVE_CHECKING_VISITS_PER_WEEK), frequent + 1)
        return {"compulsive": compulsive, "frequent": frequent, "regular": regular}

    def _scale(self, base_value: float) -> int:
        return _round_half_up(base_value * self._scale_factor)

    def min_visits_for(self, tier: str) -> int:
        """Minimum visit count for ``compulsive``, ``frequent`` or ``regular``."""
        if tier not in _TIER_BASELINES:
            raise InvalidArgument(f"Unknown behavior tier: {tier}")
        return self._tier_minimums[tier]

    @property
    def min_serial_opener_visits(self) -> int:
        return max(self._scale(SERIAL_OPENER_BASE_MIN_VISITS), SERIAL_OPENER_ABSOLUTE_MIN_VISITS)

    @property
    def max_serial_opener_engagement_seconds(self) -> int:
        return self._scale(SERIAL_OPENER_MAX_ENGAGEMENT_SECONDS)

    @property
    def min_visits_per_day_threshold(self) -> float:
        return SERIAL_OPENER_MIN_VISITS_PER_DAY

    @property
    def effective_min_visits(self) -> int:
        """Per-day baseline expressed as a visit count for this window."""
        return _round_half_up(SERIAL_OPENER_MIN_VISITS_PER_DAY * max(self.days_in_period, 0.0))

    def qualifies_as_serial_opener(self, visit_count: int, days: float | None = None) -> bool:
        """True when ``visit_count / days`` reaches the per-day baseline."""
        period_days = days if days is not None else self.days_in_period
        if not period_days or period_days <= 0:
            return False
        return (visit_count or 0) / period_days >= SERIAL_OPENER_MIN_VISITS_PER_DAY

    def classify_by_visit_count(self, visit_count: int | None) -> str:
        count = visit_count or 0
        if count >= self.min_visits_for("compulsive"):
            return "compulsive_checking"
        if count >= self.min_visits_for("frequent"):
            return "frequent_monitoring"
        if count >= self.min_visits_for("regular"):
            return "regular_reference"
        return "periodic_revisit"

    @staticmethod
    def classify_by_frequency(avg_hours_between: float | None) -> str:
        # No measurable cadence (single visit, same-instant visits, bad data)
        if not avg_hours_between or avg_hours_between <= 0:
            return "periodic_revisit"
        if avg_hours_between < COMPULSIVE_HOURS_BETWEEN:
            return "compulsive_checking"
        if avg_hours_between < FREQUENT_HOURS_BETWEEN:
            return "frequent_monitoring"
        if avg_hours_between < REGULAR_HOURS_BETWEEN:
            return "regular_reference"
        return "periodic_revisit"

    @staticmethod
    def classify_engagement(avg_seconds: float | None) -> str:
        if not avg_seconds or avg_seconds < QUICK_GLANCE_SECONDS:
            return "quick_glance"
        if avg_seconds < BRIEF_CHECK_SECONDS:
            return "brief_check"
        if avg_seconds < SCAN_SECONDS:
            return "scan"
        return "shallow_work"
