"""
Rule-based behavioural insights for serial openers.

Purpose is inferred from a domain table (refined by title keywords) with
the visit category as fallback; insight and suggestion strings come from
templates keyed by behaviour and purpose.
"""

import calendar
import re
from collections import Counter
from collections.abc import Sequence
from typing import Any

from app.features.browsing_insights.calculators.adaptive_thresholds import AdaptiveThresholdCalculator
from app.features.browsing_insights.domain.models import VisitRecord
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

OPEN_CLOSE_OVERHEAD_SECONDS = 5.0

DOMAIN_PATTERNS: dict[str, dict[str, Any]] = {
    "notion.so": {
        "purpose": "documentation",
        "keywords": {
            "issue|tracker|ticket": "task_tracking",
            "meeting|notes": "note_taking",
            "doc|documentation": "reference",
        },
    },
    "notion.site": {"purpose": "documentation", "keywords": {}},
    "github.com": {
        "purpose": "code_development",
        "keywords": {
            "pull|pr": "code_review",
            "issues": "issue_tracking",
            "repositories|repos": "repo_browsing",
        },
    },
    "mail.google.com": {"purpose": "email", "keywords": {}},
    "gmail.com": {"purpose": "email", "keywords": {}},
    "x.com": {"purpose": "social_media", "keywords": {}},
    "twitter.com": {"purpose": "social_media", "keywords": {}},
    "linkedin.com": {"purpose": "social_media", "keywords": {}},
    "facebook.com": {"purpose": "social_media", "keywords": {}},
    "youtube.com": {"purpose": "video_content", "keywords": {}},
    "slack.com": {"purpose": "communication", "keywords": {}},
    "discord.com": {"purpose": "communication", "keywords": {}},
}

CATEGORY_PURPOSES = {
    "social_media": "social_media",
    "news": "news",
    "shopping": "shopping",
    "reference": "reference",
}
CATEGORY_PREFIX_PURPOSES = (
    ("work_", "work"),
    ("learning_", "learning"),
    ("entertainment_", "entertainment"),
)

INSIGHT_TEMPLATES = {
    "compulsive_checking": {
        "task_tracking": (
            "You're checking this task tracker {visits_per_day} times per day, spending only "
            "{avg_seconds}s each time. This suggests anxious waiting for updates rather than active work."
        ),
        "email": (
            "You check your email {visits_per_day} times per day with {avg_seconds}s per visit. "
            "This constant inbox checking is disrupting your focus."
        ),
        "social_media": (
            "Checking {domain} {visits_per_day} times per day indicates compulsive behavior. "
            "This is fragmenting your attention."
        ),
        "code_review": (
            "You've checked this PR {visit_count} times ({visits_per_day}/day). "
            "You're likely anxiously waiting for reviews or CI results."
        ),
        "communication": (
            "You check {domain} {visits_per_day} times per day. Enable notifications "
            "instead of constant manual checking."
        ),
        "default": (
            "You check this {visits_per_day} times per day, spending only {avg_seconds}s each time. "
            "This frequent checking pattern is inefficient."
        ),
    },
    "frequent_monitoring": {
        "task_tracking": "You check this task tracker {visits_per_day} times per day for quick status updates.",
        "code_review": "You monitor this PR frequently ({visits_per_day}/day) for updates.",
        "default": "You check this {visits_per_day} times per day for monitoring purposes.",
    },
    "regular_reference": {
        "documentation": "You reference this {visits_per_day} times per day. Consider pinning or bookmarking.",
        "default": "You come back to this regularly ({visits_per_day} times per day).",
    },
    "periodic_revisit": {
        "default": "You revisit this occasionally ({visit_count} times total).",
    },
}
FALLBACK_INSIGHT = "You visit this resource {visit_count} times."

SUGGESTION_TEMPLATES = {
    "task_tracking": (
        "Enable Notion notifications or Slack integration for task updates. "
        "Stop manually checking every {avg_hours_between} hours."
    ),
    "email": (
        "Turn on desktop notifications. Schedule specific email check times (e.g., 9am, 1pm, 4pm) "
        "instead of checking {visits_per_day} times per day."
    ),
    "social_media": (
        "Set specific times to check social media (e.g., lunch, end of day). "
        "Consider app blockers during focus work hours."
    ),
    "code_review": (
        "Enable GitHub email/Slack notifications for PR reviews, comments, and CI status. "
        "You will know immediately when action is needed."
    ),
    "communication": "Enable desktop notifications for {domain}. Stop the constant manual checking.",
    "documentation": (
        "Pin this tab or add to bookmarks bar for quick access. {visit_count} reopenings is inefficient."
    ),
    "video_content": (
        "If you keep coming back, add to a Watch Later playlist instead of reopening {visit_count} times."
    ),
    "default": "Consider bookmarking this instead of reopening it {visit_count} times.",
}
FALLBACK_SUGGESTION = "Consider using notifications or bookmarks to reduce reopening overhead."


def infer_purpose(domain: str | None, title: str | None, category: str | None) -> str:
    pattern = DOMAIN_PATTERNS.get((domain or "").lower())
    if pattern:
        for keywords, purpose in pattern["keywords"].items():
            if title and re.search(keywords, title, re.IGNORECASE):
                return purpose
        return pattern["purpose"]
    return category_to_purpose(category)


def category_to_purpose(category: str | None) -> str:
    if not category:
        return "unknown"
    for prefix, purpose in CATEGORY_PREFIX_PURPOSES:
        if prefix in category:
            return purpose
    return CATEGORY_PURPOSES.get(category, "unknown")


def efficiency_score(total_engagement_seconds: float, visit_count: int) -> float:
    """Share of time spent engaged versus the fixed cost of opening and closing the tab."""
    total_time = (total_engagement_seconds or 0) + visit_count * OPEN_CLOSE_OVERHEAD_SECONDS
    if total_time == 0:
        return 0.0
    return round((total_engagement_seconds or 0) / total_time * 100.0, 1)


def classify_time_pattern(peak_hours: Sequence[int]) -> str:
    if not peak_hours:
        return "unknown"
    if all(9 <= hour <= 17 for hour in peak_hours):
        return "work_hours"
    if any(hour >= 22 or hour <= 6 for hour in peak_hours):
        return "late_night"
    if any(6 <= hour <= 9 for hour in peak_hours):
        return "early_morning"
    if any(17 <= hour <= 22 for hour in peak_hours):
        return "evening"
    return "mixed"


def time_patterns(visits: Sequence[VisitRecord]) -> dict[str, Any]:
    if not visits:
        return {}

    # Ties go to the earlier hour and weekday so input order never matters
    by_hour = Counter(visit.visited_at.hour for visit in visits)
    peak_hours = [hour for hour, _ in sorted(by_hour.items(), key=lambda item: (-item[1], item[0]))[:3]]
    by_day = Counter(visit.visited_at.weekday() for visit in visits)
    busiest_day = min(by_day, key=lambda day: (-by_day[day], day))

    return {
        "peak_hours": peak_hours,
        "most_active_day": calendar.day_name[busiest_day],
        "time_pattern": classify_time_pattern(peak_hours),
    }


class SerialOpenerInsightGenerator:
    def __init__(self, calculator: AdaptiveThresholdCalculator):
        self.calculator = calculator

    def generate(self, opener: dict[str, Any], visits: Sequence[VisitRecord] = ()) -> dict[str, Any]:
        """Return ``opener`` merged with classifications, templated text and time patterns."""
        visit_count = opener["visit_count"]
        time_span_hours = opener.get("time_span_hours") or 0.0
        avg_hours_between = opener.get("avg_hours_between_visits")
        visits_per_day = opener.get("visits_per_day") or 0.0
        avg_engagement = opener.get("avg_engagement_per_visit") or 0.0

        behavior_type = self.calculator.classify_by_frequency(avg_hours_between)
        engagement_type = self.calculator.classify_engagement(avg_engagement)
        purpose = infer_purpose(opener.get("domain"), opener.get("title"), opener.get("category"))

        template_vars = {
            "visits_per_day": round(visits_per_day, 1),
            "avg_seconds": round(avg_engagement, 1),
            "visit_count": visit_count,
            "domain": opener.get("domain"),
            "avg_hours_between": round(avg_hours_between, 1) if avg_hours_between else "a few",
        }

        return {
            **opener,
            "time_span_hours": round(time_span_hours, 1),
            "avg_hours_between_visits": round(avg_hours_between, 2) if avg_hours_between is not None else None,
            "visits_per_day": round(visits_per_day, 1),
            "behavior_type": behavior_type,
            "engagement_type": engagement_type,
            "inferred_purpose": purpose,
            "efficiency_score": efficiency_score(opener.get("total_engagement_seconds") or 0, visit_count),
            "behavioral_insight": self._insight_text(behavior_type, purpose, template_vars),
            "actionable_suggestion": self._suggestion_text(purpose, template_vars),
            **time_patterns(visits),
        }

    @staticmethod
    def _insight_text(behavior_type: str, purpose: str, template_vars: dict[str, Any]) -> str:
        templates = INSIGHT_TEMPLATES.get(behavior_type, {})
        template = templates.get(purpose) or templates.get("default") or FALLBACK_INSIGHT
        try:
            return template.format(**template_vars)
        except KeyError as e:
            logger.warning("Missing insight template variable", variable=str(e))
            return FALLBACK_INSIGHT.format(**template_vars)

    @staticmethod
    def _suggestion_text(purpose: str, template_vars: dict[str, Any]) -> str:
        template = SUGGESTION_TEMPLATES.get(purpose) or SUGGESTION_TEMPLATES["default"]
        try:
            return template.format(**template_vars)
        except KeyError as e:
            logger.warning("Missing suggestion template variable", variable=str(e))
            return FALLBACK_SUGGESTION
