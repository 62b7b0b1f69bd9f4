"""
Domain models for the browsing insights feature.

Input records mirror the rows the sync pipeline writes (page_visits and
tab_aggregates). Computed models are created fresh for every request and
never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TabStatus(str, Enum):
    """Lifecycle state of a tab. Only closure data can make it ``closed``."""

    CLOSED = "closed"
    UNKNOWN = "unknown"


class DomainType(str, Enum):
    PRODUCTIVITY_TOOL = "productivity_tool"
    CONTENT_SITE = "content_site"
    CODE_PLATFORM = "code_platform"
    DOCUMENTATION = "documentation"
    GENERAL = "general"


class ConfidenceLevel(str, Enum):
    EXCLUDED = "excluded"
    NOT_HOARDER = "not_hoarder"
    MEDIUM = "medium"
    HIGH = "high"


class SessionType(str, Enum):
    RESEARCH_SESSION = "research_session"
    BROWSING_SESSION = "browsing_session"
    QUICK_SEARCH = "quick_search"
    BRIEF_VISIT = "brief_visit"


@dataclass(slots=True, frozen=True)
class VisitRecord:
    """A single page visit reported by the browser extension."""

    id: str
    user_id: str
    url: str
    domain: str
    title: str
    visited_at: datetime
    duration_seconds: int | None = None
    active_duration_seconds: int | None = None
    engagement_rate: float | None = None
    category: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class TabClosureRecord:
    """Closure event for a tab; its presence is the only proof a tab closed."""

    page_visit_id: str
    closed_at: datetime
    total_time_seconds: int = 0
    active_time_seconds: int = 0
    scroll_depth_percent: int = 0


@dataclass(slots=True, frozen=True)
class DateRange:
    start: datetime
    end: datetime
    period: str
    is_custom: bool


@dataclass(slots=True, frozen=True)
class TabMetadata:
    url: str
    domain: str
    title: str
    visit_count: int
    is_single_visit: bool
    first_visited_at: datetime
    last_visited_at: datetime
    tab_age_days: float
    days_since_last_activity: float
    total_duration_seconds: int
    total_engagement_seconds: int
    average_engagement_rate: float
    tab_status: TabStatus
    # Heuristic only: a recent, long-running last visit. Never true once closed.
    is_likely_still_open: bool
    is_pinned: bool
    most_recent_visit: VisitRecord
    closed_at: datetime | None = None
    actual_tab_duration_seconds: int | None = None


@dataclass(slots=True, frozen=True)
class DomainContext:
    domain_type: DomainType
    should_apply_strict_rules: bool
    should_apply_lenient_rules: bool
    context_notes: tuple[str, ...]

    def __post_init__(self):
        if self.should_apply_strict_rules and self.should_apply_lenient_rules:
            raise ValueError("strict and lenient rules are mutually exclusive")


@dataclass(slots=True, frozen=True)
class ScoreFactor:
    points: int
    reason: str

    def to_dict(self) -> dict:
        return {"points": self.points, "reason": self.reason}


@dataclass(slots=True, frozen=True)
class HoarderScoreResult:
    total_score: int
    is_hoarder: bool
    confidence_level: ConfidenceLevel
    score_breakdown: dict[str, ScoreFactor]
    reason: str


@dataclass(slots=True, frozen=True)
class Session:
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    domains: tuple[str, ...]
    visit_count: int
    avg_engagement: float
    type: SessionType

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "type": self.type.value,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "domains": list(self.domains),
            "visit_count": self.visit_count,
            "avg_engagement": self.avg_engagement,
        }
