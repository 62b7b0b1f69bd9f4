# app/models/api/insights_response.py
"""
Insights API response models.
Used by the browsing insights router for output formatting.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class DateRangeResponse(BaseModel):
    start: str = Field(..., description="First day of the analysed window (ISO date)")
    end: str = Field(..., description="Last day of the analysed window (ISO date)")
    days: float = Field(..., description="Length of the window in days")


class SerialOpenerCriteria(BaseModel):
    min_visits_per_day: float = Field(..., description="Visit rate a resource must reach")
    effective_min_visits: int = Field(..., description="Rate expressed as visits for this window")
    max_total_engagement_seconds: int = Field(..., description="Cumulative engagement ceiling")


class SerialOpenerResponse(BaseModel):
    """One resource that is re-opened often but barely read."""

    normalized_url: str = Field(..., description="URL with volatile parameters stripped")
    url: str = Field(..., description="Most recently visited raw URL")
    title: str = Field(default="", description="Most recent page title")
    domain: str = Field(default="", description="Domain")
    visit_count: int = Field(..., description="Visits in the window")
    url_variations_count: int = Field(..., description="Distinct raw URLs collapsed into this entry")
    first_visit_at: datetime = Field(..., description="First visit in the window")
    last_visit_at: datetime = Field(..., description="Last visit in the window")
    time_span_hours: float = Field(..., description="Hours between first and last visit")
    avg_hours_between_visits: float | None = Field(None, description="Mean gap between visits")
    visits_per_day: float = Field(..., description="visit_count / days in window")
    total_engagement_seconds: int = Field(..., description="Sum of active seconds")
    avg_engagement_per_visit: float = Field(..., description="Active seconds per visit")
    engagement_rate: float = Field(..., description="Mean engagement rate")
    behavior_type: str = Field(..., description="Frequency classification")
    engagement_type: str = Field(..., description="Engagement classification")
    inferred_purpose: str = Field(..., description="Purpose inferred from domain, title or category")
    efficiency_score: float = Field(..., description="Engaged share of total tab time (0-100)")
    behavioral_insight: str = Field(..., description="Templated insight text")
    actionable_suggestion: str = Field(..., description="Templated suggestion text")
    peak_hours: list[int] | None = Field(None, description="Up to three busiest hours (UTC)")
    most_active_day: str | None = Field(None, description="Busiest weekday")
    time_pattern: str | None = Field(None, description="work_hours, late_night, early_morning, evening or mixed")


class SerialOpenersResponse(BaseModel):
    period: str = Field(..., description="Period label")
    date_range: DateRangeResponse
    serial_openers: list[SerialOpenerResponse]
    count: int
    criteria: SerialOpenerCriteria
    comparison: dict[str, Any] | None = Field(
        None, description="Comparison with the preceding period, when requested"
    )


class ScoreFactorResponse(BaseModel):
    points: int
    reason: str


class HoarderTabResponse(BaseModel):
    """An open tab scored as abandoned clutter."""

    page_visit_id: str
    url: str
    title: str = ""
    domain: str = ""
    visited_at: datetime = Field(..., description="First visit")
    last_activity_at: datetime = Field(..., description="Most recent visit")
    tab_age_days: float
    days_since_last_activity: float
    visit_count: int
    total_duration_seconds: int
    engagement_rate: float
    hoarder_score: int
    confidence_level: str = Field(..., description="medium or high")
    reason: str
    score_breakdown: dict[str, ScoreFactorResponse]
    is_likely_still_open: bool = Field(..., description="Heuristic only, not a guarantee")
    is_single_visit: bool
    preview: dict[str, str] | None = None
    suggested_action: str
    value_rank: float | None = Field(None, description="Present when sorted by value_rank")
    value_breakdown: dict[str, float] | None = None


class HoarderSummary(BaseModel):
    total_detected: int = Field(..., description="Hoarder tabs before filters and limit")
    showing: int
    filters_applied: dict[str, Any]
    top_domains: dict[str, int]


class HoarderTabsResponse(BaseModel):
    lookback_days: int
    hoarder_tabs: list[HoarderTabResponse]
    count: int
    summary: HoarderSummary


class SessionResponse(BaseModel):
    type: str = Field(..., description="research_session, browsing_session, quick_search or brief_visit")
    started_at: datetime
    ended_at: datetime
    duration_seconds: int
    domains: list[str]
    visit_count: int
    avg_engagement: float


class RecentActivityResponse(BaseModel):
    since: datetime
    activities: list[SessionResponse]
    count: int
