"""
Multi-factor hoarder scoring.

Tab age is the primary signal. Inactivity, the visit pattern and
engagement add weight, shaped by the domain context: strict contexts add
to inactivity and allow the single-visit bonus, lenient contexts suppress
inactivity entirely.
"""

from app.features.browsing_insights.domain.models import (
    ConfidenceLevel,
    DomainContext,
    DomainType,
    HoarderScoreResult,
    ScoreFactor,
    TabMetadata,
)

HOARDER_THRESHOLD = 60
HIGH_CONFIDENCE_THRESHOLD = 80

WEIGHTS = {
    "tab_age_1_day": 30,
    "tab_age_3_days": 45,
    "inactive_1_day": 15,
    "strict_inactive_3_days": 10,
    "single_visit": 20,
    "low_engagement_max": 10,
}

LOW_ENGAGEMENT_FLOOR = 0.1


class HoarderScorer:
    """Scores one tab. Stateless; use the module-level ``hoarder_scorer``."""

    def calculate(self, tab_metadata: TabMetadata, domain_context: DomainContext) -> HoarderScoreResult:
        exclusion = self._exclusion_reason(tab_metadata, domain_context)
        if exclusion:
            return HoarderScoreResult(
                total_score=0,
                is_hoarder=False,
                confidence_level=ConfidenceLevel.EXCLUDED,
                score_breakdown={},
                reason=exclusion,
            )

        breakdown = {
            "tab_age": self._tab_age_factor(tab_metadata),
            "inactivity": self._inactivity_factor(tab_metadata, domain_context),
            "visit_pattern": self._visit_pattern_factor(tab_metadata, domain_context),
            "engagement": self._engagement_factor(tab_metadata),
        }
        score = max(sum(factor.points for factor in breakdown.values()), 0)
        confidence = self._confidence_level(score)

        return HoarderScoreResult(
            total_score=score,
            is_hoarder=confidence in (ConfidenceLevel.MEDIUM, ConfidenceLevel.HIGH),
            confidence_level=confidence,
            score_breakdown=breakdown,
            reason=self._build_reason(tab_metadata, breakdown, score),
        )

    @staticmethod
    def _exclusion_reason(meta: TabMetadata, context: DomainContext) -> str | None:
        if meta.is_pinned:
            return "Excluded: Pinned tab"
        if (
            context.domain_type == DomainType.PRODUCTIVITY_TOOL
            and context.should_apply_lenient_rules
        ):
            return "Excluded: Productivity tool with recent activity"
        return None

    @staticmethod
    def _tab_age_factor(meta: TabMetadata) -> ScoreFactor:
        age = meta.tab_age_days
        if age >= 3.0:
            return ScoreFactor(WEIGHTS["tab_age_3_days"], f"Tab open for {age:.1f} days (3+ days)")
        if age >= 1.0:
            return ScoreFactor(WEIGHTS["tab_age_1_day"], f"Tab open for {age:.1f} days (1-3 days)")
        return ScoreFactor(0, "Tab recently opened (< 1 day)")

    @staticmethod
    def _inactivity_factor(meta: TabMetadata, context: DomainContext) -> ScoreFactor:
        inactive = meta.days_since_last_activity
        if context.should_apply_lenient_rules:
            return ScoreFactor(0, f"Inactivity ignored for {context.domain_type.value}")
        if inactive < 1.0:
            return ScoreFactor(0, "Recent activity (< 1 day)")

        points = WEIGHTS["inactive_1_day"]
        if context.should_apply_strict_rules and inactive >= 3.0:
            points += WEIGHTS["strict_inactive_3_days"]
        return ScoreFactor(points, f"No activity for {inactive:.1f} days")

    @staticmethod
    def _visit_pattern_factor(meta: TabMetadata, context: DomainContext) -> ScoreFactor:
        if context.should_apply_strict_rules and meta.visit_count == 1:
            return ScoreFactor(WEIGHTS["single_visit"], "Opened once and forgotten")
        return ScoreFactor(0, f"{meta.visit_count} visits")

    @staticmethod
    def _engagement_factor(meta: TabMetadata) -> ScoreFactor:
        rate = meta.average_engagement_rate or 0.0
        if rate < LOW_ENGAGEMENT_FLOOR and not meta.is_likely_still_open:
            shortfall = (LOW_ENGAGEMENT_FLOOR - rate) / LOW_ENGAGEMENT_FLOOR
            points = int(round(WEIGHTS["low_engagement_max"] * shortfall))
            return ScoreFactor(points, f"Low engagement ({rate * 100:.1f}%)")
        return ScoreFactor(0, f"Engagement: {rate * 100:.1f}%")

    @staticmethod
    def _confidence_level(score: int) -> ConfidenceLevel:
        if score >= HIGH_CONFIDENCE_THRESHOLD:
            return ConfidenceLevel.HIGH
        if score >= HOARDER_THRESHOLD:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.NOT_HOARDER

    @staticmethod
    def _build_reason(meta: TabMetadata, breakdown: dict[str, ScoreFactor], score: int) -> str:
        elapsed = f"opened {meta.tab_age_days:.1f} days ago"
        if score < HOARDER_THRESHOLD:
            return f"Not a hoarder tab ({elapsed})"

        top = sorted(breakdown.values(), key=lambda factor: -factor.points)[:3]
        reasons = [factor.reason for factor in top if factor.points > 0]
        # The age factor already names the days; otherwise prepend them
        if breakdown["tab_age"] not in top or breakdown["tab_age"].points == 0:
            reasons.insert(0, elapsed.capitalize())
        return " • ".join(reasons)


hoarder_scorer = HoarderScorer()
