"""
Domain subpackage for browsing insights.
"""

from .models import (
    ConfidenceLevel,
    DateRange,
    DomainContext,
    DomainType,
    HoarderScoreResult,
    ScoreFactor,
    Session,
    SessionType,
    TabClosureRecord,
    TabMetadata,
    TabStatus,
    VisitRecord,
)

__all__ = [
    "ConfidenceLevel",
    "DateRange",
    "DomainContext",
    "DomainType",
    "HoarderScoreResult",
    "ScoreFactor",
    "Session",
    "SessionType",
    "TabClosureRecord",
    "TabMetadata",
    "TabStatus",
    "VisitRecord",
]
