"""
Browsing insights routes.

Serial openers, hoarder tabs and recent activity for the authenticated
user. Date range errors surface as 422 with the violated condition; any
other failure is logged and reported as a generic 500.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.verify import current_user_id
from app.features.browsing_insights.errors import InvalidDateRange
from app.features.browsing_insights.pipeline.hoarders.service import hoarder_detection_service
from app.features.browsing_insights.pipeline.serial_openers.service import serial_opener_service
from app.features.browsing_insights.pipeline.sessions.service import recent_activity_service
from app.infrastructure.observability.logging import bind_insight_context, get_logger
from app.models.api.insights_response import (
    HoarderTabsResponse,
    RecentActivityResponse,
    SerialOpenersResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


def _invalid_parameters(e: InvalidDateRange) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "Invalid parameters", "errors": [str(e)], "condition": e.condition},
    )


@router.get("/serial_openers", response_model=SerialOpenersResponse)
async def get_serial_openers(
    period: str | None = Query(None, description="today, week or month"),
    start_date: str | None = Query(None, description="Custom range start (YYYY-MM-DD)"),
    end_date: str | None = Query(None, description="Custom range end (YYYY-MM-DD)"),
    include_comparison: bool = Query(False, description="Compare with the preceding period"),
    user_id: str = Depends(current_user_id),
):
    """Resources re-opened often with little cumulative engagement."""
    bind_insight_context(
        user_id, "serial_openers", period=period, start_date=start_date, end_date=end_date
    )
    try:
        return await serial_opener_service.get_serial_openers(
            user_id,
            period=period,
            start_date=start_date,
            end_date=end_date,
            include_comparison=include_comparison,
        )
    except InvalidDateRange as e:
        logger.info("Rejected serial openers request", user_id=user_id, condition=e.condition)
        raise _invalid_parameters(e)
    except Exception as e:
        logger.error("Error detecting serial openers", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to detect serial openers",
        )


@router.get("/hoarder_tabs", response_model=HoarderTabsResponse)
async def get_hoarder_tabs(
    lookback_days: int | None = Query(None, description="Days of history to analyse (1-90)"),
    min_score: float | None = Query(None, ge=0),
    age_min: float | None = Query(None, ge=0, description="Minimum tab age in days"),
    domain: str | None = Query(None, description="Only this domain"),
    exclude_domains: str | None = Query(None, description="Comma-separated domains to skip"),
    limit: int | None = Query(None, ge=1, le=100),
    sort_by: str | None = Query(None, description="hoarder_score, age or value_rank"),
    user_id: str = Depends(current_user_id),
):
    """Open tabs that have turned into abandoned clutter."""
    bind_insight_context(user_id, "hoarder_tabs", lookback_days=lookback_days, sort_by=sort_by)
    excluded = [d.strip() for d in exclude_domains.split(",") if d.strip()] if exclude_domains else None

    try:
        return await hoarder_detection_service.get_hoarder_tabs(
            user_id,
            lookback_days=lookback_days,
            min_score=min_score,
            age_min=age_min,
            domain=domain,
            exclude_domains=excluded,
            limit=limit,
            sort_by=sort_by,
        )
    except Exception as e:
        logger.error("Error detecting hoarder tabs", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to detect hoarder tabs",
        )


@router.get("/recent_activity", response_model=RecentActivityResponse)
async def get_recent_activity(
    limit: int | None = Query(None, description="Maximum sessions (clamped to 1-100)"),
    since: str | None = Query(None, description="ISO timestamp, defaults to 24 hours ago"),
    user_id: str = Depends(current_user_id),
):
    """Recent visits grouped into browsing sessions."""
    bind_insight_context(user_id, "recent_activity", since=since)
    try:
        return await recent_activity_service.get_recent_activity(user_id, limit=limit, since=since)
    except Exception as e:
        logger.error("Error building recent activity", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load recent activity",
        )
