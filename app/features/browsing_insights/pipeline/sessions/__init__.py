from .service import RecentActivityService, recent_activity_service

__all__ = ["RecentActivityService", "recent_activity_service"]
