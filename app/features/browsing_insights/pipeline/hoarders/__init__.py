from .service import HoarderDetectionService, hoarder_detection_service

__all__ = ["HoarderDetectionService", "hoarder_detection_service"]
