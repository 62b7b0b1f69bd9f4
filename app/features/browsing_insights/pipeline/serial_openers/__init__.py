from .service import SerialOpenerService, serial_opener_service

__all__ = ["SerialOpenerService", "serial_opener_service"]
