"""
Domain errors for booking and notifications

Booking-path errors (ValidationError, SlotConflict, NotFoundError, BackendUnavailable)
reach the HTTP layer through the handlers registered in main.py.
Notification-path errors are caught and logged inside the pipeline.
"""

from typing import Optional


class SalonBookError(Exception):
    """Base class for all application errors"""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(SalonBookError):
    """Missing or invalid booking data - shown to the user, never retried"""

    status_code = 422
    code = "VALIDATION_ERROR"


class NotFoundError(SalonBookError):
    status_code = 404
    code = "NOT_FOUND"


class PermissionDenied(SalonBookError):
    status_code = 403
    code = "FORBIDDEN"


class SlotConflict(SalonBookError):
    """The requested interval overlaps an existing appointment of the same employee"""

    status_code = 409
    code = "APPOINTMENT_TIME_CONFLICT"

    def __init__(self, message: str = "This time is no longer available. Please pick another slot."):
        super().__init__(message)


class BackendUnavailable(SalonBookError):
    """The data store or another infrastructure dependency failed"""

    status_code = 503
    code = "BACKEND_UNAVAILABLE"

    def __init__(self, message: str = "Service temporarily unavailable. Please try again."):
        super().__init__(message)


class ChannelDeliveryFailure(SalonBookError):
    """A Telegram or email send failed"""

    code = "CHANNEL_DELIVERY_FAILURE"

    def __init__(self, channel: str, message: str):
        super().__init__(message)
        self.channel = channel


class NoTemplateFound(SalonBookError):
    code = "NO_TEMPLATE_FOUND"


class NoChannelAvailable(SalonBookError):
    code = "NO_CHANNEL_AVAILABLE"
