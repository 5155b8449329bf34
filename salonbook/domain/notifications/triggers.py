"""Notification trigger routing - appointment status changes to trigger conditions"""

from typing import Optional


def route_trigger(
    event_type: str, old_status: Optional[str], new_status: Optional[str]
) -> Optional[str]:
    """
    Classify an appointment change event.

    INSERT of a pending appointment confirms the booking; an UPDATE into
    cancelled or completed (from any other status) cancels or thanks.
    Every other change returns None.
    """
    if event_type == "INSERT":
        return "booking_confirmation" if new_status == "pending" else None

    if event_type == "UPDATE" and old_status is not None:
        if old_status != "cancelled" and new_status == "cancelled":
            return "booking_cancelled"
        if old_status != "completed" and new_status == "completed":
            return "post_visit_thanks"

    return None
