"""
Messaging Models
Message templates, the sent-message audit log and the notification dedup ledger
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

TRIGGER_CONDITIONS = (
    "booking_confirmation",
    "booking_reminder",
    "post_visit_thanks",
    "booking_cancelled",
    "custom",
)
CHANNELS = ("email", "telegram")
DELIVERY_STATUSES = ("pending", "sent", "failed")


class MessageTemplate(Base):
    """Automatic message fired for a trigger condition on one channel"""

    __tablename__ = "message_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    trigger_condition = Column(String(50), nullable=False, index=True)
    channel = Column(String(20), nullable=False)  # email, telegram
    subject = Column(String(500), nullable=True)  # Email only
    body = Column(Text, nullable=False)  # May contain {client_name}, {employee}, ... tokens
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SentMessage(Base):
    """Append-only log of every delivery attempt"""

    __tablename__ = "sent_messages"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, index=True)
    template_id = Column(Integer, ForeignKey("message_templates.id"), nullable=True)

    # Message details
    channel = Column(String(20), nullable=False)  # Channel actually used (or terminal fallback label)
    message_text = Column(Text, nullable=True)

    # Delivery outcome
    delivery_status = Column(String(20), default="pending", nullable=False)
    error_message = Column(Text, nullable=True)

    # Tracking
    tracking_id = Column(String(36), nullable=True)
    sent_at = Column(DateTime, server_default=func.now())
    opened_at = Column(DateTime, nullable=True)
    clicked_at = Column(DateTime, nullable=True)

    # Relationships
    client = relationship("Client", back_populates="sent_messages")
    appointment = relationship("Appointment")
    template = relationship("MessageTemplate")


class NotificationDispatch(Base):
    """
    Dedup ledger for automatic notifications.

    One row per "{appointment_id}:{trigger}:{delivery_day}"; a redelivered
    event hits the unique key and is skipped.
    """

    __tablename__ = "notification_dispatches"

    id = Column(Integer, primary_key=True, index=True)
    idempotency_key = Column(String(255), unique=True, nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False)
    trigger_condition = Column(String(50), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
