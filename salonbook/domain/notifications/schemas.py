"""Notification domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models_messaging import CHANNELS, TRIGGER_CONDITIONS


def _check_channel(v):
    if v is not None and v not in CHANNELS:
        raise ValueError(f"Channel must be one of: {', '.join(CHANNELS)}")
    return v


def _check_trigger(v):
    if v is not None and v not in TRIGGER_CONDITIONS:
        raise ValueError(f"Trigger must be one of: {', '.join(TRIGGER_CONDITIONS)}")
    return v


class TemplateCreate(BaseModel):
    name: str
    trigger_condition: str
    channel: str
    subject: Optional[str] = None
    body: str
    is_active: bool = True

    @field_validator("name", "body")
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("trigger_condition")
    @classmethod
    def validate_trigger(cls, v):
        return _check_trigger(v)

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        return _check_channel(v)


class TemplateUpdate(BaseModel):
    name: Optional[str] = None
    trigger_condition: Optional[str] = None
    channel: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("trigger_condition")
    @classmethod
    def validate_trigger(cls, v):
        return _check_trigger(v)

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v):
        return _check_channel(v)


class TemplateResponse(BaseModel):
    id: int
    name: str
    trigger_condition: str
    channel: str
    subject: Optional[str] = None
    body: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SendNotificationRequest(BaseModel):
    """Manual message from the communications panel"""

    client_id: int
    message_type: str = "custom"
    custom_message: Optional[str] = None
    appointment_id: Optional[int] = None
    force_channel: Optional[str] = None

    @field_validator("message_type")
    @classmethod
    def validate_message_type(cls, v):
        if v not in TRIGGER_CONDITIONS:
            raise ValueError(f"Message type must be one of: {', '.join(TRIGGER_CONDITIONS)}")
        return v

    @field_validator("force_channel")
    @classmethod
    def validate_channel(cls, v):
        return _check_channel(v)


class DispatchResponse(BaseModel):
    success: bool
    channel: str
    status: str
    error_message: Optional[str] = None


class SentMessageResponse(BaseModel):
    id: int
    client_id: int
    client_name: Optional[str] = None
    appointment_id: Optional[int] = None
    template_id: Optional[int] = None
    channel: str
    message_text: Optional[str] = None
    delivery_status: str
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, message) -> "SentMessageResponse":
        return cls(
            id=message.id,
            client_id=message.client_id,
            client_name=message.client.full_name if message.client else None,
            appointment_id=message.appointment_id,
            template_id=message.template_id,
            channel=message.channel,
            message_text=message.message_text,
            delivery_status=message.delivery_status,
            error_message=message.error_message,
            sent_at=message.sent_at,
        )
