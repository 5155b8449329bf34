"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models_messaging import CHANNELS
from ...shared.validators import normalize_phone, validate_email


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    preferred_channel: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        if v:
            return validate_email(v)
        return None

    @field_validator("preferred_channel")
    @classmethod
    def validate_channel(cls, v):
        if v is not None and v not in CHANNELS:
            raise ValueError(f"Channel must be one of: {', '.join(CHANNELS)}")
        return v


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    full_name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None
    telegram_connected: bool = False
    telegram_username: Optional[str] = None
    preferred_channel: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_client(cls, client) -> "ClientResponse":
        return cls(
            id=client.id,
            full_name=client.full_name,
            phone=client.phone,
            email=client.email,
            notes=client.notes,
            telegram_connected=client.telegram_chat_id is not None,
            telegram_username=client.telegram_username,
            preferred_channel=client.preferred_channel,
            created_at=client.created_at,
        )
