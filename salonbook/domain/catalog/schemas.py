"""Catalog domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator


def _positive_duration(v):
    if v is not None and v <= 0:
        raise ValueError("Duration must be greater than zero")
    return v


def _non_negative_price(v):
    if v is not None and v < 0:
        raise ValueError("Price cannot be negative")
    return v


class EmployeeCreate(BaseModel):
    display_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = True


class EmployeeUpdate(BaseModel):
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: Optional[bool] = None


class EmployeeAdminResponse(BaseModel):
    id: int
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Service name is required")
        return v.strip()


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class OfferingCreate(BaseModel):
    service_id: int
    price: float
    duration_minutes: int
    is_active: bool = True

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        return _positive_duration(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _non_negative_price(v)


class OfferingUpdate(BaseModel):
    price: Optional[float] = None
    duration_minutes: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v):
        return _positive_duration(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _non_negative_price(v)


class OfferingAdminResponse(BaseModel):
    id: int
    employee_id: int
    service_id: int
    service_name: Optional[str] = None
    price: float
    duration_minutes: int
    is_active: bool

    @classmethod
    def from_offering(cls, offering) -> "OfferingAdminResponse":
        return cls(
            id=offering.id,
            employee_id=offering.employee_id,
            service_id=offering.service_id,
            service_name=offering.service.name if offering.service else None,
            price=offering.price,
            duration_minutes=offering.duration_minutes,
            is_active=offering.is_active,
        )


class DayOffCreate(BaseModel):
    date_off: date
    reason: Optional[str] = None


class DayOffAdminResponse(BaseModel):
    id: int
    employee_id: int
    date_off: date
    reason: Optional[str] = None

    class Config:
        from_attributes = True
