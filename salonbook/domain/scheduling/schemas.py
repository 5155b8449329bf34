"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import APPOINTMENT_STATUSES
from ...shared.validators import normalize_phone, parse_time_of_day, validate_email
from .availability import localize


def _parse_slot_time(v):
    if isinstance(v, time):
        return v.replace(second=0, microsecond=0)
    return parse_time_of_day(v)


class EmployeeResponse(BaseModel):
    id: int
    display_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class OfferingResponse(BaseModel):
    """An employee's price and duration for one catalog service"""

    id: int
    employee_id: int
    service_id: int
    service_name: str
    service_description: Optional[str] = None
    price: float
    duration_minutes: int


class DayOffResponse(BaseModel):
    id: int
    date_off: date
    reason: Optional[str] = None

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    """
    Bookable start times for one employee and date.

    degraded=True means busy intervals could not be loaded and the slots are
    unfiltered; the booking itself is still checked at write time.
    """

    employee_id: int
    date: date
    duration_minutes: int
    slots: list[str]
    is_day_off: bool = False
    degraded: bool = False


class BusySlotResponse(BaseModel):
    start: datetime
    end: datetime


class PublicBookingCreate(BaseModel):
    """Self-service booking submitted from the booking wizard"""

    employee_id: int
    service_id: int
    date: date
    time: time
    full_name: str
    phone: str
    email: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if not v or not v.strip():
            raise ValueError("Phone is required")
        return normalize_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        if v:
            return validate_email(v)
        return None

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return _parse_slot_time(v)


class StaffAppointmentCreate(BaseModel):
    """Appointment created from the staff calendar for an existing client"""

    client_id: int
    employee_id: int
    service_id: int
    date: date
    time: time
    admin_notes: Optional[str] = None

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return _parse_slot_time(v)


class AppointmentStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
        return v


class AppointmentNotesUpdate(BaseModel):
    admin_notes: Optional[str] = None
    employee_notes: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Staff view of an appointment"""

    id: int
    public_id: str
    client_id: int
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    employee_id: int
    employee_name: Optional[str] = None
    service_id: int
    service_name: Optional[str] = None
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    price: float
    status: str
    admin_notes: Optional[str] = None
    employee_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("scheduled_at", "ends_at", "cancelled_at", "completed_at")
    @classmethod
    def as_salon_time(cls, v):
        if v is not None:
            return localize(v)
        return v

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentResponse":
        client = appointment.client
        employee = appointment.employee
        service = appointment.service
        return cls(
            id=appointment.id,
            public_id=appointment.public_id,
            client_id=appointment.client_id,
            client_name=client.full_name if client else None,
            client_phone=client.phone if client else None,
            employee_id=appointment.employee_id,
            employee_name=employee.display_name if employee else None,
            service_id=appointment.service_id,
            service_name=service.name if service else None,
            scheduled_at=appointment.scheduled_at,
            ends_at=appointment.ends_at,
            duration_minutes=appointment.duration_minutes,
            price=appointment.price,
            status=appointment.status,
            admin_notes=appointment.admin_notes,
            employee_notes=appointment.employee_notes,
            cancelled_at=appointment.cancelled_at,
            completed_at=appointment.completed_at,
            created_at=appointment.created_at,
        )


class PublicAppointmentResponse(BaseModel):
    """What the client sees on the appointment page (no staff notes)"""

    public_id: str
    employee_name: Optional[str] = None
    service_name: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    price: float
    status: str

    @field_validator("scheduled_at")
    @classmethod
    def as_salon_time(cls, v):
        return localize(v)

    @classmethod
    def from_appointment(cls, appointment) -> "PublicAppointmentResponse":
        return cls(
            public_id=appointment.public_id,
            employee_name=appointment.employee.display_name if appointment.employee else None,
            service_name=appointment.service.name if appointment.service else None,
            scheduled_at=appointment.scheduled_at,
            duration_minutes=appointment.duration_minutes,
            price=appointment.price,
            status=appointment.status,
        )
