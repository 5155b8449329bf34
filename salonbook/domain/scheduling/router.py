"""Scheduling router - Public booking wizard and staff appointment endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff
from ...database import get_db
from ...models import StaffUser
from ..notifications.queue import schedule_event_hand_off
from .schemas import (
    AppointmentNotesUpdate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AvailabilityResponse,
    BusySlotResponse,
    DayOffResponse,
    EmployeeResponse,
    OfferingResponse,
    PublicAppointmentResponse,
    PublicBookingCreate,
    StaffAppointmentCreate,
)
from .service import SchedulingService

logger = logging.getLogger(__name__)

public_router = APIRouter(prefix="/booking", tags=["Booking"])
router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


# ============================================================================
# PUBLIC BOOKING WIZARD
# ============================================================================


@public_router.get("/employees", response_model=list[EmployeeResponse])
async def get_employees(service: SchedulingService = Depends(get_scheduling_service)):
    """Active employees clients can book"""
    return service.list_employees()


@public_router.get("/employees/{employee_id}/services", response_model=list[OfferingResponse])
async def get_employee_services(
    employee_id: int, service: SchedulingService = Depends(get_scheduling_service)
):
    """Services an employee offers, with their price and duration"""
    return [
        OfferingResponse(
            id=o.id,
            employee_id=o.employee_id,
            service_id=o.service_id,
            service_name=o.service.name,
            service_description=o.service.description,
            price=o.price,
            duration_minutes=o.duration_minutes,
        )
        for o in service.list_offerings(employee_id)
    ]


@public_router.get("/employees/{employee_id}/days-off", response_model=list[DayOffResponse])
async def get_employee_days_off(
    employee_id: int, service: SchedulingService = Depends(get_scheduling_service)
):
    """Upcoming days off of an employee"""
    return service.list_days_off(employee_id)


@public_router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    employee_id: int = Query(...),
    employee_service_id: int = Query(...),
    day: date = Query(..., alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Free start times for an offering on a date"""
    return service.get_availability(employee_id, employee_service_id, day)


@public_router.get("/busy-slots", response_model=list[BusySlotResponse])
async def get_busy_slots(
    employee_id: int = Query(...),
    day: date = Query(..., alias="date"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Occupied intervals of an employee on a date"""
    return [
        BusySlotResponse(start=b.start, end=b.end)
        for b in service.get_busy_slots(employee_id, day)
    ]


@public_router.post("/appointments", response_model=PublicAppointmentResponse, status_code=201)
async def create_booking(
    data: PublicBookingCreate,
    background_tasks: BackgroundTasks,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Book an appointment (pending until the salon confirms it)"""
    change = service.create_public_booking(data)
    schedule_event_hand_off(background_tasks, change.event_id)
    return PublicAppointmentResponse.from_appointment(change.appointment)


@public_router.get("/appointments/{public_id}", response_model=PublicAppointmentResponse)
async def get_public_appointment(
    public_id: str, service: SchedulingService = Depends(get_scheduling_service)
):
    """Appointment page opened from the confirmation link"""
    return PublicAppointmentResponse.from_appointment(service.get_public_appointment(public_id))


@public_router.post(
    "/appointments/{public_id}/cancel", response_model=PublicAppointmentResponse
)
async def cancel_public_appointment(
    public_id: str,
    background_tasks: BackgroundTasks,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Client-initiated cancellation"""
    change = service.cancel_public_appointment(public_id)
    schedule_event_hand_off(background_tasks, change.event_id)
    return PublicAppointmentResponse.from_appointment(change.appointment)


# ============================================================================
# STAFF CALENDAR
# ============================================================================


@router.get("", response_model=list[AppointmentResponse])
async def get_appointments(
    employee_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_staff: StaffUser = Depends(get_current_staff),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Appointments in a date range (employees only see their own)"""
    appointments = service.list_appointments(
        current_staff, employee_id=employee_id, status=status, date_from=date_from, date_to=date_to
    )
    return [AppointmentResponse.from_appointment(a) for a in appointments]


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: StaffAppointmentCreate,
    background_tasks: BackgroundTasks,
    current_staff: StaffUser = Depends(get_current_staff),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Create a confirmed appointment from the calendar"""
    change = service.create_staff_appointment(data, current_staff)
    schedule_event_hand_off(background_tasks, change.event_id)
    return AppointmentResponse.from_appointment(change.appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_staff: StaffUser = Depends(get_current_staff),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return AppointmentResponse.from_appointment(
        service.get_appointment(appointment_id, current_staff)
    )


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    current_staff: StaffUser = Depends(get_current_staff),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Confirm, complete or cancel an appointment"""
    change = service.update_status(appointment_id, data.status, current_staff)
    schedule_event_hand_off(background_tasks, change.event_id)
    return AppointmentResponse.from_appointment(change.appointment)


@router.patch("/{appointment_id}/notes", response_model=AppointmentResponse)
async def update_appointment_notes(
    appointment_id: int,
    data: AppointmentNotesUpdate,
    current_staff: StaffUser = Depends(get_current_staff),
    service: SchedulingService = Depends(get_scheduling_service),
):
    appointment = service.update_notes(appointment_id, data, current_staff)
    return AppointmentResponse.from_appointment(appointment)
