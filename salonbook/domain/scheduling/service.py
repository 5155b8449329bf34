"""Scheduling service - Availability and the booking writer"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_SERVICE_DURATION
from ...exceptions import (
    BackendUnavailable,
    NotFoundError,
    PermissionDenied,
    SalonBookError,
    SlotConflict,
    ValidationError,
)
from ...models import (
    APPOINTMENT_CONFLICT_CONSTRAINT,
    Appointment,
    AppointmentEvent,
    DayOff,
    Employee,
    EmployeeService,
    StaffUser,
)
from ..clients.service import ClientService
from .availability import BusyInterval, compute_available_slots, localize, salon_timezone, slot_start
from .repository import SchedulingRepository
from .schemas import (
    AppointmentNotesUpdate,
    AvailabilityResponse,
    PublicBookingCreate,
    StaffAppointmentCreate,
)
from .slots import format_slot, generate_time_slots

logger = logging.getLogger(__name__)


@dataclass
class AppointmentChange:
    """A committed appointment write and the outbox event it produced (if any)"""

    appointment: Appointment
    event_id: Optional[int] = None


def translate_integrity_error(error: IntegrityError) -> SalonBookError:
    """
    Map a constraint violation from the write path to a domain error.

    The exclusion constraint name in the driver message marks an overlap.
    """
    if APPOINTMENT_CONFLICT_CONSTRAINT in str(error).lower():
        return SlotConflict()
    return ValidationError("Booking data was rejected by the database")


def salon_now() -> datetime:
    return datetime.now(salon_timezone())


class SchedulingService:
    """Service layer for availability and appointment writes"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()
        self.clients = ClientService(db)

    # ========================================================================
    # TRANSACTIONS
    # ========================================================================

    @contextmanager
    def _write_transaction(self):
        """Commit on success; roll back and translate database errors on failure"""
        try:
            yield
            self.db.commit()
        except SalonBookError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            error = translate_integrity_error(e)
            logger.warning(f"⚠️ Appointment write rejected ({error.code}): {e.orig}")
            raise error from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Appointment write failed: {e}")
            raise BackendUnavailable() from e

    # ========================================================================
    # CATALOG READS (public booking wizard)
    # ========================================================================

    def list_employees(self) -> list[Employee]:
        return self.repo.get_active_employees(self.db)

    def get_active_employee(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee(self.db, employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found")
        return employee

    def list_offerings(self, employee_id: int) -> list[EmployeeService]:
        self.get_active_employee(employee_id)
        return self.repo.get_active_offerings(self.db, employee_id)

    def list_days_off(self, employee_id: int) -> list[DayOff]:
        """Upcoming days off, so the date picker can disable them"""
        self.get_active_employee(employee_id)
        return self.repo.get_days_off(self.db, employee_id, from_date=salon_now().date())

    def _resolve_offering(self, employee_id: int, service_id: int) -> EmployeeService:
        offering = self.repo.get_active_offering_for(self.db, employee_id, service_id)
        if not offering:
            raise ValidationError("This service is not offered by the selected employee")
        return offering

    # ========================================================================
    # AVAILABILITY
    # ========================================================================

    def get_busy_slots(self, employee_id: int, day: date) -> list[BusyInterval]:
        """Busy intervals of an employee for a day (raises BackendUnavailable)"""
        return self.repo.get_employee_busy_slots(self.db, employee_id, day)

    def get_availability(
        self, employee_id: int, employee_service_id: int, day: date
    ) -> AvailabilityResponse:
        """
        Available start times for one offering on one day.

        If busy intervals cannot be loaded, every generated slot is returned
        with degraded=True instead of failing.
        """
        offering = self.repo.get_offering(self.db, employee_service_id)
        if not offering or offering.employee_id != employee_id or not offering.is_active:
            raise NotFoundError("Service offering not found")

        duration = offering.duration_minutes or DEFAULT_SERVICE_DURATION
        now = salon_now()
        if day < now.date():
            return AvailabilityResponse(
                employee_id=employee_id, date=day, duration_minutes=duration, slots=[]
            )

        days_off = []
        try:
            if self.repo.is_day_off(self.db, employee_id, day):
                days_off.append(day)
        except SQLAlchemyError as e:
            logger.error(f"❌ Day-off lookup failed for employee {employee_id} on {day}: {e}")

        degraded = False
        try:
            busy = self.get_busy_slots(employee_id, day)
        except BackendUnavailable:
            logger.warning(
                f"⚠️ Busy slots unavailable for employee {employee_id} on {day} - serving unfiltered slots"
            )
            busy = []
            degraded = True

        slots = compute_available_slots(day, duration, busy, days_off=days_off)
        if day == now.date():
            slots = [s for s in slots if slot_start(day, s) > now]

        return AvailabilityResponse(
            employee_id=employee_id,
            date=day,
            duration_minutes=duration,
            slots=[format_slot(s) for s in slots],
            is_day_off=bool(days_off),
            degraded=degraded,
        )

    # ========================================================================
    # BOOKING WRITER
    # ========================================================================

    def _insert_appointment(
        self,
        employee_id: int,
        offering: EmployeeService,
        client_id: int,
        start: datetime,
        status: str,
        admin_notes: Optional[str] = None,
    ) -> tuple[Appointment, AppointmentEvent]:
        """
        Conflict check and insert; must run inside _write_transaction.

        The employee row lock serializes concurrent bookings of one employee;
        the exclusion constraint catches anything that slips past it.
        """
        employee = self.repo.lock_employee(self.db, employee_id)
        if not employee or not employee.is_active:
            raise NotFoundError("Employee not found")

        end = start + timedelta(minutes=offering.duration_minutes)
        if self.repo.find_overlapping(self.db, employee_id, start, end):
            logger.info(f"⛔ Slot conflict for employee {employee_id} at {start.isoformat()}")
            raise SlotConflict()

        return self.repo.add_appointment(
            self.db,
            client_id=client_id,
            employee_id=employee_id,
            service_id=offering.service_id,
            scheduled_at=start,
            ends_at=end,
            duration_minutes=offering.duration_minutes,
            price=offering.price,
            status=status,
            admin_notes=admin_notes,
        )

    def _check_bookable_day(self, employee_id: int, day: date):
        if self.repo.is_day_off(self.db, employee_id, day):
            raise ValidationError("The employee is not working on this day")

    def create_public_booking(self, data: PublicBookingCreate) -> AppointmentChange:
        """
        Self-service booking from the website.

        Creates a pending appointment for the client found by phone (or a new one).
        """
        self.get_active_employee(data.employee_id)
        offering = self._resolve_offering(data.employee_id, data.service_id)

        if data.time not in generate_time_slots():
            raise ValidationError("Please choose one of the offered time slots")

        start = slot_start(data.date, data.time)
        if start <= salon_now():
            raise ValidationError("This time has already passed")

        self._check_bookable_day(data.employee_id, data.date)

        with self._write_transaction():
            client = self.clients.find_or_create(data.full_name, data.phone, data.email)
            appointment, event = self._insert_appointment(
                data.employee_id, offering, client.id, start, status="pending"
            )

        logger.info(
            f"✅ Booking {appointment.id} created: employee {data.employee_id}, {start.isoformat()}"
        )
        return AppointmentChange(appointment=appointment, event_id=event.id)

    def create_staff_appointment(
        self, data: StaffAppointmentCreate, staff: StaffUser
    ) -> AppointmentChange:
        """Appointment entered from the staff calendar, confirmed right away"""
        if not staff.is_admin and data.employee_id != staff.employee_id:
            raise PermissionDenied("Employees can only book their own calendar")

        self.get_active_employee(data.employee_id)
        offering = self._resolve_offering(data.employee_id, data.service_id)
        client = self.clients.repo.get_client_by_id(self.db, data.client_id)
        if not client:
            raise NotFoundError("Client not found")

        self._check_bookable_day(data.employee_id, data.date)
        start = slot_start(data.date, data.time)

        with self._write_transaction():
            appointment, event = self._insert_appointment(
                data.employee_id,
                offering,
                client.id,
                start,
                status="confirmed",
                admin_notes=data.admin_notes,
            )

        logger.info(f"✅ Staff {staff.id} created appointment {appointment.id}")
        return AppointmentChange(appointment=appointment, event_id=event.id)

    # ========================================================================
    # STATUS CHANGES
    # ========================================================================

    def _apply_status(self, appointment: Appointment, status: str) -> AppointmentChange:
        old_status = appointment.status
        if old_status == status:
            return AppointmentChange(appointment=appointment)

        with self._write_transaction():
            if old_status == "cancelled":
                # The freed interval may have been booked in the meantime
                self.repo.lock_employee(self.db, appointment.employee_id)
                conflict = self.repo.find_overlapping(
                    self.db,
                    appointment.employee_id,
                    localize(appointment.scheduled_at),
                    localize(appointment.ends_at),
                    exclude_appointment_id=appointment.id,
                )
                if conflict:
                    raise SlotConflict()
                appointment.cancelled_at = None

            now = salon_now()
            appointment.status = status
            if status == "completed":
                appointment.completed_at = now
            elif status == "cancelled":
                appointment.cancelled_at = now

            event = self.repo.add_status_event(self.db, appointment, old_status)

        logger.info(f"🔄 Appointment {appointment.id}: {old_status} → {status}")
        return AppointmentChange(appointment=appointment, event_id=event.id)

    def update_status(
        self, appointment_id: int, status: str, staff: StaffUser
    ) -> AppointmentChange:
        appointment = self.get_appointment(appointment_id, staff)
        return self._apply_status(appointment, status)

    def get_public_appointment(self, public_id: str) -> Appointment:
        appointment = self.repo.get_appointment_by_public_id(self.db, public_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def cancel_public_appointment(self, public_id: str) -> AppointmentChange:
        """Client-initiated cancellation from the appointment page"""
        appointment = self.get_public_appointment(public_id)

        if appointment.status == "cancelled":
            return AppointmentChange(appointment=appointment)
        if appointment.status == "completed":
            raise ValidationError("A completed visit cannot be cancelled")
        if localize(appointment.scheduled_at) <= salon_now():
            raise ValidationError("This appointment has already started")

        return self._apply_status(appointment, "cancelled")

    # ========================================================================
    # STAFF READS AND NOTES
    # ========================================================================

    def get_appointment(self, appointment_id: int, staff: StaffUser) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if not staff.is_admin and appointment.employee_id != staff.employee_id:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_appointments(
        self,
        staff: StaffUser,
        employee_id: Optional[int] = None,
        status: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Appointment]:
        """Calendar listing; date_to is inclusive"""
        if not staff.is_admin:
            employee_id = staff.employee_id

        tz = salon_timezone()
        start = datetime.combine(date_from, datetime.min.time(), tzinfo=tz) if date_from else None
        end = (
            datetime.combine(date_to + timedelta(days=1), datetime.min.time(), tzinfo=tz)
            if date_to
            else None
        )
        return self.repo.search_appointments(
            self.db, employee_id=employee_id, status=status, start=start, end=end
        )

    def update_notes(
        self, appointment_id: int, data: AppointmentNotesUpdate, staff: StaffUser
    ) -> Appointment:
        """Admins edit both note fields; employees only their per-visit notes"""
        appointment = self.get_appointment(appointment_id, staff)
        updates = data.model_dump(exclude_unset=True)

        if "admin_notes" in updates and not staff.is_admin:
            raise PermissionDenied("Only administrators can edit admin notes")

        with self._write_transaction():
            for key, value in updates.items():
                setattr(appointment, key, value)

        self.db.refresh(appointment)
        return appointment

