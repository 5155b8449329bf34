"""Scheduling repository - Database operations for employees, offerings and appointments"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...exceptions import BackendUnavailable
from ...models import (
    ACTIVE_APPOINTMENT_STATUSES,
    Appointment,
    AppointmentEvent,
    DayOff,
    Employee,
    EmployeeService,
)
from .availability import BusyInterval, day_window

logger = logging.getLogger(__name__)


class SchedulingRepository:
    """Repository for scheduling database operations"""

    # Employees and offerings
    @staticmethod
    def get_active_employees(db: Session) -> list[Employee]:
        return (
            db.query(Employee)
            .filter(Employee.is_active.is_(True))
            .order_by(Employee.display_name.asc())
            .all()
        )

    @staticmethod
    def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()

    @staticmethod
    def get_active_offerings(db: Session, employee_id: int) -> list[EmployeeService]:
        """Active services an employee offers, with the catalog entry loaded"""
        return (
            db.query(EmployeeService)
            .options(joinedload(EmployeeService.service))
            .filter(
                EmployeeService.employee_id == employee_id,
                EmployeeService.is_active.is_(True),
            )
            .all()
        )

    @staticmethod
    def get_offering(db: Session, offering_id: int) -> Optional[EmployeeService]:
        return db.query(EmployeeService).filter(EmployeeService.id == offering_id).first()

    @staticmethod
    def get_active_offering_for(
        db: Session, employee_id: int, service_id: int
    ) -> Optional[EmployeeService]:
        """The price/duration pair an employee charges for a service"""
        return (
            db.query(EmployeeService)
            .filter(
                EmployeeService.employee_id == employee_id,
                EmployeeService.service_id == service_id,
                EmployeeService.is_active.is_(True),
            )
            .first()
        )

    # Days off
    @staticmethod
    def get_days_off(
        db: Session, employee_id: int, from_date: Optional[date] = None
    ) -> list[DayOff]:
        query = db.query(DayOff).filter(DayOff.employee_id == employee_id)
        if from_date:
            query = query.filter(DayOff.date_off >= from_date)
        return query.order_by(DayOff.date_off.asc()).all()

    @staticmethod
    def is_day_off(db: Session, employee_id: int, day: date) -> bool:
        return (
            db.query(DayOff.id)
            .filter(DayOff.employee_id == employee_id, DayOff.date_off == day)
            .first()
            is not None
        )

    # Busy intervals
    @staticmethod
    def get_employee_busy_slots(db: Session, employee_id: int, day: date) -> list[BusyInterval]:
        """
        Intervals of non-cancelled appointments touching the given local day.

        Raises:
            BackendUnavailable: If the query fails
        """
        window_start, window_end = day_window(day)
        try:
            rows = (
                db.query(Appointment.scheduled_at, Appointment.ends_at)
                .filter(
                    Appointment.employee_id == employee_id,
                    Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
                    Appointment.scheduled_at < window_end,
                    Appointment.ends_at > window_start,
                )
                .order_by(Appointment.scheduled_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to load busy slots for employee {employee_id} on {day}: {e}")
            raise BackendUnavailable("Could not load busy slots") from e

        return [BusyInterval(start=start, end=end) for start, end in rows]

    # Appointments
    @staticmethod
    def lock_employee(db: Session, employee_id: int) -> Optional[Employee]:
        """
        Lock the employee row for the rest of the transaction.

        Bookings for the same employee serialize on this lock, so the overlap
        check and the insert that follows it see a stable appointment set.
        """
        return db.query(Employee).filter(Employee.id == employee_id).with_for_update().first()

    @staticmethod
    def find_overlapping(
        db: Session,
        employee_id: int,
        start: datetime,
        end: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[Appointment]:
        """First non-cancelled appointment of the employee overlapping [start, end)"""
        query = db.query(Appointment).filter(
            Appointment.employee_id == employee_id,
            Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            Appointment.scheduled_at < end,
            Appointment.ends_at > start,
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.first()

    @staticmethod
    def add_appointment(
        db: Session, **appointment_data
    ) -> tuple[Appointment, AppointmentEvent]:
        """Stage a new appointment together with its INSERT outbox event (no commit)"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        event = AppointmentEvent(
            appointment_id=appointment.id,
            event_type="INSERT",
            old_status=None,
            new_status=appointment.status,
        )
        db.add(event)
        db.flush()
        return appointment, event

    @staticmethod
    def add_status_event(
        db: Session, appointment: Appointment, old_status: Optional[str]
    ) -> AppointmentEvent:
        """Stage an UPDATE outbox event for a status change (no commit)"""
        event = AppointmentEvent(
            appointment_id=appointment.id,
            event_type="UPDATE",
            old_status=old_status,
            new_status=appointment.status,
        )
        db.add(event)
        return event

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.employee),
                joinedload(Appointment.service),
            )
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def get_appointment_by_public_id(db: Session, public_id: str) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.employee), joinedload(Appointment.service))
            .filter(Appointment.public_id == public_id)
            .first()
        )

    @staticmethod
    def search_appointments(
        db: Session,
        employee_id: Optional[int] = None,
        client_id: Optional[int] = None,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Appointment]:
        """Search and filter appointments for the staff calendar"""
        query = db.query(Appointment).options(
            joinedload(Appointment.client),
            joinedload(Appointment.employee),
            joinedload(Appointment.service),
        )

        if employee_id is not None:
            query = query.filter(Appointment.employee_id == employee_id)

        if client_id is not None:
            query = query.filter(Appointment.client_id == client_id)

        if status and status != "all":
            query = query.filter(Appointment.status == status)

        if start:
            query = query.filter(Appointment.scheduled_at >= start)

        if end:
            query = query.filter(Appointment.scheduled_at < end)

        return query.order_by(Appointment.scheduled_at.asc()).all()

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[AppointmentEvent]:
        return db.query(AppointmentEvent).filter(AppointmentEvent.id == event_id).first()

    @staticmethod
    def get_unprocessed_events(
        db: Session, max_attempts: int, limit: int = 100
    ) -> list[AppointmentEvent]:
        """Outbox rows not yet handled, oldest first, skipping ones that keep failing"""
        return (
            db.query(AppointmentEvent)
            .filter(
                AppointmentEvent.processed_at.is_(None),
                AppointmentEvent.attempts < max_attempts,
            )
            .order_by(AppointmentEvent.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def get_appointments_between(
        db: Session, start: datetime, end: datetime, statuses: tuple[str, ...]
    ) -> list[Appointment]:
        """Appointments starting in [start, end) with one of the given statuses"""
        return (
            db.query(Appointment)
            .filter(
                Appointment.scheduled_at >= start,
                Appointment.scheduled_at < end,
                Appointment.status.in_(statuses),
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )
