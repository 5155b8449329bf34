import uuid

from sqlalchemy import (
    DDL,
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")
# Statuses that occupy time on an employee's calendar
ACTIVE_APPOINTMENT_STATUSES = ("pending", "confirmed", "completed")
STAFF_ROLES = ("admin", "employee")

# Name of the PostgreSQL exclusion constraint; appears in the IntegrityError raised on overlap
APPOINTMENT_CONFLICT_CONSTRAINT = "appointment_time_conflict"


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    offerings = relationship(
        "EmployeeService", back_populates="employee", cascade="all, delete-orphan"
    )
    days_off = relationship("DayOff", back_populates="employee", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="employee")


class Service(Base):
    """Catalog entry - duration and price are per employee offering"""

    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    offerings = relationship("EmployeeService", back_populates="service")


class EmployeeService(Base):
    __tablename__ = "employee_services"
    __table_args__ = (
        UniqueConstraint("employee_id", "service_id", name="uq_employee_service"),
        CheckConstraint("duration_minutes > 0", name="ck_employee_service_duration_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price = Column(Float, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    employee = relationship("Employee", back_populates="offerings")
    service = relationship("Service", back_populates="offerings")


class DayOff(Base):
    __tablename__ = "employee_days_off"
    __table_args__ = (UniqueConstraint("employee_id", "date_off", name="uq_employee_day_off"),)

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    date_off = Column(Date, nullable=False)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee", back_populates="days_off")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    # Canonical "+digits" form - natural dedup key
    phone = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    telegram_chat_id = Column(BigInteger, nullable=True)
    telegram_username = Column(String(255), nullable=True)
    preferred_channel = Column(String(20), default="email", nullable=True)  # email, telegram
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="client")
    sent_messages = relationship("SentMessage", back_populates="client")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_employee_window", "employee_id", "scheduled_at", "ends_at"),
        CheckConstraint("ends_at > scheduled_at", name="ck_appointment_interval"),
    )

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)

    # Half-open interval [scheduled_at, ends_at) in the salon timezone
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    # Snapshot of the offering at booking time
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    # Status workflow: pending → confirmed → completed, any active status → cancelled
    status = Column(String(20), default="pending", nullable=False, index=True)
    admin_notes = Column(Text, nullable=True)  # Visible to staff only
    employee_notes = Column(Text, nullable=True)  # Per-visit notes from the employee
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="appointments")
    employee = relationship("Employee", back_populates="appointments")
    service = relationship("Service")
    events = relationship("AppointmentEvent", back_populates="appointment")


class AppointmentEvent(Base):
    """
    Outbox of appointment status changes.

    Rows are written in the same transaction as the appointment change and
    consumed by the notification worker (at-least-once).
    """

    __tablename__ = "appointment_events"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    event_type = Column(String(10), nullable=False)  # INSERT, UPDATE
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    trigger_condition = Column(String(50), nullable=True)  # Filled in when processed
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    processed_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now())

    appointment = relationship("Appointment", back_populates="events")


class StaffUser(Base):
    """Admin or employee account, identified by the token subject"""

    __tablename__ = "staff_users"

    id = Column(Integer, primary_key=True, index=True)
    external_uid = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)  # admin, employee
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# PostgreSQL is the final authority against double booking: overlapping
# intervals of one employee cannot both be stored unless one is cancelled.
event.listen(
    Appointment.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    Appointment.__table__,
    "after_create",
    DDL(
        f"ALTER TABLE appointments ADD CONSTRAINT {APPOINTMENT_CONFLICT_CONSTRAINT} "
        "EXCLUDE USING gist (employee_id WITH =, tstzrange(scheduled_at, ends_at, '[)') WITH &&) "
        "WHERE (status <> 'cancelled')"
    ).execute_if(dialect="postgresql"),
)
