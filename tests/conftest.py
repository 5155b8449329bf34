"""Shared fixtures: in-memory database, seeded salon, API client and staff tokens.

The environment is set before the package is imported so that the engine is
bound to SQLite and no test ever talks to Redis, Telegram or Resend.
"""

from __future__ import annotations

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NOTIFICATION_QUEUE_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_WEBHOOK_SECRET"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["SALON_TIMEZONE"] = "Europe/Kyiv"

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt as jose_jwt

from salonbook import models, models_messaging  # noqa: F401
from salonbook.config import SECRET_KEY
from salonbook.database import Base, SessionLocal, engine
from salonbook.domain.notifications.service import salon_today
from salonbook.main import app
from salonbook.models import Client, Employee, EmployeeService, Service, StaffUser


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api(db):
    return TestClient(app)


@pytest.fixture
def future_day() -> date:
    return salon_today() + timedelta(days=7)


@pytest.fixture
def salon(db):
    """Two employees; the first offers a 60-minute manicure for 500."""
    olena = Employee(display_name="Олена", is_active=True)
    maria = Employee(display_name="Марія", is_active=True)
    manicure = Service(name="Манікюр", description="Класичний манікюр")
    pedicure = Service(name="Педикюр")
    db.add_all([olena, maria, manicure, pedicure])
    db.flush()

    offering = EmployeeService(
        employee_id=olena.id, service_id=manicure.id, price=500.0, duration_minutes=60
    )
    maria_offering = EmployeeService(
        employee_id=maria.id, service_id=manicure.id, price=450.0, duration_minutes=30
    )
    db.add_all([offering, maria_offering])
    db.commit()

    return SimpleNamespace(
        employee_id=olena.id,
        other_employee_id=maria.id,
        service_id=manicure.id,
        unoffered_service_id=pedicure.id,
        offering_id=offering.id,
        other_offering_id=maria_offering.id,
    )


@pytest.fixture
def make_client(db):
    def _make(
        full_name="Ірина Коваль",
        phone="+380671234567",
        email=None,
        telegram_chat_id=None,
        preferred_channel="email",
    ) -> Client:
        client = Client(
            full_name=full_name,
            phone=phone,
            email=email,
            telegram_chat_id=telegram_chat_id,
            preferred_channel=preferred_channel,
        )
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    return _make


def staff_token(uid: str) -> str:
    return jose_jwt.encode({"sub": uid}, SECRET_KEY, algorithm="HS256")


@pytest.fixture
def admin_headers(db):
    db.add(StaffUser(external_uid="admin-1", email="admin@salon.test", role="admin"))
    db.commit()
    return {"Authorization": f"Bearer {staff_token('admin-1')}"}


@pytest.fixture
def employee_headers(db, salon):
    db.add(
        StaffUser(
            external_uid="employee-1",
            email="olena@salon.test",
            role="employee",
            employee_id=salon.employee_id,
        )
    )
    db.commit()
    return {"Authorization": f"Bearer {staff_token('employee-1')}"}


@pytest.fixture
def token_for():
    return staff_token
