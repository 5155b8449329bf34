from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock, patch

from salonbook.models import Appointment
from salonbook.models_messaging import MessageTemplate, SentMessage


def _booking_payload(salon, day, at="10:00", phone="+380671234567") -> dict:
    return {
        "employee_id": salon.employee_id,
        "service_id": salon.service_id,
        "date": day.isoformat(),
        "time": at,
        "full_name": "Ірина Коваль",
        "phone": phone,
        "email": "iryna@example.com",
    }


def test_health(api) -> None:
    assert api.get("/health").json() == {"status": "healthy"}


def test_booking_wizard_flow(api, salon, future_day) -> None:
    employees = api.get("/booking/employees").json()
    assert {e["display_name"] for e in employees} == {"Олена", "Марія"}

    services = api.get(f"/booking/employees/{salon.employee_id}/services").json()
    assert services[0]["service_name"] == "Манікюр"
    assert services[0]["duration_minutes"] == 60

    params = {
        "employee_id": salon.employee_id,
        "employee_service_id": salon.offering_id,
        "date": future_day.isoformat(),
    }
    before = api.get("/booking/availability", params=params).json()
    assert "10:00" in before["slots"]
    assert before["degraded"] is False

    created = api.post("/booking/appointments", json=_booking_payload(salon, future_day))
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    assert body["employee_name"] == "Олена"

    after = api.get("/booking/availability", params=params).json()
    assert "10:00" not in after["slots"]

    busy = api.get(
        "/booking/busy-slots",
        params={"employee_id": salon.employee_id, "date": future_day.isoformat()},
    ).json()
    assert len(busy) == 1

    page = api.get(f"/booking/appointments/{body['public_id']}").json()
    assert page["scheduled_at"].startswith(f"{future_day.isoformat()}T10:00:00")


def test_double_booking_returns_conflict(api, salon, future_day) -> None:
    api.post("/booking/appointments", json=_booking_payload(salon, future_day))

    response = api.post(
        "/booking/appointments", json=_booking_payload(salon, future_day, at="10:30", phone="+380501112233")
    )

    assert response.status_code == 409
    assert response.json()["code"] == "APPOINTMENT_TIME_CONFLICT"


def test_invalid_phone_is_a_validation_error(api, salon, future_day) -> None:
    payload = _booking_payload(salon, future_day, phone="123")

    response = api.post("/booking/appointments", json=payload)

    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_domain_validation_error_shape(api, salon, future_day) -> None:
    response = api.post("/booking/appointments", json=_booking_payload(salon, future_day, at="10:15"))

    assert response.status_code == 422
    assert response.json() == {
        "detail": "Please choose one of the offered time slots",
        "code": "VALIDATION_ERROR",
    }


def test_booking_sends_confirmation_in_background(api, db, salon, future_day) -> None:
    db.add(
        MessageTemplate(
            name="Підтвердження",
            trigger_condition="booking_confirmation",
            channel="email",
            subject="Ваш запис",
            body="{client_name}, чекаємо вас {date} о {time}",
        )
    )
    db.commit()

    with patch("salonbook.domain.notifications.channels.send_email", new=AsyncMock()) as send_email:
        response = api.post("/booking/appointments", json=_booking_payload(salon, future_day))

    assert response.status_code == 201
    send_email.assert_awaited_once()
    assert db.query(SentMessage).one().delivery_status == "sent"


def test_client_cancellation(api, salon, future_day) -> None:
    public_id = api.post("/booking/appointments", json=_booking_payload(salon, future_day)).json()["public_id"]

    response = api.post(f"/booking/appointments/{public_id}/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert api.post("/booking/appointments", json=_booking_payload(salon, future_day)).status_code == 201


def test_unknown_public_appointment(api, db) -> None:
    response = api.get("/booking/appointments/does-not-exist")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_staff_routes_need_a_token(api, db) -> None:
    assert api.get("/appointments").status_code == 401
    assert api.get("/appointments", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_unknown_staff_subject_is_forbidden(api, db, token_for) -> None:
    response = api.get("/appointments", headers={"Authorization": f"Bearer {token_for('nobody')}"})

    assert response.status_code == 403


def test_admin_manages_appointment_status(api, admin_headers, salon, future_day) -> None:
    api.post("/booking/appointments", json=_booking_payload(salon, future_day))
    listed = api.get(
        "/appointments",
        params={"date_from": future_day.isoformat(), "date_to": future_day.isoformat()},
        headers=admin_headers,
    ).json()
    appointment_id = listed[0]["id"]

    response = api.patch(
        f"/appointments/{appointment_id}/status", json={"status": "confirmed"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    bad = api.patch(f"/appointments/{appointment_id}/status", json={"status": "lost"}, headers=admin_headers)
    assert bad.status_code == 422


def test_employee_scope(api, db, employee_headers, salon, future_day) -> None:
    api.post("/booking/appointments", json=_booking_payload(salon, future_day))
    other = _booking_payload(salon, future_day, phone="+380501112233")
    other["employee_id"] = salon.other_employee_id
    api.post("/booking/appointments", json=other)
    foreign = db.query(Appointment).filter(Appointment.employee_id == salon.other_employee_id).one()

    listed = api.get("/appointments", headers=employee_headers).json()

    assert [a["employee_id"] for a in listed] == [salon.employee_id]
    assert api.get(f"/appointments/{foreign.id}", headers=employee_headers).status_code == 404
    assert api.get("/catalog/employees", headers=employee_headers).status_code == 403

    notes = api.patch(
        f"/appointments/{listed[0]['id']}/notes",
        json={"admin_notes": "VIP"},
        headers=employee_headers,
    )
    assert notes.status_code == 403


def test_staff_appointment_creation(api, db, admin_headers, salon, future_day, make_client) -> None:
    client = make_client()

    response = api.post(
        "/appointments",
        json={
            "client_id": client.id,
            "employee_id": salon.employee_id,
            "service_id": salon.service_id,
            "date": future_day.isoformat(),
            "time": "16:00",
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"
    assert response.json()["client_name"] == "Ірина Коваль"


def test_clients_api(api, admin_headers, make_client) -> None:
    client = make_client(email="iryna@example.com")

    found = api.get("/clients", params={"search": "0671234"}, headers=admin_headers).json()
    assert [c["id"] for c in found] == [client.id]

    updated = api.patch(f"/clients/{client.id}", json={"notes": "Любить пастельні кольори"}, headers=admin_headers)
    assert updated.json()["notes"] == "Любить пастельні кольори"

    telegram = api.patch(f"/clients/{client.id}", json={"preferred_channel": "telegram"}, headers=admin_headers)
    assert telegram.status_code == 422


def test_catalog_management(api, admin_headers, salon, future_day) -> None:
    employee = api.post("/catalog/employees", json={"display_name": "Оксана"}, headers=admin_headers).json()
    service = api.post("/catalog/services", json={"name": "Брови"}, headers=admin_headers).json()

    offering = api.post(
        f"/catalog/employees/{employee['id']}/services",
        json={"service_id": service["id"], "price": 350, "duration_minutes": 45},
        headers=admin_headers,
    )
    assert offering.status_code == 201
    assert offering.json()["service_name"] == "Брови"

    duplicate = api.post(
        f"/catalog/employees/{employee['id']}/services",
        json={"service_id": service["id"], "price": 400, "duration_minutes": 45},
        headers=admin_headers,
    )
    assert duplicate.status_code == 422

    zero = api.post(
        f"/catalog/employees/{employee['id']}/services",
        json={"service_id": salon.service_id, "price": 400, "duration_minutes": 0},
        headers=admin_headers,
    )
    assert zero.status_code == 422

    day_off = api.post(
        f"/catalog/employees/{employee['id']}/days-off",
        json={"date_off": future_day.isoformat(), "reason": "Відпустка"},
        headers=admin_headers,
    )
    assert day_off.status_code == 201

    past = api.post(
        f"/catalog/employees/{employee['id']}/days-off",
        json={"date_off": (future_day - timedelta(days=30)).isoformat()},
        headers=admin_headers,
    )
    assert past.status_code == 422

    public_days_off = api.get(f"/booking/employees/{employee['id']}/days-off").json()
    assert [d["date_off"] for d in public_days_off] == [future_day.isoformat()]

    deactivated = api.delete(f"/catalog/employees/{employee['id']}", headers=admin_headers)
    assert deactivated.json()["is_active"] is False
    assert api.get(f"/booking/employees/{employee['id']}/services").status_code == 404


def test_notification_templates_and_log(api, admin_headers, make_client) -> None:
    created = api.post(
        "/notifications/templates",
        json={
            "name": "Нагадування",
            "trigger_condition": "booking_reminder",
            "channel": "telegram",
            "body": "Завтра о {time}",
        },
        headers=admin_headers,
    )
    assert created.status_code == 201
    template_id = created.json()["id"]

    toggled = api.post(f"/notifications/templates/{template_id}/toggle", headers=admin_headers)
    assert toggled.json()["is_active"] is False

    bad = api.post(
        "/notifications/templates",
        json={"name": "x", "trigger_condition": "birthday", "channel": "sms", "body": "x"},
        headers=admin_headers,
    )
    assert bad.status_code == 422

    client = make_client(email=None)
    sent = api.post(
        "/notifications/send",
        json={"client_id": client.id, "custom_message": "Привіт!"},
        headers=admin_headers,
    ).json()
    assert sent == {
        "success": False,
        "channel": "email",
        "status": "failed",
        "error_message": "Client has neither a linked Telegram chat nor an email",
    }

    log = api.get("/notifications/messages", params={"client_id": client.id}, headers=admin_headers).json()
    assert log[0]["message_text"] == "Привіт!"
    assert log[0]["client_name"] == "Ірина Коваль"

    deleted = api.delete(f"/notifications/templates/{template_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert api.get("/notifications/templates", headers=admin_headers).json() == []


def test_client_optional_fields_can_be_cleared(api, admin_headers, make_client) -> None:
    client = make_client(email="iryna@example.com")
    api.patch(f"/clients/{client.id}", json={"notes": "Алергія на лак"}, headers=admin_headers)

    cleared = api.patch(f"/clients/{client.id}", json={"email": None, "notes": None}, headers=admin_headers)

    assert cleared.status_code == 200
    assert cleared.json()["email"] is None
    assert cleared.json()["notes"] is None

    required = api.patch(f"/clients/{client.id}", json={"full_name": None}, headers=admin_headers)
    assert required.status_code == 422
    assert required.json()["code"] == "VALIDATION_ERROR"
