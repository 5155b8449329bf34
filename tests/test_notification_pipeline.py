from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from salonbook.exceptions import BackendUnavailable, NotFoundError
from salonbook.models import AppointmentEvent, StaffUser
from salonbook.models_messaging import MessageTemplate, NotificationDispatch, SentMessage
from salonbook.domain.notifications import queue
from salonbook.domain.notifications.service import NotificationService, dispatch_key
from salonbook.domain.scheduling.schemas import PublicBookingCreate
from salonbook.domain.scheduling.service import SchedulingService

SEND_EMAIL = "salonbook.domain.notifications.channels.send_email"


def _template(db, trigger, channel="email", body="Вітаємо, {client_name}! {service} {date} о {time}"):
    template = MessageTemplate(
        name=f"{trigger} {channel}",
        trigger_condition=trigger,
        channel=channel,
        subject="Салон: {service}",
        body=body,
    )
    db.add(template)
    db.commit()
    return template


def _book(db, salon, day, at="10:00"):
    return SchedulingService(db).create_public_booking(
        PublicBookingCreate(
            employee_id=salon.employee_id,
            service_id=salon.service_id,
            date=day,
            time=at,
            full_name="Ірина",
            phone="+380671234567",
            email="iryna@example.com",
        )
    )


def test_new_booking_sends_confirmation(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    change = _book(db, salon, future_day)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        trigger = asyncio.run(NotificationService(db).process_appointment_event(change.event_id))

    assert trigger == "booking_confirmation"
    send_email.assert_awaited_once()
    assert send_email.await_args.kwargs["subject"] == "Салон: Манікюр"

    message = db.query(SentMessage).one()
    assert message.delivery_status == "sent"
    assert message.channel == "email"
    assert message.appointment_id == change.appointment.id
    assert message.message_text.startswith("Вітаємо, Ірина! Манікюр")

    event = db.get(AppointmentEvent, change.event_id)
    assert event.processed_at is not None
    assert event.trigger_condition == "booking_confirmation"
    assert event.attempts == 1


def test_processed_event_is_not_sent_again(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    change = _book(db, salon, future_day)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        service = NotificationService(db)
        asyncio.run(service.process_appointment_event(change.event_id))
        asyncio.run(service.process_appointment_event(change.event_id))

    send_email.assert_awaited_once()


def test_same_trigger_is_sent_once_per_day(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    change = _book(db, salon, future_day)
    service = NotificationService(db)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        first = asyncio.run(service.notify_appointment(change.appointment.id, "booking_confirmation"))
        second = asyncio.run(service.notify_appointment(change.appointment.id, "booking_confirmation"))

    assert len(first) == 1
    assert second == []
    send_email.assert_awaited_once()
    assert db.query(NotificationDispatch).count() == 1


def test_no_template_means_no_message(db, salon, future_day) -> None:
    change = _book(db, salon, future_day)

    trigger = asyncio.run(NotificationService(db).process_appointment_event(change.event_id))

    assert trigger == "booking_confirmation"
    assert db.query(SentMessage).count() == 0
    assert db.get(AppointmentEvent, change.event_id).processed_at is not None


def test_template_channel_without_contact_falls_back(db, salon, future_day) -> None:
    _template(db, "booking_confirmation", channel="telegram")
    change = _book(db, salon, future_day)

    with patch(SEND_EMAIL, new=AsyncMock()):
        results = asyncio.run(
            NotificationService(db).notify_appointment(change.appointment.id, "booking_confirmation")
        )

    assert [(r.channel, r.delivery_status) for r in results] == [("email", "sent")]


def test_completion_sends_thanks(db, salon, future_day) -> None:
    _template(db, "post_visit_thanks", body="Дякуємо за візит, {client_name}!")
    booking = _book(db, salon, future_day)
    admin = StaffUser(external_uid="a", role="admin")
    change = SchedulingService(db).update_status(booking.appointment.id, "completed", admin)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        trigger = asyncio.run(NotificationService(db).process_appointment_event(change.event_id))

    assert trigger == "post_visit_thanks"
    send_email.assert_awaited_once()


def test_confirming_a_booking_notifies_nobody(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    booking = _book(db, salon, future_day)
    admin = StaffUser(external_uid="a", role="admin")
    change = SchedulingService(db).update_status(booking.appointment.id, "confirmed", admin)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        trigger = asyncio.run(NotificationService(db).process_appointment_event(change.event_id))

    assert trigger is None
    send_email.assert_not_called()


def test_database_failure_leaves_event_for_the_sweep(db, salon, future_day) -> None:
    change = _book(db, salon, future_day)

    with patch.object(
        NotificationService,
        "notify_appointment",
        new=AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("server closed the connection"))),
    ):
        with pytest.raises(BackendUnavailable):
            asyncio.run(NotificationService(db).process_appointment_event(change.event_id))

    event = db.get(AppointmentEvent, change.event_id)
    assert event.processed_at is None
    assert event.attempts == 1
    assert "server closed the connection" in event.last_error


def test_sweep_processes_pending_events_once(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    _book(db, salon, future_day, at="10:00")
    _book(db, salon, future_day, at="12:00")
    service = NotificationService(db)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        assert asyncio.run(service.sweep_unprocessed_events()) == 2
        assert asyncio.run(service.sweep_unprocessed_events()) == 0

    assert send_email.await_count == 2


def test_sweep_skips_events_out_of_attempts(db, salon, future_day) -> None:
    change = _book(db, salon, future_day)
    event = db.get(AppointmentEvent, change.event_id)
    event.attempts = 5
    db.commit()

    assert asyncio.run(NotificationService(db).sweep_unprocessed_events()) == 0


def test_reminders_are_sent_once(db, salon, future_day) -> None:
    _template(db, "booking_reminder", body="Нагадуємо: завтра о {time}")
    _book(db, salon, future_day, at="15:00")
    service = NotificationService(db)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        assert asyncio.run(service.send_booking_reminders(day=future_day)) == 1
        assert asyncio.run(service.send_booking_reminders(day=future_day)) == 0

    send_email.assert_awaited_once()
    assert db.query(SentMessage).one().message_text == "Нагадуємо: завтра о 15:00"


def test_cancelled_appointments_get_no_reminder(db, salon, future_day) -> None:
    _template(db, "booking_reminder")
    booking = _book(db, salon, future_day)
    SchedulingService(db).cancel_public_appointment(booking.appointment.public_id)

    assert asyncio.run(NotificationService(db).send_booking_reminders(day=future_day)) == 0


def test_dispatch_key_format(future_day) -> None:
    assert dispatch_key(7, "booking_reminder", future_day) == f"7:booking_reminder:{future_day.isoformat()}"


def test_manual_send_to_unreachable_client_is_reported(db, make_client) -> None:
    client = make_client(email=None)

    result = asyncio.run(NotificationService(db).send_notification(client.id, "custom", "Привіт!"))

    assert result.success is False
    assert result.channel == "email"
    assert db.query(SentMessage).one().message_text == "Привіт!"


def test_manual_send_to_unknown_client(db) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(NotificationService(db).send_notification(999, "custom", "Привіт!"))


def test_manual_booking_confirmation_uses_builtin_text(db, salon, future_day) -> None:
    booking = _book(db, salon, future_day)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        result = asyncio.run(
            NotificationService(db).send_notification(
                booking.appointment.client_id,
                "booking_confirmation",
                appointment_id=booking.appointment.id,
            )
        )

    assert result.success is True
    assert send_email.await_args.kwargs["subject"] == "Підтвердження запису"
    assert "💰 Вартість: 500 ₴" in db.query(SentMessage).one().message_text


def test_inline_hand_off_processes_the_event(db, salon, future_day) -> None:
    _template(db, "booking_confirmation")
    change = _book(db, salon, future_day)

    with patch(SEND_EMAIL, new=AsyncMock()) as send_email:
        asyncio.run(queue.hand_off_appointment_event(change.event_id))

    send_email.assert_awaited_once()


def test_queue_hand_off_survives_redis_outage(db, salon, future_day) -> None:
    change = _book(db, salon, future_day)

    with (
        patch.object(queue, "NOTIFICATION_QUEUE_ENABLED", True),
        patch.object(queue, "create_pool", new=AsyncMock(side_effect=ConnectionError("redis down"))),
    ):
        asyncio.run(queue.hand_off_appointment_event(change.event_id))

    assert db.get(AppointmentEvent, change.event_id).processed_at is None


def test_worker_defers_event_job_on_database_error(db) -> None:
    from arq import Retry

    from salonbook.worker import EVENT_RETRY_DELAY_SECONDS, process_appointment_event_task

    with patch(
        "salonbook.domain.notifications.service.NotificationService.process_appointment_event",
        new=AsyncMock(side_effect=BackendUnavailable("Appointment event processing failed")),
    ):
        with pytest.raises(Retry) as excinfo:
            asyncio.run(process_appointment_event_task({"job_try": 2}, 42))

    assert excinfo.value.defer_score == 2 * EVENT_RETRY_DELAY_SECONDS * 1000
