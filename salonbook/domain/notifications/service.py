"""Notification service - Appointment events to delivered messages"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import NOTIFICATION_MAX_ATTEMPTS
from ...email_templates import booking_confirmation_sections
from ...exceptions import BackendUnavailable, NotFoundError, NoTemplateFound
from ...models import Appointment, Client
from ...models_messaging import MessageTemplate, SentMessage
from ..clients.repository import ClientRepository
from ..scheduling.availability import salon_timezone
from ..scheduling.repository import SchedulingRepository
from .channels import OutgoingMessage
from .dispatcher import ChannelDispatcher, DispatchResult
from .repository import NotificationRepository
from .schemas import TemplateCreate, TemplateUpdate
from .templates import (
    DEFAULT_EMAIL_SUBJECT,
    build_variables,
    render_template,
    resolve_templates,
)
from .triggers import route_trigger

logger = logging.getLogger(__name__)


def salon_today() -> date:
    return datetime.now(salon_timezone()).date()


def dispatch_key(appointment_id: int, trigger_condition: str, delivery_day: date) -> str:
    """Ledger key: one automatic message set per appointment, trigger and day"""
    return f"{appointment_id}:{trigger_condition}:{delivery_day.isoformat()}"


def build_builtin_message(
    message_type: str,
    custom_message: Optional[str] = None,
    appointment: Optional[Appointment] = None,
) -> OutgoingMessage:
    """
    Message for a manual send when no template is involved.

    custom sends the given text, booking_confirmation the standard confirmation
    for the appointment; anything else falls back to a generic salon greeting.
    """
    if message_type == "custom" and custom_message:
        return OutgoingMessage(text=custom_message)

    if message_type == "booking_confirmation" and appointment is not None:
        v = build_variables(appointment)
        text = (
            "🎉 Ваш запис підтверджено!\n\n"
            f"👤 Майстер: {v['{employee}']}\n"
            f"💅 Послуга: {v['{service}']}\n"
            f"📅 Дата: {v['{date}']}\n"
            f"🕐 Час: {v['{time}']}\n"
            f"💰 Вартість: {v['{price}']}\n\n"
            "За день до візиту ми надішлемо вам нагадування.\n"
            "До зустрічі! 💖"
        )
        return OutgoingMessage(
            text=text,
            subject="Підтвердження запису",
            email_sections=booking_confirmation_sections(
                employee=v["{employee}"],
                service=v["{service}"],
                date=v["{date}"],
                time=v["{time}"],
                price=v["{price}"],
            ),
        )

    return OutgoingMessage(text=DEFAULT_EMAIL_SUBJECT)


class NotificationService:
    """Service layer for the notification pipeline"""

    def __init__(self, db: Session, dispatcher: Optional[ChannelDispatcher] = None):
        self.db = db
        self.repo = NotificationRepository()
        self.scheduling_repo = SchedulingRepository()
        self.dispatcher = dispatcher or ChannelDispatcher(db)

    # ========================================================================
    # OUTBOX PROCESSING
    # ========================================================================

    async def process_appointment_event(self, event_id: int) -> Optional[str]:
        """
        Route one outbox event and send its messages.

        Returns the trigger condition (None for changes that notify nobody).
        A database failure leaves the event unprocessed for the next sweep.
        """
        event = self.scheduling_repo.get_event(self.db, event_id)
        if not event:
            logger.warning(f"⚠️ Appointment event {event_id} not found")
            return None
        if event.processed_at is not None:
            logger.info(f"ℹ️ Appointment event {event_id} already processed")
            return event.trigger_condition

        event.attempts = (event.attempts or 0) + 1
        self.db.commit()

        trigger = route_trigger(event.event_type, event.old_status, event.new_status)
        logger.info(
            f"📬 Event {event_id} ({event.event_type} {event.old_status} → {event.new_status}): trigger={trigger}"
        )

        try:
            if trigger:
                await self.notify_appointment(event.appointment_id, trigger)
            event.trigger_condition = trigger
            event.processed_at = datetime.utcnow()
            event.last_error = None
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to process appointment event {event_id}: {e}")
            self._record_event_failure(event_id, str(e))
            raise BackendUnavailable("Appointment event processing failed") from e

        return trigger

    def _record_event_failure(self, event_id: int, error: str) -> None:
        try:
            event = self.scheduling_repo.get_event(self.db, event_id)
            if event:
                event.last_error = error[:2000]
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Could not record failure of event {event_id}: {e}")

    async def sweep_unprocessed_events(self, limit: int = 100) -> int:
        """Process outbox rows that were never handed off or whose processing failed"""
        events = self.scheduling_repo.get_unprocessed_events(
            self.db, max_attempts=NOTIFICATION_MAX_ATTEMPTS, limit=limit
        )
        event_ids = [e.id for e in events]
        processed = 0
        for event_id in event_ids:
            try:
                await self.process_appointment_event(event_id)
                processed += 1
            except BackendUnavailable:
                continue
        if event_ids:
            logger.info(f"🧹 Outbox sweep processed {processed}/{len(event_ids)} events")
        return processed

    # ========================================================================
    # AUTOMATIC MESSAGES
    # ========================================================================

    async def notify_appointment(
        self,
        appointment_id: int,
        trigger_condition: str,
        delivery_day: Optional[date] = None,
    ) -> list[DispatchResult]:
        """
        Send every active template of a trigger for an appointment.

        Each template goes out on its own channel when the client has that
        contact. A second call with the same key on the same day sends nothing.
        """
        appointment = self.scheduling_repo.get_appointment(self.db, appointment_id)
        if not appointment:
            logger.warning(f"⚠️ Appointment {appointment_id} not found - nothing to notify")
            return []

        try:
            templates = resolve_templates(self.db, trigger_condition)
        except NoTemplateFound as e:
            logger.info(f"ℹ️ {e.message}")
            return []

        key = dispatch_key(appointment.id, trigger_condition, delivery_day or salon_today())
        if not self.repo.claim_dispatch(self.db, key, appointment.id, trigger_condition):
            logger.info(f"ℹ️ Notification {key} already sent - skipping")
            return []

        variables = build_variables(appointment)
        client = appointment.client
        results = []
        for template in templates:
            rendered = render_template(template, variables)
            logger.info(f"📤 Sending {template.channel} message using template: {template.name}")
            results.append(
                await self.dispatcher.dispatch(
                    client,
                    OutgoingMessage(text=rendered.body, subject=rendered.subject),
                    appointment_id=appointment.id,
                    template_id=template.id,
                    forced_channel=template.channel,
                )
            )
        return results

    async def send_booking_reminders(self, day: Optional[date] = None) -> int:
        """Reminders for pending/confirmed appointments on `day` (tomorrow by default)"""
        today = salon_today()
        day = day or today + timedelta(days=1)
        tz = salon_timezone()
        start = datetime.combine(day, datetime.min.time(), tzinfo=tz)
        appointments = self.scheduling_repo.get_appointments_between(
            self.db, start, start + timedelta(days=1), ("pending", "confirmed")
        )
        appointment_ids = [a.id for a in appointments]

        reminded = 0
        for appointment_id in appointment_ids:
            results = await self.notify_appointment(
                appointment_id, "booking_reminder", delivery_day=today
            )
            if results:
                reminded += 1

        logger.info(f"⏰ Booking reminders for {day}: {reminded}/{len(appointment_ids)} appointments")
        return reminded

    # ========================================================================
    # MANUAL MESSAGES
    # ========================================================================

    async def send_notification(
        self,
        client_id: int,
        message_type: str,
        custom_message: Optional[str] = None,
        appointment_id: Optional[int] = None,
        forced_channel: Optional[str] = None,
    ) -> DispatchResult:
        """Send a one-off message to a client from the admin panel"""
        client: Optional[Client] = ClientRepository.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found")

        appointment = None
        if appointment_id is not None:
            appointment = self.scheduling_repo.get_appointment(self.db, appointment_id)
            if not appointment or appointment.client_id != client.id:
                raise NotFoundError("Appointment not found")

        message = build_builtin_message(message_type, custom_message, appointment)
        return await self.dispatcher.dispatch(
            client, message, appointment_id=appointment_id, forced_channel=forced_channel
        )

    # ========================================================================
    # TEMPLATE MANAGEMENT
    # ========================================================================

    def list_templates(self) -> list[MessageTemplate]:
        return self.repo.get_templates(self.db)

    def get_template(self, template_id: int) -> MessageTemplate:
        template = self.repo.get_template(self.db, template_id)
        if not template:
            raise NotFoundError("Template not found")
        return template

    def create_template(self, data: TemplateCreate) -> MessageTemplate:
        template = self.repo.create_template(self.db, **data.model_dump())
        logger.info(f"📝 Template {template.id} created for {template.trigger_condition}")
        return template

    def update_template(self, template_id: int, data: TemplateUpdate) -> MessageTemplate:
        template = self.get_template(template_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        return self.repo.update_template(self.db, template, **updates)

    def toggle_template(self, template_id: int) -> MessageTemplate:
        template = self.get_template(template_id)
        return self.repo.update_template(self.db, template, is_active=not template.is_active)

    def delete_template(self, template_id: int) -> dict:
        template = self.get_template(template_id)
        self.repo.delete_template(self.db, template)
        return {"message": "Template deleted"}

    def list_sent_messages(
        self,
        client_id: Optional[int] = None,
        appointment_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> list[SentMessage]:
        return self.repo.search_sent_messages(
            self.db, client_id=client_id, appointment_id=appointment_id, status=status, limit=limit
        )
