"""
Template resolution

Looks up the active templates of a trigger and fills in the fixed placeholder
set by literal replacement. Unknown tokens stay as they are.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...config import CURRENCY_SYMBOL
from ...exceptions import NoTemplateFound
from ...models import Appointment
from ...models_messaging import MessageTemplate
from ..scheduling.availability import localize
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "Клієнт"
DEFAULT_EMPLOYEE_NAME = "Майстер"
DEFAULT_SERVICE_NAME = "Послуга"
DEFAULT_EMAIL_SUBJECT = "Повідомлення від салону"

# Genitive month names, as in "19 жовтня 2026 р."
UKRAINIAN_MONTHS = (
    "січня",
    "лютого",
    "березня",
    "квітня",
    "травня",
    "червня",
    "липня",
    "серпня",
    "вересня",
    "жовтня",
    "листопада",
    "грудня",
)


@dataclass(frozen=True)
class RenderedMessage:
    """A template with its placeholders filled in"""

    template_id: Optional[int]
    channel: Optional[str]
    subject: str
    body: str


def format_date_uk(value: datetime) -> str:
    return f"{value.day} {UKRAINIAN_MONTHS[value.month - 1]} {value.year} р."


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_price(price) -> str:
    if isinstance(price, float) and price.is_integer():
        price = int(price)
    return f"{price} {CURRENCY_SYMBOL}"


def build_variables(appointment: Appointment) -> dict[str, str]:
    """Placeholder values for an appointment, with defaults for missing names"""
    scheduled_at = localize(appointment.scheduled_at)
    client = appointment.client
    employee = appointment.employee
    service = appointment.service
    return {
        "{client_name}": (client.full_name if client else None) or DEFAULT_CLIENT_NAME,
        "{employee}": (employee.display_name if employee else None) or DEFAULT_EMPLOYEE_NAME,
        "{service}": (service.name if service else None) or DEFAULT_SERVICE_NAME,
        "{date}": format_date_uk(scheduled_at),
        "{time}": format_time(scheduled_at),
        "{price}": format_price(appointment.price),
    }


def render_template_text(text: Optional[str], variables: dict[str, str]) -> str:
    """Replace every occurrence of each token; no templating language involved"""
    rendered = text or ""
    for token, value in variables.items():
        rendered = rendered.replace(token, value)
    return rendered


def render_template(template: MessageTemplate, variables: dict[str, str]) -> RenderedMessage:
    return RenderedMessage(
        template_id=template.id,
        channel=template.channel,
        subject=render_template_text(template.subject, variables) or DEFAULT_EMAIL_SUBJECT,
        body=render_template_text(template.body, variables),
    )


def resolve_templates(db: Session, trigger_condition: str) -> list[MessageTemplate]:
    """
    Active templates for a trigger, most recent first.

    Raises:
        NoTemplateFound: If no active template exists for the trigger
    """
    templates = NotificationRepository.get_active_templates(db, trigger_condition)
    if not templates:
        raise NoTemplateFound(f"No active templates for trigger {trigger_condition}")
    return templates
