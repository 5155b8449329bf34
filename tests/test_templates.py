from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from salonbook.exceptions import NoTemplateFound
from salonbook.models_messaging import MessageTemplate
from salonbook.domain.notifications.templates import (
    DEFAULT_EMAIL_SUBJECT,
    build_variables,
    format_price,
    render_template,
    render_template_text,
    resolve_templates,
)


def _appointment(client_name="Ірина", employee="Олена", service="Манікюр", price=500.0):
    return SimpleNamespace(
        scheduled_at=datetime(2026, 10, 19, 14, 30),
        price=price,
        client=SimpleNamespace(full_name=client_name) if client_name else None,
        employee=SimpleNamespace(display_name=employee) if employee else None,
        service=SimpleNamespace(name=service) if service else None,
    )


def test_all_placeholders_are_filled() -> None:
    text = "Вітаємо, {client_name}! {employee} чекає на вас: {service}, {date} о {time}. Вартість {price}."

    rendered = render_template_text(text, build_variables(_appointment()))

    assert rendered == (
        "Вітаємо, Ірина! Олена чекає на вас: Манікюр, 19 жовтня 2026 р. о 14:30. Вартість 500 ₴."
    )


def test_missing_names_fall_back_to_defaults() -> None:
    variables = build_variables(_appointment(client_name=None, employee=None, service=None))

    assert variables["{client_name}"] == "Клієнт"
    assert variables["{employee}"] == "Майстер"
    assert variables["{service}"] == "Послуга"


def test_repeated_and_unknown_tokens() -> None:
    rendered = render_template_text(
        "{client_name}, {client_name}! {discount}", build_variables(_appointment())
    )

    assert rendered == "Ірина, Ірина! {discount}"


@pytest.mark.parametrize(("price", "expected"), [(500.0, "500 ₴"), (450.5, "450.5 ₴"), (300, "300 ₴")])
def test_format_price(price, expected) -> None:
    assert format_price(price) == expected


def test_empty_subject_uses_default() -> None:
    template = MessageTemplate(id=1, channel="email", subject="", body="Дякуємо, {client_name}!")

    rendered = render_template(template, build_variables(_appointment()))

    assert rendered.subject == DEFAULT_EMAIL_SUBJECT
    assert rendered.body == "Дякуємо, Ірина!"


def test_resolve_templates_without_active_template(db) -> None:
    db.add(
        MessageTemplate(
            name="Old", trigger_condition="booking_reminder", channel="email", body="x", is_active=False
        )
    )
    db.commit()

    with pytest.raises(NoTemplateFound):
        resolve_templates(db, "booking_reminder")


def test_resolve_templates_newest_first(db) -> None:
    db.add_all(
        [
            MessageTemplate(name="First", trigger_condition="booking_reminder", channel="email", body="1"),
            MessageTemplate(name="Second", trigger_condition="booking_reminder", channel="telegram", body="2"),
            MessageTemplate(name="Other", trigger_condition="booking_cancelled", channel="email", body="3"),
        ]
    )
    db.commit()

    templates = resolve_templates(db, "booking_reminder")

    assert [t.name for t in templates] == ["Second", "First"]
