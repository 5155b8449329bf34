from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from salonbook.models import Client
from salonbook.routes import telegram_webhook
from salonbook.routes.telegram_webhook import (
    CLIENT_NOT_FOUND,
    WELCOME_GENERIC,
    parse_start_phone,
)

REPLY = "salonbook.routes.telegram_webhook.reply_to_chat"


def _update(text: str, chat_id: int = 4242, username: str = "iryna_k") -> dict:
    return {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "from": {"id": chat_id, "username": username},
            "chat": {"id": chat_id, "type": "private"},
            "text": text,
        },
    }


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/start phone_380671234567", "+380671234567"),
        ("/start  phone_380671234567 ", "+380671234567"),
        ("/start", None),
        ("/start hello", None),
        ("/start phone_abc", None),
        ("/start phone_", None),
    ],
)
def test_parse_start_phone(text, expected) -> None:
    assert parse_start_phone(text) == expected


def test_start_with_known_phone_links_telegram(api, db, make_client) -> None:
    client = make_client(full_name="Ірина Коваль", email="i@example.com")

    with patch(REPLY, new=AsyncMock(return_value=True)) as reply:
        response = api.post("/telegram/webhook", json=_update("/start phone_380671234567"))

    assert response.status_code == 200
    assert response.json() == {"ok": True}

    db.expire_all()
    linked = db.get(Client, client.id)
    assert linked.telegram_chat_id == 4242
    assert linked.telegram_username == "iryna_k"
    assert linked.preferred_channel == "telegram"

    chat_id, text = reply.await_args.args
    assert chat_id == 4242
    assert text.startswith("🎉 Вітаємо, Ірина Коваль!")


def test_start_with_unknown_phone(api, db) -> None:
    with patch(REPLY, new=AsyncMock(return_value=True)) as reply:
        response = api.post("/telegram/webhook", json=_update("/start phone_380999999999"))

    assert response.json() == {"ok": True}
    reply.assert_awaited_once_with(4242, CLIENT_NOT_FOUND)
    assert db.query(Client).count() == 0


def test_bare_start_gets_instructions(api, db) -> None:
    with patch(REPLY, new=AsyncMock(return_value=True)) as reply:
        api.post("/telegram/webhook", json=_update("/start"))

    reply.assert_awaited_once_with(4242, WELCOME_GENERIC)


def test_other_messages_are_acknowledged_silently(api, db) -> None:
    with patch(REPLY, new=AsyncMock(return_value=True)) as reply:
        response = api.post("/telegram/webhook", json=_update("Добрий день!"))

    assert response.json() == {"ok": True}
    reply.assert_not_called()


def test_wrong_secret_is_rejected(api, db) -> None:
    with (
        patch.object(telegram_webhook, "TELEGRAM_WEBHOOK_SECRET", "s3cret"),
        patch(REPLY, new=AsyncMock(return_value=True)) as reply,
    ):
        rejected = api.post(
            "/telegram/webhook",
            json=_update("/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
        )
        accepted = api.post(
            "/telegram/webhook",
            json=_update("/start"),
            headers={"X-Telegram-Bot-Api-Secret-Token": "s3cret"},
        )

    assert rejected.status_code == 403
    assert accepted.status_code == 200
    reply.assert_awaited_once()
