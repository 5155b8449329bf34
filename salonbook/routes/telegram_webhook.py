"""
Telegram Webhook Handler
Links a client's Telegram chat from the /start deep link sent after booking
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from ..config import TELEGRAM_WEBHOOK_SECRET
from ..database import get_db
from ..domain.clients.service import ClientService
from ..services.telegram_service import reply_to_chat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/telegram", tags=["webhooks"])

START_PHONE_PREFIX = "phone_"

WELCOME_LINKED = (
    "🎉 Вітаємо, {full_name}!\n\n"
    "Telegram успішно підключено! Тепер ви будете отримувати:\n"
    "✅ Підтвердження записів\n"
    "⏰ Нагадування перед візитами\n"
    "💌 Спеціальні пропозиції\n\n"
    "До зустрічі! 💖"
)
CLIENT_NOT_FOUND = "❌ Клієнта з таким номером не знайдено. Спочатку оформіть запис на сайті."
WELCOME_GENERIC = (
    "👋 Вітаємо!\n\n"
    "Для підключення повідомлень оформіть запис на нашому сайті.\n"
    "Під час бронювання ви зможете підключити Telegram-повідомлення."
)


def verify_webhook_secret(received: Optional[str]) -> bool:
    """Check the secret token Telegram echoes back on every update"""
    if not TELEGRAM_WEBHOOK_SECRET:
        logger.warning("⚠️ TELEGRAM_WEBHOOK_SECRET not configured, skipping verification")
        return True
    return hmac.compare_digest(TELEGRAM_WEBHOOK_SECRET, received or "")


def parse_start_phone(text: str) -> Optional[str]:
    """'/start phone_380671234567' -> '+380671234567'; None for anything else"""
    parts = text.strip().split(maxsplit=1)
    if len(parts) < 2 or not parts[1].startswith(START_PHONE_PREFIX):
        return None
    digits = parts[1][len(START_PHONE_PREFIX):].strip()
    if not digits.isdigit():
        return None
    return f"+{digits}"


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    """
    Handle a Telegram bot update.

    Only /start commands are acted on; every other update is acknowledged
    so Telegram does not redeliver it.
    """
    if not verify_webhook_secret(x_telegram_bot_api_secret_token):
        logger.warning("⚠️ Telegram webhook rejected: invalid secret token")
        raise HTTPException(status_code=403, detail="Invalid webhook secret")

    try:
        update = await request.json()
    except ValueError:
        logger.warning("⚠️ Telegram webhook received a non-JSON body")
        return {"ok": True}

    message = update.get("message") or {}
    text = message.get("text") or ""
    chat = message.get("chat") or {}
    chat_id = chat.get("id")

    if chat_id is None or not text.startswith("/start"):
        return {"ok": True}

    phone = parse_start_phone(text)
    if phone is None:
        await reply_to_chat(chat_id, WELCOME_GENERIC)
        return {"ok": True}

    username = (message.get("from") or {}).get("username")
    client = ClientService(db).link_telegram_by_phone(phone, chat_id, username)
    if client is None:
        logger.info(f"ℹ️ Telegram /start for unknown phone {phone}")
        await reply_to_chat(chat_id, CLIENT_NOT_FOUND)
        return {"ok": True}

    logger.info(f"✅ Telegram connected for client {client.id}")
    await reply_to_chat(chat_id, WELCOME_LINKED.format(full_name=client.full_name))
    return {"ok": True}
