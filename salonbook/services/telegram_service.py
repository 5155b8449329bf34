"""
Telegram Bot Service
Sends client notifications and bot replies through the Telegram Bot API
"""

import logging
from typing import Union

import httpx

from ..config import TELEGRAM_API_TIMEOUT, TELEGRAM_BOT_TOKEN, TELEGRAM_BOT_USERNAME
from ..exceptions import ChannelDeliveryFailure
from ..shared.validators import phone_digits

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


def telegram_connect_link(phone: str) -> str:
    """Deep link that opens the bot with /start phone_<digits>"""
    return f"https://t.me/{TELEGRAM_BOT_USERNAME}?start=phone_{phone_digits(phone)}"


async def send_telegram_message(chat_id: Union[int, str], text: str) -> dict:
    """
    Send a text message to a Telegram chat

    Args:
        chat_id: Telegram chat ID
        text: Message text (HTML parse mode)

    Returns:
        The sent message object from the Bot API

    Raises:
        ChannelDeliveryFailure: If the bot is not configured or the API rejects the message
    """
    if not TELEGRAM_BOT_TOKEN:
        logger.error("❌ TELEGRAM_BOT_TOKEN missing - cannot send Telegram message")
        raise ChannelDeliveryFailure("telegram", "Telegram bot is not configured")

    payload = {
        "chat_id": chat_id,
        "text": text,
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }

    try:
        logger.info(f"📨 Sending Telegram message to chat {chat_id}")
        async with httpx.AsyncClient(timeout=TELEGRAM_API_TIMEOUT) as client:
            response = await client.post(
                f"{TELEGRAM_API_URL}/bot{TELEGRAM_BOT_TOKEN}/sendMessage", json=payload
            )
    except httpx.HTTPError as e:
        logger.error(f"❌ Telegram request failed for chat {chat_id}: {str(e)}")
        raise ChannelDeliveryFailure("telegram", f"Telegram request failed: {str(e)}") from e

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code != 200 or not data.get("ok", False):
        description = data.get("description") or response.text
        logger.error(f"❌ Telegram API error [{response.status_code}]: {description}")
        raise ChannelDeliveryFailure("telegram", f"Telegram API error: {description}")

    logger.info(f"✅ Telegram message delivered to chat {chat_id}")
    return data.get("result", {})


async def reply_to_chat(chat_id: Union[int, str], text: str) -> bool:
    """Bot reply for webhook conversations; failures are logged, not raised"""
    try:
        await send_telegram_message(chat_id, text)
        return True
    except ChannelDeliveryFailure as e:
        logger.warning(f"⚠️ Could not reply to chat {chat_id}: {e.message}")
        return False
