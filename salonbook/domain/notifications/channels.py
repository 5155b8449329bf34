"""
Delivery channels

Each channel knows whether a client can be reached through it and how to
send one message. attempt() raises ChannelDeliveryFailure on any failure.
"""

from dataclasses import dataclass
from typing import Optional

from ...email_service import send_email
from ...email_templates import notification_email_template
from ...models import Client
from ...services.telegram_service import send_telegram_message, telegram_connect_link
from .templates import DEFAULT_EMAIL_SUBJECT


@dataclass(frozen=True)
class OutgoingMessage:
    """
    A message ready to send.

    text is what Telegram receives and what the audit log records; email wraps
    it (or the pre-built email_sections) in the notification layout.
    """

    text: str
    subject: str = DEFAULT_EMAIL_SUBJECT
    email_sections: Optional[str] = None


class DeliveryChannel:
    name = ""

    def can_deliver(self, client: Client) -> bool:
        raise NotImplementedError

    async def attempt(self, client: Client, message: OutgoingMessage) -> None:
        raise NotImplementedError


class TelegramChannel(DeliveryChannel):
    name = "telegram"

    def can_deliver(self, client: Client) -> bool:
        return client.telegram_chat_id is not None

    async def attempt(self, client: Client, message: OutgoingMessage) -> None:
        await send_telegram_message(client.telegram_chat_id, message.text)


class EmailChannel(DeliveryChannel):
    name = "email"

    def can_deliver(self, client: Client) -> bool:
        return bool(client.email)

    async def attempt(self, client: Client, message: OutgoingMessage) -> None:
        mjml_content = notification_email_template(
            subject=message.subject,
            message_text=message.text,
            telegram_link=telegram_connect_link(client.phone),
            content_sections=message.email_sections,
        )
        await send_email(to=client.email, subject=message.subject, mjml_content=mjml_content)
