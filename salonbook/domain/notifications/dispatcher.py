"""
Channel dispatcher

Picks the delivery chain for a client, tries each channel in order and writes
exactly one SentMessage row describing the outcome.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...exceptions import ChannelDeliveryFailure, NoChannelAvailable
from ...models import Client
from .channels import DeliveryChannel, EmailChannel, OutgoingMessage, TelegramChannel
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

# Channel recorded when no channel could even be attempted
TERMINAL_FALLBACK_CHANNEL = "email"


@dataclass
class DispatchResult:
    channel: str
    delivery_status: str
    error_message: Optional[str] = None
    sent_message_id: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.delivery_status == "sent"


class ChannelDispatcher:
    """
    Delivery precedence:
        1. forced channel, when the client has that contact
        2. Telegram for clients who prefer it, then email as fallback
        3. email
        4. nothing - the attempt is still logged as failed
    """

    def __init__(self, db: Session, channels: Optional[list[DeliveryChannel]] = None):
        self.db = db
        self.repo = NotificationRepository()
        self.channels = {
            channel.name: channel for channel in (channels or [TelegramChannel(), EmailChannel()])
        }

    def plan(self, client: Client, forced_channel: Optional[str] = None) -> list[DeliveryChannel]:
        """Ordered channels to try for a client"""
        telegram = self.channels["telegram"]
        email = self.channels["email"]

        if forced_channel:
            forced = self.channels.get(forced_channel)
            if forced and forced.can_deliver(client):
                return [forced]

        if telegram.can_deliver(client) and client.preferred_channel == "telegram":
            return [telegram, email] if email.can_deliver(client) else [telegram]

        if email.can_deliver(client):
            return [email]

        return []

    async def dispatch(
        self,
        client: Client,
        message: OutgoingMessage,
        appointment_id: Optional[int] = None,
        template_id: Optional[int] = None,
        forced_channel: Optional[str] = None,
    ) -> DispatchResult:
        """Deliver a message; failures are recorded, never raised"""
        chain = self.plan(client, forced_channel)
        channel_used = TERMINAL_FALLBACK_CHANNEL
        status = "failed"
        errors = []

        if not chain:
            error = NoChannelAvailable("Client has neither a linked Telegram chat nor an email")
            logger.info(f"ℹ️ Client {client.id}: {error.message}")
            errors.append(error.message)

        for channel in chain:
            channel_used = channel.name
            try:
                await channel.attempt(client, message)
                status = "sent"
                break
            except ChannelDeliveryFailure as e:
                logger.warning(f"⚠️ {channel.name} delivery to client {client.id} failed: {e.message}")
                errors.append(f"{channel.name}: {e.message}")

        result = DispatchResult(
            channel=channel_used,
            delivery_status=status,
            error_message="; ".join(errors) or None,
        )

        try:
            sent = self.repo.log_sent_message(
                self.db,
                client_id=client.id,
                appointment_id=appointment_id,
                template_id=template_id,
                channel=result.channel,
                message_text=message.text,
                delivery_status=result.delivery_status,
                error_message=result.error_message,
                tracking_id=str(uuid.uuid4()),
            )
            result.sent_message_id = sent.id
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error logging message for client {client.id}: {e}")

        if result.success:
            logger.info(f"✅ Message delivered to client {client.id} via {result.channel}")
        return result
