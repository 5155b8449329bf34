"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import Appointment, Client, StaffUser
from .repository import ClientRepository
from .schemas import ClientUpdate

logger = logging.getLogger(__name__)

REQUIRED_CLIENT_FIELDS = ("full_name", "phone", "preferred_channel")


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def _employee_scope(self, staff: StaffUser) -> Optional[int]:
        return None if staff.is_admin else staff.employee_id

    def find_or_create(self, full_name: str, phone: str, email: Optional[str] = None) -> Client:
        """
        Resolve the booking client by canonical phone, creating it on first booking.

        The new row is only flushed; it commits together with the appointment.
        An existing client keeps its name, but gets the email when it had none.
        Must be the first write of the transaction: when a parallel booking
        created the same phone first, the failed insert is rolled back and
        that client is used instead.
        """
        client = self.repo.get_client_by_phone(self.db, phone)
        if not client:
            logger.info(f"👤 New client from booking: {phone}")
            try:
                return self.repo.add_client(self.db, full_name=full_name, phone=phone, email=email)
            except IntegrityError:
                self.db.rollback()
                client = self.repo.get_client_by_phone(self.db, phone)
                if not client:
                    raise
                logger.info(f"👤 Client {client.id} was created by a parallel booking, reusing it")

        if email and not client.email:
            client.email = email
        return client

    def get_clients(self, staff: StaffUser, search: Optional[str] = None) -> list[Client]:
        """All clients for admins, only their own clients for employees"""
        return self.repo.search_clients(self.db, search=search, employee_id=self._employee_scope(staff))

    def get_client(self, client_id: int, staff: StaffUser) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found")

        employee_id = self._employee_scope(staff)
        if employee_id is not None and not self.repo.get_client_appointments(
            self.db, client.id, employee_id
        ):
            raise NotFoundError("Client not found")
        return client

    def update_client(self, client_id: int, data: ClientUpdate, staff: StaffUser) -> Client:
        """Update a client"""
        client = self.get_client(client_id, staff)

        updates = data.model_dump(exclude_unset=True)
        cleared = [field for field in REQUIRED_CLIENT_FIELDS if field in updates and updates[field] is None]
        if cleared:
            raise ValidationError(f"Cannot clear required fields: {', '.join(cleared)}")
        if updates.get("preferred_channel") == "telegram" and client.telegram_chat_id is None:
            raise ValidationError("Client has not connected Telegram yet")

        try:
            return self.repo.update_client(self.db, client, **updates)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Client {client_id} update rejected: {e.orig}")
            raise ValidationError("Another client already uses this phone number") from e

    def get_client_appointments(self, client_id: int, staff: StaffUser) -> list[Appointment]:
        """Visit history; employees see only their own visits"""
        client = self.get_client(client_id, staff)
        return self.repo.get_client_appointments(self.db, client.id, self._employee_scope(staff))

    def link_telegram_by_phone(
        self, phone: str, chat_id: int, username: Optional[str]
    ) -> Optional[Client]:
        """Connect a Telegram chat to the client with this phone, if any"""
        client = self.repo.get_client_by_phone(self.db, phone)
        if not client:
            return None
        logger.info(f"🔗 Linking Telegram chat {chat_id} to client {client.id}")
        return self.repo.link_telegram(self.db, client, chat_id, username)
