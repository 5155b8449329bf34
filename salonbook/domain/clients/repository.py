"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, Client


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_client_by_id(db: Session, client_id: int) -> Optional[Client]:
        """Get a specific client by ID"""
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def get_client_by_phone(db: Session, phone: str) -> Optional[Client]:
        """Get a client by canonical phone ("+digits")"""
        return db.query(Client).filter(Client.phone == phone).first()

    @staticmethod
    def add_client(db: Session, **client_data) -> Client:
        """Stage a new client inside the caller's transaction (no commit)"""
        client = Client(**client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with the given fields (None clears optional ones)"""
        for key, value in updates.items():
            if hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def link_telegram(
        db: Session, client: Client, chat_id: int, username: Optional[str]
    ) -> Client:
        """Store the Telegram chat and make it the preferred channel"""
        client.telegram_chat_id = chat_id
        client.telegram_username = username
        client.preferred_channel = "telegram"
        db.commit()
        db.refresh(client)
        return client

    # Search and Filter Methods
    @staticmethod
    def search_clients(
        db: Session,
        search: Optional[str] = None,
        employee_id: Optional[int] = None,
    ) -> list[Client]:
        """
        Search clients by name, phone or email.

        With employee_id only clients who ever booked that employee are returned.
        """
        query = db.query(Client)

        if employee_id is not None:
            query = query.filter(
                Client.id.in_(
                    db.query(Appointment.client_id).filter(Appointment.employee_id == employee_id)
                )
            )

        if search:
            search_term = f"%{search.lower()}%"
            query = query.filter(
                (func.lower(Client.full_name).like(search_term))
                | (Client.phone.like(search_term))
                | (func.lower(Client.email).like(search_term))
            )

        return query.order_by(Client.created_at.desc(), Client.id.desc()).all()

    @staticmethod
    def get_client_appointments(
        db: Session, client_id: int, employee_id: Optional[int] = None
    ) -> list[Appointment]:
        """Visit history of a client, newest first"""
        query = (
            db.query(Appointment)
            .options(joinedload(Appointment.employee), joinedload(Appointment.service))
            .filter(Appointment.client_id == client_id)
        )
        if employee_id is not None:
            query = query.filter(Appointment.employee_id == employee_id)
        return query.order_by(Appointment.scheduled_at.desc()).all()
