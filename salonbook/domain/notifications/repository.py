"""Notification repository - Database operations for templates, sent messages and dispatch ledger"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models_messaging import MessageTemplate, NotificationDispatch, SentMessage


class NotificationRepository:
    """Repository for notification database operations"""

    # Templates
    @staticmethod
    def get_active_templates(db: Session, trigger_condition: str) -> list[MessageTemplate]:
        """Active templates for a trigger, most recent first"""
        return (
            db.query(MessageTemplate)
            .filter(
                MessageTemplate.trigger_condition == trigger_condition,
                MessageTemplate.is_active.is_(True),
            )
            .order_by(MessageTemplate.created_at.desc(), MessageTemplate.id.desc())
            .all()
        )

    @staticmethod
    def get_templates(db: Session) -> list[MessageTemplate]:
        return db.query(MessageTemplate).order_by(MessageTemplate.created_at.desc()).all()

    @staticmethod
    def get_template(db: Session, template_id: int) -> Optional[MessageTemplate]:
        return db.query(MessageTemplate).filter(MessageTemplate.id == template_id).first()

    @staticmethod
    def create_template(db: Session, **template_data) -> MessageTemplate:
        template = MessageTemplate(**template_data)
        db.add(template)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def update_template(db: Session, template: MessageTemplate, **updates) -> MessageTemplate:
        for key, value in updates.items():
            if hasattr(template, key):
                setattr(template, key, value)
        db.commit()
        db.refresh(template)
        return template

    @staticmethod
    def delete_template(db: Session, template: MessageTemplate) -> None:
        """Delete a template; its sent-message rows stay in the log without it"""
        db.query(SentMessage).filter(SentMessage.template_id == template.id).update(
            {SentMessage.template_id: None}, synchronize_session=False
        )
        db.delete(template)
        db.commit()

    # Sent messages
    @staticmethod
    def log_sent_message(db: Session, **message_data) -> SentMessage:
        """Append one audit row"""
        message = SentMessage(**message_data)
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def search_sent_messages(
        db: Session,
        client_id: Optional[int] = None,
        appointment_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> list[SentMessage]:
        query = db.query(SentMessage).options(joinedload(SentMessage.client))

        if client_id is not None:
            query = query.filter(SentMessage.client_id == client_id)

        if appointment_id is not None:
            query = query.filter(SentMessage.appointment_id == appointment_id)

        if status and status != "all":
            query = query.filter(SentMessage.delivery_status == status)

        return query.order_by(SentMessage.sent_at.desc(), SentMessage.id.desc()).limit(limit).all()

    # Dispatch ledger
    @staticmethod
    def claim_dispatch(
        db: Session, idempotency_key: str, appointment_id: int, trigger_condition: str
    ) -> bool:
        """
        Record that a notification is being sent.

        Returns False when the key was already claimed by an earlier delivery.
        """
        db.add(
            NotificationDispatch(
                idempotency_key=idempotency_key,
                appointment_id=appointment_id,
                trigger_condition=trigger_condition,
            )
        )
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        return True
