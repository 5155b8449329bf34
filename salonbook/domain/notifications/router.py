"""Notification router - Message templates, manual sends and the sent-message log"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import StaffUser
from .schemas import (
    DispatchResponse,
    SendNotificationRequest,
    SentMessageResponse,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


# ============================================================================
# TEMPLATES
# ============================================================================


@router.get("/templates", response_model=list[TemplateResponse])
async def get_templates(
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    return service.list_templates()


@router.post("/templates", response_model=TemplateResponse, status_code=201)
async def create_template(
    data: TemplateCreate,
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    return service.create_template(data)


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: int,
    data: TemplateUpdate,
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    return service.update_template(template_id, data)


@router.post("/templates/{template_id}/toggle", response_model=TemplateResponse)
async def toggle_template(
    template_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    """Activate or deactivate a template"""
    return service.toggle_template(template_id)


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    return service.delete_template(template_id)


# ============================================================================
# MESSAGES
# ============================================================================


@router.post("/send", response_model=DispatchResponse)
async def send_notification(
    data: SendNotificationRequest,
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    """Send a one-off message to a client (delivery failures are reported, not raised)"""
    result = await service.send_notification(
        client_id=data.client_id,
        message_type=data.message_type,
        custom_message=data.custom_message,
        appointment_id=data.appointment_id,
        forced_channel=data.force_channel,
    )
    return DispatchResponse(
        success=result.success,
        channel=result.channel,
        status=result.delivery_status,
        error_message=result.error_message,
    )


@router.get("/messages", response_model=list[SentMessageResponse])
async def get_sent_messages(
    client_id: Optional[int] = Query(None),
    appointment_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_staff: StaffUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
):
    """Delivery log, newest first"""
    messages = service.list_sent_messages(client_id, appointment_id, status, limit)
    return [SentMessageResponse.from_message(m) for m in messages]
