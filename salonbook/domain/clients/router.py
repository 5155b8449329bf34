"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff
from ...database import get_db
from ...models import StaffUser
from ..scheduling.schemas import AppointmentResponse
from .schemas import ClientResponse, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(get_current_staff),
    service: ClientService = Depends(get_client_service),
):
    """Get clients (admins: all, employees: the ones they served)"""
    return [ClientResponse.from_client(c) for c in service.get_clients(current_staff, search)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_staff: StaffUser = Depends(get_current_staff),
    service: ClientService = Depends(get_client_service),
):
    """Get a specific client"""
    return ClientResponse.from_client(service.get_client(client_id, current_staff))


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_staff: StaffUser = Depends(get_current_staff),
    service: ClientService = Depends(get_client_service),
):
    """Update a client's contact details, notes or preferred channel"""
    client = service.update_client(client_id, data, current_staff)
    return ClientResponse.from_client(client)


@router.get("/{client_id}/appointments", response_model=list[AppointmentResponse])
async def get_client_appointments(
    client_id: int,
    current_staff: StaffUser = Depends(get_current_staff),
    service: ClientService = Depends(get_client_service),
):
    """Get the visit history of a client"""
    appointments = service.get_client_appointments(client_id, current_staff)
    return [AppointmentResponse.from_appointment(a) for a in appointments]
