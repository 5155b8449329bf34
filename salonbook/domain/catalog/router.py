"""Catalog router - Admin endpoints for employees, services, offerings and days off"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import StaffUser
from .schemas import (
    DayOffAdminResponse,
    DayOffCreate,
    EmployeeAdminResponse,
    EmployeeCreate,
    EmployeeUpdate,
    OfferingAdminResponse,
    OfferingCreate,
    OfferingUpdate,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from .service import CatalogService

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# EMPLOYEES
# ============================================================================


@router.get("/employees", response_model=list[EmployeeAdminResponse])
async def get_employees(
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """All employees, including inactive ones"""
    return service.list_employees()


@router.post("/employees", response_model=EmployeeAdminResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_employee(data)


@router.patch("/employees/{employee_id}", response_model=EmployeeAdminResponse)
async def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_employee(employee_id, data)


@router.delete("/employees/{employee_id}", response_model=EmployeeAdminResponse)
async def deactivate_employee(
    employee_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.deactivate_employee(employee_id)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def get_services(
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_services()


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_service(data)


@router.patch("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_service(service_id, data)


# ============================================================================
# OFFERINGS
# ============================================================================


@router.get("/employees/{employee_id}/services", response_model=list[OfferingAdminResponse])
async def get_offerings(
    employee_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return [OfferingAdminResponse.from_offering(o) for o in service.list_offerings(employee_id)]


@router.post(
    "/employees/{employee_id}/services", response_model=OfferingAdminResponse, status_code=201
)
async def create_offering(
    employee_id: int,
    data: OfferingCreate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    """Let an employee offer a service with their own price and duration"""
    return OfferingAdminResponse.from_offering(service.create_offering(employee_id, data))


@router.patch(
    "/employees/{employee_id}/services/{offering_id}", response_model=OfferingAdminResponse
)
async def update_offering(
    employee_id: int,
    offering_id: int,
    data: OfferingUpdate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return OfferingAdminResponse.from_offering(
        service.update_offering(employee_id, offering_id, data)
    )


@router.delete("/employees/{employee_id}/services/{offering_id}")
async def delete_offering(
    employee_id: int,
    offering_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_offering(employee_id, offering_id)


# ============================================================================
# DAYS OFF
# ============================================================================


@router.get("/employees/{employee_id}/days-off", response_model=list[DayOffAdminResponse])
async def get_days_off(
    employee_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.list_days_off(employee_id)


@router.post(
    "/employees/{employee_id}/days-off", response_model=DayOffAdminResponse, status_code=201
)
async def create_day_off(
    employee_id: int,
    data: DayOffCreate,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_day_off(employee_id, data)


@router.delete("/employees/{employee_id}/days-off/{day_off_id}")
async def delete_day_off(
    employee_id: int,
    day_off_id: int,
    current_staff: StaffUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.delete_day_off(employee_id, day_off_id)
