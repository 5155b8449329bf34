"""Catalog service - Admin management of employees, services, offerings and days off"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...exceptions import NotFoundError, ValidationError
from ...models import DayOff, Employee, EmployeeService, Service
from ..scheduling.service import salon_now
from .repository import CatalogRepository
from .schemas import (
    DayOffCreate,
    EmployeeCreate,
    EmployeeUpdate,
    OfferingCreate,
    OfferingUpdate,
    ServiceCreate,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog administration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def _save(self, instance, duplicate_message: str):
        try:
            return self.repo.save(self.db, instance)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Catalog write rejected: {e.orig}")
            raise ValidationError(duplicate_message) from e

    # ========================================================================
    # EMPLOYEES
    # ========================================================================

    def list_employees(self) -> list[Employee]:
        return self.repo.get_employees(self.db)

    def get_employee(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee(self.db, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def create_employee(self, data: EmployeeCreate) -> Employee:
        employee = self.repo.save(self.db, Employee(**data.model_dump()))
        logger.info(f"👤 Employee {employee.id} created: {employee.display_name}")
        return employee

    def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        employee = self.get_employee(employee_id)
        return self.repo.update(self.db, employee, **data.model_dump(exclude_unset=True))

    def deactivate_employee(self, employee_id: int) -> Employee:
        """Employees with history are hidden from booking instead of deleted"""
        employee = self.get_employee(employee_id)
        logger.info(f"🚫 Employee {employee_id} deactivated")
        return self.repo.update(self.db, employee, is_active=False)

    # ========================================================================
    # SERVICES
    # ========================================================================

    def list_services(self) -> list[Service]:
        return self.repo.get_services(self.db)

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        service = self.repo.save(self.db, Service(**data.model_dump()))
        logger.info(f"💅 Service {service.id} created: {service.name}")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates:
            if not updates["name"] or not updates["name"].strip():
                raise ValidationError("Service name is required")
            updates["name"] = updates["name"].strip()
        return self.repo.update(self.db, service, **updates)

    # ========================================================================
    # OFFERINGS
    # ========================================================================

    def list_offerings(self, employee_id: int) -> list[EmployeeService]:
        self.get_employee(employee_id)
        return self.repo.get_offerings(self.db, employee_id)

    def get_offering(self, employee_id: int, offering_id: int) -> EmployeeService:
        offering = self.repo.get_offering(self.db, employee_id, offering_id)
        if not offering:
            raise NotFoundError("Offering not found")
        return offering

    def create_offering(self, employee_id: int, data: OfferingCreate) -> EmployeeService:
        self.get_employee(employee_id)
        self.get_service(data.service_id)
        offering = self._save(
            EmployeeService(employee_id=employee_id, **data.model_dump()),
            "This employee already offers this service",
        )
        logger.info(
            f"✅ Employee {employee_id} now offers service {data.service_id} "
            f"({data.duration_minutes} min, {data.price})"
        )
        return offering

    def update_offering(
        self, employee_id: int, offering_id: int, data: OfferingUpdate
    ) -> EmployeeService:
        offering = self.get_offering(employee_id, offering_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        return self.repo.update(self.db, offering, **updates)

    def delete_offering(self, employee_id: int, offering_id: int) -> dict:
        """Existing appointments keep their own price and duration, so the offering can go"""
        offering = self.get_offering(employee_id, offering_id)
        self.repo.delete(self.db, offering)
        return {"message": "Offering deleted"}

    # ========================================================================
    # DAYS OFF
    # ========================================================================

    def list_days_off(self, employee_id: int) -> list[DayOff]:
        self.get_employee(employee_id)
        return self.repo.get_days_off(self.db, employee_id)

    def create_day_off(self, employee_id: int, data: DayOffCreate) -> DayOff:
        self.get_employee(employee_id)
        if data.date_off < salon_now().date():
            raise ValidationError("Day off cannot be in the past")
        day_off = self._save(
            DayOff(employee_id=employee_id, date_off=data.date_off, reason=data.reason),
            "This day is already marked as a day off",
        )
        logger.info(f"🏖️ Day off {data.date_off} added for employee {employee_id}")
        return day_off

    def delete_day_off(self, employee_id: int, day_off_id: int) -> dict:
        day_off = self.repo.get_day_off(self.db, employee_id, day_off_id)
        if not day_off:
            raise NotFoundError("Day off not found")
        self.repo.delete(self.db, day_off)
        return {"message": "Day off deleted"}
