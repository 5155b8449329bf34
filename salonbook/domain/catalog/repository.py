"""Catalog repository - Database operations for employees, services, offerings and days off"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import DayOff, Employee, EmployeeService, Service


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def save(db: Session, instance):
        """Insert or update a catalog row and commit"""
        db.add(instance)
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def update(db: Session, instance, **updates):
        for key, value in updates.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def delete(db: Session, instance) -> None:
        db.delete(instance)
        db.commit()

    # Employees
    @staticmethod
    def get_employees(db: Session) -> list[Employee]:
        return db.query(Employee).order_by(Employee.display_name.asc()).all()

    @staticmethod
    def get_employee(db: Session, employee_id: int) -> Optional[Employee]:
        return db.query(Employee).filter(Employee.id == employee_id).first()

    # Services
    @staticmethod
    def get_services(db: Session) -> list[Service]:
        return db.query(Service).order_by(Service.name.asc()).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    # Offerings
    @staticmethod
    def get_offerings(db: Session, employee_id: int) -> list[EmployeeService]:
        return (
            db.query(EmployeeService)
            .options(joinedload(EmployeeService.service))
            .filter(EmployeeService.employee_id == employee_id)
            .all()
        )

    @staticmethod
    def get_offering(db: Session, employee_id: int, offering_id: int) -> Optional[EmployeeService]:
        return (
            db.query(EmployeeService)
            .filter(EmployeeService.id == offering_id, EmployeeService.employee_id == employee_id)
            .first()
        )

    # Days off
    @staticmethod
    def get_days_off(db: Session, employee_id: int) -> list[DayOff]:
        return (
            db.query(DayOff)
            .filter(DayOff.employee_id == employee_id)
            .order_by(DayOff.date_off.asc())
            .all()
        )

    @staticmethod
    def get_day_off(db: Session, employee_id: int, day_off_id: int) -> Optional[DayOff]:
        return (
            db.query(DayOff)
            .filter(DayOff.id == day_off_id, DayOff.employee_id == employee_id)
            .first()
        )
