"""Lookups for the catalog rows appointments reference."""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ..models.generated import Appointments, EmployeeDaysOff, Employees, Services
from ..models.status import BLOCKING_STATUSES


class CatalogRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_service(self, service_id: int) -> Optional[Services]:
        return self.db.get(Services, service_id)

    def get_employee(self, employee_id: int) -> Optional[Employees]:
        return self.db.get(Employees, employee_id)

    def get_day_off(self, employee_id: int, target_date: date) -> Optional[EmployeeDaysOff]:
        return (
            self.db.query(EmployeeDaysOff)
            .filter(
                EmployeeDaysOff.employee_id == employee_id,
                EmployeeDaysOff.date == target_date.isoformat(),
            )
            .first()
        )

    def is_day_off(self, employee_id: int, target_date: date) -> bool:
        return self.get_day_off(employee_id, target_date) is not None

    def count_future_bookings(self, service_id: int, today: date) -> int:
        """Blocking appointments on or after today that use the service."""
        return (
            self.db.query(Appointments)
            .filter(
                Appointments.service_id == service_id,
                Appointments.appointment_date >= today.isoformat(),
                Appointments.status.in_(list(BLOCKING_STATUSES)),
            )
            .count()
        )
