"""
Appointment persistence.

The only place that issues SQL against the appointments table. The
scheduling service owns the transaction: nothing here commits.
"""

from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..models.generated import Appointments, Employees
from ..models.status import AppointmentStatus


class AppointmentRepository:
    """Appointment queries and writes inside the caller's session."""

    def __init__(self, db: Session):
        self.db = db

    # ── Read ─────────────────────────────────────────────────────────────

    def find_by_id(self, appointment_id: int) -> Optional[Appointments]:
        return self.db.get(Appointments, appointment_id)

    def find_by_employee_and_date(self, employee_id: int, target_date: date) -> list[Appointments]:
        """
        Appointments of an employee that touch target_date.

        Includes rescheduled records whose new slot falls on that date.
        """
        date_str = target_date.isoformat()
        return (
            self.db.query(Appointments)
            .filter(
                Appointments.employee_id == employee_id,
                or_(
                    Appointments.appointment_date == date_str,
                    and_(
                        Appointments.status == AppointmentStatus.RESCHEDULED,
                        Appointments.new_date == date_str,
                    ),
                ),
            )
            .order_by(Appointments.appointment_time, Appointments.id)
            .all()
        )

    def list_for_merchant(self, merchant_id: int, target_date: Optional[date] = None) -> list[Appointments]:
        query = self.db.query(Appointments).filter(Appointments.merchant_id == merchant_id)
        if target_date is not None:
            query = query.filter(Appointments.appointment_date == target_date.isoformat())
        return query.order_by(Appointments.appointment_date, Appointments.appointment_time).all()

    def list_for_employee(self, employee_id: int, target_date: Optional[date] = None) -> list[Appointments]:
        query = self.db.query(Appointments).filter(Appointments.employee_id == employee_id)
        if target_date is not None:
            query = query.filter(Appointments.appointment_date == target_date.isoformat())
        return query.order_by(Appointments.appointment_date, Appointments.appointment_time).all()

    def list_for_client(self, client_phone: str) -> list[Appointments]:
        return (
            self.db.query(Appointments)
            .filter(Appointments.client_phone == client_phone)
            .order_by(Appointments.appointment_date, Appointments.appointment_time)
            .all()
        )

    def list_by_date_and_status(
        self,
        target_date: date,
        statuses: list[AppointmentStatus],
    ) -> list[Appointments]:
        return (
            self.db.query(Appointments)
            .filter(
                Appointments.appointment_date == target_date.isoformat(),
                Appointments.status.in_(statuses),
            )
            .all()
        )

    # ── Write ────────────────────────────────────────────────────────────

    def lock_employee(self, employee_id: int) -> Optional[Employees]:
        """
        Take the per-employee write lock for a booking transaction.

        SELECT ... FOR UPDATE on PostgreSQL. SQLite has no row locks; there the
        transaction already holds the database write lock (BEGIN IMMEDIATE).
        """
        return (
            self.db.query(Employees)
            .filter(Employees.id == employee_id)
            .with_for_update()
            .first()
        )

    def insert(self, fields: dict[str, Any]) -> Appointments:
        obj = Appointments(**fields)
        self.db.add(obj)
        self.db.flush()
        return obj

    def update_fields(
        self,
        appointment_id: int,
        fields: dict[str, Any],
        expected_status: Optional[AppointmentStatus] = None,
    ) -> bool:
        """
        Update columns of one appointment.

        With expected_status the row is only written if its stored status
        still matches. Returns False when no row was updated.
        """
        query = self.db.query(Appointments).filter(Appointments.id == appointment_id)
        if expected_status is not None:
            query = query.filter(Appointments.status == expected_status)
        updated = query.update(fields, synchronize_session="fetch")
        return updated == 1

    def delete(self, appointment_id: int) -> bool:
        deleted = (
            self.db.query(Appointments)
            .filter(Appointments.id == appointment_id)
            .delete(synchronize_session="fetch")
        )
        return deleted == 1
