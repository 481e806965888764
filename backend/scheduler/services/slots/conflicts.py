# backend/scheduler/services/slots/conflicts.py
"""
Overlap check for a proposed appointment against an employee's day.

Unassigned appointments (employee_id is None) never conflict; they are
validated again when an employee gets assigned.
"""

from typing import Optional

from sqlalchemy.orm import Session

from ...repositories import AppointmentRepository
from .config import (
    BookingConfig,
    get_booking_config,
    parse_date,
    parse_time,
    time_str_to_minutes,
    validate_duration,
)
from .occupancy import BusyInterval, busy_intervals, first_overlap


class ConflictDetector:

    def __init__(self, db: Session, config: BookingConfig | None = None):
        self.config = config or get_booking_config()
        self.appointments = AppointmentRepository(db)

    def find_conflict(
        self,
        employee_id: Optional[int],
        target_date,
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[BusyInterval]:
        """First busy interval the proposed slot would overlap, or None."""
        target_date = parse_date(target_date)
        start = time_str_to_minutes(parse_time(start_time))
        validate_duration(duration_minutes)

        if employee_id is None:
            return None

        busy = busy_intervals(
            self.appointments.find_by_employee_and_date(employee_id, target_date),
            target_date,
            exclude_appointment_id=exclude_appointment_id,
        )
        return first_overlap(start, start + duration_minutes, busy, self.config.buffer_minutes)

    def has_conflict(
        self,
        employee_id: Optional[int],
        target_date,
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        return self.find_conflict(
            employee_id, target_date, start_time, duration_minutes, exclude_appointment_id
        ) is not None
