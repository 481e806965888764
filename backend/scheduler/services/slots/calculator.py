# backend/scheduler/services/slots/calculator.py
"""
Bookable start times for one employee on one day.

Candidates are laid on the configured grid from the start of each working
interval. A candidate is emitted only when the whole service fits before the
interval closes; it is available when it overlaps no busy interval.

Contains:
✓ employee work_schedule (per weekday, one or more intervals)
✓ employee days off
✓ existing bookings in a blocking status
✓ min_advance_minutes (when a "now" is supplied)

Nothing is cached: every call reads fresh data and returns a new iterator.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from math import ceil
from typing import Iterable, Iterator, Optional

from sqlalchemy.orm import Session

from ...errors import NotFound
from ...repositories import AppointmentRepository, CatalogRepository
from .config import (
    BookingConfig,
    get_booking_config,
    minutes_to_time_str,
    parse_date,
    time_str_to_minutes,
    validate_duration,
)
from .occupancy import BusyInterval, busy_intervals, first_overlap

logger = logging.getLogger(__name__)

DAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


@dataclass(frozen=True)
class TimeSlot:
    start_time: str  # "HH:MM"
    duration_minutes: int
    available: bool


def iter_day_slots(
    working_intervals: Iterable[tuple[int, int]],
    duration_minutes: int,
    busy: list[BusyInterval],
    config: BookingConfig,
    not_before: Optional[int] = None,
) -> Iterator[TimeSlot]:
    """
    Yield candidate slots for a day (pure, no I/O).

    Args:
        working_intervals: (open_min, close_min) pairs, minutes since midnight
        duration_minutes: Service duration
        busy: Occupied intervals of the employee that day
        config: Grid step and buffer
        not_before: Candidates starting earlier than this minute are unavailable
    """
    step = config.slot_step_minutes

    for open_min, close_min in sorted(working_intervals):
        t = open_min
        while t + duration_minutes <= close_min:
            end = t + duration_minutes
            available = first_overlap(t, end, busy, config.buffer_minutes) is None
            if available and not_before is not None and t < not_before:
                available = False
            yield TimeSlot(minutes_to_time_str(t), duration_minutes, available)
            t += step


class TimeSlotCalculator:
    """Slot computation backed by the appointment store."""

    def __init__(self, db: Session, config: BookingConfig | None = None):
        self.db = db
        self.config = config or get_booking_config()
        self.catalog = CatalogRepository(db)
        self.appointments = AppointmentRepository(db)

    def compute_slots(
        self,
        target_date,
        employee_id: int,
        service_duration_minutes: int,
        now: datetime | None = None,
    ) -> Iterator[TimeSlot]:
        """
        Candidate slots for employee on target_date, ordered by start time.

        Raises ValidationError for a malformed date or duration and NotFound
        for an unknown employee. A closed weekday, a day off or an inactive
        employee yield nothing.
        """
        target_date = parse_date(target_date)
        validate_duration(service_duration_minutes)

        employee = self.catalog.get_employee(employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)

        if not employee.is_active or self.catalog.is_day_off(employee_id, target_date):
            return iter(())

        intervals = working_intervals(employee.work_schedule, target_date)
        if not intervals:
            return iter(())

        busy = busy_intervals(
            self.appointments.find_by_employee_and_date(employee_id, target_date),
            target_date,
        )

        not_before = None
        if now is not None:
            cutoff = now + timedelta(minutes=self.config.min_advance_minutes)
            day_start = datetime.combine(target_date, datetime.min.time())
            not_before = ceil((cutoff - day_start).total_seconds() / 60)

        return iter_day_slots(intervals, service_duration_minutes, busy, self.config, not_before)


# ── Working hours ────────────────────────────────────────────────────────


def load_work_schedule(work_schedule_json: str | None) -> dict:
    try:
        schedule = json.loads(work_schedule_json) if work_schedule_json else {}
    except json.JSONDecodeError:
        logger.warning("Unreadable work_schedule, treating employee as closed")
        schedule = {}
    return schedule if isinstance(schedule, dict) else {}


def working_intervals(work_schedule_json: str | None, target_date: date) -> list[tuple[int, int]]:
    """Working intervals for target_date as (open_min, close_min) pairs."""
    schedule = load_work_schedule(work_schedule_json)
    result = []
    for interval in get_day_intervals(schedule, target_date):
        if not _is_interval(interval):
            continue
        try:
            open_min = time_str_to_minutes(interval[0])
            close_min = time_str_to_minutes(interval[1])
        except (ValueError, AttributeError):
            continue
        if open_min < close_min:
            result.append((open_min, close_min))
    return result


def _is_interval(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(isinstance(v, str) for v in value)
    )


def get_day_intervals(
    schedule: dict,
    target_date: date,
) -> list[list[str]]:
    """
    Extract working intervals for target_date from schedule.
    Supports both Format A and Format B.

    Returns list of intervals: [["09:00", "18:00"], ...]
    """
    weekday = target_date.weekday()  # 0 = Monday, 6 = Sunday

    # Format B: numeric keys "0", "1", etc.
    weekday_str = str(weekday)
    if weekday_str in schedule:
        intervals = schedule[weekday_str]
        if isinstance(intervals, list):
            return intervals
        return []

    # Format A: named keys "mon", "tue", etc.
    day_name = DAY_NAMES[weekday]

    if day_name in schedule:
        day_data = schedule[day_name]

        if day_data is None:
            return []

        if isinstance(day_data, dict):
            start = day_data.get("start")
            end = day_data.get("end")
            if start and end:
                return [[start, end]]

        if isinstance(day_data, list):
            return day_data

    return []


def fits_working_hours(work_schedule_json: str | None, target_date: date, start: int, end: int) -> bool:
    """True when [start, end) lies inside one working interval of that day."""
    return any(
        open_min <= start and end <= close_min
        for open_min, close_min in working_intervals(work_schedule_json, target_date)
    )
