# backend/scheduler/services/slots/occupancy.py
"""
Which minutes of a day an appointment occupies.

A blocking appointment occupies [appointment_time, +duration) on its
appointment_date. A rescheduled record has given up that slot and occupies
[new_time, +duration) on new_date instead. Everything else occupies nothing.
"""

from datetime import date
from typing import Iterable, NamedTuple, Optional

from ...models.status import BLOCKING_STATUSES, AppointmentStatus
from .config import intervals_overlap, time_str_to_minutes


class BusyInterval(NamedTuple):
    start: int
    end: int
    appointment_id: Optional[int] = None


def occupied_interval(appointment, target_date: date) -> Optional[BusyInterval]:
    date_str = target_date.isoformat()
    status = AppointmentStatus(appointment.status)

    if status in BLOCKING_STATUSES and appointment.appointment_date == date_str:
        start = time_str_to_minutes(appointment.appointment_time)
    elif (
        status == AppointmentStatus.RESCHEDULED
        and appointment.new_date == date_str
        and appointment.new_time
    ):
        start = time_str_to_minutes(appointment.new_time)
    else:
        return None

    return BusyInterval(start, start + appointment.duration_minutes, appointment.id)


def busy_intervals(
    appointments: Iterable,
    target_date: date,
    exclude_appointment_id: Optional[int] = None,
) -> list[BusyInterval]:
    result = []
    for appt in appointments:
        if exclude_appointment_id is not None and appt.id == exclude_appointment_id:
            continue
        interval = occupied_interval(appt, target_date)
        if interval is not None:
            result.append(interval)
    return sorted(result)


def first_overlap(
    start: int,
    end: int,
    busy: Iterable[BusyInterval],
    buffer_minutes: int = 0,
) -> Optional[BusyInterval]:
    """First busy interval intersecting [start, end), with buffer kept on both sides."""
    for interval in busy:
        if intervals_overlap(start, end + buffer_minutes, interval.start, interval.end + buffer_minutes):
            return interval
    return None
