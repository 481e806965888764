"""
Late-arrival checker.

Periodically finds today's scheduled/confirmed appointments whose start
time passed more than late_tolerance_minutes ago and moves them to "late".

Runs as an asyncio task in the app lifespan.
Uses the synchronous session (via asyncio.to_thread).
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import SchedulingError
from ..models.status import AppointmentStatus
from .broadcaster import ConsistencyBroadcaster
from .scheduling import SchedulingService
from .slots.config import BookingConfig, get_booking_config, time_str_to_minutes

logger = logging.getLogger(__name__)

LATE_CANDIDATES = [AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]


async def late_checker_loop(
    session_factory: Callable[[], Session],
    broadcaster: ConsistencyBroadcaster,
    interval_seconds: int = 60,
) -> None:
    """Mark overdue appointments as late every interval_seconds."""
    logger.info("late_checker_loop started")

    try:
        while True:
            try:
                await asyncio.to_thread(mark_late_appointments, session_factory, broadcaster)
            except asyncio.CancelledError:
                logger.info("late_checker_loop cancelled")
                raise
            except Exception:
                logger.exception("late_checker_loop error")

            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        pass


def mark_late_appointments(
    session_factory: Callable[[], Session],
    broadcaster: ConsistencyBroadcaster,
    now: datetime | None = None,
    config: BookingConfig | None = None,
) -> list[int]:
    """Run one pass. Returns ids of appointments moved to late."""
    config = config or get_booking_config()
    now = now or datetime.now()
    now_min = now.hour * 60 + now.minute
    marked = []

    db = session_factory()
    try:
        service = SchedulingService(db, broadcaster, config, clock=lambda: now)
        candidates = [
            (appt.id, AppointmentStatus(appt.status), appt.appointment_time)
            for appt in service.appointments.list_by_date_and_status(now.date(), LATE_CANDIDATES)
        ]
        # end the read transaction before the per-appointment writes
        db.rollback()

        for appointment_id, status, start_time in candidates:
            if time_str_to_minutes(start_time) + config.late_tolerance_minutes > now_min:
                continue
            try:
                service.update_status(
                    appointment_id,
                    AppointmentStatus.LATE,
                    expected_status=status,
                )
            except SchedulingError as e:
                # someone else moved it first
                logger.info(f"Appointment {appointment_id} not marked late: {e.message}")
                continue
            marked.append(appointment_id)
    finally:
        db.close()

    if marked:
        logger.info(f"Marked {len(marked)} appointment(s) late: {marked}")
    return marked
