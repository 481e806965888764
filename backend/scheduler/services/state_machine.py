"""
Appointment status transitions.

The happy path is pending → scheduled → confirmed → in_progress → completed,
with late as a detour from scheduled/confirmed and cancelled/no_show as
exits. TRANSITIONS below is the complete table: no_show is reached only from
confirmed or late, so a scheduled booking whose client never comes goes
through late first.

Any non-terminal status may also move to rescheduled, which records the
new date/time on the same row. completed, cancelled, no_show and
rescheduled accept nothing further; a status never transitions to itself.

apply_transition() only computes the column changes. It never touches the
database and raises before returning anything when the change is illegal.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..errors import InvalidTransition, ValidationError
from ..models.status import AppointmentStatus, BookingChannel
from .slots.config import parse_date, parse_time

S = AppointmentStatus

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.PENDING: frozenset({S.SCHEDULED, S.CONFIRMED, S.CANCELLED, S.RESCHEDULED}),
    S.SCHEDULED: frozenset({S.CONFIRMED, S.CANCELLED, S.LATE, S.RESCHEDULED}),
    S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED, S.LATE, S.NO_SHOW, S.RESCHEDULED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED, S.RESCHEDULED}),
    S.LATE: frozenset({S.CONFIRMED, S.IN_PROGRESS, S.NO_SHOW, S.CANCELLED, S.RESCHEDULED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
    S.RESCHEDULED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


@dataclass
class TransitionContext:
    """Extra input some transitions need or accept."""
    new_date: Optional[str] = None
    new_time: Optional[str] = None
    reschedule_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    arrival_time: Optional[str] = None


def coerce_status(value) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown appointment status '{value}'")


def initial_status(channel: BookingChannel) -> AppointmentStatus:
    """Self-service client bookings await confirmation; merchant bookings don't."""
    if BookingChannel(channel) == BookingChannel.MERCHANT:
        return S.SCHEDULED
    return S.PENDING


def allowed_targets(current) -> frozenset[AppointmentStatus]:
    return TRANSITIONS[coerce_status(current)]


def can_transition(current, target) -> bool:
    return coerce_status(target) in allowed_targets(current)


def apply_transition(
    appointment,
    target,
    context: Optional[TransitionContext] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Validate a status change and return the columns to write.

    Raises:
        ValidationError: unknown status or missing/malformed context fields
        InvalidTransition: (current, target) is not in the table, or the
            appointment is being completed without ever having started
    """
    current = coerce_status(appointment.status)
    target = coerce_status(target)
    context = context or TransitionContext()
    now = now or datetime.now()

    if target not in TRANSITIONS[current]:
        raise InvalidTransition(current.value, target.value)

    changes: dict[str, Any] = {"status": target, "updated_at": now}

    if target == S.IN_PROGRESS:
        changes["actual_start_time"] = now

    elif target == S.COMPLETED:
        if appointment.actual_start_time is None:
            raise InvalidTransition(
                current.value,
                target.value,
                "Cannot complete an appointment that never started",
            )
        changes["actual_end_time"] = now

    elif target == S.RESCHEDULED:
        if not context.new_date or not context.new_time:
            raise ValidationError("new_date and new_time are required to reschedule")
        changes["new_date"] = parse_date(context.new_date).isoformat()
        changes["new_time"] = parse_time(context.new_time)
        changes["reschedule_reason"] = context.reschedule_reason

    elif target == S.CANCELLED and context.cancel_reason:
        changes["cancel_reason"] = context.cancel_reason

    if context.arrival_time:
        changes["arrival_time"] = parse_time(context.arrival_time)

    return changes
