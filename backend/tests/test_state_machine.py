"""
Unit tests for the appointment status table and transition side effects.

No database: apply_transition() works on any object with the right attributes.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from scheduler.errors import InvalidTransition, ValidationError
from scheduler.models.status import AppointmentStatus as S, BookingChannel
from scheduler.services.state_machine import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    TransitionContext,
    apply_transition,
    can_transition,
    coerce_status,
    initial_status,
)

NOW = datetime(2030, 1, 7, 10, 0)

LISTED = {
    S.PENDING: {S.SCHEDULED, S.CONFIRMED, S.CANCELLED},
    S.SCHEDULED: {S.CONFIRMED, S.CANCELLED, S.LATE},
    S.CONFIRMED: {S.IN_PROGRESS, S.CANCELLED, S.LATE, S.NO_SHOW},
    S.IN_PROGRESS: {S.COMPLETED, S.CANCELLED},
    S.LATE: {S.CONFIRMED, S.IN_PROGRESS, S.NO_SHOW, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
    S.NO_SHOW: set(),
    S.RESCHEDULED: set(),
}


def appointment(status, actual_start_time=None):
    return SimpleNamespace(status=status, actual_start_time=actual_start_time)


def reschedule_context():
    return TransitionContext(new_date="2030-01-08", new_time="11:00")


class TestTransitionTable:

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELLED, S.NO_SHOW, S.RESCHEDULED}

    def test_every_non_terminal_status_can_be_rescheduled(self):
        for status in S:
            assert can_transition(status, S.RESCHEDULED) == (status not in TERMINAL_STATUSES)

    def test_table_matches_listed_pairs(self):
        for current in S:
            expected = set(LISTED[current])
            if current not in TERMINAL_STATUSES:
                expected.add(S.RESCHEDULED)
            assert set(TRANSITIONS[current]) == expected, current

    def test_no_show_only_from_confirmed_or_late(self):
        assert {s for s in S if can_transition(s, S.NO_SHOW)} == {S.CONFIRMED, S.LATE}

    @pytest.mark.parametrize("current", list(S))
    def test_unlisted_pairs_raise_invalid_transition(self, current):
        for target in S:
            if target in TRANSITIONS[current]:
                continue
            context = reschedule_context() if target == S.RESCHEDULED else None
            with pytest.raises(InvalidTransition) as exc_info:
                apply_transition(
                    appointment(current, actual_start_time=NOW), target, context, NOW
                )
            assert exc_info.value.current == current.value
            assert exc_info.value.requested == target.value

    @pytest.mark.parametrize("status", list(S))
    def test_self_transition_is_rejected(self, status):
        context = reschedule_context() if status == S.RESCHEDULED else None
        with pytest.raises(InvalidTransition):
            apply_transition(appointment(status, actual_start_time=NOW), status, context, NOW)

    @pytest.mark.parametrize("target", [s for s in S if s != S.COMPLETED])
    def test_completed_accepts_nothing(self, target):
        with pytest.raises(InvalidTransition):
            apply_transition(appointment(S.COMPLETED, actual_start_time=NOW), target, reschedule_context(), NOW)


class TestInitialStatus:

    def test_client_booking_is_pending(self):
        assert initial_status(BookingChannel.CLIENT) == S.PENDING

    def test_merchant_booking_is_scheduled(self):
        assert initial_status(BookingChannel.MERCHANT) == S.SCHEDULED
        assert initial_status("merchant") == S.SCHEDULED


class TestSideEffects:

    def test_in_progress_sets_actual_start(self):
        changes = apply_transition(appointment(S.CONFIRMED), S.IN_PROGRESS, now=NOW)
        assert changes["status"] == S.IN_PROGRESS
        assert changes["actual_start_time"] == NOW
        assert changes["updated_at"] == NOW

    def test_completed_sets_actual_end(self):
        started = datetime(2030, 1, 7, 9, 0)
        changes = apply_transition(appointment(S.IN_PROGRESS, started), S.COMPLETED, now=NOW)
        assert changes["actual_end_time"] == NOW
        assert "actual_start_time" not in changes

    def test_completed_requires_start(self):
        with pytest.raises(InvalidTransition, match="never started"):
            apply_transition(appointment(S.IN_PROGRESS), S.COMPLETED, now=NOW)

    def test_rescheduled_records_new_slot(self):
        context = TransitionContext(new_date="2030-01-08", new_time="09:05", reschedule_reason="client asked")
        changes = apply_transition(appointment(S.CONFIRMED), S.RESCHEDULED, context, NOW)
        assert changes["new_date"] == "2030-01-08"
        assert changes["new_time"] == "09:05"
        assert changes["reschedule_reason"] == "client asked"

    def test_rescheduled_reason_is_optional(self):
        changes = apply_transition(appointment(S.PENDING), S.RESCHEDULED, reschedule_context(), NOW)
        assert changes["reschedule_reason"] is None

    @pytest.mark.parametrize(
        "context",
        [
            None,
            TransitionContext(new_date="2030-01-08"),
            TransitionContext(new_time="11:00"),
            TransitionContext(new_date="08.01.2030", new_time="11:00"),
            TransitionContext(new_date="2030-01-08", new_time="25:00"),
        ],
    )
    def test_rescheduled_requires_valid_new_slot(self, context):
        with pytest.raises(ValidationError):
            apply_transition(appointment(S.CONFIRMED), S.RESCHEDULED, context, NOW)

    def test_cancel_reason_is_stored(self):
        changes = apply_transition(
            appointment(S.SCHEDULED), S.CANCELLED, TransitionContext(cancel_reason="sick"), NOW
        )
        assert changes == {"status": S.CANCELLED, "updated_at": NOW, "cancel_reason": "sick"}

    def test_no_show_needs_no_context(self):
        changes = apply_transition(appointment(S.CONFIRMED), S.NO_SHOW, now=NOW)
        assert changes == {"status": S.NO_SHOW, "updated_at": NOW}

    def test_arrival_time_is_recorded_on_any_transition(self):
        changes = apply_transition(
            appointment(S.LATE), S.IN_PROGRESS, TransitionContext(arrival_time="10:07"), NOW
        )
        assert changes["arrival_time"] == "10:07"


class TestCoerceStatus:

    def test_accepts_strings_and_members(self):
        assert coerce_status("late") == S.LATE
        assert coerce_status(S.LATE) == S.LATE

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationError):
            coerce_status("archived")
