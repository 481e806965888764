"""
Tests for slot calculation.

- pure grid generation (iter_day_slots)
- working schedule formats
- store-backed computation: bookings, days off, closed days
"""

import json
from datetime import date, datetime

import pytest

from conftest import MONDAY, SUNDAY, TUESDAY
from scheduler.errors import NotFound, ValidationError
from scheduler.models.status import AppointmentStatus as S
from scheduler.services.slots import BookingConfig, TimeSlotCalculator, iter_day_slots
from scheduler.services.slots.calculator import fits_working_hours, get_day_intervals, working_intervals
from scheduler.services.slots.config import time_str_to_minutes
from scheduler.services.slots.occupancy import BusyInterval

NINE_TO_SIX = [(9 * 60, 18 * 60)]


def starts(slots, available=None):
    return [s.start_time for s in slots if available is None or s.available == available]


class TestIterDaySlots:

    def test_one_hour_service_around_existing_booking(self):
        busy = [BusyInterval(10 * 60, 11 * 60, 1)]
        slots = list(iter_day_slots(NINE_TO_SIX, 60, busy, BookingConfig(slot_step_minutes=30)))

        assert starts(slots, available=False) == ["09:30", "10:00", "10:30"]
        assert starts(slots, available=True)[:3] == ["09:00", "11:00", "11:30"]
        assert starts(slots)[-1] == "17:00"

    @pytest.mark.parametrize("duration", [15, 30, 45, 60, 90, 120, 240, 540])
    def test_no_slot_runs_past_closing(self, duration):
        for step in (15, 30, 60):
            slots = list(iter_day_slots(NINE_TO_SIX, duration, [], BookingConfig(slot_step_minutes=step)))
            assert slots
            for slot in slots:
                assert time_str_to_minutes(slot.start_time) + duration <= 18 * 60

    def test_duration_longer_than_day_yields_nothing(self):
        assert list(iter_day_slots(NINE_TO_SIX, 600, [], BookingConfig())) == []

    def test_back_to_back_allowed_without_buffer(self):
        busy = [BusyInterval(10 * 60, 11 * 60, 1)]
        slots = {s.start_time: s.available for s in iter_day_slots(NINE_TO_SIX, 60, busy, BookingConfig())}
        assert slots["09:00"] is True
        assert slots["11:00"] is True

    def test_buffer_is_kept_on_both_sides(self):
        busy = [BusyInterval(10 * 60, 11 * 60, 1)]
        config = BookingConfig(slot_step_minutes=15, buffer_minutes=15)
        slots = {s.start_time: s.available for s in iter_day_slots(NINE_TO_SIX, 30, busy, config)}

        assert slots["09:15"] is True
        assert slots["09:30"] is False
        assert slots["11:00"] is False
        assert slots["11:15"] is True

    def test_not_before_marks_earlier_slots_unavailable(self):
        slots = list(iter_day_slots(NINE_TO_SIX, 30, [], BookingConfig(), not_before=11 * 60 + 10))
        assert starts(slots, available=True)[0] == "11:30"
        assert "11:00" in starts(slots, available=False)

    def test_restartable(self):
        config = BookingConfig()
        first = list(iter_day_slots(NINE_TO_SIX, 60, [], config))
        second = list(iter_day_slots(NINE_TO_SIX, 60, [], config))
        assert first == second


class TestBookingConfig:

    @pytest.mark.parametrize("step", [15, 30, 60])
    def test_slots_per_day(self, step):
        assert BookingConfig(slot_step_minutes=step).slots_per_day == 24 * 60 // step

    def test_rejects_unsupported_step(self):
        with pytest.raises(ValueError):
            BookingConfig(slot_step_minutes=20)

    def test_rejects_negative_buffer(self):
        with pytest.raises(ValueError):
            BookingConfig(buffer_minutes=-5)


class TestWorkSchedule:

    def test_named_keys(self):
        schedule = {"mon": {"start": "10:00", "end": "14:00"}, "tue": None}
        assert get_day_intervals(schedule, date(2030, 1, 7)) == [["10:00", "14:00"]]
        assert get_day_intervals(schedule, date(2030, 1, 8)) == []

    def test_numeric_keys_with_break(self):
        schedule = '{"0": [["09:00", "12:00"], ["13:00", "17:00"]]}'
        assert working_intervals(schedule, date(2030, 1, 7)) == [(540, 720), (780, 1020)]

    def test_unreadable_schedule_is_closed(self):
        assert working_intervals("not json", date(2030, 1, 7)) == []
        assert working_intervals(None, date(2030, 1, 7)) == []

    def test_fits_working_hours_needs_one_interval(self):
        schedule = '{"mon": [["09:00", "12:00"], ["13:00", "17:00"]]}'
        day = date(2030, 1, 7)
        assert fits_working_hours(schedule, day, 11 * 60, 12 * 60)
        assert not fits_working_hours(schedule, day, 11 * 60 + 30, 12 * 60 + 30)
        assert not fits_working_hours(schedule, day, 16 * 60 + 30, 17 * 60 + 30)

    @pytest.mark.parametrize("schedule", [
        {"0": [9, 18]},
        {"0": ["09:00", "18:00"]},
        {"0": [["09:00"]]},
        {"mon": {"start": 9, "end": 18}},
        {"mon": [[9, 18], None]},
    ])
    def test_malformed_intervals_are_skipped(self, schedule):
        assert working_intervals(json.dumps(schedule), date(2030, 1, 7)) == []

    def test_malformed_interval_does_not_hide_valid_ones(self):
        schedule = json.dumps({"0": [[9, 12], ["13:00", "17:00"]]})
        assert working_intervals(schedule, date(2030, 1, 7)) == [(780, 1020)]


class TestTimeSlotCalculator:

    def test_existing_confirmed_booking(self, db, seed, add_appointment, booking_config):
        add_appointment("10:00", S.CONFIRMED)
        slots = list(TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, seed.employee, 60))

        assert starts(slots, available=False) == ["09:30", "10:00", "10:30"]
        available = starts(slots, available=True)
        assert available[0] == "09:00"
        assert available[1:] == [f"{h:02d}:{m:02d}" for h in range(11, 18) for m in (0, 30)][:-1]

    @pytest.mark.parametrize("status", [S.PENDING, S.SCHEDULED, S.CONFIRMED, S.IN_PROGRESS, S.LATE])
    def test_blocking_statuses_block(self, db, seed, add_appointment, booking_config, status):
        add_appointment("12:00", status, duration_minutes=30)
        slots = {s.start_time: s.available for s in TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, seed.employee, 30)}
        assert slots["12:00"] is False

    @pytest.mark.parametrize("status", [S.COMPLETED, S.CANCELLED, S.NO_SHOW])
    def test_non_blocking_statuses_free_the_slot(self, db, seed, add_appointment, booking_config, status):
        add_appointment("12:00", status, duration_minutes=30)
        slots = {s.start_time: s.available for s in TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, seed.employee, 30)}
        assert slots["12:00"] is True

    def test_employee_with_malformed_schedule_has_no_slots(self, db, seed, add_employee, booking_config):
        employee_id = add_employee(seed.merchant, schedule={"0": [9, 18]})
        assert list(TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, employee_id, 30)) == []

    def test_rescheduled_record_occupies_its_new_slot(self, db, seed, add_appointment, booking_config):
        add_appointment(
            "10:00",
            S.RESCHEDULED,
            duration_minutes=30,
            new_date=TUESDAY,
            new_time="15:00",
        )
        calculator = TimeSlotCalculator(db, booking_config)

        monday = {s.start_time: s.available for s in calculator.compute_slots(MONDAY, seed.employee, 30)}
        tuesday = {s.start_time: s.available for s in calculator.compute_slots(TUESDAY, seed.employee, 30)}
        assert monday["10:00"] is True
        assert tuesday["15:00"] is False

    def test_unassigned_booking_does_not_block(self, db, seed, add_appointment, booking_config):
        add_appointment("10:00", S.CONFIRMED, employee_id=None)
        slots = list(TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, seed.employee, 60))
        assert all(s.available for s in slots)

    def test_closed_weekday_is_empty(self, db, seed, booking_config):
        assert list(TimeSlotCalculator(db, booking_config).compute_slots(SUNDAY, seed.employee, 30)) == []

    def test_day_off_is_empty(self, db, seed, add_day_off, booking_config):
        add_day_off(seed.employee, MONDAY)
        assert list(TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, seed.employee, 30)) == []

    def test_inactive_employee_is_empty(self, db, seed, add_employee, booking_config):
        employee_id = add_employee(seed.merchant, is_active=0)
        assert list(TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, employee_id, 30)) == []

    def test_unknown_employee(self, db, seed, booking_config):
        with pytest.raises(NotFound):
            TimeSlotCalculator(db, booking_config).compute_slots(MONDAY, 999, 30)

    @pytest.mark.parametrize("day,duration", [("2030-02-30", 30), ("07/01/2030", 30), (MONDAY, 0), (MONDAY, -30)])
    def test_invalid_input(self, db, seed, booking_config, day, duration):
        with pytest.raises(ValidationError):
            TimeSlotCalculator(db, booking_config).compute_slots(day, seed.employee, duration)

    def test_each_call_reads_fresh_data(self, db, seed, add_appointment, booking_config):
        calculator = TimeSlotCalculator(db, booking_config)
        before = list(calculator.compute_slots(MONDAY, seed.employee, 30))
        db.rollback()

        add_appointment("09:00", S.SCHEDULED, duration_minutes=30)
        after = list(calculator.compute_slots(MONDAY, seed.employee, 30))

        assert before[0].available is True
        assert after[0].available is False

    def test_min_advance_applies_when_now_given(self, db, seed):
        config = BookingConfig(min_advance_minutes=60)
        calculator = TimeSlotCalculator(db, config)
        slots = list(calculator.compute_slots(MONDAY, seed.employee, 30, now=datetime(2030, 1, 7, 10, 10)))

        assert starts(slots, available=True)[0] == "11:30"
        assert all(s.available for s in calculator.compute_slots(MONDAY, seed.employee, 30))
