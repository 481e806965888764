# backend/scheduler/services/slots/config.py
"""
Booking configuration and time helpers for slot calculation.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache

from ...config import settings
from ...errors import ValidationError

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for booking/slots system.

    Attributes:
        slot_step_minutes: Candidate start grid in minutes (15/30/60)
        buffer_minutes: Gap kept free after every booking (0 = back-to-back allowed)
        min_advance_minutes: Minimum lead time before a slot can be booked
        late_tolerance_minutes: Minutes after start before an appointment counts as late
    """
    slot_step_minutes: int = 30  # 15 / 30 / 60
    buffer_minutes: int = 0
    min_advance_minutes: int = 0
    late_tolerance_minutes: int = 15

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must be >= 0, got {self.buffer_minutes}")
        if self.min_advance_minutes < 0:
            raise ValueError(f"min_advance_minutes must be >= 0, got {self.min_advance_minutes}")

    @property
    def slots_per_day(self) -> int:
        """
        Number of grid positions in a day.

        - 15 min → 96 slots
        - 30 min → 48 slots
        - 60 min → 24 slots
        """
        return (24 * 60) // self.slot_step_minutes


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton) built from settings."""
    return BookingConfig(
        slot_step_minutes=settings.slot_step_minutes,
        buffer_minutes=settings.buffer_minutes,
        min_advance_minutes=settings.min_advance_minutes,
        late_tolerance_minutes=settings.late_tolerance_minutes,
    )


# ── Time helpers ─────────────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight ("24:00" is end of day)."""
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open intersection of [start_a, end_a) and [start_b, end_b)."""
    return start_a < end_b and start_b < end_a


def parse_date(value) -> date:
    """Parse an ISO "YYYY-MM-DD" date (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Date must be in YYYY-MM-DD format, got '{value}'")


def parse_time(value) -> str:
    """Validate a 24-hour "HH:MM" time and return it normalised."""
    match = _TIME_RE.match(str(value).strip()) if value is not None else None
    if not match:
        raise ValidationError(f"Time must be in HH:MM format, got '{value}'")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Time out of range: '{value}'")
    return f"{hours:02d}:{minutes:02d}"


def validate_duration(duration_minutes) -> int:
    if not isinstance(duration_minutes, int) or isinstance(duration_minutes, bool) or duration_minutes <= 0:
        raise ValidationError(f"Duration must be a positive number of minutes, got {duration_minutes!r}")
    return duration_minutes
