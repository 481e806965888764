# backend/scheduler/services/slots/__init__.py
"""
Slots calculation module.

TimeSlotCalculator: bookable start times for an employee/day
ConflictDetector: overlap check for a single proposed appointment
"""

from .config import BookingConfig, get_booking_config
from .calculator import TimeSlot, TimeSlotCalculator, iter_day_slots
from .conflicts import ConflictDetector

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "TimeSlot",
    "TimeSlotCalculator",
    "iter_day_slots",
    "ConflictDetector",
]
