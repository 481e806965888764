from .generated import (
    Base,
    Merchants,
    Services,
    Employees,
    EmployeeDaysOff,
    Appointments,
)
from .status import AppointmentStatus, BLOCKING_STATUSES, BookingChannel

__all__ = [
    "Base",
    "Merchants",
    "Services",
    "Employees",
    "EmployeeDaysOff",
    "Appointments",
    "AppointmentStatus",
    "BLOCKING_STATUSES",
    "BookingChannel",
]
