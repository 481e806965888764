import enum


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    LATE = "late"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


# Statuses that occupy their slot for conflict purposes
BLOCKING_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.LATE,
})


class BookingChannel(str, enum.Enum):
    """Who created the booking; decides the initial status."""
    CLIENT = "client"
    MERCHANT = "merchant"
