# backend/scheduler/errors.py
"""
Failure kinds raised by the scheduling core.

Every core operation either returns its result or raises exactly one of
these. The HTTP layer maps them to status codes in main.py.
"""


class SchedulingError(Exception):
    """Base class for scheduling failures."""

    kind = "scheduling_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed input: bad date/time format, non-positive duration, etc."""

    kind = "validation_error"
    status_code = 422


class NotFound(SchedulingError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class SlotUnavailable(SchedulingError):
    kind = "slot_unavailable"
    status_code = 409


class InvalidTransition(SchedulingError):
    kind = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str, message: str | None = None):
        super().__init__(
            message or f"Cannot change status from '{current}' to '{requested}'"
        )
        self.current = current
        self.requested = requested


class ConcurrentModification(SchedulingError):
    """The stored status changed between load and write."""

    kind = "concurrent_modification"
    status_code = 409


class ServiceInUse(SchedulingError):
    kind = "service_in_use"
    status_code = 409
