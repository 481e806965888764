"""
SchedulingService: the only way appointments are created or changed.

Every mutation runs as one unit of work on the caller's session:

1. validate input (no database access yet)
2. load what is needed, take the employee lock, check the slot
3. write, commit
4. notify the broadcaster once

Any failure in 2-3 rolls the session back and re-raises, so the stored
appointment is either fully updated or untouched.
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..database import begin_write
from ..errors import ConcurrentModification, NotFound, SlotUnavailable, ValidationError
from ..models.generated import Appointments, Employees
from ..models.status import BLOCKING_STATUSES, AppointmentStatus
from ..repositories import AppointmentRepository, CatalogRepository
from ..schemas.appointments import AppointmentCreate, AppointmentUpdate
from .broadcaster import ConsistencyBroadcaster
from .slots.calculator import TimeSlot, TimeSlotCalculator, fits_working_hours
from .slots.config import (
    BookingConfig,
    get_booking_config,
    minutes_to_time_str,
    parse_date,
    parse_time,
    time_str_to_minutes,
    validate_duration,
)
from .slots.conflicts import ConflictDetector
from .state_machine import (
    TERMINAL_STATUSES,
    TransitionContext,
    apply_transition,
    coerce_status,
    initial_status,
)

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("service_id", "employee_id", "appointment_date", "appointment_time")


class SchedulingService:

    def __init__(
        self,
        db: Session,
        broadcaster: ConsistencyBroadcaster,
        config: BookingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.broadcaster = broadcaster
        self.config = config or get_booking_config()
        self.clock = clock

        self.appointments = AppointmentRepository(db)
        self.catalog = CatalogRepository(db)
        self.calculator = TimeSlotCalculator(db, self.config)
        self.conflicts = ConflictDetector(db, self.config)

    # ── Reads ────────────────────────────────────────────────────────────

    def get_appointment(self, appointment_id: int) -> Appointments:
        appointment = self.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFound("Appointment", appointment_id)
        return appointment

    def list_appointments(
        self,
        merchant_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        client_phone: Optional[str] = None,
        target_date=None,
    ) -> list[Appointments]:
        """Dashboard listing: exactly one of merchant_id, employee_id, client_phone."""
        day = parse_date(target_date) if target_date is not None else None
        if merchant_id is not None:
            return self.appointments.list_for_merchant(merchant_id, day)
        if employee_id is not None:
            return self.appointments.list_for_employee(employee_id, day)
        if client_phone:
            return self.appointments.list_for_client(client_phone)
        raise ValidationError("One of merchant_id, employee_id or client_phone is required")

    def available_slots(
        self,
        employee_id: int,
        target_date,
        duration_minutes: Optional[int] = None,
        service_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[TimeSlot]:
        duration_minutes = self.resolve_duration(duration_minutes, service_id)
        return list(self.calculator.compute_slots(target_date, employee_id, duration_minutes, now=now))

    def resolve_duration(self, duration_minutes: Optional[int], service_id: Optional[int]) -> int:
        """Explicit duration wins; otherwise the duration of the service."""
        if duration_minutes is not None:
            return validate_duration(duration_minutes)
        if service_id is None:
            raise ValidationError("duration_minutes or service_id is required")
        return self._active_service(service_id).duration_minutes

    def check_availability(
        self,
        employee_id: Optional[int],
        target_date,
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> tuple[bool, Optional[int]]:
        """
        Whether the proposed slot could be booked right now.

        Returns (available, id of the colliding appointment if any). A day off
        or a slot outside working hours is unavailable without a collision id.
        """
        day = parse_date(target_date)
        start_time = parse_time(start_time)
        validate_duration(duration_minutes)
        if employee_id is None:
            return True, None

        employee = self._active_employee(employee_id)
        start = time_str_to_minutes(start_time)
        if self.catalog.is_day_off(employee_id, day) or not fits_working_hours(
            employee.work_schedule, day, start, start + duration_minutes
        ):
            return False, None

        conflict = self.conflicts.find_conflict(
            employee_id, day, start_time, duration_minutes, exclude_appointment_id
        )
        if conflict is not None:
            return False, conflict.appointment_id
        return True, None

    # ── Mutations ────────────────────────────────────────────────────────

    def create_appointment(self, request: AppointmentCreate) -> Appointments:
        day = parse_date(request.appointment_date)
        start_time = parse_time(request.appointment_time)
        client_name = _required_text(request.client_name, "client_name")
        client_phone = _required_text(request.client_phone, "client_phone")

        try:
            begin_write(self.db)
            service = self._active_service(request.service_id)

            exclude_id = None
            if request.rescheduled_from is not None:
                exclude_id = self._rescheduled_origin(request.rescheduled_from).id

            if request.employee_id is not None:
                employee = self._active_employee(request.employee_id, service.merchant_id)
                self._claim_slot(employee, day, start_time, service.duration_minutes, exclude_id)

            status = initial_status(request.channel)
            appointment = self.appointments.insert({
                "merchant_id": service.merchant_id,
                "service_id": service.id,
                "employee_id": request.employee_id,
                "client_name": client_name,
                "client_phone": client_phone,
                "client_email": request.client_email,
                "appointment_date": day.isoformat(),
                "appointment_time": start_time,
                "duration_minutes": service.duration_minutes,
                "status": status,
                "notes": request.notes,
            })
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            f"Appointment {appointment.id} created: {day.isoformat()} {start_time} "
            f"employee={request.employee_id} status={status.value}"
        )
        self._broadcast(appointment.id)
        return appointment

    def update_status(
        self,
        appointment_id: int,
        new_status,
        context: Optional[TransitionContext] = None,
        expected_status=None,
    ) -> Appointments:
        """
        Move an appointment to new_status.

        expected_status, when given, must match the stored status at load time;
        the write itself is always conditional on the status that was loaded.
        """
        target = coerce_status(new_status)
        expected = coerce_status(expected_status) if expected_status is not None else None

        try:
            begin_write(self.db)
            appointment = self.get_appointment(appointment_id)
            current = AppointmentStatus(appointment.status)
            if expected is not None and current != expected:
                raise ConcurrentModification(
                    f"Appointment {appointment_id} is '{current.value}', expected '{expected.value}'"
                )

            changes = apply_transition(appointment, target, context, self.clock())

            if target == AppointmentStatus.RESCHEDULED and appointment.employee_id is not None:
                employee = self._active_employee(appointment.employee_id)
                self._claim_slot(
                    employee,
                    parse_date(changes["new_date"]),
                    changes["new_time"],
                    appointment.duration_minutes,
                    exclude_appointment_id=appointment.id,
                )

            if not self.appointments.update_fields(appointment_id, changes, expected_status=current):
                raise ConcurrentModification(
                    f"Appointment {appointment_id} changed while moving to '{target.value}'"
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment_id}: {current.value} → {target.value}")
        self._broadcast(appointment_id)
        return appointment

    def reschedule(
        self,
        appointment_id: int,
        new_date,
        new_time: str,
        reason: Optional[str] = None,
    ) -> Appointments:
        context = TransitionContext(
            new_date=parse_date(new_date).isoformat(),
            new_time=parse_time(new_time),
            reschedule_reason=reason,
        )
        return self.update_status(appointment_id, AppointmentStatus.RESCHEDULED, context)

    def update_appointment(self, appointment_id: int, changes: AppointmentUpdate) -> Appointments:
        """
        Edit booking details. Status changes go through update_status().

        Moving a blocking appointment (service, employee, date or time) re-runs
        the slot checks with the appointment itself excluded.
        """
        data = changes.model_dump(exclude_unset=True)
        if "appointment_date" in data:
            data["appointment_date"] = parse_date(data["appointment_date"]).isoformat()
        if "appointment_time" in data:
            data["appointment_time"] = parse_time(data["appointment_time"])
        for field in ("client_name", "client_phone"):
            if field in data:
                data[field] = _required_text(data[field], field)
        if "service_id" in data and data["service_id"] is None:
            raise ValidationError("service_id cannot be cleared")

        try:
            begin_write(self.db)
            appointment = self.get_appointment(appointment_id)
            current = AppointmentStatus(appointment.status)
            moved = any(
                field in data and data[field] != getattr(appointment, field)
                for field in SLOT_FIELDS
            )

            if moved and current in TERMINAL_STATUSES:
                raise ValidationError(f"A {current.value} appointment cannot be moved")

            if "service_id" in data and data["service_id"] != appointment.service_id:
                service = self._active_service(data["service_id"])
                if service.merchant_id != appointment.merchant_id:
                    raise ValidationError("Service belongs to another merchant")
                data["duration_minutes"] = service.duration_minutes

            if moved and current in BLOCKING_STATUSES:
                employee_id = data.get("employee_id", appointment.employee_id)
                if employee_id is not None:
                    employee = self._active_employee(employee_id, appointment.merchant_id)
                    self._claim_slot(
                        employee,
                        parse_date(data.get("appointment_date", appointment.appointment_date)),
                        data.get("appointment_time", appointment.appointment_time),
                        data.get("duration_minutes", appointment.duration_minutes),
                        exclude_appointment_id=appointment.id,
                    )
            elif data.get("employee_id") is not None:
                self._active_employee(data["employee_id"], appointment.merchant_id)

            data["updated_at"] = self.clock()
            if not self.appointments.update_fields(appointment_id, data, expected_status=current):
                raise ConcurrentModification(f"Appointment {appointment_id} changed during edit")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(f"Appointment {appointment_id} updated: {sorted(data)}")
        self._broadcast(appointment_id)
        return appointment

    def delete_appointment(self, appointment_id: int) -> None:
        """Remove the row outright, whatever its status."""
        try:
            begin_write(self.db)
            appointment = self.get_appointment(appointment_id)
            status = AppointmentStatus(appointment.status)
            if not self.appointments.delete(appointment_id):
                raise ConcurrentModification(f"Appointment {appointment_id} was already removed")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if status in TERMINAL_STATUSES:
            logger.warning(f"Appointment {appointment_id} deleted with history status '{status.value}'")
        else:
            logger.info(f"Appointment {appointment_id} deleted")
        self._broadcast(appointment_id)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _active_service(self, service_id: int):
        service = self.catalog.get_service(service_id)
        if service is None or not service.is_active:
            raise NotFound("Service", service_id)
        return service

    def _active_employee(self, employee_id: int, merchant_id: Optional[int] = None) -> Employees:
        employee = self.catalog.get_employee(employee_id)
        if employee is None or not employee.is_active:
            raise NotFound("Employee", employee_id)
        if merchant_id is not None and employee.merchant_id != merchant_id:
            raise ValidationError(f"Employee {employee_id} belongs to another merchant")
        return employee

    def _rescheduled_origin(self, appointment_id: int) -> Appointments:
        origin = self.get_appointment(appointment_id)
        if AppointmentStatus(origin.status) != AppointmentStatus.RESCHEDULED:
            raise ValidationError(f"Appointment {appointment_id} has not been rescheduled")
        return origin

    def _claim_slot(
        self,
        employee: Employees,
        day: date,
        start_time: str,
        duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> None:
        """
        Lock the employee and make sure [start, start+duration) is free.

        Must run inside the transaction that writes the appointment.
        """
        self.appointments.lock_employee(employee.id)

        if self.catalog.is_day_off(employee.id, day):
            raise SlotUnavailable(f"Employee {employee.id} is off on {day.isoformat()}")

        start = time_str_to_minutes(start_time)
        end = start + duration_minutes
        if not fits_working_hours(employee.work_schedule, day, start, end):
            raise SlotUnavailable(
                f"{start_time}-{minutes_to_time_str(end)} on {day.isoformat()} "
                f"is outside working hours of employee {employee.id}"
            )

        conflict = self.conflicts.find_conflict(
            employee.id, day, start_time, duration_minutes, exclude_appointment_id
        )
        if conflict is not None:
            raise SlotUnavailable(
                f"{start_time}-{minutes_to_time_str(end)} on {day.isoformat()} overlaps "
                f"appointment {conflict.appointment_id} "
                f"({minutes_to_time_str(conflict.start)}-{minutes_to_time_str(conflict.end)})"
            )

    def _broadcast(self, appointment_id: int) -> None:
        try:
            self.broadcaster.notify_appointment_changed(appointment_id)
        except Exception:
            logger.exception(f"Broadcaster failed for appointment {appointment_id}")


def _required_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()
