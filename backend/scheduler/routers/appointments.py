# backend/scheduler/routers/appointments.py
"""
Appointment endpoints.

Thin layer over SchedulingService: every write goes through it, and its
errors are turned into responses by the handler registered in main.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from ..dependencies import get_scheduling_service, get_view_cache
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentUpdate,
    AvailabilityCheck,
    AvailabilityResponse,
    RescheduleRequest,
    StatusUpdate,
)
from ..services.scheduling import SchedulingService
from ..services.state_machine import TransitionContext
from ..services.view_cache import AppointmentViewCache

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("/", response_model=list[AppointmentRead])
def list_appointments(
    merchant_id: Optional[int] = None,
    employee_id: Optional[int] = None,
    client_phone: Optional[str] = None,
    date: Optional[str] = None,
    service: SchedulingService = Depends(get_scheduling_service),
    cache: AppointmentViewCache = Depends(get_view_cache),
):
    """Dashboard listing for a merchant, an employee or a client."""
    if merchant_id is not None:
        scope, scope_id = "merchant", merchant_id
    elif employee_id is not None:
        scope, scope_id = "employee", employee_id
    else:
        scope, scope_id = "client", client_phone
    cache_id = f"{scope_id}:{date or 'all'}"

    # read before the query so a concurrent mutation retires what we store
    generation = cache.generation()
    cached = cache.get(scope, cache_id, generation)
    if cached is not None:
        return cached

    items = service.list_appointments(
        merchant_id=merchant_id,
        employee_id=employee_id,
        client_phone=client_phone,
        target_date=date,
    )
    payload = [AppointmentRead.model_validate(obj).model_dump(mode="json") for obj in items]
    cache.set(scope, cache_id, generation, payload)
    return payload


@router.post("/check-availability", response_model=AvailabilityResponse)
def check_availability(
    data: AvailabilityCheck,
    service: SchedulingService = Depends(get_scheduling_service),
):
    available, conflicting_id = service.check_availability(
        data.employee_id,
        data.date,
        data.start_time,
        data.duration_minutes,
        data.exclude_appointment_id,
    )
    return AvailabilityResponse(available=available, conflicting_appointment_id=conflicting_id)


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, service: SchedulingService = Depends(get_scheduling_service)):
    return service.get_appointment(id)


@router.post("/", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.create_appointment(data)


@router.patch("/{id}", response_model=AppointmentRead)
def update_appointment(
    id: int,
    data: AppointmentUpdate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.update_appointment(id, data)


@router.post("/{id}/status", response_model=AppointmentRead)
def update_status(
    id: int,
    data: StatusUpdate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    context = TransitionContext(
        new_date=data.new_date,
        new_time=data.new_time,
        reschedule_reason=data.reschedule_reason,
        cancel_reason=data.cancel_reason,
        arrival_time=data.arrival_time,
    )
    return service.update_status(id, data.status, context, expected_status=data.expected_status)


@router.post("/{id}/reschedule", response_model=AppointmentRead)
def reschedule_appointment(
    id: int,
    data: RescheduleRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.reschedule(id, data.new_date, data.new_time, data.reason)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(id: int, service: SchedulingService = Depends(get_scheduling_service)):
    service.delete_appointment(id)
