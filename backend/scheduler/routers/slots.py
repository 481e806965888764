# backend/scheduler/routers/slots.py
"""
Slots API endpoints.

GET /slots/day - candidate slots of one employee for one day
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..schemas.slots import SlotInfo, SlotsDayResponse
from ..dependencies import get_scheduling_service
from ..services.scheduling import SchedulingService
from ..services.slots.config import parse_date


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/day", response_model=SlotsDayResponse)
def get_slots_day(
    employee_id: int,
    target_date: str = Query(..., alias="date"),
    service_id: Optional[int] = None,
    duration: Optional[int] = None,
    only_available: bool = False,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Slots for a service (or a raw duration) on a specific day."""
    duration_min = service.resolve_duration(duration, service_id)
    slots = service.available_slots(
        employee_id,
        target_date,
        duration_minutes=duration_min,
        now=datetime.now() if service.config.min_advance_minutes else None,
    )
    if only_available:
        slots = [s for s in slots if s.available]

    return SlotsDayResponse(
        employee_id=employee_id,
        date=parse_date(target_date),
        service_duration_min=duration_min,
        slot_step_minutes=service.config.slot_step_minutes,
        slots=[
            SlotInfo(time=s.start_time, duration_minutes=s.duration_minutes, is_available=s.available)
            for s in slots
        ],
    )
