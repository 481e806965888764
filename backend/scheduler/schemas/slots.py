# backend/scheduler/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date

from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """Information about a single slot."""
    time: str  # "HH:MM"
    duration_minutes: int
    is_available: bool

    model_config = {"from_attributes": True}


class SlotsDayResponse(BaseModel):
    """Candidate slots of one employee for one day."""
    employee_id: int
    date: date
    service_duration_min: int
    slot_step_minutes: int = Field(description="Grid step in minutes (15/30/60)")
    slots: list[SlotInfo]

    model_config = {"from_attributes": True}
