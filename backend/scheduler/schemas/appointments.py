# backend/scheduler/schemas/appointments.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.status import AppointmentStatus, BookingChannel


class AppointmentCreate(BaseModel):
    service_id: int
    employee_id: Optional[int] = None

    client_name: str
    client_phone: str
    client_email: Optional[str] = None

    appointment_date: str = Field(description="Date in YYYY-MM-DD format")
    appointment_time: str = Field(description="Time in HH:MM format")

    notes: Optional[str] = None
    channel: BookingChannel = BookingChannel.CLIENT
    rescheduled_from: Optional[int] = Field(
        None,
        description="Id of the rescheduled appointment whose new slot this booking takes over",
    )

    model_config = {"from_attributes": True}


class AppointmentUpdate(BaseModel):
    service_id: Optional[int] = None
    employee_id: Optional[int] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class AppointmentRead(BaseModel):
    id: int

    merchant_id: int
    service_id: int
    employee_id: Optional[int] = None

    client_name: str
    client_phone: str
    client_email: Optional[str] = None

    appointment_date: str
    appointment_time: str
    duration_minutes: int

    status: AppointmentStatus
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None

    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    reschedule_reason: Optional[str] = None
    new_date: Optional[str] = None
    new_time: Optional[str] = None
    arrival_time: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    expected_status: Optional[AppointmentStatus] = Field(
        None,
        description="Fail with 409 if the stored status is no longer this one",
    )
    new_date: Optional[str] = None
    new_time: Optional[str] = None
    reschedule_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    arrival_time: Optional[str] = None


class RescheduleRequest(BaseModel):
    new_date: str = Field(description="Date in YYYY-MM-DD format")
    new_time: str = Field(description="Time in HH:MM format")
    reason: Optional[str] = None


class AvailabilityCheck(BaseModel):
    employee_id: Optional[int] = None
    date: str
    start_time: str
    duration_minutes: int
    exclude_appointment_id: Optional[int] = None


class AvailabilityResponse(BaseModel):
    available: bool
    conflicting_appointment_id: Optional[int] = None
