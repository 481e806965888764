# backend/scheduler/schemas/employees.py

import json
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _check_schedule(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        raise ValueError("work_schedule must be a JSON object")
    if not isinstance(parsed, dict):
        raise ValueError("work_schedule must be a JSON object")
    for day, hours in parsed.items():
        if not _valid_day_hours(hours):
            raise ValueError(
                f"work_schedule[{day!r}] must be null, a start/end object or a list of [start, end] pairs"
            )
    return value


def _valid_day_hours(hours) -> bool:
    if hours is None:
        return True
    if isinstance(hours, dict):
        return isinstance(hours.get("start"), str) and isinstance(hours.get("end"), str)
    if isinstance(hours, list):
        return all(
            isinstance(pair, list) and len(pair) == 2 and all(isinstance(v, str) for v in pair)
            for pair in hours
        )
    return False


class EmployeeCreate(BaseModel):
    merchant_id: int
    name: str
    work_schedule: str = "{}"

    model_config = {"from_attributes": True}

    @field_validator("work_schedule")
    @classmethod
    def validate_schedule(cls, v: str) -> str:
        return _check_schedule(v)


class EmployeeUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    work_schedule: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("work_schedule")
    @classmethod
    def validate_schedule(cls, v: Optional[str]) -> Optional[str]:
        return _check_schedule(v)


class EmployeeRead(BaseModel):
    id: int
    merchant_id: int
    name: str
    work_schedule: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DayOffCreate(BaseModel):
    date: str = Field(description="Date in YYYY-MM-DD format")
    reason: Optional[str] = None


class DayOffRead(BaseModel):
    id: int
    employee_id: int
    date: str
    reason: Optional[str] = None

    model_config = {"from_attributes": True}
