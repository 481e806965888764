# backend/scheduler/schemas/services.py

from typing import Optional

from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    merchant_id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0)
    price: int = Field(ge=0, description="Price in cents")

    model_config = {"from_attributes": True}


class ServiceUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    price: Optional[int] = Field(None, ge=0)

    model_config = {"from_attributes": True}


class ServiceRead(BaseModel):
    id: int
    merchant_id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: int
    is_active: bool

    model_config = {"from_attributes": True}
