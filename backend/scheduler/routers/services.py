# backend/scheduler/routers/services.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active), refused while future bookings use it

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import begin_write, get_db
from ..errors import ServiceInUse
from ..models.generated import Services as DBServices
from ..repositories import CatalogRepository
from ..schemas.services import (
    ServiceCreate,
    ServiceUpdate,
    ServiceRead,
)

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/", response_model=list[ServiceRead])
def list_services(merchant_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(DBServices).filter(DBServices.is_active == 1)
    if merchant_id is not None:
        query = query.filter(DBServices.merchant_id == merchant_id)
    return query.all()


@router.get("/{id}", response_model=ServiceRead)
def get_service(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=ServiceRead, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceCreate,
    db: Session = Depends(get_db),
):
    obj = DBServices(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=ServiceRead)
def update_service(
    id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
):
    begin_write(db)
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_active") is False and obj.is_active:
        _ensure_unbooked(db, id)

    for field, value in changes.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(id: int, db: Session = Depends(get_db)):
    begin_write(db)
    obj = db.get(DBServices, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    _ensure_unbooked(db, id)

    obj.is_active = 0
    db.commit()


def _ensure_unbooked(db: Session, service_id: int) -> None:
    pending = CatalogRepository(db).count_future_bookings(service_id, date.today())
    if pending:
        raise ServiceInUse(f"Service {service_id} is booked by {pending} upcoming appointment(s)")
