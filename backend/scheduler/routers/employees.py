# backend/scheduler/routers/employees.py
# PATCH = ALLOWED, DELETE = soft-delete (is_active)
# Days off: POST/DELETE /employees/{id}/days-off

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import begin_write, get_db
from ..errors import ValidationError
from ..models.generated import EmployeeDaysOff as DBDaysOff, Employees as DBEmployees
from ..repositories import CatalogRepository
from ..schemas.employees import (
    DayOffCreate,
    DayOffRead,
    EmployeeCreate,
    EmployeeRead,
    EmployeeUpdate,
)
from ..services.slots.config import parse_date

router = APIRouter(prefix="/employees", tags=["employees"])


# ---------------------------------------------------------------------
# Base CRUD
# ---------------------------------------------------------------------

@router.get("/", response_model=list[EmployeeRead])
def list_employees(merchant_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(DBEmployees).filter(DBEmployees.is_active == 1)
    if merchant_id is not None:
        query = query.filter(DBEmployees.merchant_id == merchant_id)
    return query.all()


@router.get("/{id}", response_model=EmployeeRead)
def get_employee(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBEmployees, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
):
    obj = DBEmployees(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=EmployeeRead)
def update_employee(
    id: int,
    data: EmployeeUpdate,
    db: Session = Depends(get_db),
):
    begin_write(db)
    obj = db.get(DBEmployees, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee(id: int, db: Session = Depends(get_db)):
    begin_write(db)
    obj = db.get(DBEmployees, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    obj.is_active = 0
    db.commit()


# ---------------------------------------------------------------------
# Days off
# ---------------------------------------------------------------------

@router.get("/{id}/days-off", response_model=list[DayOffRead])
def list_days_off(id: int, db: Session = Depends(get_db)):
    return (
        db.query(DBDaysOff)
        .filter(DBDaysOff.employee_id == id)
        .order_by(DBDaysOff.date)
        .all()
    )


@router.post("/{id}/days-off", response_model=DayOffRead, status_code=status.HTTP_201_CREATED)
def add_day_off(
    id: int,
    data: DayOffCreate,
    db: Session = Depends(get_db),
):
    day = parse_date(data.date)
    begin_write(db)
    catalog = CatalogRepository(db)
    if not catalog.get_employee(id):
        raise HTTPException(status_code=404, detail="Not found")
    if catalog.is_day_off(id, day):
        raise ValidationError(f"Employee {id} already has {day.isoformat()} off")

    obj = DBDaysOff(employee_id=id, date=day.isoformat(), reason=data.reason)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/{id}/days-off/{day_off_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_day_off(id: int, day_off_id: int, db: Session = Depends(get_db)):
    begin_write(db)
    obj = db.get(DBDaysOff, day_off_id)
    if not obj or obj.employee_id != id:
        raise HTTPException(status_code=404, detail="Not found")

    db.delete(obj)
    db.commit()
