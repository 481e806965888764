import json
import os
from datetime import datetime, timedelta
from types import SimpleNamespace

# keep the app's own engine off disk and the background checker off
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["LATE_CHECKER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from scheduler.database import get_db, make_engine
from scheduler.dependencies import get_broadcaster, get_view_cache
from scheduler.main import app
from scheduler.models import (
    Appointments,
    AppointmentStatus,
    Base,
    EmployeeDaysOff,
    Employees,
    Merchants,
    Services,
)
from scheduler.services.scheduling import SchedulingService
from scheduler.services.slots.config import BookingConfig
from scheduler.services.view_cache import AppointmentViewCache

# 2030-01-07 is a Monday
SUNDAY = "2030-01-06"
MONDAY = "2030-01-07"
TUESDAY = "2030-01-08"

WEEKDAY_SCHEDULE = {
    "mon": {"start": "09:00", "end": "18:00"},
    "tue": {"start": "09:00", "end": "18:00"},
    "wed": {"start": "09:00", "end": "18:00"},
    "thu": {"start": "09:00", "end": "18:00"},
    "fri": {"start": "09:00", "end": "18:00"},
    "sat": None,
    "sun": None,
}


class RecordingBroadcaster:
    """Broadcaster that remembers which appointments it was told about."""

    def __init__(self):
        self.notified = []

    def notify_appointment_changed(self, appointment_id: int) -> None:
        self.notified.append(appointment_id)


class TickingClock:
    """Returns start, then start + step, start + 2*step, ..."""

    def __init__(self, start: datetime, step: timedelta = timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ---------------------------------------------------------------------
# Seed data
# Every helper commits, so no write lock is held once it returns.
# ---------------------------------------------------------------------

@pytest.fixture
def seed(db):
    """One merchant, a 30 and a 60 minute service, one Mon-Fri 09-18 employee."""
    merchant = Merchants(name="Studio North")
    db.add(merchant)
    db.flush()

    haircut = Services(merchant_id=merchant.id, name="Haircut", duration_minutes=30, price=2500)
    colouring = Services(merchant_id=merchant.id, name="Colouring", duration_minutes=60, price=6000)
    employee = Employees(
        merchant_id=merchant.id,
        name="Alex",
        work_schedule=json.dumps(WEEKDAY_SCHEDULE),
    )
    db.add_all([haircut, colouring, employee])
    db.flush()

    ids = SimpleNamespace(
        merchant=merchant.id,
        haircut=haircut.id,
        colouring=colouring.id,
        employee=employee.id,
    )
    db.commit()
    return ids


@pytest.fixture
def add_merchant(db):
    def _add(name: str = "Studio South") -> int:
        merchant = Merchants(name=name)
        db.add(merchant)
        db.flush()
        merchant_id = merchant.id
        db.commit()
        return merchant_id

    return _add


@pytest.fixture
def add_employee(db):
    def _add(merchant_id: int, schedule=None, name: str = "Sam", is_active: int = 1) -> int:
        employee = Employees(
            merchant_id=merchant_id,
            name=name,
            work_schedule=json.dumps(WEEKDAY_SCHEDULE if schedule is None else schedule),
            is_active=is_active,
        )
        db.add(employee)
        db.flush()
        employee_id = employee.id
        db.commit()
        return employee_id

    return _add


@pytest.fixture
def add_service(db):
    def _add(merchant_id: int, duration_minutes: int, name: str = "Massage", is_active: int = 1) -> int:
        service = Services(
            merchant_id=merchant_id,
            name=name,
            duration_minutes=duration_minutes,
            price=4000,
            is_active=is_active,
        )
        db.add(service)
        db.flush()
        service_id = service.id
        db.commit()
        return service_id

    return _add


@pytest.fixture
def add_day_off(db):
    def _add(employee_id: int, day: str, reason: str = "vacation") -> None:
        db.add(EmployeeDaysOff(employee_id=employee_id, date=day, reason=reason))
        db.commit()

    return _add


@pytest.fixture
def add_appointment(db, seed):
    """Insert an appointment row directly, bypassing every check."""
    def _add(
        appointment_time: str,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        day: str = MONDAY,
        duration_minutes: int = 60,
        employee_id: int | None = seed.employee,
        **extra,
    ) -> int:
        appointment = Appointments(
            merchant_id=seed.merchant,
            service_id=seed.colouring,
            employee_id=employee_id,
            client_name="Existing Client",
            client_phone="+100000000",
            appointment_date=day,
            appointment_time=appointment_time,
            duration_minutes=duration_minutes,
            status=status,
            **extra,
        )
        db.add(appointment)
        db.flush()
        appointment_id = appointment.id
        db.commit()
        return appointment_id

    return _add


# ---------------------------------------------------------------------
# Services under test
# ---------------------------------------------------------------------

@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def booking_config():
    return BookingConfig(slot_step_minutes=30, buffer_minutes=0, late_tolerance_minutes=15)


@pytest.fixture
def clock():
    return TickingClock(datetime(2030, 1, 7, 8, 0))


@pytest.fixture
def scheduling(db, broadcaster, booking_config, clock):
    return SchedulingService(db, broadcaster, booking_config, clock=clock)


@pytest.fixture
def client(session_factory, broadcaster):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    app.dependency_overrides[get_view_cache] = lambda: AppointmentViewCache(None)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
