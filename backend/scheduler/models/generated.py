from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base, relationship

from .status import AppointmentStatus

Base = declarative_base()
metadata = Base.metadata


class Merchants(Base):
    __tablename__ = 'merchants'

    name = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='merchant')
    employees = relationship('Employees', back_populates='merchant')
    appointments = relationship('Appointments', back_populates='merchant')


class Services(Base):
    __tablename__ = 'services'

    merchant_id = Column(ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)  # cents
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)

    merchant = relationship('Merchants', back_populates='services')
    appointments = relationship('Appointments', back_populates='service')


class Employees(Base):
    __tablename__ = 'employees'

    merchant_id = Column(ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    work_schedule = Column(Text, nullable=False, server_default=text("'{}'"))
    id = Column(Integer, primary_key=True)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    merchant = relationship('Merchants', back_populates='employees')
    appointments = relationship('Appointments', back_populates='employee')
    days_off = relationship('EmployeeDaysOff', back_populates='employee', cascade='all, delete-orphan')


class EmployeeDaysOff(Base):
    __tablename__ = 'employee_days_off'
    __table_args__ = (
        Index('ix_employee_days_off_employee_date', 'employee_id', 'date', unique=True),
    )

    employee_id = Column(ForeignKey('employees.id', ondelete='CASCADE'), nullable=False)
    date = Column(Text, nullable=False)  # YYYY-MM-DD
    id = Column(Integer, primary_key=True)
    reason = Column(Text)

    employee = relationship('Employees', back_populates='days_off')


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        Index('ix_appointments_employee_date', 'employee_id', 'appointment_date'),
        Index('ix_appointments_employee_new_date', 'employee_id', 'new_date'),
    )

    merchant_id = Column(ForeignKey('merchants.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    employee_id = Column(ForeignKey('employees.id'))  # unassigned allowed
    client_name = Column(Text, nullable=False)
    client_phone = Column(Text, nullable=False)
    appointment_date = Column(Text, nullable=False)  # YYYY-MM-DD
    appointment_time = Column(Text, nullable=False)  # HH:MM
    duration_minutes = Column(Integer, nullable=False)
    status = Column(
        Enum(
            AppointmentStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        server_default=text("'pending'"),
    )
    id = Column(Integer, primary_key=True)
    client_email = Column(Text)
    notes = Column(Text)
    cancel_reason = Column(Text)
    reschedule_reason = Column(Text)
    new_date = Column(Text)
    new_time = Column(Text)
    arrival_time = Column(Text)
    actual_start_time = Column(DateTime)
    actual_end_time = Column(DateTime)
    created_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, nullable=False, server_default=text('CURRENT_TIMESTAMP'))

    merchant = relationship('Merchants', back_populates='appointments')
    service = relationship('Services', back_populates='appointments')
    employee = relationship('Employees', back_populates='appointments')
