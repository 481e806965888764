"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

STATUSES = (
    "pending",
    "scheduled",
    "confirmed",
    "in_progress",
    "completed",
    "cancelled",
    "late",
    "no_show",
    "rescheduled",
)


def upgrade():
    op.create_table(
        "merchants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("merchant_id", sa.Integer(), sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("description", sa.Text()),
    )
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("merchant_id", sa.Integer(), sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("work_schedule", sa.Text(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("is_active", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_table(
        "employee_days_off",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text()),
    )
    op.create_index(
        "ix_employee_days_off_employee_date",
        "employee_days_off",
        ["employee_id", "date"],
        unique=True,
    )
    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("merchant_id", sa.Integer(), sa.ForeignKey("merchants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_id", sa.Integer(), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("employees.id")),
        sa.Column("client_name", sa.Text(), nullable=False),
        sa.Column("client_phone", sa.Text(), nullable=False),
        sa.Column("client_email", sa.Text()),
        sa.Column("appointment_date", sa.Text(), nullable=False),
        sa.Column("appointment_time", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*STATUSES, name="appointmentstatus", native_enum=False, length=20),
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("notes", sa.Text()),
        sa.Column("cancel_reason", sa.Text()),
        sa.Column("reschedule_reason", sa.Text()),
        sa.Column("new_date", sa.Text()),
        sa.Column("new_time", sa.Text()),
        sa.Column("arrival_time", sa.Text()),
        sa.Column("actual_start_time", sa.DateTime()),
        sa.Column("actual_end_time", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_appointments_employee_date", "appointments", ["employee_id", "appointment_date"])
    op.create_index("ix_appointments_employee_new_date", "appointments", ["employee_id", "new_date"])


def downgrade():
    op.drop_index("ix_appointments_employee_new_date", table_name="appointments")
    op.drop_index("ix_appointments_employee_date", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_employee_days_off_employee_date", table_name="employee_days_off")
    op.drop_table("employee_days_off")
    op.drop_table("employees")
    op.drop_table("services")
    op.drop_table("merchants")
