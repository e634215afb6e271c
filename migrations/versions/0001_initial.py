"""Initial schema.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


shift_stage = sa.Enum("ARRIVED", "DEPARTED", "LAST_DROP_SUBMITTED", "COMPLETE", name="shift_stage")


def upgrade() -> None:

    op.create_table(
        "shift_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("row_id", sa.String(length=128), nullable=False),
        sa.Column("shift_date", sa.Date(), nullable=False),
        sa.Column("driver_id", sa.String(length=64), nullable=False),
        sa.Column("driver_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("helper_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("helper_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("helper_company", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("vehicle_number", sa.String(length=64), nullable=False),
        sa.Column("start_odometer", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_photo_url", sa.Text(), nullable=False, server_default=""),
        sa.Column("fuel_taken", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("destination_emirate", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("primary_customer", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("total_drops", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("arrival_at", sa.DateTime(), nullable=False),
        sa.Column("departure_at", sa.DateTime(), nullable=True),
        sa.Column("last_drop_at", sa.DateTime(), nullable=True),
        sa.Column("last_drop_photo_url", sa.Text(), nullable=True),
        sa.Column("last_drop_submitted_at", sa.DateTime(), nullable=True),
        sa.Column("failed_drops", sa.Integer(), nullable=True),
        sa.Column("shift_complete_at", sa.DateTime(), nullable=True),
        sa.Column("end_odometer", sa.Float(), nullable=True),
        sa.Column("end_photo_url", sa.Text(), nullable=True),
        sa.Column("shift_duration_hours", sa.Float(), nullable=True),
        sa.Column("overtime_hours", sa.Float(), nullable=True),
        sa.Column("stage", shift_stage, nullable=False, server_default=sa.text("'ARRIVED'")),
        sa.Column("departure_backfilled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("row_id"),
    )
    op.create_index("ix_shift_records_driver_id", "shift_records", ["driver_id"], unique=False)
    op.create_index("ix_shift_records_shift_date", "shift_records", ["shift_date"], unique=False)
    op.create_index(
        "uq_shift_records_driver_incomplete",
        "shift_records",
        ["driver_id"],
        unique=True,
        sqlite_where=sa.text("shift_complete_at IS NULL"),
        postgresql_where=sa.text("shift_complete_at IS NULL"),
    )

    op.create_table(
        "reference_rows",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("driver_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("driver_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("helper_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("helper_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("helper_company", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("vehicle_number", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("destination", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("customer_name", sa.String(length=255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("reference_rows")

    op.drop_index("uq_shift_records_driver_incomplete", table_name="shift_records")
    op.drop_index("ix_shift_records_shift_date", table_name="shift_records")
    op.drop_index("ix_shift_records_driver_id", table_name="shift_records")
    op.drop_table("shift_records")

    bind = op.get_bind()
    shift_stage.drop(bind, checkfirst=True)
