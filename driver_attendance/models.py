"""Database models."""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Float, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from driver_attendance.extensions import db


class ShiftStage(str, enum.Enum):
    ARRIVED = "ARRIVED"
    DEPARTED = "DEPARTED"
    LAST_DROP_SUBMITTED = "LAST_DROP_SUBMITTED"
    COMPLETE = "COMPLETE"


STAGE_ORDER = [ShiftStage.ARRIVED, ShiftStage.DEPARTED, ShiftStage.LAST_DROP_SUBMITTED, ShiftStage.COMPLETE]


class ShiftRecord(db.Model):
    """One row of the attendance log. Timestamps are civil times in APP_TIMEZONE."""

    __tablename__ = "shift_records"
    __table_args__ = (
        Index("ix_shift_records_driver_id", "driver_id"),
        Index("ix_shift_records_shift_date", "shift_date"),
        # A driver may hold a single incomplete shift.
        Index(
            "uq_shift_records_driver_incomplete",
            "driver_id",
            unique=True,
            sqlite_where=text("shift_complete_at IS NULL"),
            postgresql_where=text("shift_complete_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    row_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False)
    driver_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    helper_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    helper_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    helper_company: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    vehicle_number: Mapped[str] = mapped_column(String(64), nullable=False)
    start_odometer: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    start_photo_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    fuel_taken: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    destination_emirate: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    primary_customer: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    total_drops: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    arrival_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    departure_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_drop_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_drop_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_drop_submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    failed_drops: Mapped[int | None] = mapped_column(Integer, nullable=True)
    shift_complete_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_odometer: Mapped[float | None] = mapped_column(Float, nullable=True)
    end_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shift_duration_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    overtime_hours: Mapped[float | None] = mapped_column(Float, nullable=True)

    stage: Mapped[ShiftStage] = mapped_column(
        Enum(ShiftStage, name="shift_stage"),
        nullable=False,
        default=ShiftStage.ARRIVED,
    )
    departure_backfilled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    @property
    def is_complete(self) -> bool:
        return self.stage == ShiftStage.COMPLETE

    @property
    def pending_stage(self) -> int | None:
        """Number of the next stage the driver still has to submit."""
        if self.stage == ShiftStage.COMPLETE:
            return None
        # Departure is optional once the last drop is in; it is backfilled at completion.
        if self.last_drop_submitted_at is not None:
            return 4
        if self.departure_at is None:
            return 2
        return 3

    @property
    def current_stage(self) -> int:
        """Highest stage reached, from the stage fields themselves (1 to 4)."""
        if self.stage == ShiftStage.COMPLETE:
            return 4
        if self.last_drop_submitted_at is not None:
            return 3
        if self.departure_at is not None:
            return 2
        return 1


class ReferenceRow(db.Model):
    """A line of the reference list used to fill the shift form pick-lists."""

    __tablename__ = "reference_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    driver_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    helper_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    helper_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    helper_company: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    vehicle_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    destination: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
