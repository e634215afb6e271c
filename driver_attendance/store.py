"""Shift record repository.

The attendance log is append-only: records are created once, then updated in
place by row id. Reads always scan the whole table in insertion order; there is
no cached copy between calls.
"""

from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from driver_attendance.civil_time import format_civil_date, format_civil_datetime
from driver_attendance.errors import ConflictError, DependencyError, NotFoundError
from driver_attendance.extensions import db
from driver_attendance.models import ShiftRecord


# Sheet layout, columns A to Y.
SHEET_COLUMNS: list[tuple[str, str]] = [
    ("Row ID", "row_id"),
    ("Shift Date", "shift_date"),
    ("Driver Employee ID", "driver_id"),
    ("Driver Name", "driver_name"),
    ("Helper Employee ID", "helper_id"),
    ("Helper Name", "helper_name"),
    ("Helper Company", "helper_company"),
    ("Vehicle Number", "vehicle_number"),
    ("Start Odometer (km)", "start_odometer"),
    ("Start Odometer Photo URL", "start_photo_url"),
    ("Fuel Taken", "fuel_taken"),
    ("Destination Emirate", "destination_emirate"),
    ("Primary Customer", "primary_customer"),
    ("Total Drops", "total_drops"),
    ("Arrival at Warehouse", "arrival_at"),
    ("Departure from Warehouse", "departure_at"),
    ("Last Drop Date & Time", "last_drop_at"),
    ("Last Drop Photo URL", "last_drop_photo_url"),
    ("Last Drop Submitted At", "last_drop_submitted_at"),
    ("Number of Failed Drops", "failed_drops"),
    ("End of Shift Date & Time", "shift_complete_at"),
    ("End Odometer (km)", "end_odometer"),
    ("End Odometer Photo URL", "end_photo_url"),
    ("Shift Duration (hrs)", "shift_duration_hours"),
    ("Overtime Hours", "overtime_hours"),
]

SHEET_HEADERS = [header for header, _ in SHEET_COLUMNS]

UPDATABLE_FIELDS = frozenset(field for _, field in SHEET_COLUMNS[1:]) | {"stage", "departure_backfilled"}


def sheet_row(record: ShiftRecord) -> list[Any]:
    """Render a record as its 25 sheet cells."""
    cells: list[Any] = []
    for _, field in SHEET_COLUMNS:
        value = getattr(record, field)
        if field == "shift_date":
            value = format_civil_date(value)
        elif field == "last_drop_submitted_at":
            value = format_civil_datetime(value, seconds=True)
        elif field.endswith("_at"):
            value = format_civil_datetime(value)
        cells.append("" if value is None else value)
    return cells


class ShiftStore:
    def append(self, record: ShiftRecord) -> ShiftRecord:
        db.session.add(record)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning("Rejected shift record %s for driver %s.", record.row_id, record.driver_id)
            raise ConflictError("This driver already has an active shift. Complete that shift first.") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DependencyError("Could not save the shift record. Please try again.") from exc
        return record

    def scan(self) -> list[ShiftRecord]:
        try:
            return list(db.session.execute(select(ShiftRecord).order_by(ShiftRecord.id.asc())).scalars().all())
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DependencyError("Could not read the attendance data.") from exc

    def find(self, row_id: str | None) -> ShiftRecord | None:
        if not row_id:
            return None
        try:
            stmt = select(ShiftRecord).where(ShiftRecord.row_id == str(row_id).strip())
            return db.session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DependencyError("Could not read the attendance data.") from exc

    def get(self, row_id: str | None) -> ShiftRecord:
        record = self.find(row_id)
        if record is None:
            raise NotFoundError("Shift record not found. Please check with your supervisor.")
        return record

    def update_fields(self, row_id: str, /, **values: Any) -> ShiftRecord:
        unknown = set(values) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        record = self.get(row_id)
        for field, value in values.items():
            setattr(record, field, value)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise DependencyError("Could not update the shift record. Please try again.") from exc
        return record
