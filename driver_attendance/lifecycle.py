"""Shift lifecycle.

A shift moves through four stages, each submitted separately by the driver:

1. arrival at the warehouse gate (creates the record),
2. departure from the warehouse (optional, backfilled at completion if skipped),
3. last drop, stamped with the server clock on submission,
4. shift completion, which finalizes duration and overtime.

Every operation re-reads the attendance log through ``ShiftStore``; nothing is
cached between calls. Failures are raised as ``ShiftError`` subclasses and
turned into ``{"success": False, ...}`` results by the API layer.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from flask import current_app

from driver_attendance.civil_time import (
    ROW_ID_STAMP_FORMAT,
    format_civil_date,
    format_civil_datetime,
    hours_between,
    now_local,
    parse_input_datetime,
    round_half_up,
)
from driver_attendance.errors import ConflictError, ValidationError
from driver_attendance.models import STAGE_ORDER, ShiftRecord, ShiftStage
from driver_attendance.photos import save_photo
from driver_attendance.store import ShiftStore


PENDING_STAGES = (2, 3, 4)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _required_text(value: Any, label: str) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise ValidationError(f"{label} is required.")
    return cleaned


def _required_datetime(value: Any, label: str) -> datetime:
    parsed = parse_input_datetime(_clean(value), label)
    if parsed is None:
        raise ValidationError(f"{label} is required.")
    return parsed


def _non_negative_number(value: Any, label: str) -> float:
    if value is None or _clean(value) == "":
        raise ValidationError(f"{label} is required.")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be a number.") from exc
    if number < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return number


def _non_negative_int(value: Any, label: str, default: int | None = None) -> int:
    if value is None or _clean(value) == "":
        if default is not None:
            return default
        raise ValidationError(f"{label} is required.")
    try:
        number = int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be a whole number.") from exc
    if number < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return number


def _advance(current: ShiftStage, target: ShiftStage) -> ShiftStage:
    if STAGE_ORDER.index(target) > STAGE_ORDER.index(current):
        return target
    return current


def _overtime_threshold() -> float:
    return float(current_app.config.get("OVERTIME_THRESHOLD_HOURS", 9))


def _ensure_not_complete(record: ShiftRecord) -> None:
    if record.is_complete:
        raise ConflictError("This shift is already complete.", stuck_stage=None)


def generate_row_id(driver_id: str, now: datetime) -> str:
    return f"SHIFT-{now.strftime(ROW_ID_STAMP_FORMAT)}-{driver_id}"


def find_incomplete_shift(records: list[ShiftRecord], driver_id: str) -> ShiftRecord | None:
    for record in records:
        if record.driver_id == driver_id and not record.is_complete:
            return record
    return None


def compute_duration(arrival: datetime, complete: datetime, threshold: float) -> tuple[float, float]:
    """Gate-to-complete hours and the overtime beyond ``threshold``, both at 2dp."""
    duration = hours_between(arrival, complete) or 0.0
    overtime = round_half_up(max(0.0, duration - threshold), 2)
    return duration, overtime


def start_shift(
    *,
    driver_id: Any,
    driver_name: Any,
    vehicle_number: Any,
    start_odometer: Any,
    start_photo: str | None,
    shift_start_time: Any,
    helper_id: Any = "",
    helper_name: Any = "",
    helper_company: Any = "",
    fuel_taken: Any = "",
    destination_emirate: Any = "",
    primary_customer: Any = "",
    total_drops: Any = 0,
    now: datetime | None = None,
    store: ShiftStore | None = None,
) -> dict[str, str]:
    store = store or ShiftStore()
    arrival_at = _required_datetime(shift_start_time, "Shift start time")
    driver = _required_text(driver_id, "Driver")
    vehicle = _required_text(vehicle_number, "Vehicle number")
    odometer = _non_negative_number(start_odometer, "Start odometer")
    drops = _non_negative_int(total_drops, "Total drops", default=0)

    existing = find_incomplete_shift(store.scan(), driver)
    if existing is not None:
        stuck_stage = existing.pending_stage
        raise ConflictError(
            f"This driver already has an active shift from {format_civil_date(existing.shift_date)} "
            f"(pending Stage {stuck_stage}). Complete that shift first.",
            stuck_stage=stuck_stage,
        )

    row_id = generate_row_id(driver, now or now_local())
    photo_url = save_photo(start_photo, f"{row_id}_start.jpg", "Start odometer photo")

    record = ShiftRecord(
        row_id=row_id,
        shift_date=arrival_at.date(),
        driver_id=driver,
        driver_name=_clean(driver_name),
        helper_id=_clean(helper_id),
        helper_name=_clean(helper_name),
        helper_company=_clean(helper_company),
        vehicle_number=vehicle,
        start_odometer=odometer,
        start_photo_url=photo_url,
        fuel_taken=_clean(fuel_taken),
        destination_emirate=_clean(destination_emirate),
        primary_customer=_clean(primary_customer),
        total_drops=drops,
        arrival_at=arrival_at,
        stage=ShiftStage.ARRIVED,
        departure_backfilled=False,
    )
    store.append(record)
    current_app.logger.info("Shift %s started for driver %s.", row_id, driver)

    return {"rowId": row_id, "arrivalTime": format_civil_datetime(arrival_at)}


def record_departure(row_id: Any, departure_time: Any, store: ShiftStore | None = None) -> dict[str, str]:
    store = store or ShiftStore()
    record = store.get(_clean(row_id))
    _ensure_not_complete(record)
    departure_at = _required_datetime(departure_time, "Departure time")

    store.update_fields(
        record.row_id,
        departure_at=departure_at,
        departure_backfilled=False,
        stage=_advance(record.stage, ShiftStage.DEPARTED),
    )
    current_app.logger.info("Shift %s departed from warehouse.", record.row_id)
    return {"departureTime": format_civil_datetime(departure_at)}


def record_last_drop(
    row_id: Any,
    last_drop_time: Any,
    failed_drops: Any,
    last_drop_photo: str | None,
    now: datetime | None = None,
    store: ShiftStore | None = None,
) -> dict[str, Any]:
    store = store or ShiftStore()
    record = store.get(_clean(row_id))
    _ensure_not_complete(record)
    last_drop_at = _required_datetime(last_drop_time, "Last drop time")
    failed = _non_negative_int(failed_drops, "Number of failed drops")

    photo_url = save_photo(last_drop_photo, f"{record.row_id}_lastdrop.jpg", "Last drop photo")
    # The submission stamp always comes from the server clock.
    submitted_at = now or now_local()

    store.update_fields(
        record.row_id,
        last_drop_at=last_drop_at,
        last_drop_photo_url=photo_url,
        last_drop_submitted_at=submitted_at,
        failed_drops=failed,
        stage=_advance(record.stage, ShiftStage.LAST_DROP_SUBMITTED),
    )
    current_app.logger.info("Shift %s last drop submitted (%s failed).", record.row_id, failed)
    return {
        "lastDropTime": format_civil_datetime(last_drop_at),
        "submittedAt": format_civil_datetime(submitted_at, seconds=True),
        "failedDrops": failed,
    }


def complete_shift(
    row_id: Any,
    shift_complete_time: Any,
    end_odometer: Any,
    end_photo: str | None,
    store: ShiftStore | None = None,
) -> dict[str, Any]:
    store = store or ShiftStore()
    record = store.get(_clean(row_id))
    _ensure_not_complete(record)
    complete_at = _required_datetime(shift_complete_time, "Shift complete time")
    odometer = _non_negative_number(end_odometer, "End odometer")

    photo_url = save_photo(end_photo, f"{record.row_id}_end.jpg", "End odometer photo")

    values: dict[str, Any] = {}
    backfilled = record.departure_at is None
    if backfilled:
        values["departure_at"] = complete_at
        values["departure_backfilled"] = True

    # Duration always spans gate arrival to completion, whatever stages were skipped.
    duration, overtime = compute_duration(record.arrival_at, complete_at, _overtime_threshold())
    values.update(
        shift_complete_at=complete_at,
        end_odometer=odometer,
        end_photo_url=photo_url,
        shift_duration_hours=duration,
        overtime_hours=overtime,
        stage=ShiftStage.COMPLETE,
    )
    store.update_fields(record.row_id, **values)
    current_app.logger.info("Shift %s complete after %.2f hours.", record.row_id, duration)

    return {
        "shiftCompleteTime": format_civil_datetime(complete_at),
        "shiftDuration": duration,
        "overtime": overtime,
        "departureAutoFilled": backfilled,
    }


def _pending_item(record: ShiftRecord) -> dict[str, Any]:
    return {
        "rowId": record.row_id,
        "shiftDate": format_civil_date(record.shift_date),
        "driverId": record.driver_id,
        "driverName": record.driver_name,
        "vehicleNumber": record.vehicle_number,
        "helperName": record.helper_name,
        "helperCompany": record.helper_company,
        "arrivalTime": format_civil_datetime(record.arrival_at),
    }


def list_pending_at_stage(
    stage: int,
    now: datetime | None = None,
    store: ShiftStore | None = None,
) -> list[dict[str, Any]]:
    """Drivers waiting to submit ``stage`` (2, 3 or 4), sorted by name."""
    if stage not in PENDING_STAGES:
        raise ValidationError(f"Unknown stage {stage}.")
    store = store or ShiftStore()
    today = (now or now_local()).date()
    yesterday = today - timedelta(days=1)

    result: list[dict[str, Any]] = []
    for record in store.scan():
        if record.is_complete or record.arrival_at is None:
            continue

        if stage == 2:
            if record.departure_at is not None or record.shift_date not in (today, yesterday):
                continue
            result.append(_pending_item(record))
        elif stage == 3:
            if record.last_drop_submitted_at is not None:
                continue
            item = _pending_item(record)
            item["departureTime"] = format_civil_datetime(record.departure_at)
            item["hasDeparture"] = record.departure_at is not None
            result.append(item)
        else:
            if record.last_drop_submitted_at is None:
                continue
            item = _pending_item(record)
            item.update(
                departureTime=format_civil_datetime(record.departure_at),
                hasDeparture=record.departure_at is not None,
                lastDropTime=format_civil_datetime(record.last_drop_at),
                lastDropSubmittedAt=format_civil_datetime(record.last_drop_submitted_at, seconds=True),
                failedDrops=record.failed_drops or 0,
                totalDrops=record.total_drops,
                startOdometer=record.start_odometer,
            )
            result.append(item)

    return sorted(result, key=lambda item: item["driverName"].casefold())
