"""Operational dashboard aggregates.

Each call scans the full attendance log once and derives every aggregate in a
single pass. Nothing is persisted between calls.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Iterable

from flask import current_app

from driver_attendance.civil_time import (
    format_civil_date,
    format_civil_datetime,
    hours_between,
    now_local,
    round_half_up,
)
from driver_attendance.models import ShiftRecord
from driver_attendance.store import ShiftStore


TOP_HELPER_COMPANIES = 5


def empty_today_stats() -> dict[str, Any]:
    return {
        "avgShiftDuration": 0,
        "totalFailedDrops": 0,
        "topHelperCompanies": [],
        "completedShiftsCount": 0,
    }


def empty_dashboard() -> dict[str, Any]:
    return {
        "activeCount": 0,
        "activeDrivers": [],
        "punchOutMisses": [],
        "vehicleRunTime": [],
        "shiftTrendByDate": [],
        "failedDropsByDate": [],
        "overtimeByDate": [],
        "todayStats": empty_today_stats(),
    }


def empty_dashboard_detail(target_date: date | None = None) -> dict[str, Any]:
    return {
        "date": format_civil_date(target_date),
        "vehicleKm": [],
        "stageGaps": [],
    }


def failure_rate(total_drops: int, failed_drops: int) -> float:
    if not total_drops:
        return 0.0
    return round_half_up(failed_drops / total_drops * 100, 1)


def _is_counted_completion(record: ShiftRecord) -> bool:
    return record.is_complete and (record.shift_duration_hours or 0) > 0


def _by_name(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(items, key=lambda item: item["driverName"].casefold())


def _vehicle_totals(totals: dict[str, dict[str, float]], value_key: str) -> list[dict[str, Any]]:
    rows = [
        {"vehicleNumber": vehicle, value_key: round_half_up(values["total"], 2), "shiftCount": int(values["count"])}
        for vehicle, values in totals.items()
    ]
    return sorted(rows, key=lambda row: row[value_key], reverse=True)


def build_dashboard(
    records: Iterable[ShiftRecord],
    now: datetime,
    overtime_threshold: float = 9,
    trend_window_days: int = 30,
) -> dict[str, Any]:
    today = now.date()
    trend_start = now - timedelta(days=trend_window_days)

    active_drivers: list[dict[str, Any]] = []
    punch_out_misses: list[dict[str, Any]] = []
    vehicle_hours: dict[str, dict[str, float]] = {}
    trend: dict[date, dict[str, float]] = {}
    failed_by_date: dict[date, dict[str, Any]] = {}
    overtime_by_date: dict[date, dict[str, Any]] = {}
    helper_companies: dict[str, int] = {}
    today_durations: list[float] = []
    today_failed_drops = 0

    for record in records:
        if not record.driver_id or record.arrival_at is None:
            continue

        if record.shift_date == today and record.helper_company:
            helper_companies[record.helper_company] = helper_companies.get(record.helper_company, 0) + 1

        if not record.is_complete:
            running_hours = hours_between(record.arrival_at, now) or 0.0
            active_drivers.append(
                {
                    "rowId": record.row_id,
                    "shiftDate": format_civil_date(record.shift_date),
                    "driverId": record.driver_id,
                    "driverName": record.driver_name,
                    "vehicleNumber": record.vehicle_number,
                    "helperName": record.helper_name,
                    "arrivalTime": format_civil_datetime(record.arrival_at),
                    "departureTime": format_civil_datetime(record.departure_at),
                    "currentStage": record.current_stage,
                    "runningHours": running_hours,
                    "isOvertime": running_hours > overtime_threshold,
                }
            )
            if record.shift_date != today:
                punch_out_misses.append(
                    {
                        "rowId": record.row_id,
                        "shiftDate": format_civil_date(record.shift_date),
                        "driverId": record.driver_id,
                        "driverName": record.driver_name,
                        "vehicleNumber": record.vehicle_number,
                        "stuckStage": record.pending_stage,
                    }
                )
            continue

        if not _is_counted_completion(record):
            continue

        duration = record.shift_duration_hours or 0.0
        overtime = record.overtime_hours or 0.0
        failed = record.failed_drops or 0
        total_drops = record.total_drops or 0

        if record.vehicle_number:
            vehicle = vehicle_hours.setdefault(record.vehicle_number, {"total": 0.0, "count": 0})
            vehicle["total"] += duration
            vehicle["count"] += 1

        if record.arrival_at >= trend_start:
            day = trend.setdefault(record.shift_date, {"count": 0, "duration": 0.0, "overtime": 0.0})
            day["count"] += 1
            day["duration"] += duration
            day["overtime"] += overtime

        day_drops = failed_by_date.setdefault(record.shift_date, {"total": 0, "failed": 0, "drivers": {}})
        day_drops["total"] += total_drops
        day_drops["failed"] += failed
        driver_drops = day_drops["drivers"].setdefault(
            record.driver_id,
            {"driverId": record.driver_id, "driverName": record.driver_name, "totalDrops": 0, "failedDrops": 0},
        )
        driver_drops["totalDrops"] += total_drops
        driver_drops["failedDrops"] += failed

        if overtime > 0:
            day_overtime = overtime_by_date.setdefault(record.shift_date, {"total": 0.0, "drivers": {}})
            day_overtime["total"] += overtime
            driver_overtime = day_overtime["drivers"].setdefault(
                record.driver_id,
                {
                    "driverId": record.driver_id,
                    "driverName": record.driver_name,
                    "vehicleNumber": record.vehicle_number,
                    "overtimeHours": 0.0,
                    "shiftDurationHours": 0.0,
                },
            )
            driver_overtime["overtimeHours"] += overtime
            driver_overtime["shiftDurationHours"] += duration

        if record.shift_date == today:
            today_durations.append(duration)
            today_failed_drops += failed

    shift_trend = [
        {
            "date": format_civil_date(day),
            "shiftCount": int(values["count"]),
            "avgDuration": round_half_up(values["duration"] / values["count"], 2),
            "totalOvertime": round_half_up(values["overtime"], 2),
        }
        for day, values in sorted(trend.items())
    ]

    failed_drops_by_date = []
    for day, values in sorted(failed_by_date.items(), reverse=True):
        drivers = sorted(values["drivers"].values(), key=lambda item: item["failedDrops"], reverse=True)
        failed_drops_by_date.append(
            {
                "date": format_civil_date(day),
                "totalDrops": values["total"],
                "failedDrops": values["failed"],
                "failureRate": failure_rate(values["total"], values["failed"]),
                "drivers": [
                    {**driver, "failureRate": failure_rate(driver["totalDrops"], driver["failedDrops"])}
                    for driver in drivers
                ],
            }
        )

    overtime_listing = []
    for day, values in sorted(overtime_by_date.items(), reverse=True):
        drivers = sorted(values["drivers"].values(), key=lambda item: item["overtimeHours"], reverse=True)
        overtime_listing.append(
            {
                "date": format_civil_date(day),
                "totalOvertime": round_half_up(values["total"], 2),
                "drivers": [
                    {
                        **driver,
                        "overtimeHours": round_half_up(driver["overtimeHours"], 2),
                        "shiftDurationHours": round_half_up(driver["shiftDurationHours"], 2),
                    }
                    for driver in drivers
                ],
            }
        )

    # sorted() is stable, so ties keep encounter order.
    top_companies = sorted(helper_companies.items(), key=lambda item: item[1], reverse=True)[:TOP_HELPER_COMPANIES]

    return {
        "activeCount": len(active_drivers),
        "activeDrivers": _by_name(active_drivers),
        "punchOutMisses": punch_out_misses,
        "vehicleRunTime": _vehicle_totals(vehicle_hours, "totalHours"),
        "shiftTrendByDate": shift_trend,
        "failedDropsByDate": failed_drops_by_date,
        "overtimeByDate": overtime_listing,
        "todayStats": {
            "avgShiftDuration": round_half_up(sum(today_durations) / len(today_durations), 2) if today_durations else 0,
            "totalFailedDrops": today_failed_drops,
            "topHelperCompanies": [{"company": company, "count": count} for company, count in top_companies],
            "completedShiftsCount": len(today_durations),
        },
    }


def build_dashboard_detail(records: Iterable[ShiftRecord], target_date: date) -> dict[str, Any]:
    vehicle_km: dict[str, dict[str, float]] = {}
    stage_gaps: list[dict[str, Any]] = []

    for record in records:
        if record.shift_date != target_date or record.arrival_at is None:
            continue

        start_odometer = record.start_odometer or 0
        end_odometer = record.end_odometer or 0
        if record.is_complete and start_odometer > 0 and end_odometer > 0 and record.vehicle_number:
            vehicle = vehicle_km.setdefault(record.vehicle_number, {"total": 0.0, "count": 0})
            vehicle["total"] += max(0.0, end_odometer - start_odometer)
            vehicle["count"] += 1

        # A backfilled departure is the completion time, not a real departure.
        backfilled = bool(record.departure_backfilled)
        departure = None if backfilled else record.departure_at
        stage_gaps.append(
            {
                "rowId": record.row_id,
                "driverId": record.driver_id,
                "driverName": record.driver_name,
                "vehicleNumber": record.vehicle_number,
                "arrivalTime": format_civil_datetime(record.arrival_at),
                "departureTime": format_civil_datetime(record.departure_at),
                "lastDropSubmittedAt": format_civil_datetime(record.last_drop_submitted_at, seconds=True),
                "shiftCompleteTime": format_civil_datetime(record.shift_complete_at),
                "arrivalToDeparture": hours_between(record.arrival_at, departure),
                "departureToLastDrop": hours_between(departure, record.last_drop_submitted_at),
                "lastDropToComplete": hours_between(record.last_drop_submitted_at, record.shift_complete_at),
                "departureAutoFilled": backfilled,
                "isComplete": record.is_complete,
            }
        )

    return {
        "date": format_civil_date(target_date),
        "vehicleKm": _vehicle_totals(vehicle_km, "totalKm"),
        "stageGaps": _by_name(stage_gaps),
    }


def vehicle_hours_for_range(records: Iterable[ShiftRecord], date_from: date, date_to: date) -> list[dict[str, Any]]:
    """Completed hours per vehicle for ``date_from <= shift_date <= date_to``.

    A reversed range matches no shift.
    """
    totals: dict[str, dict[str, float]] = {}
    for record in records:
        if not _is_counted_completion(record) or not record.vehicle_number:
            continue
        if not date_from <= record.shift_date <= date_to:
            continue
        vehicle = totals.setdefault(record.vehicle_number, {"total": 0.0, "count": 0})
        vehicle["total"] += record.shift_duration_hours or 0.0
        vehicle["count"] += 1
    return _vehicle_totals(totals, "totalHours")


def dashboard_data(now: datetime | None = None, store: ShiftStore | None = None) -> dict[str, Any]:
    store = store or ShiftStore()
    return build_dashboard(
        store.scan(),
        now or now_local(),
        overtime_threshold=float(current_app.config.get("OVERTIME_THRESHOLD_HOURS", 9)),
        trend_window_days=int(current_app.config.get("TREND_WINDOW_DAYS", 30)),
    )


def dashboard_detail_data(target_date: date, store: ShiftStore | None = None) -> dict[str, Any]:
    store = store or ShiftStore()
    return build_dashboard_detail(store.scan(), target_date)


def vehicle_hours_data(date_from: date, date_to: date, store: ShiftStore | None = None) -> list[dict[str, Any]]:
    store = store or ShiftStore()
    return vehicle_hours_for_range(store.scan(), date_from, date_to)
