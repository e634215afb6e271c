from __future__ import annotations

from datetime import datetime

import pytest

from driver_attendance import lifecycle
from driver_attendance.errors import ValidationError


NOW = datetime(2024, 3, 10, 12, 0)


def _start(photo_payload, driver_id, driver_name, start):
    return lifecycle.start_shift(
        driver_id=driver_id,
        driver_name=driver_name,
        vehicle_number=f"V-{driver_id}",
        start_odometer=500,
        start_photo=photo_payload,
        shift_start_time=start,
        helper_name="Helper",
        helper_company="Swift Staffing",
        total_drops=12,
        now=datetime.fromisoformat(start),
    )["rowId"]


def test_departure_list_only_covers_today_and_yesterday(app, photo_payload):
    _start(photo_payload, "D1", "Zaid", "2024-03-10T07:00")
    _start(photo_payload, "D2", "amir", "2024-03-09T07:00")
    _start(photo_payload, "D3", "Omar", "2024-03-08T07:00")

    pending = lifecycle.list_pending_at_stage(2, now=NOW)

    assert [item["driverId"] for item in pending] == ["D2", "D1"]
    assert pending[0]["shiftDate"] == "09/03/2024"
    assert pending[0]["arrivalTime"] == "09/03/2024 07:00"
    assert pending[0]["helperCompany"] == "Swift Staffing"


def test_departure_list_excludes_departed_and_completed(app, photo_payload):
    departed = _start(photo_payload, "D1", "Zaid", "2024-03-10T07:00")
    completed = _start(photo_payload, "D2", "Amir", "2024-03-10T06:00")
    _start(photo_payload, "D3", "Omar", "2024-03-10T08:00")
    lifecycle.record_departure(departed, "2024-03-10T07:30")
    lifecycle.complete_shift(completed, "2024-03-10T11:00", 600, photo_payload)

    pending = lifecycle.list_pending_at_stage(2, now=NOW)

    assert [item["driverId"] for item in pending] == ["D3"]


def test_last_drop_list_has_no_date_window(app, photo_payload):
    old = _start(photo_payload, "D1", "Zaid", "2024-02-01T07:00")
    fresh = _start(photo_payload, "D2", "Amir", "2024-03-10T07:00")
    lifecycle.record_departure(fresh, "2024-03-10T07:40")

    pending = lifecycle.list_pending_at_stage(3, now=NOW)

    assert [item["rowId"] for item in pending] == [fresh, old]
    assert pending[0]["hasDeparture"] is True
    assert pending[0]["departureTime"] == "10/03/2024 07:40"
    assert pending[1]["hasDeparture"] is False
    assert pending[1]["departureTime"] == ""


def test_last_drop_list_excludes_submitted_shifts(app, photo_payload):
    submitted = _start(photo_payload, "D1", "Zaid", "2024-03-10T07:00")
    _start(photo_payload, "D2", "Amir", "2024-03-10T07:00")
    lifecycle.record_last_drop(submitted, "2024-03-10T11:00", 0, photo_payload, now=NOW)

    pending = lifecycle.list_pending_at_stage(3, now=NOW)

    assert [item["driverId"] for item in pending] == ["D2"]


def test_completion_list_carries_last_drop_details(app, photo_payload):
    row_id = _start(photo_payload, "D1", "Zaid", "2024-03-10T07:00")
    _start(photo_payload, "D2", "Amir", "2024-03-10T07:00")
    lifecycle.record_last_drop(row_id, "2024-03-10T11:00", 2, photo_payload, now=datetime(2024, 3, 10, 11, 4, 30))

    pending = lifecycle.list_pending_at_stage(4, now=NOW)

    assert len(pending) == 1
    item = pending[0]
    assert item["rowId"] == row_id
    assert item["lastDropTime"] == "10/03/2024 11:00"
    assert item["lastDropSubmittedAt"] == "10/03/2024 11:04:30"
    assert item["failedDrops"] == 2
    assert item["totalDrops"] == 12
    assert item["startOdometer"] == 500
    assert item["hasDeparture"] is False


def test_completed_shifts_leave_every_pending_list(app, photo_payload):
    row_id = _start(photo_payload, "D1", "Zaid", "2024-03-10T07:00")
    lifecycle.record_last_drop(row_id, "2024-03-10T11:00", 0, photo_payload, now=NOW)
    lifecycle.complete_shift(row_id, "2024-03-10T11:30", 620, photo_payload)

    for stage in (2, 3, 4):
        assert lifecycle.list_pending_at_stage(stage, now=NOW) == []


def test_unknown_stage_is_rejected(app):
    with pytest.raises(ValidationError):
        lifecycle.list_pending_at_stage(1, now=NOW)
