from __future__ import annotations

from datetime import date, datetime

import pytest

from driver_attendance.civil_time import (
    format_civil_date,
    format_civil_datetime,
    hours_between,
    now_local,
    parse_civil_date,
    parse_civil_datetime,
    parse_input_datetime,
    round_half_up,
    transcode_datetime_local,
)
from driver_attendance.errors import ValidationError


def test_transcode_datetime_local():
    assert transcode_datetime_local("2024-03-10T07:05") == "10/03/2024 07:05"
    assert transcode_datetime_local("2024-03-10") == "10/03/2024 00:00"
    assert transcode_datetime_local("10/03/2024 07:05") == "10/03/2024 07:05"
    assert transcode_datetime_local("") == ""


def test_parse_civil_datetime_with_and_without_seconds():
    assert parse_civil_datetime("10/03/2024 07:05") == datetime(2024, 3, 10, 7, 5)
    assert parse_civil_datetime("10/03/2024 07:05:30") == datetime(2024, 3, 10, 7, 5, 30)
    assert parse_civil_datetime("2024-03-10 07:05") is None
    assert parse_civil_datetime(None) is None


def test_parse_input_datetime_accepts_picker_and_civil():
    assert parse_input_datetime("2024-03-10T07:05") == datetime(2024, 3, 10, 7, 5)
    assert parse_input_datetime(" 10/03/2024 07:05 ") == datetime(2024, 3, 10, 7, 5)
    assert parse_input_datetime("   ") is None


def test_parse_input_datetime_transcodes_picker_values():
    assert parse_input_datetime("2024-03-10T07:05:30") == datetime(2024, 3, 10, 7, 5, 30)
    assert parse_input_datetime("2024-03-10") == datetime(2024, 3, 10, 0, 0)

    with pytest.raises(ValidationError) as excinfo:
        parse_input_datetime("2024-13-10T07:05", "Last drop time")
    assert excinfo.value.message == "Last drop time '2024-13-10T07:05' is not a valid date and time."


def test_parse_input_datetime_rejects_garbage():
    with pytest.raises(ValidationError) as excinfo:
        parse_input_datetime("31/02/2024 07:00", "Departure time")

    assert excinfo.value.message.startswith("Departure time '31/02/2024 07:00'")


def test_parse_civil_date():
    assert parse_civil_date("10/03/2024") == date(2024, 3, 10)
    assert parse_civil_date("2024-03-10") == date(2024, 3, 10)
    assert parse_civil_date("March 10") is None


def test_formatting():
    stamp = datetime(2024, 3, 10, 7, 5, 9)

    assert format_civil_datetime(stamp) == "10/03/2024 07:05"
    assert format_civil_datetime(stamp, seconds=True) == "10/03/2024 07:05:09"
    assert format_civil_datetime(None) == ""
    assert format_civil_date(stamp.date()) == "10/03/2024"


@pytest.mark.parametrize(
    ("value", "places", "expected"),
    [
        (2.345, 2, 2.35),
        (2.675, 2, 2.68),
        (12.45, 1, 12.5),
        (-0.125, 2, -0.13),
        (8.0, 2, 8.0),
    ],
)
def test_round_half_up(value, places, expected):
    assert round_half_up(value, places) == expected


def test_hours_between():
    assert hours_between(datetime(2024, 1, 1, 8, 0), datetime(2024, 1, 1, 18, 30)) == 10.5
    assert hours_between(datetime(2024, 1, 1, 8, 0), datetime(2024, 1, 1, 8, 20)) == 0.33
    assert hours_between(datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 8, 0)) == -1.0
    assert hours_between(None, datetime(2024, 1, 1, 8, 0)) is None


def test_now_local_is_naive_and_whole_seconds(app):
    value = now_local()

    assert value.tzinfo is None
    assert value.microsecond == 0


def test_unknown_timezone_falls_back_to_utc(app):
    app.config["APP_TIMEZONE"] = "Mars/Olympus_Mons"

    assert now_local().tzinfo is None
