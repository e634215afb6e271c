"""Civil date-time helpers.

All shift timestamps are civil (wall-clock) values in the single configured
timezone. They travel over the wire as ``DD/MM/YYYY HH:MM[:SS]`` strings and are
stored as naive datetimes. Date-time pickers send ``YYYY-MM-DDTHH:MM`` which is
transcoded at the boundary.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import current_app

from driver_attendance.errors import ValidationError


CIVIL_DATE_FORMAT = "%d/%m/%Y"
CIVIL_MINUTE_FORMAT = "%d/%m/%Y %H:%M"
CIVIL_SECOND_FORMAT = "%d/%m/%Y %H:%M:%S"
ROW_ID_STAMP_FORMAT = "%Y%m%d-%H%M%S"

_CIVIL_INPUT_FORMATS = (CIVIL_SECOND_FORMAT, CIVIL_MINUTE_FORMAT)


def app_timezone() -> ZoneInfo:
    tz_name = current_app.config.get("APP_TIMEZONE", "Asia/Dubai")
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        return ZoneInfo("UTC")


def now_local() -> datetime:
    """Current civil time in the app timezone, without tzinfo."""
    return datetime.now(app_timezone()).replace(tzinfo=None, microsecond=0)


def parse_civil_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    raw = str(value).strip()
    for fmt in _CIVIL_INPUT_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def parse_input_datetime(value: str | None, label: str = "Date and time") -> datetime | None:
    """Parse a picker (``YYYY-MM-DDTHH:MM``) or civil value.

    Picker values are transcoded to the civil format first. Blank input yields
    ``None``; anything else that does not parse is a ``ValidationError``.
    """
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    parsed = parse_civil_datetime(transcode_datetime_local(raw))
    if parsed is None:
        raise ValidationError(f"{label} '{raw}' is not a valid date and time.")
    return parsed


def parse_civil_date(value: str | None) -> date | None:
    if not value:
        return None
    raw = str(value).strip()
    try:
        return datetime.strptime(raw, CIVIL_DATE_FORMAT).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def format_civil_datetime(value: datetime | None, seconds: bool = False) -> str:
    if value is None:
        return ""
    return value.strftime(CIVIL_SECOND_FORMAT if seconds else CIVIL_MINUTE_FORMAT)


def format_civil_date(value: date | None) -> str:
    if value is None:
        return ""
    return value.strftime(CIVIL_DATE_FORMAT)


def transcode_datetime_local(value: str | None) -> str:
    """``YYYY-MM-DDTHH:MM`` to ``DD/MM/YYYY HH:MM``; other input is returned as-is."""
    if not value:
        return ""
    date_part, _, time_part = str(value).partition("T")
    pieces = date_part.split("-")
    if len(pieces) != 3:
        return str(value)
    year, month, day = pieces
    return f"{day}/{month}/{year} {time_part or '00:00'}"


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def hours_between(start: datetime | None, end: datetime | None) -> float | None:
    if start is None or end is None:
        return None
    return round_half_up((end - start).total_seconds() / 3600, 2)
