"""Attendance sheet export."""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Iterable

from driver_attendance.models import ShiftRecord
from driver_attendance.store import SHEET_HEADERS, sheet_row


def to_csv_bytes(headers: list[str], rows: Iterable[list[Any]]) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_stringify(value) for value in row])
    # BOM so spreadsheet tools pick up UTF-8 names.
    return out.getvalue().encode("utf-8-sig")


def attendance_sheet_csv(records: Iterable[ShiftRecord]) -> bytes:
    return to_csv_bytes(SHEET_HEADERS, (sheet_row(record) for record in records))


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
