"""Reference lists for the shift form pick-lists."""

from __future__ import annotations

import csv
from typing import Any, Iterable, TextIO

from sqlalchemy import select

from driver_attendance.extensions import db
from driver_attendance.models import ReferenceRow


REFERENCE_CSV_FIELDS = (
    "driver_id",
    "driver_name",
    "helper_id",
    "helper_name",
    "helper_company",
    "vehicle_number",
    "destination",
    "customer_name",
)


def empty_initial_data() -> dict[str, list[Any]]:
    return {"drivers": [], "helpers": [], "vehicles": [], "destinations": [], "customers": []}


def build_initial_data(rows: Iterable[ReferenceRow]) -> dict[str, list[Any]]:
    data = empty_initial_data()
    seen: dict[str, set[str]] = {key: set() for key in data}

    def add(key: str, marker: str, item: Any) -> None:
        if marker in seen[key]:
            return
        seen[key].add(marker)
        data[key].append(item)

    for row in rows:
        driver_id = (row.driver_id or "").strip()
        driver_name = (row.driver_name or "").strip()
        helper_id = (row.helper_id or "").strip()
        helper_name = (row.helper_name or "").strip()
        vehicle = (row.vehicle_number or "").strip()
        destination = (row.destination or "").strip()
        customer = (row.customer_name or "").strip()

        if driver_id and driver_name:
            add("drivers", driver_id, {"id": driver_id, "name": driver_name})
        if helper_id and helper_name:
            add("helpers", helper_id, {"id": helper_id, "name": helper_name, "company": (row.helper_company or "").strip()})
        if vehicle:
            add("vehicles", vehicle, {"number": vehicle})
        if destination:
            add("destinations", destination, destination)
        if customer:
            add("customers", customer, customer)

    return data


def initial_data() -> dict[str, list[Any]]:
    rows = db.session.execute(select(ReferenceRow).order_by(ReferenceRow.id.asc())).scalars().all()
    return build_initial_data(rows)


def import_reference_csv(stream: TextIO, replace: bool = False) -> int:
    """Load reference rows from a CSV whose header uses ``REFERENCE_CSV_FIELDS`` names."""
    reader = csv.DictReader(stream)
    missing = set(REFERENCE_CSV_FIELDS) - set(reader.fieldnames or [])
    if missing == set(REFERENCE_CSV_FIELDS):
        raise ValueError("CSV header does not contain any reference column.")

    if replace:
        db.session.execute(ReferenceRow.__table__.delete())

    count = 0
    for raw in reader:
        values = {field: (raw.get(field) or "").strip() for field in REFERENCE_CSV_FIELDS}
        if not any(values.values()):
            continue
        db.session.add(ReferenceRow(**values))
        count += 1
    db.session.commit()
    return count
