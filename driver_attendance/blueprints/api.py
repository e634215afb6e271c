"""JSON operations consumed by the driver form and the dashboard.

Every operation is ``POST /api/<operation>`` with a JSON object body and always
answers HTTP 200 with a ``success`` flag. Write operations report failures as
``{"success": False, "error": ...}``; read operations fall back to their empty
shape so the dashboard keeps rendering.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

from flask import Blueprint, current_app, make_response, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import MultiDict

from driver_attendance import lifecycle
from driver_attendance.civil_time import now_local, parse_civil_date
from driver_attendance.dashboard import (
    dashboard_data,
    dashboard_detail_data,
    empty_dashboard,
    empty_dashboard_detail,
    vehicle_hours_data,
)
from driver_attendance.errors import ConflictError, ShiftError, ValidationError
from driver_attendance.extensions import db
from driver_attendance.forms import (
    ApiForm,
    DashboardDetailForm,
    DepartureForm,
    LastDropForm,
    ShiftEndForm,
    StartShiftForm,
    VehicleHoursRangeForm,
)
from driver_attendance.lookups import empty_initial_data, initial_data
from driver_attendance.report_export import attendance_sheet_csv
from driver_attendance.store import ShiftStore


bp = Blueprint("api", __name__, url_prefix="/api")

Payload = dict[str, Any]
Handler = Callable[[Payload], Payload]

OPERATIONS: dict[str, Handler] = {}


def _formdata(payload: Payload) -> MultiDict:
    return MultiDict(
        {
            key: str(value)
            for key, value in payload.items()
            if value is not None and not isinstance(value, (dict, list))
        }
    )


def _bind(form_class: type[ApiForm], payload: Payload) -> ApiForm:
    form = form_class(formdata=_formdata(payload))
    if not form.validate():
        raise ValidationError(form.first_error())
    return form


def operation(name: str, empty: Callable[[], Payload] | None = None):
    """Register ``name`` and wrap it in the failure envelope.

    ``empty`` marks a read operation: faults are logged and its empty shape is
    returned alongside the error message.
    """

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        def wrapped(payload: Payload) -> Payload:
            try:
                result = func(payload)
            except ShiftError as exc:
                if empty is not None:
                    current_app.logger.warning("%s degraded: %s", name, exc.message, exc_info=True)
                    return {"success": False, "error": exc.message, **empty()}
                body: Payload = {"success": False, "error": exc.message}
                if isinstance(exc, ConflictError) and exc.stuck_stage is not None:
                    body["stuckStage"] = exc.stuck_stage
                return body
            except SQLAlchemyError:
                db.session.rollback()
                current_app.logger.warning("%s failed on the datastore.", name, exc_info=True)
                error = "The attendance data is unavailable. Please try again."
                return {"success": False, "error": error, **(empty() if empty is not None else {})}
            except Exception as exc:
                db.session.rollback()
                current_app.logger.warning("%s failed unexpectedly.", name, exc_info=True)
                error = str(exc) or "Unexpected error."
                return {"success": False, "error": error, **(empty() if empty is not None else {})}
            return {"success": True, **result}

        OPERATIONS[name] = wrapped
        return wrapped

    return decorator


def _empty_drivers() -> Payload:
    return {"drivers": []}


def _empty_vehicle_hours() -> Payload:
    return {"vehicleRunTime": []}


@operation("startShift")
def start_shift(payload: Payload) -> Payload:
    form = _bind(StartShiftForm, payload)
    return lifecycle.start_shift(
        driver_id=form.driverId.data,
        driver_name=form.driverName.data,
        helper_id=form.helperId.data,
        helper_name=form.helperName.data,
        helper_company=form.helperCompany.data,
        vehicle_number=form.vehicleNumber.data,
        start_odometer=form.startOdometer.data,
        start_photo=form.startPhotoBase64.data,
        fuel_taken=form.fuelTaken.data,
        destination_emirate=form.destinationEmirate.data,
        primary_customer=form.primaryCustomer.data,
        total_drops=form.totalDrops.data,
        shift_start_time=form.shiftStartTime.data,
    )


@operation("getStage1PendingDrivers", empty=_empty_drivers)
def stage1_pending_drivers(_payload: Payload) -> Payload:
    return {"drivers": lifecycle.list_pending_at_stage(2)}


@operation("saveDeparture")
def save_departure(payload: Payload) -> Payload:
    form = _bind(DepartureForm, payload)
    return lifecycle.record_departure(form.rowId.data, form.departureTime.data)


@operation("getActiveDriversForEndShift", empty=_empty_drivers)
def active_drivers_for_end_shift(_payload: Payload) -> Payload:
    return {"drivers": lifecycle.list_pending_at_stage(3)}


@operation("saveLastDrop")
def save_last_drop(payload: Payload) -> Payload:
    form = _bind(LastDropForm, payload)
    return lifecycle.record_last_drop(
        form.rowId.data,
        form.lastDropTime.data,
        form.failedDrops.data,
        form.lastDropPhotoBase64.data,
    )


@operation("getStage3PendingDrivers", empty=_empty_drivers)
def stage3_pending_drivers(_payload: Payload) -> Payload:
    return {"drivers": lifecycle.list_pending_at_stage(4)}


@operation("saveShiftEnd")
def save_shift_end(payload: Payload) -> Payload:
    form = _bind(ShiftEndForm, payload)
    return lifecycle.complete_shift(
        form.rowId.data,
        form.shiftCompleteTime.data,
        form.endOdometer.data,
        form.endPhotoBase64.data,
    )


@operation("getDashboardData", empty=empty_dashboard)
def dashboard(_payload: Payload) -> Payload:
    return dashboard_data()


def _required_date(value: str, label: str):
    parsed = parse_civil_date(value)
    if parsed is None:
        raise ValidationError(f"{label} '{value}' is not a valid date.")
    return parsed


@operation("getDashboardDetailData", empty=empty_dashboard_detail)
def dashboard_detail(payload: Payload) -> Payload:
    form = _bind(DashboardDetailForm, payload)
    return dashboard_detail_data(_required_date(form.date.data, "Date"))


@operation("getVehicleHoursForRange", empty=_empty_vehicle_hours)
def vehicle_hours_for_range(payload: Payload) -> Payload:
    form = _bind(VehicleHoursRangeForm, payload)
    date_from = _required_date(form.fromDate.data, "Start date")
    date_to = _required_date(form.toDate.data, "End date")
    return {"vehicleRunTime": vehicle_hours_data(date_from, date_to)}


@operation("getInitialData", empty=empty_initial_data)
def initial_lists(_payload: Payload) -> Payload:
    return initial_data()


@bp.post("/<string:operation_name>")
def dispatch(operation_name: str):
    handler = OPERATIONS.get(operation_name)
    if handler is None:
        return {"success": False, "error": f"Unknown operation '{operation_name}'."}, 404

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    return handler(payload)


@bp.get("/attendance-sheet.csv")
def attendance_sheet():
    content = attendance_sheet_csv(ShiftStore().scan())
    stamp = now_local().strftime("%Y%m%d-%H%M%S")
    response = make_response(content)
    response.headers["Content-Type"] = "text/csv; charset=utf-8"
    response.headers["Content-Disposition"] = f'attachment; filename="attendance-data-{stamp}.csv"'
    return response
