"""WTForms classes validating the JSON payload of each API operation.

Field names follow the wire contract (camelCase keys of the JSON body).
"""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import FloatField, IntegerField, StringField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    def first_error(self) -> str:
        for field in self:
            if field.errors:
                return str(field.errors[0])
        return "Invalid request."


class StartShiftForm(ApiForm):
    driverId = StringField(validators=[DataRequired("Driver is required."), Length(max=64)], filters=[_strip])
    driverName = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    helperId = StringField(validators=[Optional(), Length(max=64)], filters=[_strip])
    helperName = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    helperCompany = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    vehicleNumber = StringField(validators=[DataRequired("Vehicle number is required."), Length(max=64)], filters=[_strip])
    startOdometer = FloatField(
        validators=[InputRequired("Start odometer is required."), NumberRange(min=0, message="Start odometer cannot be negative.")]
    )
    startPhotoBase64 = StringField(validators=[DataRequired("Start odometer photo is required.")])
    fuelTaken = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    destinationEmirate = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    primaryCustomer = StringField(validators=[Optional(), Length(max=255)], filters=[_strip])
    totalDrops = IntegerField(validators=[Optional(), NumberRange(min=0, message="Total drops cannot be negative.")])
    shiftStartTime = StringField(validators=[DataRequired("Shift start time is required.")], filters=[_strip])


class DepartureForm(ApiForm):
    rowId = StringField(validators=[DataRequired("Shift record not found. Please check with your supervisor.")], filters=[_strip])
    departureTime = StringField(validators=[DataRequired("Departure time is required.")], filters=[_strip])


class LastDropForm(ApiForm):
    rowId = StringField(validators=[DataRequired("Shift record not found. Please check with your supervisor.")], filters=[_strip])
    lastDropTime = StringField(validators=[DataRequired("Last drop time is required.")], filters=[_strip])
    failedDrops = IntegerField(
        validators=[
            InputRequired("Number of failed drops is required."),
            NumberRange(min=0, message="Number of failed drops cannot be negative."),
        ]
    )
    lastDropPhotoBase64 = StringField(validators=[DataRequired("Last drop photo is required.")])


class ShiftEndForm(ApiForm):
    rowId = StringField(validators=[DataRequired("Shift record not found. Please check with your supervisor.")], filters=[_strip])
    shiftCompleteTime = StringField(validators=[DataRequired("Shift complete time is required.")], filters=[_strip])
    endOdometer = FloatField(
        validators=[InputRequired("End odometer is required."), NumberRange(min=0, message="End odometer cannot be negative.")]
    )
    endPhotoBase64 = StringField(validators=[DataRequired("End odometer photo is required.")])


class DashboardDetailForm(ApiForm):
    date = StringField(validators=[DataRequired("Date is required.")], filters=[_strip])


class VehicleHoursRangeForm(ApiForm):
    fromDate = StringField(validators=[DataRequired("Start date is required.")], filters=[_strip])
    toDate = StringField(validators=[DataRequired("End date is required.")], filters=[_strip])
