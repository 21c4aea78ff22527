"""Request payload schemas.

Every JSON body accepted by the API is parsed with one of these pydantic
models before the store is touched.  Payloads use camelCase keys on the wire;
the models expose snake_case attributes and ``to_fields`` hands the store a
dict keyed by record attribute names.  Unknown keys are dropped.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Optional

import pydantic
from pydantic import (
    AfterValidator, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .models import MAX_MACHINE_SLOTS, as_utc


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
NonEmptyStr = Annotated[str, Field(min_length=1)]

EmployeeStatus = Literal["active", "on-break", "off-site", "unavailable"]
# "overdue" is never written; it is derived from the deadline at query time.
WorkCardStatus = Literal["assigned", "in-progress", "completed", "on-hold"]
CompletionStatus = Literal["started", "in-progress", "completed", "on-hold", "requires-review"]
Priority = Literal["low", "normal", "high", "urgent"]
ReportType = Literal[
    "daily-summary",
    "weekly-summary",
    "employee-performance",
    "project-progress",
    "material-usage",
    "safety-incidents",
]


def _plain(value):
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_fields(self, exclude_unset: bool = False) -> dict[str, Any]:
        """Attribute-name keyed dict for the store; nested items stay camelCase."""
        names = self.model_fields_set if exclude_unset else type(self).model_fields
        return {name: _plain(getattr(self, name)) for name in names}


class Material(Schema):
    name: NonEmptyStr
    quantity: float = Field(ge=0)


class MachineSlot(Schema):
    machine_number: NonEmptyStr
    operation_number: NonEmptyStr
    time_worked: float = Field(ge=0)


class TimeLossActivity(Schema):
    activity: NonEmptyStr
    duration: float = Field(ge=0)
    issue_type: NonEmptyStr


MachineSlots = Annotated[list[MachineSlot], Field(max_length=MAX_MACHINE_SLOTS)]


class EmployeeCreate(Schema):
    name: NonEmptyStr
    employee_id: NonEmptyStr
    department: NonEmptyStr
    location: Optional[str] = None
    status: EmployeeStatus = "active"


class EmployeeUpdate(Schema):
    """Partial employee update; only keys present in the body are applied."""

    name: Optional[NonEmptyStr] = None
    employee_id: Optional[NonEmptyStr] = None
    department: Optional[NonEmptyStr] = None
    location: Optional[str] = None
    status: Optional[EmployeeStatus] = None
    last_seen: Optional[UtcDatetime] = None

    @model_validator(mode="after")
    def _required_columns_not_null(self):
        for name in ("name", "employee_id", "department", "status", "last_seen"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class WorkCardCreate(Schema):
    card_id: NonEmptyStr
    title: NonEmptyStr
    description: NonEmptyStr
    location: NonEmptyStr
    assigned_to_id: Optional[int] = None
    status: WorkCardStatus = "assigned"
    priority: Priority = "normal"
    deadline: Optional[UtcDatetime] = None
    started_at: Optional[UtcDatetime] = None
    completed_at: Optional[UtcDatetime] = None
    progress_percent: int = Field(0, ge=0, le=100)
    hours_worked: int = Field(0, ge=0)
    notes: Optional[str] = None
    materials: list[Material] = []
    photo_urls: list[str] = []
    shift_time: Optional[str] = None
    machine_slots: MachineSlots = []
    machine_number: Optional[str] = None
    operation_number: Optional[str] = None
    time_loss_activities: list[TimeLossActivity] = []
    defective_part_numbers: list[str] = []
    total_work_hours: int = Field(0, ge=0)
    is_overtime: bool = False
    overtime_hours: int = Field(0, ge=0)
    overtime_shift_time: Optional[str] = None
    overtime_machine_slots: MachineSlots = []
    overtime_machine_number: Optional[str] = None
    overtime_operation_number: Optional[str] = None
    overtime_time_loss_activities: list[TimeLossActivity] = []
    overtime_defective_part_numbers: list[str] = []


class WorkCompletion(Schema):
    """A completion form submission for one work card.

    ``hours_worked``, ``total_work_hours`` and ``overtime_hours`` are entered
    in hours; the store converts them to minutes.
    """

    status: CompletionStatus
    progress_percent: int = Field(ge=0, le=100)
    hours_worked: float = Field(ge=0, le=24)
    notes: str = Field(min_length=1)
    materials: list[Material] = []
    photo_urls: list[str] = []
    shift_time: Optional[str] = None
    machine_slots: MachineSlots = []
    machine_number: Optional[str] = None
    operation_number: Optional[str] = None
    total_work_hours: Optional[float] = Field(None, ge=0)
    time_loss_activities: list[TimeLossActivity] = []
    defective_part_numbers: list[str] = []
    overtime_hours: Optional[float] = Field(None, ge=0)
    overtime_shift_time: Optional[str] = None
    overtime_machine_slots: MachineSlots = []
    overtime_machine_number: Optional[str] = None
    overtime_operation_number: Optional[str] = None
    overtime_time_loss_activities: list[TimeLossActivity] = []
    overtime_defective_part_numbers: list[str] = []
    # Declared after the overtime details so its validator can see them.
    is_overtime: bool = False

    @field_validator("is_overtime")
    @classmethod
    def _overtime_fields_complete(cls, value: bool, info: ValidationInfo) -> bool:
        if value and not (
            info.data.get("overtime_hours")
            and info.data.get("overtime_shift_time")
            and info.data.get("overtime_machine_slots")
        ):
            raise ValueError("All overtime fields are required when overtime is selected")
        return value


class ReportCreate(Schema):
    name: NonEmptyStr
    type: ReportType
    date_from: UtcDatetime
    date_to: UtcDatetime
    filters: Optional[dict[str, Any]] = None

    @model_validator(mode="after")
    def _range_ordered(self):
        if self.date_from > self.date_to:
            raise ValueError("dateFrom must not be after dateTo")
        return self


def parse(schema: type[Schema], data, message: str) -> Schema:
    """Validate ``data`` against ``schema`` or raise our ValidationError.

    All field problems are reported at once, keyed by their camelCase path.
    """
    try:
        return schema.model_validate(data if data is not None else {})
    except pydantic.ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        for err in errors:
            err["loc"] = list(err["loc"])
        raise ValidationError(message, errors) from exc
