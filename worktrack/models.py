"""Record types for the work tracking store.

Employees, work cards, work sessions and reports are plain frozen
dataclasses.  The store never mutates a record in place; an update builds a
new record with ``dataclasses.replace`` and swaps it into the table, so a
record handed to a caller is a stable snapshot.  Attribute names are
snake_case; ``serialize`` produces the camelCase JSON shape the REST clients
expect.  All timestamps are timezone-aware UTC.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic.alias_generators import to_camel


EMPLOYEE_STATUSES = ("active", "on-break", "off-site", "unavailable")

# Values a work card's ``status`` can hold.  "overdue" is part of the stored
# vocabulary but nothing in the store ever writes it; overdue-ness is computed
# from the deadline in ``MemStorage.dashboard_stats``.
WORK_CARD_STATUSES = ("assigned", "in-progress", "completed", "overdue", "on-hold")
COMPLETION_STATUSES = ("started", "in-progress", "completed", "on-hold", "requires-review")
STARTED_STATUSES = ("started", "in-progress")

PRIORITIES = ("low", "normal", "high", "urgent")

SHIFT_TIMES = ("first-shift", "general-shift", "second-shift", "night-shift")
OVERTIME_SHIFT_TIMES = ("extended-day", "extended-evening", "overnight", "weekend")

# Time-loss issue codes offered on the completion form.
ISSUE_TYPES = {
    "100": "Assembly damage",
    "101": "Wrong assembly",
    "110": "Vendor issue",
    "111": "Quality issue",
    "112": "Design issue",
    "120": "Material shortage",
    "121": "Material anomaly",
    "130": "Tools/equipment",
    "140": "Break down",
    "150": "Development hours",
    "180": "PDI",
}

MAX_MACHINE_SLOTS = 4

REPORT_TYPES = (
    "daily-summary",
    "weekly-summary",
    "employee-performance",
    "project-progress",
    "material-usage",
    "safety-incidents",
)
REPORT_STATUSES = ("generating", "ready", "failed")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise ``value`` to aware UTC; naive values are taken as local time."""
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Employee:
    """A crew member who can be assigned work cards.

    ``employee_id`` is the external business code printed on badges
    (e.g. ``EMP-001``) and is unique; ``id`` is the synthetic store id.
    """

    id: int
    employee_id: str
    name: str
    department: str
    location: Optional[str] = None
    status: str = "active"
    last_seen: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class WorkCard:
    """A unit of assignable work.

    Cards are addressed by a human readable ``card_id`` and by ``qr_code``,
    the token printed on the card and scanned on site.  ``hours_worked``,
    ``total_work_hours`` and ``overtime_hours`` are minutes.  Materials,
    machine slots and time-loss activities are kept as JSON-shaped dicts
    exactly as they are exchanged with clients.
    """

    id: int
    card_id: str
    title: str
    description: str
    location: str
    qr_code: str
    assigned_to_id: Optional[int] = None
    status: str = "assigned"
    priority: str = "normal"
    deadline: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress_percent: int = 0
    hours_worked: int = 0
    notes: Optional[str] = None
    materials: list = field(default_factory=list)
    photo_urls: list = field(default_factory=list)
    # Manufacturing
    shift_time: Optional[str] = None
    machine_slots: list = field(default_factory=list)
    machine_number: Optional[str] = None
    operation_number: Optional[str] = None
    time_loss_activities: list = field(default_factory=list)
    defective_part_numbers: list = field(default_factory=list)
    total_work_hours: int = 0
    # Overtime
    is_overtime: bool = False
    overtime_hours: int = 0
    overtime_shift_time: Optional[str] = None
    overtime_machine_slots: list = field(default_factory=list)
    overtime_machine_number: Optional[str] = None
    overtime_operation_number: Optional[str] = None
    overtime_time_loss_activities: list = field(default_factory=list)
    overtime_defective_part_numbers: list = field(default_factory=list)
    created_at: Optional[datetime] = None

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.deadline is not None
            and self.deadline < now
            and self.status != "completed"
        )


# Overtime fields and the value they fall back to when a completion is
# submitted without overtime.
OVERTIME_DEFAULTS = {
    "overtime_hours": 0,
    "overtime_shift_time": None,
    "overtime_machine_slots": [],
    "overtime_machine_number": None,
    "overtime_operation_number": None,
    "overtime_time_loss_activities": [],
    "overtime_defective_part_numbers": [],
}


@dataclass(frozen=True)
class WorkSession:
    """One status-changing event applied to a work card.

    Sessions form an append-only audit log: the store creates them during the
    completion protocol and never updates or deletes them.
    """

    id: int
    action: str
    work_card_id: Optional[int] = None
    employee_id: Optional[int] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    progress_update: Optional[int] = None
    hours_worked: Optional[int] = None
    notes: Optional[str] = None
    materials: Optional[list] = None
    photo_urls: Optional[list] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class Report:
    """A requested Excel report.

    Created as ``generating``; the background job flips it to ``ready`` with a
    ``file_path`` or to ``failed``.  ``filters`` is stored as given.
    """

    id: int
    name: str
    type: str
    date_from: datetime
    date_to: datetime
    filters: Optional[dict] = None
    status: str = "generating"
    file_path: Optional[str] = None
    generated_at: Optional[datetime] = None


def serialize(record) -> dict[str, Any]:
    """Return the camelCase JSON representation of a record."""
    out = {}
    for f in fields(record):
        value = getattr(record, f.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        out[to_camel(f.name)] = value
    return out


def employee_summary(employee: Optional[Employee]) -> Optional[dict]:
    if employee is None:
        return None
    return {"id": employee.id, "name": employee.name, "employeeId": employee.employee_id}


def work_card_summary(card: Optional[WorkCard]) -> Optional[dict]:
    if card is None:
        return None
    return {"id": card.id, "cardId": card.card_id, "title": card.title}
