"""In-memory work tracking store.

``MemStorage`` owns every Employee, WorkCard, WorkSession and Report for the
lifetime of the process.  Tables are plain dicts keyed by id; ids come from
one counter shared by all four tables, so an id is unique across kinds.
Lookups by business key are linear scans, which is fine at the scale of a
crew (tens to a few thousand records).

Every public method takes the store lock.  Flask serves requests on several
threads and report jobs run on their own, so the lock is what keeps the
completion protocol's session append and card update together.
"""

import dataclasses
import itertools
import logging
import threading
from datetime import datetime
from typing import Optional

from pydantic.alias_generators import to_camel

from .errors import DuplicateKeyError, NotFoundError
from .models import (
    OVERTIME_DEFAULTS,
    STARTED_STATUSES,
    Employee,
    Report,
    WorkCard,
    WorkSession,
    utcnow,
)
from .qr_utils import make_qr_token


logger = logging.getLogger(__name__)

UNIQUE_KEYS = {
    Employee: ("employee_id",),
    WorkCard: ("card_id", "qr_code"),
    WorkSession: (),
    Report: (),
}

# Set by the store on create and never changed afterwards.
IMMUTABLE_FIELDS = {
    Employee: ("id", "created_at"),
    WorkCard: ("id", "qr_code", "created_at"),
    WorkSession: ("id", "timestamp"),
    Report: ("id", "generated_at"),
}

# Completion form fields copied onto the card when they are submitted.
MANUFACTURING_FIELDS = (
    "shift_time",
    "machine_slots",
    "machine_number",
    "operation_number",
    "time_loss_activities",
    "defective_part_numbers",
)
OVERTIME_FIELDS = (
    "overtime_shift_time",
    "overtime_machine_slots",
    "overtime_machine_number",
    "overtime_operation_number",
    "overtime_time_loss_activities",
    "overtime_defective_part_numbers",
)


def hours_to_minutes(hours) -> int:
    return int(round(float(hours) * 60))


class MemStorage:
    def __init__(self):
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._tables = {kind: {} for kind in UNIQUE_KEYS}

    # ------------------------------------------------------------------
    # Generic record access
    # ------------------------------------------------------------------
    def get(self, kind, record_id: int):
        with self._lock:
            return self._tables[kind].get(record_id)

    def all(self, kind) -> list:
        with self._lock:
            return list(self._tables[kind].values())

    def find_by(self, kind, field: str, value):
        with self._lock:
            for record in self._tables[kind].values():
                if getattr(record, field) == value:
                    return record
            return None

    def filter_by(self, kind, field: str, value) -> list:
        with self._lock:
            return [r for r in self._tables[kind].values() if getattr(r, field) == value]

    def create(self, kind, payload: dict):
        """Insert a new record of ``kind`` built from ``payload``.

        Omitted optional fields take the record's declared defaults.  The id
        and the creation stamps are always assigned here, whatever the
        payload says.
        """
        with self._lock:
            now = utcnow()
            values = dict(payload)
            for name in IMMUTABLE_FIELDS[kind]:
                values.pop(name, None)

            if kind is Employee:
                values["created_at"] = now
                values["last_seen"] = now
            elif kind is WorkCard:
                values["created_at"] = now
                values["qr_code"] = self._unique_qr_token(values.get("card_id"))
            elif kind is WorkSession:
                values["timestamp"] = now
            elif kind is Report:
                values["generated_at"] = now
                values["status"] = "generating"
                values["file_path"] = None

            self._check_unique(kind, values)
            record = kind(id=next(self._ids), **values)
            self._tables[kind][record.id] = record
            logger.debug("created %s %s", kind.__name__, record.id)
            return record

    def load_fixture(self, kind, values: dict):
        """Insert a record whose stamps (qr_code, timestamps) are given.

        Used for sample data; only the id is assigned here.
        """
        with self._lock:
            self._check_unique(kind, values)
            record = kind(id=next(self._ids), **values)
            self._tables[kind][record.id] = record
            return record

    def update(self, kind, record_id: int, fields: dict):
        """Shallow-merge ``fields`` over an existing record.

        List-valued fields are replaced wholesale, never appended to.
        Foreign keys are not checked.  Returns None if the id is unknown.
        """
        with self._lock:
            current = self._tables[kind].get(record_id)
            if current is None:
                return None
            frozen = [name for name in IMMUTABLE_FIELDS[kind] if name in fields]
            if frozen:
                raise TypeError(f"{kind.__name__} fields cannot be updated: {', '.join(frozen)}")
            self._check_unique(kind, fields, exclude_id=record_id)
            updated = dataclasses.replace(current, **fields)
            self._tables[kind][record_id] = updated
            return updated

    def delete(self, kind, record_id: int) -> bool:
        with self._lock:
            return self._tables[kind].pop(record_id, None) is not None

    def _check_unique(self, kind, values: dict, exclude_id: Optional[int] = None):
        for key in UNIQUE_KEYS[kind]:
            if key not in values:
                continue
            for record in self._tables[kind].values():
                if record.id != exclude_id and getattr(record, key) == values[key]:
                    raise DuplicateKeyError(to_camel(key), values[key])

    def _unique_qr_token(self, card_id: str) -> str:
        taken = {card.qr_code for card in self._tables[WorkCard].values()}
        token = make_qr_token(card_id)
        while token in taken:
            token = make_qr_token(card_id)
        return token

    # ------------------------------------------------------------------
    # Named lookups
    # ------------------------------------------------------------------
    def get_employee_by_employee_id(self, employee_id: str) -> Optional[Employee]:
        return self.find_by(Employee, "employee_id", employee_id)

    def get_work_card_by_card_id(self, card_id: str) -> Optional[WorkCard]:
        return self.find_by(WorkCard, "card_id", card_id)

    def get_work_card_by_qr_code(self, qr_code: str) -> Optional[WorkCard]:
        return self.find_by(WorkCard, "qr_code", qr_code)

    def work_cards_by_status(self, status: str) -> list[WorkCard]:
        return self.filter_by(WorkCard, "status", status)

    def work_cards_by_employee(self, employee_id: int) -> list[WorkCard]:
        return self.filter_by(WorkCard, "assigned_to_id", employee_id)

    def sessions_by_work_card(self, work_card_id: int) -> list[WorkSession]:
        return self.filter_by(WorkSession, "work_card_id", work_card_id)

    def sessions_by_employee(self, employee_id: int) -> list[WorkSession]:
        return self.filter_by(WorkSession, "employee_id", employee_id)

    def recent_sessions(self, limit: int) -> list[WorkSession]:
        """Newest sessions first; equal timestamps fall back to newest id."""
        with self._lock:
            sessions = sorted(
                self._tables[WorkSession].values(),
                key=lambda s: (s.timestamp, s.id),
                reverse=True,
            )
            return sessions[:max(limit, 0)]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def dashboard_stats(self, now: Optional[datetime] = None) -> dict[str, int]:
        now = now or utcnow()
        # Start of the current calendar day in server local time.
        today = now.astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
        with self._lock:
            employees = list(self._tables[Employee].values())
            cards = list(self._tables[WorkCard].values())

        return {
            "activeWorkers": sum(1 for e in employees if e.status == "active"),
            "completedToday": sum(
                1 for c in cards
                if c.status == "completed" and c.completed_at and c.completed_at >= today
            ),
            "inProgress": sum(1 for c in cards if c.status == "in-progress"),
            "overdue": sum(1 for c in cards if c.is_overdue(now)),
        }

    # ------------------------------------------------------------------
    # Completion protocol
    # ------------------------------------------------------------------
    def complete_work_card(self, card_id: int, completion: dict) -> WorkCard:
        """Record a completion submission against a work card.

        ``completion`` is a validated ``WorkCompletion`` payload keyed by
        attribute name, with only the submitted keys present for the optional
        manufacturing fields.  Hours are given in hours.  Appends one
        WorkSession and updates the card under a single lock hold.
        """
        with self._lock:
            card = self._tables[WorkCard].get(card_id)
            if card is None:
                raise NotFoundError("Work card")

            now = utcnow()
            status = completion["status"]
            minutes = hours_to_minutes(completion["hours_worked"])
            materials = list(completion.get("materials") or [])
            photo_urls = list(completion.get("photo_urls") or [])

            updates = {
                "status": status,
                "progress_percent": completion["progress_percent"],
                "hours_worked": (card.hours_worked or 0) + minutes,
                "notes": completion["notes"],
                "materials": materials,
                "photo_urls": photo_urls,
            }
            for name in MANUFACTURING_FIELDS:
                if name in completion:
                    updates[name] = completion[name]
            if completion.get("total_work_hours") is not None:
                updates["total_work_hours"] = hours_to_minutes(completion["total_work_hours"])

            if completion.get("is_overtime"):
                updates["is_overtime"] = True
                updates["overtime_hours"] = hours_to_minutes(completion.get("overtime_hours") or 0)
                for name in OVERTIME_FIELDS:
                    if name in completion:
                        updates[name] = completion[name]
            else:
                updates["is_overtime"] = False
                for name, default in OVERTIME_DEFAULTS.items():
                    updates[name] = list(default) if isinstance(default, list) else default

            if status in STARTED_STATUSES and card.started_at is None:
                updates["started_at"] = now
            if status == "completed":
                updates["progress_percent"] = 100
                if card.completed_at is None:
                    updates["completed_at"] = now

            # Build the new card first so a bad update leaves no session behind.
            updated = dataclasses.replace(card, **updates)
            self.create(WorkSession, {
                "work_card_id": card.id,
                "employee_id": card.assigned_to_id,
                "action": status,
                "previous_status": card.status,
                "new_status": status,
                "progress_update": completion["progress_percent"],
                "hours_worked": minutes,
                "notes": completion["notes"],
                "materials": list(materials),
                "photo_urls": list(photo_urls),
            })
            self._tables[WorkCard][card.id] = updated
            logger.info(
                "work card %s: %s -> %s (+%d min)", card.card_id, card.status, status, minutes
            )
            return updated
