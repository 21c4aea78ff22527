"""Sample data loaded into a fresh store.

Three crew members and one work card each, covering the completed,
in-progress and assigned states so the dashboard and the scanner page have
something to show right after start-up.  Times are relative to ``now``.
"""

from datetime import timedelta

from .models import Employee, WorkCard, utcnow


def load_sample_data(storage, now=None) -> None:
    """Populate ``storage`` with the fixed sample employees and work cards."""

    now = now or utcnow()

    mike = storage.load_fixture(Employee, dict(
        name="Mike Rodriguez", employee_id="EMP-001", department="Construction",
        location="Site Block A", status="active", last_seen=now - timedelta(minutes=2), created_at=now,
    ))
    sarah = storage.load_fixture(Employee, dict(
        name="Sarah Chen", employee_id="EMP-002", department="Electrical",
        location="Building B - Floor 2", status="active", last_seen=now - timedelta(minutes=15), created_at=now,
    ))
    james = storage.load_fixture(Employee, dict(
        name="James Wilson", employee_id="EMP-003", department="Plumbing",
        location="Building C - All Floors", status="active", last_seen=now - timedelta(minutes=5), created_at=now,
    ))

    storage.load_fixture(WorkCard, dict(
        card_id="WC-001",
        title="Foundation Pour - Section A",
        description="Complete concrete foundation pour for building section A with proper curing procedures",
        assigned_to_id=mike.id,
        location="Site Block A",
        status="completed",
        priority="high",
        deadline=now + timedelta(hours=24),
        started_at=now - timedelta(hours=8),
        completed_at=now - timedelta(minutes=30),
        progress_percent=100,
        hours_worked=480,
        notes="Foundation pour completed successfully. Concrete properly mixed and cured.",
        materials=[{"name": "Concrete", "quantity": 50}, {"name": "Rebar", "quantity": 100}],
        qr_code="QR-WC-001-ABCD1234",
        shift_time="first-shift",
        machine_number="PUMP-01",
        operation_number="POUR-001",
        time_loss_activities=[
            {"activity": "Equipment setup", "duration": 15, "issueType": "130"},
            {"activity": "Material delivery delay", "duration": 30, "issueType": "120"},
        ],
        total_work_hours=480,
        created_at=now,
    ))
    storage.load_fixture(WorkCard, dict(
        card_id="WC-002",
        title="Electrical Installation - Floor 2",
        description="Install electrical wiring and outlets for second floor residential units",
        assigned_to_id=sarah.id,
        location="Building B - Floor 2",
        status="in-progress",
        priority="normal",
        deadline=now + timedelta(hours=48),
        started_at=now - timedelta(hours=6),
        progress_percent=67,
        hours_worked=360,
        notes="Wiring installation in progress. 2 of 3 units completed.",
        materials=[{"name": "Electrical Wire", "quantity": 500}, {"name": "Outlets", "quantity": 24}],
        qr_code="QR-WC-002-EFGH5678",
        shift_time="second-shift",
        machine_number="DRILL-05",
        operation_number="WIRE-002",
        time_loss_activities=[
            {"activity": "Circuit breaker issue", "duration": 45, "issueType": "140"},
        ],
        defective_part_numbers=["OUTLET-4521"],
        total_work_hours=360,
        is_overtime=True,
        overtime_hours=120,
        overtime_shift_time="extended-evening",
        overtime_machine_number="DRILL-05",
        overtime_operation_number="WIRE-OT-002",
        overtime_time_loss_activities=[
            {"activity": "Overtime setup delay", "duration": 20, "issueType": "130"},
        ],
        created_at=now,
    ))
    storage.load_fixture(WorkCard, dict(
        card_id="WC-003",
        title="Plumbing Rough-in - Building C",
        description="Install rough plumbing lines for bathroom and kitchen areas",
        assigned_to_id=james.id,
        location="Building C - All Floors",
        status="assigned",
        priority="normal",
        deadline=now + timedelta(hours=36),
        qr_code="QR-WC-003-IJKL9012",
        created_at=now,
    ))
