import io, re, time
from datetime import timedelta

import openpyxl

from worktrack.models import Report, utcnow

# Sample data ids: employees 1-3, then cards WC-001 (4), WC-002 (5), WC-003 (6).
WC_003 = 6


def wait_for_report(client, report_id, timeout=10.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        report = client.get(f"/api/reports/{report_id}").json
        if report["status"] != "generating":
            return report
        time.sleep(0.05)
    raise AssertionError(f"report {report_id} still generating")


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200 and r.json["ok"] is True and r.json["workCards"] == 3


def test_create_employee_defaults(client):
    r = client.post("/api/employees", json={"employeeId": "EMP-010", "name": "Test Worker", "department": "Safety"})
    assert r.status_code == 201
    r = client.get(f"/api/employees/{r.json['id']}")
    assert r.status_code == 200
    assert r.json["status"] == "active" and r.json["lastSeen"] is not None
    assert r.json["employeeId"] == "EMP-010" and r.json["location"] is None


def test_create_employee_validation(client):
    r = client.post("/api/employees", json={"name": "", "status": "asleep"})
    assert r.status_code == 400
    assert r.json["message"] == "Invalid employee data"
    locs = {tuple(e["loc"]) for e in r.json["errors"]}
    assert {("name",), ("employeeId",), ("department",), ("status",)} <= locs


def test_duplicate_employee_id(client):
    r = client.post("/api/employees", json={"employeeId": "EMP-001", "name": "Dup", "department": "QA"})
    assert r.status_code == 400 and r.json["errors"][0]["loc"] == ["employeeId"]


def test_update_employee(client):
    r = client.put("/api/employees/2", json={"status": "on-break", "location": "Canteen"})
    assert r.status_code == 200
    assert r.json["status"] == "on-break" and r.json["location"] == "Canteen"
    assert r.json["name"] == "Sarah Chen"
    assert client.put("/api/employees/999", json={"status": "active"}).status_code == 404
    assert client.put("/api/employees/2", json={"name": None}).status_code == 400


def test_delete_employee(client):
    assert client.delete("/api/employees/3").status_code == 200
    assert client.get("/api/employees/3").status_code == 404
    assert client.delete("/api/employees/3").status_code == 404


def test_list_work_cards_enriched(client):
    r = client.get("/api/work-cards")
    assert r.status_code == 200 and len(r.json) == 3
    first = r.json[0]
    assert first["cardId"] == "WC-001"
    assert first["assignedTo"] == {"id": 1, "name": "Mike Rodriguez", "employeeId": "EMP-001"}


def test_work_card_filters(client):
    r = client.get("/api/work-cards?status=in-progress")
    assert [c["cardId"] for c in r.json] == ["WC-002"]
    r = client.get("/api/work-cards?employeeId=3")
    assert [c["cardId"] for c in r.json] == ["WC-003"]
    r = client.get("/api/work-cards?status=in-progress&employeeId=3")
    assert r.json == []
    r = client.get("/api/work-cards?cardId=WC-003")
    assert [c["id"] for c in r.json] == [WC_003]
    assert client.get("/api/work-cards?employeeId=abc").status_code == 400


def test_lookup_by_qr(client):
    r = client.get("/api/work-cards/qr/QR-WC-002-EFGH5678")
    assert r.status_code == 200
    assert r.json["title"] == "Electrical Installation - Floor 2"
    assert r.json["assignedTo"]["name"] == "Sarah Chen"
    r = client.get("/api/work-cards/qr/QR-NOPE")
    assert r.status_code == 404 and r.json["message"] == "Work card not found"


def test_create_work_card_and_qr(client):
    r = client.post("/api/work-cards", json={
        "cardId": "WC-050", "title": "Weld frame", "description": "Weld the base frame",
        "location": "Hall 2", "assignedToId": 2, "priority": "urgent",
        "deadline": "2030-01-01T08:00:00Z",
    })
    assert r.status_code == 201
    card = r.json
    assert re.fullmatch(r"QR-WC-050-[A-Z0-9]{8}", card["qrCode"])
    assert card["status"] == "assigned" and card["progressPercent"] == 0

    r = client.get(f"/api/work-cards/qr/{card['qrCode']}")
    assert r.status_code == 200 and r.json["id"] == card["id"]

    r = client.get(f"/api/work-cards/{card['id']}/qr")
    assert r.status_code == 200
    assert r.json["qrData"] == card["qrCode"]
    assert r.json["qrCode"].startswith("data:image/png;base64,")

    r = client.get(f"/api/work-cards/{card['id']}/qr/download")
    assert r.status_code == 200 and r.mimetype == "image/png"
    assert r.data[:4] == b"\x89PNG"


def test_create_work_card_validation(client):
    r = client.post("/api/work-cards", json={"cardId": "WC-051", "title": "x", "progressPercent": 120})
    assert r.status_code == 400
    locs = {tuple(e["loc"]) for e in r.json["errors"]}
    assert {("description",), ("location",), ("progressPercent",)} <= locs
    r = client.post("/api/work-cards", json={
        "cardId": "WC-001", "title": "x", "description": "y", "location": "z",
    })
    assert r.status_code == 400 and r.json["errors"][0]["loc"] == ["cardId"]


def test_completion_flow(client):
    body = {"status": "started", "progressPercent": 10, "hoursWorked": 2.0, "notes": "Opened walls"}
    r = client.post(f"/api/work-cards/{WC_003}/complete", json=body)
    assert r.status_code == 200
    started_at = r.json["startedAt"]
    assert started_at is not None and r.json["hoursWorked"] == 120

    body = {"status": "completed", "progressPercent": 60, "hoursWorked": 3.5, "notes": "Lines in",
            "materials": [{"name": "PEX pipe", "quantity": 40}]}
    r = client.post(f"/api/work-cards/{WC_003}/complete", json=body)
    assert r.status_code == 200
    assert r.json["status"] == "completed"
    assert r.json["progressPercent"] == 100
    assert r.json["hoursWorked"] == 330
    assert r.json["startedAt"] == started_at
    assert r.json["completedAt"] is not None
    assert r.json["materials"] == [{"name": "PEX pipe", "quantity": 40.0}]

    r = client.get(f"/api/work-cards/{WC_003}/sessions")
    assert [s["newStatus"] for s in r.json] == ["completed", "started"]
    assert r.json[0]["previousStatus"] == "started"


def test_completion_validation_lists_every_field(client):
    body = {"status": "finished", "progressPercent": 150, "hoursWorked": -1, "notes": ""}
    r = client.post(f"/api/work-cards/{WC_003}/complete", json=body)
    assert r.status_code == 400
    assert r.json["message"] == "Invalid completion data"
    locs = {tuple(e["loc"]) for e in r.json["errors"]}
    assert {("status",), ("progressPercent",), ("hoursWorked",), ("notes",)} <= locs
    # nothing was recorded
    assert client.get(f"/api/work-cards/{WC_003}/sessions").json == []


def test_completion_overtime_requires_details(client):
    body = {"status": "in-progress", "progressPercent": 20, "hoursWorked": 1, "notes": "OT",
            "isOvertime": True}
    r = client.post(f"/api/work-cards/{WC_003}/complete", json=body)
    assert r.status_code == 400
    assert ["isOvertime"] in [e["loc"] for e in r.json["errors"]]

    r = client.post(f"/api/work-cards/{WC_003}/complete", json=dict(body, status="bogus"))
    assert r.status_code == 400
    assert {("status",), ("isOvertime",)} <= {tuple(e["loc"]) for e in r.json["errors"]}
    assert client.get(f"/api/work-cards/{WC_003}/sessions").json == []


def test_completion_unknown_card(client):
    body = {"status": "started", "progressPercent": 0, "hoursWorked": 0, "notes": "x"}
    r = client.post("/api/work-cards/999/complete", json=body)
    assert r.status_code == 404 and r.json["message"] == "Work card not found"


def test_recent_sessions_enriched(client):
    for i in range(3):
        body = {"status": "in-progress", "progressPercent": 10 * i, "hoursWorked": 1, "notes": f"step {i}"}
        client.post(f"/api/work-cards/{WC_003}/complete", json=body)
    r = client.get("/api/work-sessions/recent?limit=2")
    assert r.status_code == 200 and len(r.json) == 2
    assert r.json[0]["notes"] == "step 2"
    assert r.json[0]["workCard"] == {"id": WC_003, "cardId": "WC-003", "title": "Plumbing Rough-in - Building C"}
    assert r.json[0]["employee"]["employeeId"] == "EMP-003"
    assert len(client.get("/api/work-sessions/recent?limit=abc").json) == 3


def test_dashboard_stats(client):
    r = client.get("/api/dashboard/stats")
    assert r.status_code == 200
    assert r.json["activeWorkers"] == 3
    assert r.json["inProgress"] == 1
    assert r.json["overdue"] == 0
    assert set(r.json) == {"activeWorkers", "completedToday", "inProgress", "overdue"}


def test_report_generation_and_download(client):
    now = utcnow()
    r = client.post("/api/reports", json={
        "name": "Daily Work Summary", "type": "daily-summary",
        "dateFrom": (now - timedelta(days=1)).isoformat(), "dateTo": (now + timedelta(days=1)).isoformat(),
        "filters": {"filterBy": "all"},
    })
    assert r.status_code == 201 and r.json["status"] == "generating"
    report = wait_for_report(client, r.json["id"])
    assert report["status"] == "ready" and report["filePath"]

    r = client.get(f"/api/reports/{report['id']}/download")
    assert r.status_code == 200
    wb = openpyxl.load_workbook(io.BytesIO(r.data))
    ws = wb["Work Summary"]
    assert ws["A1"].value == "Card ID"
    assert ws.max_row == 4
    assert report["id"] in [r["id"] for r in client.get("/api/reports").json]


def test_report_download_not_ready(app, client):
    storage = app.extensions["worktrack.storage"]
    report = storage.create(Report, {
        "name": "Pending", "type": "material-usage",
        "date_from": utcnow() - timedelta(days=1), "date_to": utcnow(),
    })
    r = client.get(f"/api/reports/{report.id}/download")
    assert r.status_code == 400 and r.json["message"] == "Report not ready for download"
    assert client.get("/api/reports/999/download").status_code == 404


def test_report_validation(client):
    r = client.post("/api/reports", json={"name": "x", "type": "quarterly", "dateFrom": "2026-01-02",
                                          "dateTo": "2026-01-01"})
    assert r.status_code == 400 and r.json["message"] == "Invalid report data"


def test_config_defaults(app):
    assert app.config["SEED_SAMPLE_DATA"] is True
    assert app.config["RECENT_SESSIONS_MAX"] == 200
    # no session signing is configured
    assert app.config["SECRET_KEY"] is None
