import os
from io import BytesIO

from flask import Blueprint, request, jsonify, current_app, send_file
from werkzeug.exceptions import HTTPException

from .errors import NotFoundError, ReportNotReadyError, ValidationError, WorkTrackError
from .models import (
    Employee, Report, WorkCard, WorkSession,
    employee_summary, serialize, work_card_summary,
)
from .qr_utils import make_qr_png, qr_data_url
from .reports import start_report_job
from .schemas import (
    EmployeeCreate, EmployeeUpdate, ReportCreate, WorkCardCreate, WorkCompletion, parse,
)

api = Blueprint("api", __name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_storage():
    return current_app.extensions["worktrack.storage"]


def with_assignee(card: WorkCard) -> dict:
    storage = get_storage()
    employee = storage.get(Employee, card.assigned_to_id) if card.assigned_to_id else None
    data = serialize(card)
    data["assignedTo"] = employee_summary(employee)
    return data


def with_refs(session: WorkSession) -> dict:
    storage = get_storage()
    card = storage.get(WorkCard, session.work_card_id) if session.work_card_id else None
    employee = storage.get(Employee, session.employee_id) if session.employee_id else None
    data = serialize(session)
    data["workCard"] = work_card_summary(card)
    data["employee"] = employee_summary(employee)
    return data


def require(record, kind: str):
    if record is None:
        raise NotFoundError(kind)
    return record


def int_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(
            f"Invalid {name}",
            [{"loc": [name], "msg": "Input should be a valid integer", "type": "int_parsing"}],
        ) from None


@api.errorhandler(WorkTrackError)
def handle_domain_error(err: WorkTrackError):
    return jsonify(err.to_dict()), err.status_code


@api.errorhandler(Exception)
def handle_unexpected(err: Exception):
    if isinstance(err, HTTPException):
        return jsonify({"message": err.description}), err.code
    current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({"message": "Internal server error"}), 500


# -------------------------------------------------------------------
# Employees
# -------------------------------------------------------------------
@api.get("/employees")
def list_employees():
    return jsonify([serialize(e) for e in get_storage().all(Employee)])


@api.get("/employees/<int:employee_id>")
def get_employee(employee_id):
    employee = require(get_storage().get(Employee, employee_id), "Employee")
    return jsonify(serialize(employee))


@api.post("/employees")
def create_employee():
    payload = parse(EmployeeCreate, request.get_json(silent=True), "Invalid employee data")
    employee = get_storage().create(Employee, payload.to_fields())
    current_app.logger.info("Employee %s created (id=%s)", employee.employee_id, employee.id)
    return jsonify(serialize(employee)), 201


@api.put("/employees/<int:employee_id>")
def update_employee(employee_id):
    payload = parse(EmployeeUpdate, request.get_json(silent=True), "Invalid employee data")
    employee = get_storage().update(Employee, employee_id, payload.to_fields(exclude_unset=True))
    return jsonify(serialize(require(employee, "Employee")))


@api.delete("/employees/<int:employee_id>")
def delete_employee(employee_id):
    if not get_storage().delete(Employee, employee_id):
        raise NotFoundError("Employee")
    return jsonify({"deleted": True})


# -------------------------------------------------------------------
# Work cards
# -------------------------------------------------------------------
@api.get("/work-cards")
def list_work_cards():
    storage = get_storage()
    status = (request.args.get("status") or "").strip()
    employee_id = int_arg("employeeId")
    card_id = (request.args.get("cardId") or "").strip()

    if status:
        cards = storage.work_cards_by_status(status)
    elif employee_id is not None:
        cards = storage.work_cards_by_employee(employee_id)
    else:
        cards = storage.all(WorkCard)

    # Remaining filters narrow whatever the first lookup returned.
    if employee_id is not None:
        cards = [c for c in cards if c.assigned_to_id == employee_id]
    if card_id:
        cards = [c for c in cards if c.card_id == card_id]
    return jsonify([with_assignee(c) for c in cards])


@api.get("/work-cards/<int:card_id>")
def get_work_card(card_id):
    card = require(get_storage().get(WorkCard, card_id), "Work card")
    return jsonify(with_assignee(card))


@api.get("/work-cards/qr/<qr_code>")
def get_work_card_by_qr(qr_code):
    card = require(get_storage().get_work_card_by_qr_code(qr_code), "Work card")
    return jsonify(with_assignee(card))


@api.post("/work-cards")
def create_work_card():
    payload = parse(WorkCardCreate, request.get_json(silent=True), "Invalid work card data")
    card = get_storage().create(WorkCard, payload.to_fields())
    current_app.logger.info("Work card %s created with %s", card.card_id, card.qr_code)
    return jsonify(serialize(card)), 201


@api.get("/work-cards/<int:card_id>/qr")
def work_card_qr(card_id):
    card = require(get_storage().get(WorkCard, card_id), "Work card")
    cfg = current_app.config
    image = qr_data_url(card.qr_code, box_size=cfg["QR_BOX_SIZE"], border=cfg["QR_BORDER"])
    return jsonify({"qrCode": image, "qrData": card.qr_code})


@api.get("/work-cards/<int:card_id>/qr/download")
def download_work_card_qr(card_id):
    card = require(get_storage().get(WorkCard, card_id), "Work card")
    cfg = current_app.config
    png = make_qr_png(card.qr_code, box_size=cfg["QR_BOX_SIZE"], border=cfg["QR_BORDER"])
    return send_file(BytesIO(png), mimetype="image/png", as_attachment=True,
                     download_name=f"qr_{card.card_id}.png")


@api.post("/work-cards/<int:card_id>/complete")
def complete_work_card(card_id):
    payload = parse(WorkCompletion, request.get_json(silent=True), "Invalid completion data")
    card = get_storage().complete_work_card(card_id, payload.to_fields(exclude_unset=True))
    return jsonify(with_assignee(card))


@api.get("/work-cards/<int:card_id>/sessions")
def work_card_sessions(card_id):
    storage = get_storage()
    require(storage.get(WorkCard, card_id), "Work card")
    sessions = sorted(storage.sessions_by_work_card(card_id),
                      key=lambda s: (s.timestamp, s.id), reverse=True)
    return jsonify([with_refs(s) for s in sessions])


# -------------------------------------------------------------------
# Work sessions & dashboard
# -------------------------------------------------------------------
@api.get("/work-sessions/recent")
def recent_work_sessions():
    cfg = current_app.config
    try:
        limit = int(request.args.get("limit", ""))
    except ValueError:
        limit = 0
    if limit <= 0:
        limit = cfg["RECENT_SESSIONS_DEFAULT"]
    limit = min(limit, cfg["RECENT_SESSIONS_MAX"])
    return jsonify([with_refs(s) for s in get_storage().recent_sessions(limit)])


@api.get("/dashboard/stats")
def dashboard_stats():
    return jsonify(get_storage().dashboard_stats())


# -------------------------------------------------------------------
# Reports
# -------------------------------------------------------------------
@api.get("/reports")
def list_reports():
    return jsonify([serialize(r) for r in get_storage().all(Report)])


@api.get("/reports/<int:report_id>")
def get_report(report_id):
    report = require(get_storage().get(Report, report_id), "Report")
    return jsonify(serialize(report))


@api.post("/reports")
def create_report():
    payload = parse(ReportCreate, request.get_json(silent=True), "Invalid report data")
    storage = get_storage()
    report = storage.create(Report, payload.to_fields())
    start_report_job(storage, report, current_app.config["REPORTS_DIR"])
    current_app.logger.info("Report %s (%s) queued", report.id, report.type)
    return jsonify(serialize(report)), 201


@api.get("/reports/<int:report_id>/download")
def download_report(report_id):
    report = require(get_storage().get(Report, report_id), "Report")
    if report.status != "ready" or not report.file_path:
        raise ReportNotReadyError()
    if not os.path.exists(report.file_path):
        raise NotFoundError("Report file")
    return send_file(report.file_path, mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"{report.name}.xlsx")
