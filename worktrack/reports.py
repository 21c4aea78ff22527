"""Excel report rendering.

A report request only creates a ``Report`` record in the ``generating``
state; ``start_report_job`` then renders the workbook on a daemon thread and
flips the record to ``ready`` (with ``file_path``) or ``failed``.  Nothing is
returned to the requester; clients poll ``GET /api/reports``.

Each report type is a pandas frame built from the work cards created within
the report's date range, written with openpyxl to a single sheet with a
styled header row.
"""

import logging
import os
import threading
import time

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .models import ISSUE_TYPES, Employee, Report, WorkCard


logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", fgColor="2563EB")

CARD_COLUMNS = [
    "card_id", "title", "employee", "employee_code", "department", "status",
    "priority", "progress", "hours", "location", "deadline", "notes",
]


def _fmt_ts(value) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M") if value else ""


def _cards_frame(cards, employees) -> pd.DataFrame:
    by_id = {e.id: e for e in employees}
    rows = []
    for card in cards:
        emp = by_id.get(card.assigned_to_id)
        rows.append({
            "card_id": card.card_id,
            "title": card.title,
            "employee": emp.name if emp else "Unassigned",
            "employee_code": emp.employee_id if emp else "",
            "department": emp.department if emp else "",
            "status": card.status,
            "priority": card.priority,
            "progress": card.progress_percent or 0,
            "hours": round((card.hours_worked or 0) / 60, 1),
            "location": card.location,
            "deadline": _fmt_ts(card.deadline),
            "notes": card.notes or "",
        })
    return pd.DataFrame(rows, columns=CARD_COLUMNS)


def work_summary(cards, employees) -> pd.DataFrame:
    df = _cards_frame(cards, employees)
    return df[[
        "card_id", "title", "employee", "status", "priority", "progress",
        "hours", "location", "deadline", "notes",
    ]].rename(columns={
        "card_id": "Card ID",
        "title": "Title",
        "employee": "Employee",
        "status": "Status",
        "priority": "Priority",
        "progress": "Progress %",
        "hours": "Hours Worked",
        "location": "Location",
        "deadline": "Deadline",
        "notes": "Notes",
    })


def employee_performance(cards, employees) -> pd.DataFrame:
    headers = ["Employee", "Employee ID", "Department", "Cards", "Completed",
               "Avg Progress %", "Hours Worked"]
    df = _cards_frame(cards, employees)
    if df.empty:
        return pd.DataFrame(columns=headers)
    df["completed"] = df["status"].eq("completed")
    out = (
        df.groupby(["employee", "employee_code", "department"], sort=True)
        .agg(
            cards=("card_id", "count"),
            completed=("completed", "sum"),
            progress=("progress", "mean"),
            hours=("hours", "sum"),
        )
        .reset_index()
    )
    out["progress"] = out["progress"].round(1)
    out["hours"] = out["hours"].round(1)
    out.columns = headers
    return out


def project_progress(cards, employees) -> pd.DataFrame:
    headers = ["Location", "Cards", "Completed", "In Progress", "Avg Progress %", "Hours Worked"]
    df = _cards_frame(cards, employees)
    if df.empty:
        return pd.DataFrame(columns=headers)
    df["completed"] = df["status"].eq("completed")
    df["in_progress"] = df["status"].eq("in-progress")
    out = (
        df.groupby("location", sort=True)
        .agg(
            cards=("card_id", "count"),
            completed=("completed", "sum"),
            in_progress=("in_progress", "sum"),
            progress=("progress", "mean"),
            hours=("hours", "sum"),
        )
        .reset_index()
    )
    out["progress"] = out["progress"].round(1)
    out["hours"] = out["hours"].round(1)
    out.columns = headers
    return out


def material_usage(cards, employees) -> pd.DataFrame:
    headers = ["Material", "Total Quantity", "Cards"]
    rows = [
        {"material": m.get("name"), "quantity": m.get("quantity") or 0, "card_id": card.card_id}
        for card in cards
        for m in (card.materials or [])
    ]
    if not rows:
        return pd.DataFrame(columns=headers)
    df = pd.DataFrame(rows)
    out = (
        df.groupby("material", sort=True)
        .agg(quantity=("quantity", "sum"), cards=("card_id", "nunique"))
        .reset_index()
    )
    out.columns = headers
    return out


def time_loss_log(cards, employees) -> pd.DataFrame:
    headers = ["Card ID", "Title", "Shift", "Activity", "Issue Type", "Duration (min)"]
    rows = []
    for card in cards:
        for shift, activities in (
            ("Regular", card.time_loss_activities),
            ("Overtime", card.overtime_time_loss_activities),
        ):
            for act in activities or []:
                code = str(act.get("issueType") or "")
                label = ISSUE_TYPES.get(code)
                rows.append([
                    card.card_id,
                    card.title,
                    shift,
                    act.get("activity"),
                    f"{code} {label}" if label else code,
                    act.get("duration") or 0,
                ])
    return pd.DataFrame(rows, columns=headers)


# report type -> (sheet title, frame builder, column widths)
LAYOUTS = {
    "daily-summary": ("Work Summary", work_summary, [15, 30, 20, 15, 10, 12, 15, 20, 18, 40]),
    "weekly-summary": ("Work Summary", work_summary, [15, 30, 20, 15, 10, 12, 15, 20, 18, 40]),
    "employee-performance": ("Employee Performance", employee_performance, [22, 14, 18, 8, 11, 15, 14]),
    "project-progress": ("Project Progress", project_progress, [28, 8, 11, 12, 15, 14]),
    "material-usage": ("Material Usage", material_usage, [28, 16, 8]),
    "safety-incidents": ("Time Loss", time_loss_log, [15, 30, 10, 35, 24, 15]),
}


def cards_in_range(report: Report, cards) -> list:
    return [
        c for c in cards
        if c.created_at and report.date_from <= c.created_at <= report.date_to
    ]


def write_sheet(path: str, sheet_name: str, frame: pd.DataFrame, widths) -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
        for idx, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width


def render_report(report: Report, cards, employees, reports_dir: str) -> str:
    """Write the workbook for ``report`` and return its path."""
    sheet_name, build, widths = LAYOUTS[report.type]
    frame = build(cards_in_range(report, cards), employees)

    os.makedirs(reports_dir, exist_ok=True)
    file_name = f"report_{report.id}_{int(time.time() * 1000)}.xlsx"
    path = os.path.join(reports_dir, file_name)
    write_sheet(path, sheet_name, frame, widths)
    return path


def generate_report(storage, report: Report, reports_dir: str) -> Report:
    """Render ``report`` and record the outcome on the stored record.

    Failures are logged and leave the report ``failed``; they are not
    raised.  No retry is attempted.
    """
    try:
        path = render_report(report, storage.all(WorkCard), storage.all(Employee), reports_dir)
    except Exception:
        logger.exception("Failed to generate report %s (%s)", report.id, report.type)
        return storage.update(Report, report.id, {"status": "failed"})

    logger.info("Report %s ready: %s", report.id, path)
    return storage.update(Report, report.id, {"status": "ready", "file_path": path})


def start_report_job(storage, report: Report, reports_dir: str) -> threading.Thread:
    """Render ``report`` on a detached daemon thread."""
    thread = threading.Thread(
        target=generate_report,
        args=(storage, report, reports_dir),
        name=f"report-{report.id}",
        daemon=True,
    )
    thread.start()
    return thread
