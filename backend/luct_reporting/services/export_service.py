"""Spreadsheet export of forwarded reports."""

from datetime import date
from io import BytesIO
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from luct_reporting import lifecycle
from luct_reporting.models.report import Report

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "Forwarded Reports"

# (header, report attribute or derived key)
COLUMNS = [
    ("Report ID", "id"),
    ("Faculty", "faculty_name"),
    ("Class", "class_name"),
    ("Course Name", "course_name"),
    ("Course Code", "course_code"),
    ("Lecturer", "lecturer_name"),
    ("Date", "date_of_lecture"),
    ("Students Present", "actual_students_present"),
    ("Total Students", "total_registered_students"),
    ("Attendance %", "attendance_percentage"),
    ("Venue", "venue"),
    ("Scheduled Time", "scheduled_time"),
    ("Topic", "topic_taught"),
    ("Learning Outcomes", "learning_outcomes"),
    ("Recommendations", "recommendations"),
    ("Status", "status"),
]

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"forwarded-reports-{today.isoformat()}.xlsx"


def _row_for(report: Report) -> list:
    pct = lifecycle.attendance_percentage(report.actual_students_present, report.total_registered_students)
    row = []
    for _, key in COLUMNS:
        if key == "attendance_percentage":
            row.append(f"{pct}%")
        elif key == "date_of_lecture":
            row.append(report.date_of_lecture.isoformat() if report.date_of_lecture else "")
        else:
            row.append(getattr(report, key))
    return row


def build_forwarded_workbook(reports: Iterable[Report]) -> bytes:
    """Render reports as an .xlsx document and return its bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append([header for header, _ in COLUMNS])
    for report in reports:
        ws.append(_row_for(report))
        # Free text is written as plain strings, never as formulas
        for cell in ws[ws.max_row]:
            if isinstance(cell.value, str):
                cell.data_type = "s"

    header_font = Font(bold=True, color="FFFFFFFF")
    header_fill = PatternFill(fill_type="solid", fgColor="FF007BFF")
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill

    # Fit each column to its longest value within bounds
    for idx, column_cells in enumerate(ws.iter_cols(min_row=1, max_row=ws.max_row), start=1):
        longest = max(len(str(c.value)) if c.value is not None else MIN_COLUMN_WIDTH for c in column_cells)
        width = min(max(longest + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
        ws.column_dimensions[get_column_letter(idx)].width = width

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
