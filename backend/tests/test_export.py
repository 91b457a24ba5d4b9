"""Tests for the forwarded-reports spreadsheet export."""

import sys
import os
from datetime import date
from io import BytesIO

from openpyxl import load_workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from luct_reporting.models.report import Report
from luct_reporting.services import export_service


def _report(**overrides) -> Report:
    fields = dict(
        id="r-1",
        faculty_name="FICT",
        class_name="BSCSM Year 2",
        week_of_reporting="Week 6",
        date_of_lecture=date(2025, 3, 10),
        course_name="Web Application Development",
        course_code="BIWA2110",
        lecturer_name="Thabo Mokoena",
        actual_students_present=25,
        total_registered_students=30,
        venue="Hall 6",
        scheduled_time="08:30",
        topic_taught="REST APIs",
        learning_outcomes="CRUD endpoints",
        recommendations="More lab time",
        status="forwarded",
    )
    fields.update(overrides)
    return Report(**fields)


def _load(content: bytes):
    return load_workbook(BytesIO(content)).active


class TestWorkbook:
    """Workbook layout built from Report objects."""

    def test_header_row(self):
        """An empty export still carries the titled header row."""
        ws = _load(export_service.build_forwarded_workbook([]))
        assert ws.title == "Forwarded Reports"
        headers = [c.value for c in ws[1]]
        assert headers == [h for h, _ in export_service.COLUMNS]
        assert ws.max_row == 1

    def test_header_styling(self):
        """Header cells are bold on a blue fill."""
        ws = _load(export_service.build_forwarded_workbook([]))
        cell = ws["A1"]
        assert cell.font.bold
        assert cell.fill.fgColor.rgb == "FF007BFF"

    def test_report_row(self):
        """A report becomes one row with derived date and attendance columns."""
        ws = _load(export_service.build_forwarded_workbook([_report()]))
        row = {h: c.value for (h, _), c in zip(export_service.COLUMNS, ws[2])}
        assert row["Report ID"] == "r-1"
        assert row["Date"] == "2025-03-10"
        assert row["Students Present"] == 25
        assert row["Attendance %"] == "83%"
        assert row["Status"] == "forwarded"

    def test_zero_registered_students(self):
        """Zero registered students shows 0% instead of dividing by zero."""
        ws = _load(export_service.build_forwarded_workbook([
            _report(actual_students_present=0, total_registered_students=0),
        ]))
        assert ws.cell(row=2, column=10).value == "0%"

    def test_column_widths_bounded(self):
        """Column widths stay between the minimum and maximum."""
        ws = _load(export_service.build_forwarded_workbook([_report(learning_outcomes="x" * 200)]))
        widths = [ws.column_dimensions[col].width for col in "ABCDEFGHIJKLMNOP"]
        assert all(10 <= w <= 50 for w in widths)
        assert ws.column_dimensions["N"].width == 50

    def test_formula_text_is_written_as_string(self):
        """Free text starting with '=' lands in the sheet as a plain string, not a formula."""
        topic = '=HYPERLINK("http://example.com","click")'
        ws = _load(export_service.build_forwarded_workbook([_report(topic_taught=topic, venue="=1+1")]))
        topic_cell = ws.cell(row=2, column=13)
        assert topic_cell.data_type == "s"
        assert topic_cell.value == topic
        assert ws.cell(row=2, column=11).data_type == "s"
        assert ws.cell(row=2, column=8).data_type == "n"

    def test_filename(self):
        """The download name carries the export date."""
        assert export_service.export_filename(date(2025, 3, 14)) == "forwarded-reports-2025-03-14.xlsx"


class TestExportEndpoint:
    """GET /api/reports/export/excel."""

    def test_program_leader_downloads_forwarded_only(
        self, client, auth_headers, lecturer, principal, leader, report_payload
    ):
        """Program leaders get only forwarded reports, most recent lecture first."""
        ids = []
        for day in ("2025-03-03", "2025-03-10", "2025-03-17"):
            res = client.post(
                "/api/reports",
                json={**report_payload, "date_of_lecture": day},
                headers=auth_headers(lecturer),
            )
            ids.append(res.json()["report_id"])
        client.post(f"/api/reports/{ids[0]}/forward", headers=auth_headers(principal))
        client.post(f"/api/reports/{ids[2]}/forward", headers=auth_headers(principal))

        res = client.get("/api/reports/export/excel", headers=auth_headers(leader))
        assert res.status_code == 200
        assert res.headers["content-type"] == export_service.XLSX_MEDIA_TYPE
        assert "forwarded-reports-" in res.headers["content-disposition"]

        ws = _load(res.content)
        assert ws.max_row == 3
        # Most recent lecture first
        assert [ws.cell(row=r, column=1).value for r in (2, 3)] == [ids[2], ids[0]]

    def test_principal_cannot_export(self, client, auth_headers, principal):
        """Principal lecturers are refused the export."""
        res = client.get("/api/reports/export/excel", headers=auth_headers(principal))
        assert res.status_code == 403
