from __future__ import annotations

from flask import Flask, g

from ..common.datetime_utils import today_iso
from ..common.web import ok, tenant_required
from ..container import Container
from .service import ATTENDANCE_CSV_FIELDS, FEES_CSV_FIELDS, to_csv


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def csv_response(rows: list[dict], fieldnames: list[str], name: str):
        return app.response_class(
            to_csv(rows, fieldnames),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={name}_Report_{today_iso()}.csv"},
        )

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="reports_dashboard")
    @tenant_required
    def reports_dashboard():
        return ok(reports.dashboard(g.tenant))

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="reports_attendance")
    @tenant_required
    def reports_attendance():
        return ok(reports.attendance_summary(g.tenant))

    @app.route("/api/reports/attendance.csv", methods=["GET"], endpoint="reports_attendance_csv")
    @tenant_required
    def reports_attendance_csv():
        return csv_response(reports.attendance_summary(g.tenant), ATTENDANCE_CSV_FIELDS, "Attendance")

    @app.route("/api/reports/fees", methods=["GET"], endpoint="reports_fees")
    @tenant_required
    def reports_fees():
        return ok(reports.fee_summary(g.tenant))

    @app.route("/api/reports/fees.csv", methods=["GET"], endpoint="reports_fees_csv")
    @tenant_required
    def reports_fees_csv():
        return csv_response(reports.fee_summary(g.tenant), FEES_CSV_FIELDS, "Fees")
