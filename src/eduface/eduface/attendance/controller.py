from __future__ import annotations

from flask import Flask, g, request

from ..common.web import json_body, ok, tenant_required
from ..container import Container
from ..core.enums import AttendanceStatus
from ..imaging.frames import decode_image_payload


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service
    scanner = container.scanner

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="attendance_scan")
    @tenant_required
    def attendance_scan():
        frame = decode_image_payload(json_body().get("image"))
        outcome = attendance.identify_and_mark(g.tenant, frame)
        return ok(outcome, matched=outcome.matched)

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @tenant_required
    def attendance_manual():
        data = json_body()
        newly = attendance.mark_manual(
            g.tenant,
            student_id=data.get("student_id", ""),
            status=data.get("status") or AttendanceStatus.PRESENT,
            on_date=data.get("date") or None,
        )
        return ok(newly_marked=newly)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @tenant_required
    def attendance_today():
        return ok(attendance.today_log(g.tenant, on_date=request.args.get("date") or None))

    @app.route("/api/attendance/scanner/start", methods=["POST"], endpoint="scanner_start")
    @tenant_required
    def scanner_start():
        scanner.start(g.tenant, json_body().get("facing") or None)
        return ok(scanner.status(g.tenant))

    @app.route("/api/attendance/scanner/stop", methods=["POST"], endpoint="scanner_stop")
    @tenant_required
    def scanner_stop():
        scanner.stop(g.tenant)
        return ok(scanner.status(g.tenant))

    @app.route("/api/attendance/scanner/switch", methods=["POST"], endpoint="scanner_switch")
    @tenant_required
    def scanner_switch():
        scanner.switch_facing(g.tenant, json_body().get("facing") or None)
        return ok(scanner.status(g.tenant))

    @app.route("/api/attendance/scanner/status", methods=["GET"], endpoint="scanner_status")
    @tenant_required
    def scanner_status():
        status = scanner.status(g.tenant)
        return ok(status, active=status.active)
