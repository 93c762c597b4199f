from __future__ import annotations

from flask import Flask, g, request

from ..common.web import ok, tenant_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @tenant_required
    def students_list():
        rows = container.student_service.list_students(
            g.tenant,
            class_id=request.args.get("class_id") or None,
            section=request.args.get("section") or None,
        )
        return ok(rows)

    @app.route("/api/students/<student_id>", methods=["GET"], endpoint="students_get")
    @tenant_required
    def students_get(student_id: str):
        return ok(container.student_service.get_student(g.tenant, student_id))
