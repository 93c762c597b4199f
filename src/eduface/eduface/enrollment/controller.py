from __future__ import annotations

from flask import Flask, g

from ..common.web import fail, json_body, ok, tenant_required
from ..container import Container
from ..core.exceptions import DuplicateStudentError
from .workflow import EnrollmentWorkflow, NewStudent


def _status(workflow: EnrollmentWorkflow) -> dict:
    blocked = workflow.blocked_by
    last = workflow.last_result.student if workflow.last_result else None
    return {
        "state": workflow.state,
        "has_capture": workflow.has_capture,
        "blocked_by": {"student_id": blocked.student_id, "full_name": blocked.full_name} if blocked else None,
        "last_enrolled": {"student_id": last.student_id, "full_name": last.full_name} if last else None,
    }


def register(app: Flask, container: Container) -> None:
    desk = container.enrollment_desk

    @app.route("/api/enrollment/status", methods=["GET"], endpoint="enrollment_status")
    @tenant_required
    def enrollment_status():
        return ok(_status(desk.for_session(g.tenant)))

    @app.route("/api/enrollment/retake", methods=["POST"], endpoint="enrollment_retake")
    @tenant_required
    def enrollment_retake():
        workflow = desk.for_session(g.tenant)
        workflow.start_capture()
        return ok(_status(workflow))

    @app.route("/api/enrollment/capture", methods=["POST"], endpoint="enrollment_capture")
    @tenant_required
    def enrollment_capture():
        workflow = desk.for_session(g.tenant)
        workflow.capture(json_body().get("image"))
        return ok(_status(workflow))

    @app.route("/api/enrollment/submit", methods=["POST"], endpoint="enrollment_submit")
    @tenant_required
    def enrollment_submit():
        data = json_body()
        form = NewStudent(
            full_name=data.get("full_name", ""),
            gender=data.get("gender", ""),
            date_of_birth=data.get("date_of_birth", ""),
            class_id=data.get("class_id", ""),
            section=data.get("section", ""),
            father_name=data.get("father_name", ""),
            mother_name=data.get("mother_name", ""),
        )
        workflow = desk.for_session(g.tenant)
        try:
            result = workflow.submit(g.tenant, form)
        except DuplicateStudentError as e:
            return fail(
                str(e),
                409,
                duplicate={
                    "student_id": e.student.student_id,
                    "full_name": e.student.full_name,
                    "class_id": e.student.class_id,
                    "section": e.student.section,
                },
            )
        return ok(result, 201)
