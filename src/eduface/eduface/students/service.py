from __future__ import annotations

from typing import Optional

from ..core.exceptions import NotFoundError
from ..storage.snapshot import Snapshot
from ..storage.record_store import RecordStore
from ..tenants.session import TenantSession, require_session
from .model import Student, StudentRow


def student_rows(snapshot: Snapshot, *, class_id: Optional[str] = None, section: Optional[str] = None) -> list[StudentRow]:
    """Pure projection: students joined with their class name."""

    class_names = {c.class_id: c.class_name for c in snapshot.classes}
    rows = []
    for s in snapshot.students:
        if class_id and s.class_id != class_id:
            continue
        if section and s.section != section:
            continue
        rows.append(
            StudentRow(
                student_id=s.student_id,
                full_name=s.full_name,
                gender=s.gender.value,
                class_id=s.class_id,
                class_name=class_names.get(s.class_id, "-"),
                section=s.section,
                registration_date=s.registration_date,
            )
        )
    return rows


class StudentService:
    """Read side of the student population (students are immutable after enrollment)."""

    def __init__(self, store: RecordStore):
        self._store = store

    def list_students(
        self,
        session: Optional[TenantSession],
        *,
        class_id: Optional[str] = None,
        section: Optional[str] = None,
    ) -> list[StudentRow]:
        session = require_session(session)
        return student_rows(self._store.load(session.tenant_id), class_id=class_id, section=section)

    def get_student(self, session: Optional[TenantSession], student_id: str) -> Student:
        session = require_session(session)
        student = self._store.load(session.tenant_id).find_student(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student
