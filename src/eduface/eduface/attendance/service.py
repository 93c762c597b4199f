from __future__ import annotations

from typing import Callable, Optional

from ..common.datetime_utils import require_iso_date, today_iso
from ..common.ids import new_id
from ..common.validators import require_choice, require_non_empty
from ..core.constants import SCAN_JPEG_QUALITY, SCAN_MAX_DIM
from ..core.enums import AttendanceStatus, MarkedBy
from ..imaging.frames import downscale_jpeg
from ..matching.gateway import IdentityMatcher, gallery_from_students
from ..matching.model import MatchResult
from ..storage.record_store import RecordStore
from ..storage.snapshot import Snapshot
from ..students.model import Student
from ..tenants.session import TenantSession, require_session
from .model import AttendanceLogRow, AttendanceRecord, ScanOutcome


def attendance_log(snapshot: Snapshot, on_date: str) -> list[AttendanceLogRow]:
    """Pure projection: the day's entries joined with names, most recent first."""

    names = {s.student_id: s.full_name for s in snapshot.students}
    rows = [
        AttendanceLogRow(
            attendance_id=a.attendance_id,
            student_id=a.student_id,
            student_name=names.get(a.student_id, "Unknown"),
            date=a.date,
            status=a.status,
            marked_by=a.marked_by,
        )
        for a in snapshot.attendance
        if a.date == on_date
    ]
    rows.reverse()
    return rows


class AttendanceService:
    """Use cases: resolve a frame to a student, mark attendance (automated or manual)."""

    def __init__(
        self,
        store: RecordStore,
        matcher: IdentityMatcher,
        *,
        max_dim: int = SCAN_MAX_DIM,
        jpeg_quality: int = SCAN_JPEG_QUALITY,
        clock: Callable[[], str] = today_iso,
        id_factory: Callable[[], str] = new_id,
    ):
        self._store = store
        self._matcher = matcher
        self._max_dim = int(max_dim)
        self._jpeg_quality = int(jpeg_quality)
        self._today = clock
        self._new_id = id_factory

    def resolve(self, session: Optional[TenantSession], frame: bytes) -> tuple[MatchResult, Optional[Student]]:
        """Shrink the frame and match it against the whole student population. No side effects."""

        session = require_session(session)
        small = downscale_jpeg(frame, max_dim=self._max_dim, quality=self._jpeg_quality)
        snapshot = self._store.load(session.tenant_id)
        result = self._matcher.match(small, gallery_from_students(snapshot.students))
        if not result.matched:
            return result, None
        return result, snapshot.find_student(result.student_id)

    def mark_automated(
        self, session: Optional[TenantSession], student: Student, *, on_date: Optional[str] = None
    ) -> tuple[AttendanceRecord, bool]:
        """Idempotent automated mark; the flag is False when the student was already marked."""

        session = require_session(session)
        record = AttendanceRecord(
            attendance_id=self._new_id(),
            student_id=student.student_id,
            date=on_date or self._today(),
            status=AttendanceStatus.PRESENT,
            marked_by=MarkedBy.AUTOMATED,
        )
        return record, self._store.mark_attendance(session.tenant_id, record)

    def identify_and_mark(self, session: Optional[TenantSession], frame: bytes) -> ScanOutcome:
        """One scanning iteration for browser-driven capture."""

        result, student = self.resolve(session, frame)
        if student is None:
            return ScanOutcome()
        _, newly = self.mark_automated(session, student)
        return ScanOutcome(
            student_id=student.student_id,
            student_name=student.full_name,
            confidence=result.confidence,
            newly_marked=newly,
        )

    def mark_manual(
        self,
        session: Optional[TenantSession],
        *,
        student_id: str,
        status=AttendanceStatus.PRESENT,
        on_date: Optional[str] = None,
    ) -> bool:
        session = require_session(session)
        record = AttendanceRecord(
            attendance_id=self._new_id(),
            student_id=require_non_empty(student_id, "Student"),
            date=require_iso_date(on_date, "Date").isoformat() if on_date else self._today(),
            status=require_choice(status, AttendanceStatus, "Status"),
            marked_by=MarkedBy.MANUAL,
        )
        return self._store.mark_attendance(session.tenant_id, record)

    def today_log(self, session: Optional[TenantSession], *, on_date: Optional[str] = None) -> list[AttendanceLogRow]:
        session = require_session(session)
        return attendance_log(self._store.load(session.tenant_id), on_date or self._today())
