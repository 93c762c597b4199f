from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..common.datetime_utils import now_local, require_iso_date, today_iso
from ..common.ids import new_student_id
from ..common.validators import require_choice, require_non_empty
from ..core.enums import EnrollmentState, Gender
from ..core.exceptions import DuplicateStudentError, ValidationError
from ..fees.model import StudentFee
from ..imaging.frames import decode_image_payload, encode_reference
from ..matching.gateway import IdentityMatcher, gallery_from_students
from ..storage.record_store import RecordStore
from ..storage.snapshot import Snapshot
from ..students.model import Student
from ..tenants.session import TenantSession, require_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewStudent:
    """Registration form input."""

    full_name: str
    gender: str
    date_of_birth: str
    class_id: str
    section: str
    father_name: str = ""
    mother_name: str = ""


@dataclass(frozen=True)
class EnrollmentResult:
    student: Student
    student_fee: Optional[StudentFee]


class EnrollmentWorkflow:
    """Capture -> duplicate check -> hard stop or commit.

    States: IDLE -> CAPTURING -> CAPTURED -> CHECKING -> BLOCKED | COMMITTED.
    A duplicate verdict is final for the captured image; the only way forward
    is a retake.
    """

    def __init__(
        self,
        store: RecordStore,
        matcher: IdentityMatcher,
        *,
        id_factory: Callable[[], str] = new_student_id,
        clock: Callable[[], str] = today_iso,
    ):
        self._store = store
        self._matcher = matcher
        self._new_id = id_factory
        self._today = clock
        self._lock = threading.Lock()

        self.state = EnrollmentState.IDLE
        self._image: Optional[bytes] = None
        self._reference: Optional[str] = None
        self.blocked_by: Optional[Student] = None
        self.last_result: Optional[EnrollmentResult] = None

    @property
    def has_capture(self) -> bool:
        return self._reference is not None

    @property
    def reference_image(self) -> Optional[str]:
        return self._reference

    def start_capture(self) -> None:
        """Enter CAPTURING; discards any previous image and duplicate verdict."""

        with self._lock:
            self._ensure_not_checking()
            self._image = None
            self._reference = None
            self.blocked_by = None
            self.state = EnrollmentState.CAPTURING

    def capture(self, payload) -> None:
        image = decode_image_payload(payload)
        reference = encode_reference(image)

        with self._lock:
            self._ensure_not_checking()
            if self.state is not EnrollmentState.CAPTURING:
                self.blocked_by = None
            self._reference = reference
            self._image = decode_image_payload(reference)
            self.state = EnrollmentState.CAPTURED

    def submit(self, session: Optional[TenantSession], form: NewStudent) -> EnrollmentResult:
        session = require_session(session)

        with self._lock:
            self._ensure_not_checking()
            if self.state is EnrollmentState.BLOCKED and self.blocked_by is not None:
                raise DuplicateStudentError(self.blocked_by)
            if not self._image or not self._reference:
                raise ValidationError("Facial capture is mandatory for registration")
            image, reference = self._image, self._reference
            previous = self.state
            self.state = EnrollmentState.CHECKING

        try:
            snapshot = self._store.load(session.tenant_id)
            student = self._build_student(snapshot, form, reference)

            verdict = self._matcher.match(image, gallery_from_students(snapshot.students))
            duplicate = snapshot.find_student(verdict.student_id) if verdict.matched else None
            if duplicate:
                logger.warning("Duplicate registration attempt blocked for face matching ID: %s", duplicate.student_id)
                with self._lock:
                    self.blocked_by = duplicate
                    self.state = EnrollmentState.BLOCKED
                raise DuplicateStudentError(duplicate)

            fee = self._store.add_student(session.tenant_id, student)
        except DuplicateStudentError:
            raise
        except Exception:
            with self._lock:
                self.state = previous
            raise

        result = EnrollmentResult(student=student, student_fee=fee)
        logger.info("Enrolled %s as %s", student.full_name, student.student_id)
        with self._lock:
            self._image = None
            self._reference = None
            self.last_result = result
            self.state = EnrollmentState.COMMITTED
        return result

    def _ensure_not_checking(self) -> None:
        if self.state is EnrollmentState.CHECKING:
            raise ValidationError("Duplicate check already in progress")

    def _build_student(self, snapshot: Snapshot, form: NewStudent, reference: str) -> Student:
        full_name = require_non_empty(form.full_name, "Full name")
        gender = require_choice(form.gender, Gender, "Gender")

        dob = require_iso_date(form.date_of_birth, "Date of birth", not_after=now_local().date())

        class_id = require_non_empty(form.class_id, "Class")
        school_class = snapshot.find_class(class_id)
        if not school_class:
            raise ValidationError("Selected class does not exist")
        section = require_non_empty(form.section, "Section")
        if not school_class.has_section(section):
            raise ValidationError(f"Section {section} does not exist in {school_class.class_name}")

        father_name = (form.father_name or "").strip()
        mother_name = (form.mother_name or "").strip()
        if not father_name and not mother_name:
            raise ValidationError("At least one guardian name is required")

        return Student(
            student_id=self._new_id(),
            full_name=full_name,
            gender=gender,
            date_of_birth=dob.isoformat(),
            class_id=school_class.class_id,
            section=section,
            father_name=father_name,
            mother_name=mother_name,
            face_reference=reference,
            registration_date=self._today(),
        )
