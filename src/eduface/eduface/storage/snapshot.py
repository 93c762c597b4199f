from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Optional

from ..attendance.model import AttendanceRecord
from ..classes.model import SchoolClass
from ..common.money import to_money, to_wire
from ..core.constants import DEFAULT_ACADEMIC_YEAR
from ..core.enums import AttendanceStatus, Gender, MarkedBy, PaymentMode
from ..fees.model import FeeStructure, PaymentHistory, StudentFee
from ..students.model import Student
from ..tenants.model import School

logger = logging.getLogger(__name__)


def default_classes() -> list[SchoolClass]:
    return [
        SchoolClass(class_id="1", class_name="Class 1", sections=("A", "B"), class_teacher_name="Mrs. Sharma"),
        SchoolClass(class_id="2", class_name="Class 2", sections=("A",), class_teacher_name="Mr. Khan"),
    ]


def default_fee_structures() -> list[FeeStructure]:
    return [
        FeeStructure(structure_id="1", class_id="1", academic_year=DEFAULT_ACADEMIC_YEAR, total_fees=Decimal("50000.00")),
        FeeStructure(structure_id="2", class_id="2", academic_year=DEFAULT_ACADEMIC_YEAR, total_fees=Decimal("55000.00")),
    ]


@dataclass
class Snapshot:
    """In-memory copy of one partition.

    Tenant partitions use the six entity collections; the registry partition
    only uses ``schools``.
    """

    students: list[Student] = field(default_factory=list)
    classes: list[SchoolClass] = field(default_factory=default_classes)
    attendance: list[AttendanceRecord] = field(default_factory=list)
    fee_structures: list[FeeStructure] = field(default_factory=default_fee_structures)
    student_fees: list[StudentFee] = field(default_factory=list)
    payments: list[PaymentHistory] = field(default_factory=list)
    schools: list[School] = field(default_factory=list)

    # ----- lookups (linear scans, the collections are small) -----

    def find_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.student_id == student_id), None)

    def find_class(self, class_id: str) -> Optional[SchoolClass]:
        return next((c for c in self.classes if c.class_id == class_id), None)

    def find_fee_structure(self, class_id: str, academic_year: Optional[str] = None) -> Optional[FeeStructure]:
        for fs in self.fee_structures:
            if fs.class_id == class_id and (academic_year is None or fs.academic_year == academic_year):
                return fs
        return None

    def find_student_fee(self, student_id: str) -> Optional[StudentFee]:
        return next((f for f in self.student_fees if f.student_id == student_id), None)

    def find_attendance(self, student_id: str, on_date: str) -> Optional[AttendanceRecord]:
        return next((a for a in self.attendance if a.student_id == student_id and a.date == on_date), None)

    def find_school_by_handle(self, login_handle: str) -> Optional[School]:
        return next((s for s in self.schools if s.login_handle == login_handle), None)

    def find_school(self, school_id: str) -> Optional[School]:
        return next((s for s in self.schools if s.school_id == school_id), None)

    # ----- wire format -----

    @classmethod
    def from_blob(cls, blob: Any) -> "Snapshot":
        """Build a snapshot from a stored JSON object.

        Missing collections are synthesized: empty lists, except classes and
        fee structures which fall back to the seed defaults. A stored empty
        list is kept as-is.
        """

        if not isinstance(blob, dict):
            if blob is not None:
                logger.error("Ignoring malformed snapshot of type %s", type(blob).__name__)
            return cls()

        return cls(
            students=_load_list(blob.get("students"), _student_from_dict, list),
            classes=_load_list(blob.get("classes"), _class_from_dict, default_classes),
            attendance=_load_list(blob.get("attendance"), _attendance_from_dict, list),
            fee_structures=_load_list(blob.get("feeStructures"), _fee_structure_from_dict, default_fee_structures),
            student_fees=_load_list(blob.get("studentFees"), _student_fee_from_dict, list),
            payments=_load_list(blob.get("payments"), _payment_from_dict, list),
            schools=_load_list(blob.get("schools"), _school_from_dict, list),
        )

    def to_blob(self) -> dict:
        return {
            "students": [_student_to_dict(s) for s in self.students],
            "classes": [_class_to_dict(c) for c in self.classes],
            "attendance": [_attendance_to_dict(a) for a in self.attendance],
            "feeStructures": [_fee_structure_to_dict(fs) for fs in self.fee_structures],
            "studentFees": [_student_fee_to_dict(f) for f in self.student_fees],
            "payments": [_payment_to_dict(p) for p in self.payments],
            "schools": [_school_to_dict(s) for s in self.schools],
        }


def _load_list(raw: Any, convert: Callable[[dict], Any], default: Callable[[], list]) -> list:
    if raw is None:
        return default()
    if not isinstance(raw, list):
        logger.error("Expected a list in snapshot, got %s; using default", type(raw).__name__)
        return default()

    items = []
    for item in raw:
        try:
            items.append(convert(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed snapshot entry %r: %s", item, e)
    return items


def _student_from_dict(d: dict) -> Student:
    return Student(
        student_id=str(d["id"]),
        full_name=d["fullName"],
        gender=Gender(d.get("gender") or Gender.OTHER.value),
        date_of_birth=d.get("dateOfBirth", ""),
        class_id=str(d["classId"]),
        section=d.get("section", ""),
        father_name=d.get("fatherName", ""),
        mother_name=d.get("motherName", ""),
        face_reference=d.get("faceReference", ""),
        registration_date=d.get("registrationDate", ""),
    )


def _student_to_dict(s: Student) -> dict:
    return {
        "id": s.student_id,
        "fullName": s.full_name,
        "gender": s.gender.value,
        "dateOfBirth": s.date_of_birth,
        "classId": s.class_id,
        "section": s.section,
        "fatherName": s.father_name,
        "motherName": s.mother_name,
        "faceReference": s.face_reference,
        "registrationDate": s.registration_date,
    }


def _class_from_dict(d: dict) -> SchoolClass:
    return SchoolClass(
        class_id=str(d["id"]),
        class_name=d["className"],
        sections=tuple(d.get("sections") or ()),
        class_teacher_name=d.get("classTeacherName", ""),
    )


def _class_to_dict(c: SchoolClass) -> dict:
    return {
        "id": c.class_id,
        "className": c.class_name,
        "sections": list(c.sections),
        "classTeacherName": c.class_teacher_name,
    }


def _attendance_from_dict(d: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(d["id"]),
        student_id=str(d["studentId"]),
        date=d["date"],
        status=AttendanceStatus(d.get("status") or AttendanceStatus.PRESENT.value),
        marked_by=MarkedBy(d.get("markedBy") or MarkedBy.MANUAL.value),
    )


def _attendance_to_dict(a: AttendanceRecord) -> dict:
    return {
        "id": a.attendance_id,
        "studentId": a.student_id,
        "date": a.date,
        "status": a.status.value,
        "markedBy": a.marked_by.value,
    }


def _fee_structure_from_dict(d: dict) -> FeeStructure:
    return FeeStructure(
        structure_id=str(d["id"]),
        class_id=str(d["classId"]),
        academic_year=d["academicYear"],
        total_fees=to_money(d["totalFees"]),
    )


def _fee_structure_to_dict(fs: FeeStructure) -> dict:
    return {
        "id": fs.structure_id,
        "classId": fs.class_id,
        "academicYear": fs.academic_year,
        "totalFees": to_wire(fs.total_fees),
    }


def _student_fee_from_dict(d: dict) -> StudentFee:
    return StudentFee(
        fee_id=str(d["id"]),
        student_id=str(d["studentId"]),
        academic_year=d.get("academicYear", ""),
        total_fees=to_money(d["totalFees"]),
        paid_amount=to_money(d.get("paidAmount") or 0),
        due_date=d.get("dueDate", ""),
    )


def _student_fee_to_dict(f: StudentFee) -> dict:
    return {
        "id": f.fee_id,
        "studentId": f.student_id,
        "academicYear": f.academic_year,
        "totalFees": to_wire(f.total_fees),
        "paidAmount": to_wire(f.paid_amount),
        "dueDate": f.due_date,
    }


def _payment_from_dict(d: dict) -> PaymentHistory:
    return PaymentHistory(
        payment_id=str(d["id"]),
        student_id=str(d["studentId"]),
        amount_paid=to_money(d["amountPaid"]),
        payment_date=d["paymentDate"],
        payment_mode=PaymentMode(d.get("paymentMode") or PaymentMode.CASH.value),
        receipt_number=d.get("receiptNumber", ""),
    )


def _payment_to_dict(p: PaymentHistory) -> dict:
    return {
        "id": p.payment_id,
        "studentId": p.student_id,
        "amountPaid": to_wire(p.amount_paid),
        "paymentDate": p.payment_date,
        "paymentMode": p.payment_mode.value,
        "receiptNumber": p.receipt_number,
    }


def _school_from_dict(d: dict) -> School:
    return School(
        school_id=str(d["id"]),
        school_name=d["schoolName"],
        login_handle=d.get("loginHandle") or d["schoolName"],
        password_hash=d["passwordHash"],
        address=d.get("address"),
        contact_email=d.get("contactEmail"),
        contact_phone=d.get("contactPhone"),
        created_at=d.get("createdAt"),
    )


def _school_to_dict(s: School) -> dict:
    return {
        "id": s.school_id,
        "schoolName": s.school_name,
        "loginHandle": s.login_handle,
        "passwordHash": s.password_hash,
        "address": s.address,
        "contactEmail": s.contact_email,
        "contactPhone": s.contact_phone,
        "createdAt": s.created_at,
    }
