from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Iterator, Optional

from ..attendance.model import AttendanceRecord
from ..classes.model import SchoolClass
from ..common.ids import new_id
from ..common.money import ZERO, to_money
from ..core.constants import DEFAULT_FEE_DUE_DATE, REGISTRY_PARTITION
from ..core.exceptions import CollisionError, IntegrityError, NotFoundError, ValidationError
from ..fees.model import FeeStructure, PaymentHistory, StudentFee
from ..students.model import Student
from ..tenants.model import School
from .repository import DocumentStore
from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class RecordStore:
    """Uniform read/write contract over one DocumentStore backend.

    Every mutating operation runs load-mutate-save inside the backend's
    per-partition lock, so two writers on the same tenant never lose each
    other's updates. Each tenant is its own partition; school accounts live in
    the separate registry partition.
    """

    def __init__(
        self,
        documents: DocumentStore,
        *,
        default_due_date: str = DEFAULT_FEE_DUE_DATE,
        id_factory: Callable[[], str] = new_id,
    ):
        self._documents = documents
        self._default_due_date = default_due_date
        self._new_id = id_factory

    # ----- snapshot level -----

    @staticmethod
    def _check_tenant(tenant_id: str) -> str:
        if not tenant_id or tenant_id == REGISTRY_PARTITION:
            raise ValidationError("Invalid tenant")
        return tenant_id

    def load(self, tenant_id: str) -> Snapshot:
        return Snapshot.from_blob(self._documents.read(self._check_tenant(tenant_id)))

    def save(self, tenant_id: str, snapshot: Snapshot) -> None:
        self._documents.write(self._check_tenant(tenant_id), snapshot.to_blob())

    @contextmanager
    def transaction(self, tenant_id: str) -> Iterator[Snapshot]:
        """Single-writer update: the snapshot is saved only if the block succeeds."""

        with self._documents.locked(self._check_tenant(tenant_id)) as (blob, write):
            snapshot = Snapshot.from_blob(blob)
            yield snapshot
            write(snapshot.to_blob())

    @contextmanager
    def _registry_transaction(self) -> Iterator[Snapshot]:
        with self._documents.locked(REGISTRY_PARTITION) as (blob, write):
            snapshot = Snapshot.from_blob(blob)
            yield snapshot
            write({"schools": snapshot.to_blob()["schools"]})

    # ----- tenants -----

    def register_tenant(self, school: School) -> School:
        with self._registry_transaction() as snap:
            if snap.find_school_by_handle(school.login_handle):
                raise CollisionError("Login handle already registered")
            if snap.find_school(school.school_id):
                raise CollisionError("School id already registered")
            snap.schools.append(school)
        return school

    def find_tenant_by_handle(self, login_handle: str) -> Optional[School]:
        return Snapshot.from_blob(self._documents.read(REGISTRY_PARTITION)).find_school_by_handle(login_handle)

    def get_tenant(self, school_id: str) -> Optional[School]:
        return Snapshot.from_blob(self._documents.read(REGISTRY_PARTITION)).find_school(school_id)

    # ----- students -----

    def add_student(self, tenant_id: str, student: Student) -> Optional[StudentFee]:
        """Append the student and derive its StudentFee from the class fee structure.

        Returns the derived fee, or None when the class has no fee structure.
        """

        with self.transaction(tenant_id) as snap:
            if snap.find_student(student.student_id):
                raise CollisionError(f"Student id {student.student_id} already exists")
            if not snap.find_class(student.class_id):
                raise NotFoundError("Class not found")

            snap.students.append(student)

            structures = [fs for fs in snap.fee_structures if fs.class_id == student.class_id]
            if not structures:
                return None

            structure = max(structures, key=lambda fs: fs.academic_year)
            fee = StudentFee(
                fee_id=self._new_id(),
                student_id=student.student_id,
                academic_year=structure.academic_year,
                total_fees=structure.total_fees,
                paid_amount=ZERO,
                due_date=self._default_due_date,
            )
            snap.student_fees.append(fee)
            return fee

    # ----- attendance -----

    def mark_attendance(self, tenant_id: str, record: AttendanceRecord) -> bool:
        """Idempotent per (student, date): returns False when already marked."""

        with self.transaction(tenant_id) as snap:
            if not snap.find_student(record.student_id):
                raise NotFoundError("Student not found")
            if snap.find_attendance(record.student_id, record.date):
                return False
            snap.attendance.append(record)
            return True

    # ----- fees -----

    def add_payment(self, tenant_id: str, payment: PaymentHistory) -> StudentFee:
        """Append the payment and increment the student's paid amount in one unit."""

        with self.transaction(tenant_id) as snap:
            fee = snap.find_student_fee(payment.student_id)
            if not fee:
                raise NotFoundError("No fee record for this student")
            try:
                amount = to_money(payment.amount_paid)
            except ValueError:
                raise ValidationError("Amount must be a number")
            if amount <= 0:
                raise ValidationError("Amount must be greater than zero")
            balance = to_money(fee.balance)
            if amount > balance:
                raise ValidationError(f"Amount exceeds outstanding balance ({balance})")

            updated = replace(fee, paid_amount=to_money(fee.paid_amount) + amount)
            snap.payments.append(replace(payment, amount_paid=amount))
            snap.student_fees[snap.student_fees.index(fee)] = updated
            return updated

    def set_fee_structure(self, tenant_id: str, *, class_id: str, academic_year: str, total_fees) -> FeeStructure:
        try:
            total_fees = to_money(total_fees)
        except ValueError:
            raise ValidationError("Total fees must be a number")
        with self.transaction(tenant_id) as snap:
            if not snap.find_class(class_id):
                raise NotFoundError("Class not found")

            existing = snap.find_fee_structure(class_id, academic_year)
            if existing:
                updated = replace(existing, total_fees=total_fees)
                snap.fee_structures[snap.fee_structures.index(existing)] = updated
                return updated

            structure = FeeStructure(
                structure_id=self._new_id(),
                class_id=class_id,
                academic_year=academic_year,
                total_fees=total_fees,
            )
            snap.fee_structures.append(structure)
            return structure

    # ----- classes -----

    def add_class(self, tenant_id: str, school_class: SchoolClass) -> SchoolClass:
        with self.transaction(tenant_id) as snap:
            if snap.find_class(school_class.class_id):
                raise CollisionError("Class id already exists")
            snap.classes.append(school_class)
        return school_class

    def update_class(self, tenant_id: str, school_class: SchoolClass) -> SchoolClass:
        with self.transaction(tenant_id) as snap:
            existing = snap.find_class(school_class.class_id)
            if not existing:
                raise NotFoundError("Class not found")

            removed = set(existing.sections) - set(school_class.sections)
            in_use = sorted({s.section for s in snap.students if s.class_id == existing.class_id and s.section in removed})
            if in_use:
                raise IntegrityError(f"Sections still have students: {', '.join(in_use)}")

            snap.classes[snap.classes.index(existing)] = school_class
        return school_class

    def delete_class(self, tenant_id: str, class_id: str) -> None:
        with self.transaction(tenant_id) as snap:
            existing = snap.find_class(class_id)
            if not existing:
                raise NotFoundError("Class not found")
            if any(s.class_id == class_id for s in snap.students):
                raise IntegrityError("Class still has enrolled students")
            if any(fs.class_id == class_id for fs in snap.fee_structures):
                raise IntegrityError("Class still has fee structures")
            snap.classes.remove(existing)
