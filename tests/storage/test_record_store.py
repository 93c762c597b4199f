from __future__ import annotations

import threading

import pytest

from src.eduface.eduface.attendance.model import AttendanceRecord
from src.eduface.eduface.classes.model import SchoolClass
from src.eduface.eduface.core.constants import REGISTRY_PARTITION
from src.eduface.eduface.core.enums import AttendanceStatus, Gender, MarkedBy, PaymentMode
from src.eduface.eduface.core.exceptions import CollisionError, IntegrityError, NotFoundError, ValidationError
from src.eduface.eduface.fees.model import PaymentHistory
from src.eduface.eduface.students.model import Student
from src.eduface.eduface.tenants.model import School


def _student(student_id="STU-000001", class_id="1", section="A", name="Asha"):
    return Student(
        student_id=student_id,
        full_name=name,
        gender=Gender.FEMALE,
        date_of_birth="2015-04-02",
        class_id=class_id,
        section=section,
        father_name="Ravi",
        mother_name="",
        face_reference="data:image/jpeg;base64,AAAA",
        registration_date="2024-06-01",
    )


def _payment(amount, student_id="STU-000001", payment_id="p1"):
    return PaymentHistory(
        payment_id=payment_id,
        student_id=student_id,
        amount_paid=amount,
        payment_date="2024-06-01",
        payment_mode=PaymentMode.CASH,
        receipt_number="REC-000001",
    )


def _present(student_id="STU-000001", on_date="2024-06-01", attendance_id="a1"):
    return AttendanceRecord(
        attendance_id=attendance_id,
        student_id=student_id,
        date=on_date,
        status=AttendanceStatus.PRESENT,
        marked_by=MarkedBy.AUTOMATED,
    )


def test_fresh_tenant_loads_seed_data(store):
    snap = store.load("school1")

    assert len(snap.classes) == 2
    assert snap.students == []


def test_registry_partition_is_not_a_tenant(store):
    with pytest.raises(ValidationError):
        store.load(REGISTRY_PARTITION)
    with pytest.raises(ValidationError):
        store.load("")


def test_add_student_derives_fee_from_class_structure(store):
    fee = store.add_student("school1", _student())

    assert fee is not None
    assert fee.total_fees == 50000
    assert fee.paid_amount == 0
    assert fee.due_date == "2024-12-31"
    snap = store.load("school1")
    assert [s.student_id for s in snap.students] == ["STU-000001"]
    assert snap.student_fees == [fee]


def test_add_student_without_fee_structure_has_no_fee(store):
    store.add_class("school1", SchoolClass(class_id="3", class_name="Class 3", sections=("A",), class_teacher_name=""))

    assert store.add_student("school1", _student(class_id="3")) is None
    assert store.load("school1").student_fees == []


def test_add_student_rejects_unknown_class_and_duplicate_id(store):
    with pytest.raises(NotFoundError):
        store.add_student("school1", _student(class_id="99"))

    store.add_student("school1", _student())
    with pytest.raises(CollisionError):
        store.add_student("school1", _student(name="Someone else"))
    assert len(store.load("school1").students) == 1


def test_mark_attendance_is_idempotent_per_day(store):
    store.add_student("school1", _student())

    assert store.mark_attendance("school1", _present()) is True
    assert store.mark_attendance("school1", _present(attendance_id="a2")) is False
    assert store.mark_attendance("school1", _present(on_date="2024-06-02", attendance_id="a3")) is True
    assert len(store.load("school1").attendance) == 2


def test_mark_attendance_for_unknown_student(store):
    with pytest.raises(NotFoundError):
        store.mark_attendance("school1", _present(student_id="STU-NOPE00"))


def test_add_payment_updates_fee_and_history_together(store):
    store.add_student("school1", _student())

    fee = store.add_payment("school1", _payment(20000))

    assert fee.paid_amount == 20000
    assert fee.balance == 30000
    snap = store.load("school1")
    assert len(snap.payments) == 1
    assert snap.find_student_fee("STU-000001").paid_amount == 20000


def test_add_payment_over_balance_changes_nothing(store):
    store.add_student("school1", _student())
    store.add_payment("school1", _payment(20000))

    with pytest.raises(ValidationError):
        store.add_payment("school1", _payment(35000, payment_id="p2"))

    snap = store.load("school1")
    assert len(snap.payments) == 1
    assert snap.find_student_fee("STU-000001").paid_amount == 20000


def test_add_payment_without_fee_record(store):
    with pytest.raises(NotFoundError):
        store.add_payment("school1", _payment(100))


def test_tenants_are_isolated(store):
    store.add_student("school1", _student())

    assert store.load("school2").students == []


def test_register_tenant_rejects_taken_handle(store):
    school = School(
        school_id="s1", school_name="Greenwood", login_handle="admin1", password_hash="x",
        address=None, contact_email=None, contact_phone=None, created_at="2024-06-01T09:00:00",
    )
    store.register_tenant(school)

    with pytest.raises(CollisionError):
        store.register_tenant(
            School(
                school_id="s2", school_name="Other", login_handle="admin1", password_hash="y",
                address=None, contact_email=None, contact_phone=None, created_at="2024-06-01T09:00:00",
            )
        )
    assert store.find_tenant_by_handle("admin1").school_id == "s1"
    assert store.get_tenant("s2") is None


def test_class_update_and_delete_keep_references_valid(store):
    store.add_student("school1", _student(section="B"))

    with pytest.raises(IntegrityError):
        store.update_class("school1", SchoolClass(class_id="1", class_name="Class 1", sections=("A",), class_teacher_name=""))
    with pytest.raises(IntegrityError):
        store.delete_class("school1", "1")
    with pytest.raises(IntegrityError):
        store.delete_class("school1", "2")

    updated = store.update_class(
        "school1", SchoolClass(class_id="1", class_name="Class One", sections=("A", "B", "C"), class_teacher_name="Mrs. Rao")
    )
    assert store.load("school1").find_class("1") == updated


def test_set_fee_structure_upserts(store):
    store.set_fee_structure("school1", class_id="1", academic_year="2024-25", total_fees=52000)
    store.set_fee_structure("school1", class_id="1", academic_year="2025-26", total_fees=60000)

    snap = store.load("school1")
    assert snap.find_fee_structure("1", "2024-25").total_fees == 52000
    assert snap.find_fee_structure("1", "2025-26").total_fees == 60000

    fee = store.add_student("school1", _student())
    assert fee.academic_year == "2025-26"
    assert fee.total_fees == 60000


def test_concurrent_writers_do_not_lose_updates(store):
    for i in range(8):
        store.add_student("school1", _student(student_id=f"STU-00000{i}"))

    def mark(i):
        store.mark_attendance("school1", _present(student_id=f"STU-00000{i}", attendance_id=f"a{i}"))

    threads = [threading.Thread(target=mark, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.load("school1").attendance) == 8
