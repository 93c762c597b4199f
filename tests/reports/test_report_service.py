from __future__ import annotations

from conftest import FakeMatcher, enroll_student

from src.eduface.eduface.attendance.service import AttendanceService
from src.eduface.eduface.fees.service import BillingLedger
from src.eduface.eduface.reports.service import FEES_CSV_FIELDS, ReportService, to_csv


def _seed(store, session):
    enroll_student(store, session.tenant_id, "STU-000001", "Asha")
    enroll_student(store, session.tenant_id, "STU-000002", "Vikram")
    enroll_student(store, session.tenant_id, "STU-000003", "Meera", class_id="2")

    attendance = AttendanceService(store, FakeMatcher(), clock=lambda: "2024-06-01")
    attendance.mark_manual(session, student_id="STU-000001")
    attendance.mark_manual(session, student_id="STU-000002", status="Absent")
    attendance.mark_manual(session, student_id="STU-000001", on_date="2024-05-31")

    billing = BillingLedger(store, clock=lambda: "2024-06-01")
    billing.collect_payment(session, student_id="STU-000001", amount=40000, mode="Cash")
    billing.collect_payment(session, student_id="STU-000002", amount=10000, mode="Online")


def test_dashboard_counts(store, session):
    _seed(store, session)

    data = ReportService(store, clock=lambda: "2024-06-01").dashboard(session)

    assert data.total_students == 3
    assert data.attendance_today == 1
    assert data.fees_collected == 50000
    assert data.pending_fees == 50000 + 50000 + 55000 - 50000
    # Vikram (40000 left of 50000) and Meera (nothing paid) are over half outstanding.
    assert data.defaulters_count == 2
    assert [c["count"] for c in data.class_distribution] == [2, 1]
    assert [r["full_name"] for r in data.top_outstanding] == ["Meera", "Vikram", "Asha"]


def test_summaries_and_csv(store, session):
    _seed(store, session)
    reports = ReportService(store)

    attendance = {r["student_id"]: r for r in reports.attendance_summary(session)}
    assert attendance["STU-000001"]["presents"] == 2
    assert attendance["STU-000002"]["absents"] == 1

    fees = reports.fee_summary(session)
    body = to_csv(fees, FEES_CSV_FIELDS).decode("utf-8-sig")
    lines = body.strip().splitlines()
    assert lines[0] == "student_id,name,total,paid,pending"
    assert len(lines) == 4
