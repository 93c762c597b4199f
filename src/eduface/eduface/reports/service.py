from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from ..common.datetime_utils import today_iso
from ..core.constants import DEFAULTER_BALANCE_RATIO
from ..core.enums import AttendanceStatus
from ..storage.record_store import RecordStore
from ..storage.snapshot import Snapshot
from ..tenants.session import TenantSession, require_session


@dataclass(frozen=True)
class DashboardData:
    total_students: int
    attendance_today: int
    fees_collected: Decimal
    pending_fees: Decimal
    defaulters_count: int
    class_distribution: list[dict]
    top_outstanding: list[dict]


def dashboard(snapshot: Snapshot, on_date: str) -> DashboardData:
    collected = sum(p.amount_paid for p in snapshot.payments)
    total_possible = sum(f.total_fees for f in snapshot.student_fees)
    present = sum(1 for a in snapshot.attendance if a.date == on_date and a.status is AttendanceStatus.PRESENT)
    defaulters = sum(1 for f in snapshot.student_fees if f.balance > f.total_fees * DEFAULTER_BALANCE_RATIO)

    distribution = [
        {"class_id": c.class_id, "name": c.class_name, "count": sum(1 for s in snapshot.students if s.class_id == c.class_id)}
        for c in snapshot.classes
    ]

    students = {s.student_id: s for s in snapshot.students}
    class_names = {c.class_id: c.class_name for c in snapshot.classes}
    outstanding = sorted((f for f in snapshot.student_fees if f.balance > 0), key=lambda f: f.balance, reverse=True)
    top = []
    for f in outstanding[:5]:
        student = students.get(f.student_id)
        top.append(
            {
                "student_id": f.student_id,
                "full_name": student.full_name if student else "Unknown",
                "class_name": class_names.get(student.class_id, "-") if student else "-",
                "balance": f.balance,
            }
        )

    return DashboardData(
        total_students=len(snapshot.students),
        attendance_today=present,
        fees_collected=collected,
        pending_fees=total_possible - collected,
        defaulters_count=defaulters,
        class_distribution=distribution,
        top_outstanding=top,
    )


def attendance_summary(snapshot: Snapshot) -> list[dict]:
    """Per-student counts of present vs other entries."""

    names = {s.student_id: s.full_name for s in snapshot.students}
    grouped: dict[str, dict] = {}
    for a in snapshot.attendance:
        row = grouped.get(a.student_id)
        if not row:
            row = {"student_id": a.student_id, "name": names.get(a.student_id, "Unknown"), "presents": 0, "absents": 0, "total": 0}
            grouped[a.student_id] = row
        if a.status is AttendanceStatus.PRESENT:
            row["presents"] += 1
        else:
            row["absents"] += 1
        row["total"] += 1
    return list(grouped.values())


def fee_summary(snapshot: Snapshot) -> list[dict]:
    names = {s.student_id: s.full_name for s in snapshot.students}
    return [
        {
            "student_id": f.student_id,
            "name": names.get(f.student_id, "Unknown"),
            "total": f.total_fees,
            "paid": f.paid_amount,
            "pending": f.balance,
        }
        for f in snapshot.student_fees
    ]


def to_csv(rows: list[dict], fieldnames: list[str]) -> bytes:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return out.getvalue().encode("utf-8-sig")


ATTENDANCE_CSV_FIELDS = ["student_id", "name", "presents", "absents", "total"]
FEES_CSV_FIELDS = ["student_id", "name", "total", "paid", "pending"]


class ReportService:
    def __init__(self, store: RecordStore, *, clock: Callable[[], str] = today_iso):
        self._store = store
        self._today = clock

    def dashboard(self, session: Optional[TenantSession], *, on_date: Optional[str] = None) -> DashboardData:
        session = require_session(session)
        return dashboard(self._store.load(session.tenant_id), on_date or self._today())

    def attendance_summary(self, session: Optional[TenantSession]) -> list[dict]:
        session = require_session(session)
        return attendance_summary(self._store.load(session.tenant_id))

    def fee_summary(self, session: Optional[TenantSession]) -> list[dict]:
        session = require_session(session)
        return fee_summary(self._store.load(session.tenant_id))
