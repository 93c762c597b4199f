from __future__ import annotations

import logging
from typing import Callable, Optional

from ..common.datetime_utils import require_iso_date, today_iso
from ..common.ids import new_id, new_receipt_number
from ..common.validators import require_choice, require_non_empty, require_positive_amount
from ..core.enums import PaymentMode
from ..storage.record_store import RecordStore
from ..storage.snapshot import Snapshot
from ..tenants.session import TenantSession, require_session
from .model import FeeStructure, LedgerRow, PaymentHistory, Receipt

logger = logging.getLogger(__name__)


def ledger_rows(snapshot: Snapshot) -> list[LedgerRow]:
    """Pure projection: every StudentFee joined with student, class and payments."""

    students = {s.student_id: s for s in snapshot.students}
    class_names = {c.class_id: c.class_name for c in snapshot.classes}

    rows = []
    for fee in snapshot.student_fees:
        student = students.get(fee.student_id)
        rows.append(
            LedgerRow(
                student_id=fee.student_id,
                full_name=student.full_name if student else "Unknown",
                class_name=class_names.get(student.class_id, "-") if student else "-",
                academic_year=fee.academic_year,
                total_fees=fee.total_fees,
                paid_amount=fee.paid_amount,
                balance=fee.balance,
                status=fee.status,
                due_date=fee.due_date,
                history=[p for p in snapshot.payments if p.student_id == fee.student_id],
            )
        )
    return rows


class BillingLedger:
    """Use case: collect payments against a student's fee balance."""

    def __init__(
        self,
        store: RecordStore,
        *,
        clock: Callable[[], str] = today_iso,
        receipt_factory: Callable[[], str] = new_receipt_number,
        id_factory: Callable[[], str] = new_id,
    ):
        self._store = store
        self._today = clock
        self._new_receipt = receipt_factory
        self._new_id = id_factory

    def collect_payment(
        self,
        session: Optional[TenantSession],
        *,
        student_id: str,
        amount,
        mode,
        payment_date: Optional[str] = None,
    ) -> Receipt:
        session = require_session(session)

        # Local checks first: nothing touches the store for an invalid request.
        amount = require_positive_amount(amount)
        mode = require_choice(mode, PaymentMode, "Payment mode")
        student_id = require_non_empty(student_id, "Student")

        payment_date = require_iso_date(payment_date or self._today(), "Payment date").isoformat()

        payment = PaymentHistory(
            payment_id=self._new_id(),
            student_id=student_id,
            amount_paid=amount,
            payment_date=payment_date,
            payment_mode=mode,
            receipt_number=self._new_receipt(),
        )
        # History row + paid increment in one store transaction; raises
        # NotFoundError (no fee record) or ValidationError (over balance).
        fee = self._store.add_payment(session.tenant_id, payment)
        logger.info("Payment %s of %s recorded for %s", payment.receipt_number, amount, student_id)

        return Receipt(
            receipt_number=payment.receipt_number,
            student_id=student_id,
            amount_paid=amount,
            payment_date=payment_date,
            payment_mode=mode,
            paid_amount=fee.paid_amount,
            balance=fee.balance,
        )

    def ledger(self, session: Optional[TenantSession]) -> list[LedgerRow]:
        session = require_session(session)
        return ledger_rows(self._store.load(session.tenant_id))

    def fee_structures(self, session: Optional[TenantSession]) -> list[FeeStructure]:
        session = require_session(session)
        return list(self._store.load(session.tenant_id).fee_structures)

    def set_fee_structure(
        self,
        session: Optional[TenantSession],
        *,
        class_id: str,
        academic_year: str,
        total_fees,
    ) -> FeeStructure:
        session = require_session(session)
        return self._store.set_fee_structure(
            session.tenant_id,
            class_id=require_non_empty(class_id, "Class"),
            academic_year=require_non_empty(academic_year, "Academic year"),
            total_fees=require_positive_amount(total_fees, "Total fees"),
        )
