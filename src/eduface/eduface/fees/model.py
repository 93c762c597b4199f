from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ..core.enums import PaymentMode, PaymentStatus


@dataclass(frozen=True)
class FeeStructure:
    """Template: total fee for one class and academic year."""

    structure_id: str
    class_id: str
    academic_year: str
    total_fees: Decimal


@dataclass(frozen=True)
class StudentFee:
    """Per-student running ledger derived from a FeeStructure at enrollment."""

    fee_id: str
    student_id: str
    academic_year: str
    total_fees: Decimal
    paid_amount: Decimal
    due_date: str

    @property
    def balance(self) -> Decimal:
        return self.total_fees - self.paid_amount

    @property
    def status(self) -> PaymentStatus:
        if self.balance <= 0:
            return PaymentStatus.PAID
        if self.paid_amount > 0:
            return PaymentStatus.PARTIAL
        return PaymentStatus.UNPAID


@dataclass(frozen=True)
class PaymentHistory:
    """Immutable record of one collected payment."""

    payment_id: str
    student_id: str
    amount_paid: Decimal
    payment_date: str
    payment_mode: PaymentMode
    receipt_number: str


@dataclass(frozen=True)
class Receipt:
    receipt_number: str
    student_id: str
    amount_paid: Decimal
    payment_date: str
    payment_mode: PaymentMode
    paid_amount: Decimal
    balance: Decimal


@dataclass(frozen=True)
class LedgerRow:
    """Read-model for the billing screen."""

    student_id: str
    full_name: str
    class_name: str
    academic_year: str
    total_fees: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: PaymentStatus
    due_date: str
    history: list[PaymentHistory] = field(default_factory=list)
