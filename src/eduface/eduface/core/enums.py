from __future__ import annotations

from enum import Enum


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class AttendanceStatus(str, Enum):
    """Attendance status stored per (student, date)."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class MarkedBy(str, Enum):
    """Origin of an attendance entry."""

    AUTOMATED = "AI Facial Recognition"
    MANUAL = "Manual"


class PaymentStatus(str, Enum):
    PAID = "Paid"
    PARTIAL = "Partial"
    UNPAID = "Unpaid"


class PaymentMode(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    ONLINE = "Online"
    CHEQUE = "Cheque"


class FacingMode(str, Enum):
    """Camera selection: front (kiosk) or rear (roving teacher)."""

    USER = "user"
    ENVIRONMENT = "environment"

    def toggled(self) -> "FacingMode":
        return FacingMode.ENVIRONMENT if self is FacingMode.USER else FacingMode.USER


class EnrollmentState(str, Enum):
    IDLE = "IDLE"
    CAPTURING = "CAPTURING"
    CAPTURED = "CAPTURED"
    CHECKING = "CHECKING"
    BLOCKED = "BLOCKED"
    COMMITTED = "COMMITTED"


class ScannerState(str, Enum):
    STOPPED = "STOPPED"
    STARTING = "STARTING"
    SCANNING = "SCANNING"
    MATCHED = "MATCHED"
    NO_MATCH = "NO_MATCH"
