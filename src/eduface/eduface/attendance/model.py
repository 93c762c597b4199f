from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus, MarkedBy


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance entry per (student, calendar date)."""

    attendance_id: str
    student_id: str
    date: str
    status: AttendanceStatus
    marked_by: MarkedBy


@dataclass(frozen=True)
class AttendanceLogRow:
    """Read-model for the activity feed (record joined with the student name)."""

    attendance_id: str
    student_id: str
    student_name: str
    date: str
    status: AttendanceStatus
    marked_by: MarkedBy


@dataclass(frozen=True)
class ScanOutcome:
    """Result of resolving one frame against the student population."""

    student_id: Optional[str] = None
    student_name: Optional[str] = None
    confidence: Optional[float] = None
    newly_marked: bool = False

    @property
    def matched(self) -> bool:
        return self.student_id is not None
