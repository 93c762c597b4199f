from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Gender


@dataclass(frozen=True)
class Student:
    """Domain entity: an enrolled student.

    Students are immutable after enrollment; there is no edit or delete path.
    ``face_reference`` holds the enrollment capture as a JPEG data URL.
    """

    student_id: str
    full_name: str
    gender: Gender
    date_of_birth: str
    class_id: str
    section: str
    father_name: str
    mother_name: str
    face_reference: str
    registration_date: str


@dataclass(frozen=True)
class StudentRow:
    """Read-model: student joined with its class name."""

    student_id: str
    full_name: str
    gender: str
    class_id: str
    class_name: str
    section: str
    registration_date: str
