from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SchoolClass:
    """Domain entity: a class with its ordered section labels."""

    class_id: str
    class_name: str
    sections: tuple[str, ...]
    class_teacher_name: str

    def has_section(self, section: str) -> bool:
        return section in self.sections
