from __future__ import annotations

from typing import Iterable, Optional, Union

from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.exceptions import ValidationError
from ..storage.record_store import RecordStore
from ..tenants.session import TenantSession, require_session
from .model import SchoolClass


def normalize_sections(raw: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    """Ordered, unique section labels. Accepts ``"A, B"`` or ``["A", "B"]``."""

    if raw is None:
        items: list[str] = []
    elif isinstance(raw, str):
        items = raw.split(",")
    else:
        items = [str(x) for x in raw]

    sections = [s.strip().upper() for s in items if s and s.strip()]
    if not sections:
        raise ValidationError("At least one section is required")

    duplicates = sorted({s for s in sections if sections.count(s) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate sections: {', '.join(duplicates)}")
    return tuple(sections)


class ClassService:
    """Use case: manage classes and their sections."""

    def __init__(self, store: RecordStore):
        self._store = store

    def list_classes(self, session: Optional[TenantSession]) -> list[SchoolClass]:
        session = require_session(session)
        return list(self._store.load(session.tenant_id).classes)

    def create_class(
        self,
        session: Optional[TenantSession],
        *,
        class_name: str,
        sections,
        class_teacher_name: str = "",
    ) -> SchoolClass:
        session = require_session(session)
        school_class = SchoolClass(
            class_id=new_id(),
            class_name=require_non_empty(class_name, "Class name"),
            sections=normalize_sections(sections),
            class_teacher_name=(class_teacher_name or "").strip(),
        )
        return self._store.add_class(session.tenant_id, school_class)

    def update_class(
        self,
        session: Optional[TenantSession],
        *,
        class_id: str,
        class_name: str,
        sections,
        class_teacher_name: str = "",
    ) -> SchoolClass:
        session = require_session(session)
        school_class = SchoolClass(
            class_id=require_non_empty(class_id, "Class"),
            class_name=require_non_empty(class_name, "Class name"),
            sections=normalize_sections(sections),
            class_teacher_name=(class_teacher_name or "").strip(),
        )
        return self._store.update_class(session.tenant_id, school_class)

    def delete_class(self, session: Optional[TenantSession], class_id: str) -> None:
        session = require_session(session)
        self._store.delete_class(session.tenant_id, require_non_empty(class_id, "Class"))
