from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from ..common.datetime_utils import today_iso
from ..common.money import to_wire
from ..common.validators import require_non_empty
from ..matching.client import ProviderError
from ..matching.gateway import GenerativeBackend
from ..storage.record_store import RecordStore
from ..storage.snapshot import Snapshot
from ..tenants.session import TenantSession, require_session

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I apologize, I'm having trouble processing that data right now."
ERROR_REPLY = "I encountered an error connecting to the assistant. Please try again in a moment."

PROMPT = """You are a professional administrative assistant for "{school_name}", a school management system.

Current School Data Summary:
{context}

Guidelines:
1. Answer accurately based on the data provided above.
2. Be professional, concise, and helpful.
3. If the user asks about something not in the data, explain that you only have access to current registration, attendance, and fee records.
4. Format numbers and currency (₹) clearly.

User Question: {question}"""


def summarize(snapshot: Snapshot, on_date: str) -> dict:
    """Compact, image-free view of the tenant's data for the prompt."""

    return {
        "studentCount": len(snapshot.students),
        "classes": [
            {"name": c.class_name, "studentCount": sum(1 for s in snapshot.students if s.class_id == c.class_id)}
            for c in snapshot.classes
        ],
        "attendanceToday": sum(1 for a in snapshot.attendance if a.date == on_date),
        "financials": {
            "collected": to_wire(sum(p.amount_paid for p in snapshot.payments)),
            "totalDue": to_wire(sum(f.balance for f in snapshot.student_fees)),
        },
    }


class AssistantService:
    """Chat-style analytics over the current tenant's records."""

    def __init__(self, store: RecordStore, backend: GenerativeBackend, *, clock: Callable[[], str] = today_iso):
        self._store = store
        self._backend = backend
        self._today = clock

    def ask(self, session: Optional[TenantSession], question: str) -> str:
        session = require_session(session)
        question = require_non_empty(question, "Question")

        context = summarize(self._store.load(session.tenant_id), self._today())
        prompt = PROMPT.format(
            school_name=session.school_name,
            context=json.dumps(context, indent=2),
            question=question,
        )
        try:
            reply = self._backend.generate([{"text": prompt}])
        except ProviderError as e:
            logger.error("Assistant error: %s", e)
            return ERROR_REPLY
        return reply.strip() or FALLBACK_REPLY
