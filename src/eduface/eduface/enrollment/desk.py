from __future__ import annotations

import threading
from typing import Optional

from ..matching.gateway import IdentityMatcher
from ..storage.record_store import RecordStore
from ..tenants.session import TenantSession, require_session
from .workflow import EnrollmentWorkflow


class EnrollmentDesk:
    """One enrollment workflow per tenant (one operator per school session)."""

    def __init__(self, store: RecordStore, matcher: IdentityMatcher):
        self._store = store
        self._matcher = matcher
        self._workflows: dict[str, EnrollmentWorkflow] = {}
        self._lock = threading.Lock()

    def for_session(self, session: Optional[TenantSession]) -> EnrollmentWorkflow:
        session = require_session(session)
        with self._lock:
            workflow = self._workflows.get(session.tenant_id)
            if workflow is None:
                workflow = EnrollmentWorkflow(self._store, self._matcher)
                self._workflows[session.tenant_id] = workflow
            return workflow

    def discard(self, session: Optional[TenantSession]) -> None:
        if session is None:
            return
        with self._lock:
            self._workflows.pop(session.tenant_id, None)
