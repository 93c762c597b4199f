from __future__ import annotations

from dataclasses import dataclass
from typing import MutableMapping, Optional

from ..core.exceptions import TenantRequiredError

SESSION_MARKER_KEY = "tenant_id"

SessionMarker = MutableMapping[str, object]
"""Persisted pointer to the current tenant (the Flask session, or any dict)."""


@dataclass(frozen=True)
class TenantSession:
    """Explicit tenant context passed into every workflow entry point.

    Created at login/registration and dropped at logout.
    """

    tenant_id: str
    school_name: str
    login_handle: str


def require_session(session: Optional[TenantSession]) -> TenantSession:
    if session is None or not session.tenant_id:
        raise TenantRequiredError("Please log in to a school account first")
    return session
