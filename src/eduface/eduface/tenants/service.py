from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import timestamp_iso
from ..common.ids import new_id
from ..common.validators import require_non_empty
from ..core.exceptions import AuthenticationError
from ..storage.record_store import RecordStore
from .model import School
from .session import SESSION_MARKER_KEY, SessionMarker, TenantSession

logger = logging.getLogger(__name__)


def _to_session(school: School) -> TenantSession:
    return TenantSession(tenant_id=school.school_id, school_name=school.school_name, login_handle=school.login_handle)


class TenantService:
    """Use cases: register a school, log in, log out, resume a session."""

    def __init__(self, store: RecordStore):
        self._store = store

    def register(
        self,
        *,
        school_name: str,
        login_handle: str,
        password: str,
        address: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        marker: Optional[SessionMarker] = None,
    ) -> TenantSession:
        school_name = require_non_empty(school_name, "School name")
        login_handle = require_non_empty(login_handle, "Login handle")
        require_non_empty(password, "Password")

        school = School(
            school_id=new_id(),
            school_name=school_name,
            login_handle=login_handle,
            password_hash=generate_password_hash(password),
            address=(address or "").strip() or None,
            contact_email=(contact_email or "").strip() or None,
            contact_phone=(contact_phone or "").strip() or None,
            created_at=timestamp_iso(),
        )
        # Raises CollisionError for a taken handle; nothing is written then.
        self._store.register_tenant(school)
        logger.info("Registered school %s (%s)", school.school_name, school.school_id)

        session = _to_session(school)
        self._establish(session, marker)
        return session

    def login(self, login_handle: str, password: str, *, marker: Optional[SessionMarker] = None) -> TenantSession:
        school = self._store.find_tenant_by_handle((login_handle or "").strip())
        if not school:
            raise AuthenticationError("Invalid login handle or password")

        try:
            ok = check_password_hash(school.password_hash, password or "")
        except (TypeError, ValueError):
            # corrupted or placeholder hashes
            ok = False
        if not ok:
            raise AuthenticationError("Invalid login handle or password")

        session = _to_session(school)
        self._establish(session, marker)
        return session

    def logout(self, marker: Optional[SessionMarker]) -> None:
        if marker is not None:
            marker.pop(SESSION_MARKER_KEY, None)

    def resume(self, marker: Optional[SessionMarker]) -> Optional[TenantSession]:
        """Rebuild the session from the persisted marker; None means logged out."""

        if not marker:
            return None
        tenant_id = marker.get(SESSION_MARKER_KEY)
        if not tenant_id:
            return None

        school = self._store.get_tenant(str(tenant_id))
        if not school:
            marker.pop(SESSION_MARKER_KEY, None)
            return None
        return _to_session(school)

    @staticmethod
    def _establish(session: TenantSession, marker: Optional[SessionMarker]) -> None:
        if marker is not None:
            marker[SESSION_MARKER_KEY] = session.tenant_id
