from __future__ import annotations

import pytest

from src.eduface.eduface.core.exceptions import AuthenticationError, CollisionError, TenantRequiredError, ValidationError
from src.eduface.eduface.tenants.service import TenantService
from src.eduface.eduface.tenants.session import SESSION_MARKER_KEY, require_session


def test_register_logs_in_and_hashes_password(store):
    service = TenantService(store)
    marker: dict = {}

    session = service.register(school_name="Greenwood", login_handle="admin1", password="pw1", marker=marker)

    assert session.school_name == "Greenwood"
    assert marker[SESSION_MARKER_KEY] == session.tenant_id
    school = store.get_tenant(session.tenant_id)
    assert school.password_hash != "pw1"


def test_taken_handle_is_rejected_without_side_effects(store):
    service = TenantService(store)
    service.register(school_name="Greenwood", login_handle="admin1", password="pw1")
    marker: dict = {}

    with pytest.raises(CollisionError):
        service.register(school_name="Riverside", login_handle="admin1", password="other", marker=marker)

    assert marker == {}
    assert store.find_tenant_by_handle("admin1").school_name == "Greenwood"


def test_login_logout_and_resume(store):
    service = TenantService(store)
    registered = service.register(school_name="Greenwood", login_handle="admin1", password="pw1")
    marker: dict = {}

    session = service.login("admin1", "pw1", marker=marker)

    assert session == registered
    assert service.resume(marker) == registered

    service.logout(marker)
    assert service.resume(marker) is None
    with pytest.raises(TenantRequiredError):
        require_session(service.resume(marker))


@pytest.mark.parametrize("handle, password", [("admin1", "wrong"), ("nobody", "pw1"), ("admin1", "")])
def test_bad_credentials_are_indistinguishable(store, handle, password):
    service = TenantService(store)
    service.register(school_name="Greenwood", login_handle="admin1", password="pw1")

    with pytest.raises(AuthenticationError) as exc:
        service.login(handle, password)
    assert str(exc.value) == "Invalid login handle or password"


def test_resume_with_unknown_tenant_clears_marker(store):
    marker = {SESSION_MARKER_KEY: "gone"}

    assert TenantService(store).resume(marker) is None
    assert SESSION_MARKER_KEY not in marker


def test_register_requires_fields(store):
    service = TenantService(store)

    with pytest.raises(ValidationError):
        service.register(school_name="", login_handle="admin1", password="pw1")
    with pytest.raises(ValidationError):
        service.register(school_name="Greenwood", login_handle="admin1", password="")
