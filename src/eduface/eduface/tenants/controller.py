from __future__ import annotations

from flask import Flask, g, session

from ..common.web import fail, json_body, ok, tenant_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.before_request
    def load_tenant():
        g.tenant = container.tenant_service.resume(session)

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = json_body()
        tenant = container.tenant_service.register(
            school_name=data.get("school_name", ""),
            login_handle=data.get("login_handle") or data.get("school_name", ""),
            password=data.get("password", ""),
            address=data.get("address"),
            contact_email=data.get("contact_email"),
            contact_phone=data.get("contact_phone"),
            marker=session,
        )
        return ok(tenant, 201)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        tenant = container.tenant_service.login(
            data.get("login_handle", ""),
            data.get("password", ""),
            marker=session,
        )
        return ok(tenant)

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        if g.tenant is not None:
            container.scanner.release(g.tenant.tenant_id)
        container.enrollment_desk.discard(g.tenant)
        container.tenant_service.logout(session)
        session.clear()
        return ok()

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @tenant_required
    def auth_me():
        return ok(g.tenant)

    @app.route("/api/capabilities", methods=["GET"], endpoint="capabilities")
    def capabilities():
        logged_in = g.tenant is not None
        return ok(
            {
                "remote_store": container.remote_store,
                "provider": container.provider_configured,
                "logged_in": logged_in,
                "matcher": container.matcher.stats() if logged_in else None,
            }
        )

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return fail("Method not allowed", 405)
