from __future__ import annotations

from flask import Flask, g

from ..common.web import json_body, ok, tenant_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/assistant/ask", methods=["POST"], endpoint="assistant_ask")
    @tenant_required
    def assistant_ask():
        reply = container.assistant_service.ask(g.tenant, json_body().get("question", ""))
        return ok(reply=reply)
