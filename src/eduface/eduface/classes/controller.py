from __future__ import annotations

from flask import Flask, g

from ..common.web import json_body, ok, tenant_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/classes", methods=["GET"], endpoint="classes_list")
    @tenant_required
    def classes_list():
        return ok(container.class_service.list_classes(g.tenant))

    @app.route("/api/classes", methods=["POST"], endpoint="classes_create")
    @tenant_required
    def classes_create():
        data = json_body()
        created = container.class_service.create_class(
            g.tenant,
            class_name=data.get("class_name", ""),
            sections=data.get("sections"),
            class_teacher_name=data.get("class_teacher_name", ""),
        )
        return ok(created, 201)

    @app.route("/api/classes/<class_id>", methods=["PUT"], endpoint="classes_update")
    @tenant_required
    def classes_update(class_id: str):
        data = json_body()
        updated = container.class_service.update_class(
            g.tenant,
            class_id=class_id,
            class_name=data.get("class_name", ""),
            sections=data.get("sections"),
            class_teacher_name=data.get("class_teacher_name", ""),
        )
        return ok(updated)

    @app.route("/api/classes/<class_id>", methods=["DELETE"], endpoint="classes_delete")
    @tenant_required
    def classes_delete(class_id: str):
        container.class_service.delete_class(g.tenant, class_id)
        return ok()
