from __future__ import annotations

from flask import Flask, g

from ..common.web import json_body, ok, tenant_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    billing = container.billing

    @app.route("/api/fees/structures", methods=["GET"], endpoint="fees_structures")
    @tenant_required
    def fees_structures():
        return ok(billing.fee_structures(g.tenant))

    @app.route("/api/fees/structures", methods=["POST"], endpoint="fees_structures_set")
    @tenant_required
    def fees_structures_set():
        data = json_body()
        structure = billing.set_fee_structure(
            g.tenant,
            class_id=data.get("class_id", ""),
            academic_year=data.get("academic_year", ""),
            total_fees=data.get("total_fees"),
        )
        return ok(structure)

    @app.route("/api/fees/ledger", methods=["GET"], endpoint="fees_ledger")
    @tenant_required
    def fees_ledger():
        return ok(billing.ledger(g.tenant))

    @app.route("/api/fees/payments", methods=["POST"], endpoint="fees_payments")
    @tenant_required
    def fees_payments():
        data = json_body()
        receipt = billing.collect_payment(
            g.tenant,
            student_id=data.get("student_id", ""),
            amount=data.get("amount"),
            mode=data.get("mode", ""),
            payment_date=data.get("payment_date") or None,
        )
        return ok(receipt, 201)
