from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.http import Guards, current_user, json_body, ok
from ..core.enums import View
from ..container import Container
from .receipt import render_receipt_text
from .service import HISTORY_CSV_FIELDS


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/fees", endpoint="fees_overview")
    @guards.requires(View.FEES, allow_parents=True)
    def fees_overview():
        rows = container.fee_service.overview(
            current_user(),
            search=request.args.get("q"),
            month=request.args.get("month"),
        )
        return ok(fees=rows)

    @app.route("/api/fees/stats", endpoint="fees_stats")
    @guards.requires(View.FEES)
    def fees_stats():
        return ok(stats=container.fee_service.stats(month=request.args.get("month")))

    @app.route("/api/fees/history", endpoint="fees_history")
    @guards.requires(View.FEES, allow_parents=True)
    def fees_history():
        return ok(history=container.fee_service.history(current_user()))

    @app.route("/api/fees/history.csv", endpoint="fees_history_csv")
    @guards.requires(View.FEES)
    def fees_history_csv():
        rows = container.fee_service.history(current_user())

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=HISTORY_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        # utf-8-sig so Excel opens it with the right encoding
        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=fee_history.csv"},
        )

    @app.route("/api/fees/<int:student_id>/monthly", methods=["PUT"], endpoint="set_monthly_fee")
    @guards.requires(View.FEES)
    def set_monthly_fee(student_id: int):
        amount = container.fee_service.set_monthly_amount(
            current_role=current_user().role,
            student_id=student_id,
            amount=json_body().get("amount"),
        )
        return ok(monthly_amount=str(amount))

    @app.route("/api/fees/<int:student_id>/payments", endpoint="student_payments")
    @guards.requires(View.FEES, allow_parents=True)
    def student_payments(student_id: int):
        history = container.fee_service.student_history(current_user(), student_id)
        return ok(history=[t.to_dict() for t in history])

    @app.route("/api/fees/<int:student_id>/payments", methods=["POST"], endpoint="record_payment")
    @guards.requires(View.FEES)
    def record_payment(student_id: int):
        data = json_body()
        me = current_user()
        tx_id = container.fee_service.record_payment(
            current_role=me.role,
            student_id=student_id,
            amount=data.get("amount"),
            method=data.get("method") or "Cash",
            for_month=data.get("for_month"),
            note=data.get("note"),
            recorded_by=me.full_name,
        )
        return ok(201, transaction_id=tx_id, message="Payment recorded")

    @app.route(
        "/api/fees/<int:student_id>/payments/<int:transaction_id>",
        methods=["DELETE"],
        endpoint="delete_payment",
    )
    @guards.requires(View.FEES)
    def delete_payment(student_id: int, transaction_id: int):
        amount = container.fee_service.delete_transaction(
            current_role=current_user().role,
            student_id=student_id,
            transaction_id=transaction_id,
        )
        return ok(removed_amount=str(amount), message="Payment deleted")

    @app.route("/api/fees/receipts/<int:transaction_id>", endpoint="fee_receipt")
    @guards.requires(View.FEES, allow_parents=True)
    def fee_receipt(transaction_id: int):
        receipt = container.fee_service.receipt(current_user(), transaction_id)
        if request.args.get("format") == "text":
            return app.response_class(
                render_receipt_text(receipt),
                mimetype="text/plain",
                headers={"Content-Disposition": f"inline; filename={receipt.receipt_no}.txt"},
            )
        return ok(receipt=receipt.to_dict())
