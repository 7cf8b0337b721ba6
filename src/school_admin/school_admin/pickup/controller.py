from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.http import Guards, current_user, fail, json_body, ok
from ..container import Container
from .qr import decode_qr_image
from .service import SCANNER_ROLES


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/pickup/pass/<int:student_id>", endpoint="pickup_pass")
    @guards.login_required
    def pickup_pass(student_id: int):
        return ok(**container.pickup_service.issue_pass(current_user(), student_id))

    @app.route("/api/pickup/pass/<int:student_id>.png", endpoint="pickup_pass_png")
    @guards.login_required
    def pickup_pass_png(student_id: int):
        issued = container.pickup_service.issue_pass(current_user(), student_id)
        png = container.pickup_service.qr_png(issued["token"])
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/api/pickup/scan", methods=["POST"], endpoint="pickup_scan")
    @guards.login_required
    def pickup_scan():
        result = container.pickup_service.verify_and_record(json_body().get("token", ""), scanned_by=current_user())
        return ok(**result)

    @app.route("/api/pickup/scan/image", methods=["POST"], endpoint="pickup_scan_image")
    @guards.login_required
    def pickup_scan_image():
        if "image" not in request.files:
            return fail("Image file is required", 400)
        token = decode_qr_image(request.files["image"].stream)
        result = container.pickup_service.verify_and_record(token, scanned_by=current_user())
        return ok(**result)

    @app.route("/api/pickup/scans", endpoint="pickup_scans")
    @guards.login_required
    def pickup_scans():
        if current_user().role not in SCANNER_ROLES:
            return fail("You do not have permission", 403)
        return ok(scans=[s.to_dict() for s in container.pickup_service.recent_scans()])
