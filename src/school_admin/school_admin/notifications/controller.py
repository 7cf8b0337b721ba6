from __future__ import annotations

from flask import Flask, request

from ..common.http import Guards, current_user, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/notifications", endpoint="list_notifications")
    @guards.login_required
    def list_notifications():
        user_id = current_user().user_id
        items = container.notification_service.list_for(user_id)
        return ok(
            notifications=[n.to_dict() for n in items],
            unread=container.notification_service.unread_count(user_id),
        )

    @app.route("/api/notifications/poll", endpoint="poll_notifications")
    @guards.login_required
    def poll_notifications():
        result = container.notification_service.poll(
            current_user().user_id,
            after_id=request.args.get("after_id", 0),
        )
        return ok(**result)

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="read_notification")
    @guards.login_required
    def read_notification(notification_id: int):
        container.notification_service.mark_as_read(current_user().user_id, notification_id)
        return ok()

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="read_all_notifications")
    @guards.login_required
    def read_all_notifications():
        marked = container.notification_service.mark_all_as_read(current_user().user_id)
        return ok(marked=marked)
