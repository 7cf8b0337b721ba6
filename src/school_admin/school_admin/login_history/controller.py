from __future__ import annotations

from flask import Flask, request

from ..common.http import Guards, current_user, ok
from ..core.enums import View
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/login-history", endpoint="login_history")
    @guards.requires(View.LOGIN_HISTORY)
    def login_history():
        return ok(logs=container.login_history_service.list_logs(search=request.args.get("q")))

    @app.route("/api/login-history", methods=["DELETE"], endpoint="clear_login_history")
    @guards.requires(View.LOGIN_HISTORY)
    def clear_login_history():
        removed = container.login_history_service.clear(current_role=current_user().role)
        return ok(removed=removed)
