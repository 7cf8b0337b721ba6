from __future__ import annotations

from flask import Flask

from ..common.http import Guards, current_user, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/profile", endpoint="profile")
    @guards.login_required
    def profile():
        return ok(user=current_user().to_public())

    @app.route("/api/profile", methods=["PUT"], endpoint="update_profile")
    @guards.login_required
    def update_profile():
        data = json_body()
        user = container.profile_service.update_profile(
            current_user().user_id,
            full_name=data.get("full_name", ""),
            email=data.get("email"),
            phone=data.get("phone"),
            interests=data.get("interests"),
            avatar=data.get("avatar"),
        )
        return ok(user=user.to_public(), message="Profile updated")

    @app.route("/api/profile/password", methods=["POST"], endpoint="change_password")
    @guards.login_required
    def change_password():
        data = json_body()
        container.profile_service.change_password(
            current_user().user_id,
            current=data.get("current_password", ""),
            new=data.get("new_password", ""),
            confirm=data.get("confirm_password", ""),
        )
        return ok(message="Password changed")
