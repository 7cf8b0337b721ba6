from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.http import Guards, current_user, fail, json_body, ok
from ..common.permissions import default_view, menu_for
from ..core.enums import View
from ..core.exceptions import AuthenticationError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    def me_payload(user) -> dict:
        return {
            "user": user.to_public(),
            "menu": [v.value for v in menu_for(user)],
            "default_view": default_view(user).value,
        }

    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        try:
            s_user = container.auth_service.authenticate(
                data.get("username", ""),
                data.get("password", ""),
                device=request.headers.get("User-Agent"),
            )
        except AuthenticationError as e:
            return fail(str(e), 401)

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = s_user.user_id

        user = container.users_repo.get_by_id(s_user.user_id)
        return ok(**me_payload(user))

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/me", endpoint="me")
    @guards.login_required
    def me():
        user = current_user()
        return ok(
            unread_notifications=container.notification_service.unread_count(user.user_id),
            **me_payload(user),
        )

    # --- account administration ---

    @app.route("/api/users", endpoint="list_users")
    @guards.requires(View.USERS)
    def list_users():
        users = container.user_service.search(request.args.get("q"), role=request.args.get("role"))
        return ok(users=[u.to_public() for u in users])

    @app.route("/api/users/<int:user_id>", endpoint="get_user")
    @guards.requires(View.USERS)
    def get_user(user_id: int):
        return ok(user=container.user_service.get(user_id).to_public())

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @guards.requires(View.USERS)
    def create_user():
        data = json_body()
        user_id = container.user_service.create_account(
            current_role=current_user().role,
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=data.get("role", ""),
            permissions=data.get("permissions"),
            email=data.get("email"),
            phone=data.get("phone"),
            linked_student_ids=data.get("linked_student_ids"),
            salary=data.get("salary"),
        )
        return ok(201, user_id=user_id, message="User created")

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="update_user")
    @guards.requires(View.USERS)
    def update_user(user_id: int):
        data = json_body()
        container.user_service.update_account(
            current_role=current_user().role,
            user_id=user_id,
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            role=data.get("role", ""),
            password=data.get("password"),
            permissions=data.get("permissions"),
            email=data.get("email"),
            phone=data.get("phone"),
            linked_student_ids=data.get("linked_student_ids"),
            salary=data.get("salary"),
        )
        return ok(message="User updated")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @guards.requires(View.USERS)
    def delete_user(user_id: int):
        me = current_user()
        container.user_service.delete_user(current_role=me.role, current_user_id=me.user_id, user_id=user_id)
        return ok(message="User deleted")

    @app.route("/api/users/<int:user_id>/permissions", methods=["PUT"], endpoint="set_user_permissions")
    @guards.requires(View.USERS)
    def set_user_permissions(user_id: int):
        perms = container.user_service.set_permissions(
            current_role=current_user().role,
            user_id=user_id,
            permissions=json_body().get("permissions") or [],
        )
        return ok(permissions=perms)

    @app.route("/api/users/<int:user_id>/students", methods=["PUT"], endpoint="link_user_students")
    @guards.requires(View.USERS)
    def link_user_students(user_id: int):
        ids = container.user_service.link_students(
            current_role=current_user().role,
            user_id=user_id,
            student_ids=json_body().get("student_ids") or [],
        )
        return ok(linked_student_ids=ids)

    # --- teachers ---
    # Gated on the users view; managers need it granted explicitly.

    @app.route("/api/teachers", endpoint="list_teachers")
    @guards.requires(View.USERS)
    def list_teachers():
        return ok(teachers=container.teacher_service.list_teachers(request.args.get("q")))

    def _save_teacher(teacher_id=None):
        data = json_body()
        return container.teacher_service.save_teacher(
            current_role=current_user().role,
            teacher_id=teacher_id,
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password"),
            email=data.get("email"),
            phone=data.get("phone"),
            salary=data.get("salary"),
            class_ids=data.get("class_ids") or [],
        )

    @app.route("/api/teachers", methods=["POST"], endpoint="create_teacher")
    @guards.requires(View.USERS)
    def create_teacher():
        return ok(201, teacher_id=_save_teacher(), message="Teacher saved")

    @app.route("/api/teachers/<int:teacher_id>", methods=["PUT"], endpoint="update_teacher")
    @guards.requires(View.USERS)
    def update_teacher(teacher_id: int):
        return ok(teacher_id=_save_teacher(teacher_id), message="Teacher saved")
