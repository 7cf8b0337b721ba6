from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import Guards, current_user, json_body, ok
from ..core.enums import View
from ..core.exceptions import ValidationError
from ..container import Container


def _student_fields(data: dict) -> dict:
    birthday = data.get("birthday") or None
    if birthday:
        try:
            birthday = parse_iso_date(birthday)
        except (TypeError, ValueError):
            raise ValidationError("Birthday must be YYYY-MM-DD")
    return {
        "name": data.get("name", ""),
        "class_group": data.get("class_group", ""),
        "age": data.get("age"),
        "parent_name": data.get("parent_name", ""),
        "phone": data.get("phone"),
        "email": data.get("email"),
        "status": data.get("status") or "Active",
        "avatar": data.get("avatar"),
        "birthday": birthday,
    }


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/students", endpoint="list_students")
    @guards.requires(View.STUDENTS, allow_parents=True)
    def list_students():
        students = container.student_service.search(
            current_user(),
            term=request.args.get("q"),
            class_group=request.args.get("class_group"),
            status=request.args.get("status"),
        )
        return ok(students=[s.to_dict() for s in students])

    @app.route("/api/students/<int:student_id>", endpoint="get_student")
    @guards.requires(View.STUDENTS, allow_parents=True)
    def get_student(student_id: int):
        return ok(student=container.student_service.get_visible(current_user(), student_id).to_dict())

    @app.route("/api/students", methods=["POST"], endpoint="create_student")
    @guards.requires(View.STUDENTS)
    def create_student():
        student_id = container.student_service.create(current_role=current_user().role, **_student_fields(json_body()))
        return ok(201, student_id=student_id, message="Student created")

    @app.route("/api/students/<int:student_id>", methods=["PUT"], endpoint="update_student")
    @guards.requires(View.STUDENTS)
    def update_student(student_id: int):
        container.student_service.update(
            current_role=current_user().role,
            student_id=student_id,
            **_student_fields(json_body()),
        )
        return ok(message="Student updated")

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="delete_student")
    @guards.requires(View.STUDENTS)
    def delete_student(student_id: int):
        container.student_service.delete(current_role=current_user().role, student_id=student_id)
        return ok(message="Student deleted")
