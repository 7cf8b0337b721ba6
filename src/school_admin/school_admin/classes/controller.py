from __future__ import annotations

from flask import Flask

from ..common.http import Guards, current_user, json_body, ok
from ..core.enums import View
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    @app.route("/api/classes", endpoint="list_classes")
    @guards.requires(View.CLASSES)
    def list_classes():
        return ok(classes=container.class_service.list_ui())

    @app.route("/api/classes", methods=["POST"], endpoint="create_class")
    @guards.requires(View.CLASSES)
    def create_class():
        data = json_body()
        class_id = container.class_service.create(
            current_role=current_user().role,
            name=data.get("name", ""),
            age_range=data.get("age_range", ""),
            capacity=data.get("capacity", 20),
            teacher_id=data.get("teacher_id"),
        )
        return ok(201, class_id=class_id, message="Class created")

    @app.route("/api/classes/<int:class_id>", methods=["PUT"], endpoint="update_class")
    @guards.requires(View.CLASSES)
    def update_class(class_id: int):
        data = json_body()
        container.class_service.update(
            current_role=current_user().role,
            class_id=class_id,
            name=data.get("name", ""),
            age_range=data.get("age_range", ""),
            capacity=data.get("capacity", 20),
            teacher_id=data.get("teacher_id"),
        )
        return ok(message="Class updated")

    @app.route("/api/classes/<int:class_id>", methods=["DELETE"], endpoint="delete_class")
    @guards.requires(View.CLASSES)
    def delete_class(class_id: int):
        container.class_service.delete(current_role=current_user().role, class_id=class_id)
        return ok(message="Class deleted")

    @app.route("/api/classes/<int:class_id>/teacher", methods=["PUT"], endpoint="assign_class_teacher")
    @guards.requires(View.CLASSES)
    def assign_class_teacher(class_id: int):
        container.class_service.assign_teacher(
            current_role=current_user().role,
            class_id=class_id,
            teacher_id=json_body().get("teacher_id"),
        )
        return ok(message="Teacher assigned")
