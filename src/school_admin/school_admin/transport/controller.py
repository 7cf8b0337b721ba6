from __future__ import annotations

from flask import Flask

from ..common.http import Guards, current_user, json_body, ok
from ..core.enums import View
from ..container import Container


def register(app: Flask, container: Container) -> None:
    guards = Guards(container.users_repo)

    def route_fields(data: dict) -> dict:
        return {
            "name": data.get("name", ""),
            "driver_name": data.get("driver_name", ""),
            "supervisor_name": data.get("supervisor_name"),
            "student_ids": data.get("student_ids") or [],
        }

    @app.route("/api/transport/routes", endpoint="list_routes")
    @guards.requires(View.TRANSPORT)
    def list_routes():
        return ok(routes=container.transport_service.list_routes())

    @app.route("/api/transport/routes", methods=["POST"], endpoint="create_route")
    @guards.requires(View.TRANSPORT)
    def create_route():
        route_id = container.transport_service.create_route(
            current_role=current_user().role,
            **route_fields(json_body()),
        )
        return ok(201, route_id=route_id, message="Route created")

    @app.route("/api/transport/routes/<int:route_id>", methods=["PUT"], endpoint="update_route")
    @guards.requires(View.TRANSPORT)
    def update_route(route_id: int):
        container.transport_service.update_route(
            current_role=current_user().role,
            route_id=route_id,
            **route_fields(json_body()),
        )
        return ok(message="Route updated")

    @app.route("/api/transport/routes/<int:route_id>", methods=["DELETE"], endpoint="delete_route")
    @guards.requires(View.TRANSPORT)
    def delete_route(route_id: int):
        container.transport_service.delete_route(current_role=current_user().role, route_id=route_id)
        return ok(message="Route deleted")

    @app.route(
        "/api/transport/routes/<int:route_id>/students/<int:student_id>",
        methods=["POST"],
        endpoint="toggle_route_student",
    )
    @guards.requires(View.TRANSPORT)
    def toggle_route_student(route_id: int, student_id: int):
        on_route = container.transport_service.toggle_student(
            current_role=current_user().role,
            route_id=route_id,
            student_id=student_id,
        )
        return ok(on_route=on_route)

    @app.route("/api/transport/students/<int:student_id>/routes", endpoint="student_routes")
    @guards.requires(View.TRANSPORT, allow_parents=True)
    def student_routes(student_id: int):
        return ok(routes=container.transport_service.routes_for_student(current_user(), student_id))
