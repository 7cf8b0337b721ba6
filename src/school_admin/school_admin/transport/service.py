from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_str, require_non_empty, unique_ids
from ..core.constants import STAFF_ROLES
from ..core.enums import NotificationType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..students.repository import StudentRepository
from ..users.model import User
from .model import BusRoute
from .repository import RouteRepository

logger = logging.getLogger(__name__)


class TransportService:
    """Use cases: bus routes and which students ride them."""

    def __init__(self, routes: RouteRepository, students: StudentRepository, notifications: NotificationService):
        self._routes = routes
        self._students = students
        self._notifications = notifications

    @staticmethod
    def _check_role(current_role: Role) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("Only an admin or manager can manage routes")

    def _check_students(self, student_ids) -> list[int]:
        ids = unique_ids(student_ids)
        found = {s.student_id for s in self._students.get_many(ids)} if ids else set()
        for sid in ids:
            if sid not in found:
                raise ValidationError(f"Student not found: {sid}")
        return ids

    def _get(self, route_id: int) -> BusRoute:
        route = self._routes.get_by_id(int(route_id))
        if not route:
            raise NotFoundError("Route not found")
        return route

    def create_route(
        self,
        *,
        current_role: Role,
        name: str,
        driver_name: str,
        supervisor_name: Optional[str] = None,
        student_ids: Optional[Sequence[int]] = None,
    ) -> int:
        self._check_role(current_role)
        name = require_non_empty(name, "Route name")
        driver_name = require_non_empty(driver_name, "Driver name")
        ids = self._check_students(student_ids)

        route_id = self._routes.create(
            name=name,
            driver_name=driver_name,
            supervisor_name=optional_str(supervisor_name),
            student_ids=ids,
        )
        logger.info("Route %s (%s) created with %d students", name, route_id, len(ids))
        self._notifications.broadcast(
            sorted(STAFF_ROLES),
            "New bus route",
            f"Route {name} was added (driver: {driver_name})",
            NotificationType.INFO,
        )
        return route_id

    def update_route(
        self,
        *,
        current_role: Role,
        route_id: int,
        name: str,
        driver_name: str,
        supervisor_name: Optional[str] = None,
        student_ids: Optional[Sequence[int]] = None,
    ) -> None:
        self._check_role(current_role)
        ok = self._routes.update(
            int(route_id),
            name=require_non_empty(name, "Route name"),
            driver_name=require_non_empty(driver_name, "Driver name"),
            supervisor_name=optional_str(supervisor_name),
            student_ids=self._check_students(student_ids),
        )
        if not ok:
            raise NotFoundError("Route not found")

    def delete_route(self, *, current_role: Role, route_id: int) -> None:
        self._check_role(current_role)
        if not self._routes.delete(int(route_id)):
            raise NotFoundError("Route not found")
        logger.info("Route %s deleted", route_id)

    def toggle_student(self, *, current_role: Role, route_id: int, student_id: int) -> bool:
        """Add the student if absent, otherwise remove. Returns True when now on the route."""
        self._check_role(current_role)
        route = self._get(route_id)
        sid = int(student_id)

        if sid in route.student_ids:
            self._routes.set_students(route.route_id, [s for s in route.student_ids if s != sid])
            return False

        if not self._students.get_by_id(sid):
            raise NotFoundError("Student not found")
        self._routes.set_students(route.route_id, list(route.student_ids) + [sid])
        return True

    def _to_ui(self, route: BusRoute, students: dict) -> dict:
        riders = [students[sid] for sid in route.student_ids if sid in students]
        return {
            "route_id": route.route_id,
            "name": route.name,
            "driver_name": route.driver_name,
            "supervisor_name": route.supervisor_name or "",
            "students": [{"student_id": s.student_id, "name": s.name, "class_group": s.class_group} for s in riders],
            "student_count": len(riders),
        }

    def list_routes(self) -> list[dict]:
        students = {s.student_id: s for s in self._students.list_all()}
        return [self._to_ui(r, students) for r in self._routes.list_all()]

    def routes_for_student(self, viewer: User, student_id: int) -> list[dict]:
        sid = int(student_id)
        if viewer.role == Role.PARENT and sid not in viewer.linked_student_ids:
            raise AuthorizationError("You can only view your own children")
        if not self._students.get_by_id(sid):
            raise NotFoundError("Student not found")
        students = {s.student_id: s for s in self._students.list_all()}
        return [self._to_ui(r, students) for r in self._routes.list_for_student(sid)]
