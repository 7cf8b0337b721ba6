from __future__ import annotations

from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import STAFF_ROLES
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..students.repository import StudentRepository
from ..users.repository import UserRepository
from .repository import ClassRepository


class ClassService:
    def __init__(self, classes: ClassRepository, students: StudentRepository, users: UserRepository):
        self._classes = classes
        self._students = students
        self._users = users

    def _check_teacher(self, teacher_id: Optional[int]) -> Optional[int]:
        if teacher_id in (None, "", 0):
            return None
        try:
            teacher = self._users.get_by_id(int(teacher_id))
        except (TypeError, ValueError):
            raise ValidationError("Selected user is not a teacher")
        if not teacher or teacher.role != Role.TEACHER:
            raise ValidationError("Selected user is not a teacher")
        return teacher.user_id

    @staticmethod
    def _check_capacity(capacity) -> int:
        try:
            cap = int(capacity)
        except (TypeError, ValueError):
            raise ValidationError("Capacity must be a number")
        if cap < 1:
            raise ValidationError("Capacity must be at least 1")
        return cap

    def create(
        self,
        *,
        current_role: Role,
        name: str,
        age_range: str = "",
        capacity=20,
        teacher_id: Optional[int] = None,
    ) -> int:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")

        name = require_non_empty(name, "Class name")
        if self._classes.get_by_name(name):
            raise ValidationError("A class with this name already exists")

        return self._classes.create(
            name=name,
            age_range=(age_range or "").strip(),
            capacity=self._check_capacity(capacity),
            teacher_id=self._check_teacher(teacher_id),
        )

    def update(
        self,
        *,
        current_role: Role,
        class_id: int,
        name: str,
        age_range: str = "",
        capacity=20,
        teacher_id: Optional[int] = None,
    ) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")

        name = require_non_empty(name, "Class name")
        clash = self._classes.get_by_name(name)
        if clash and clash.class_id != int(class_id):
            raise ValidationError("A class with this name already exists")

        ok = self._classes.update(
            int(class_id),
            name=name,
            age_range=(age_range or "").strip(),
            capacity=self._check_capacity(capacity),
            teacher_id=self._check_teacher(teacher_id),
        )
        if not ok:
            raise NotFoundError("Class not found")

    def delete(self, *, current_role: Role, class_id: int) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")
        if not self._classes.delete(int(class_id)):
            raise NotFoundError("Class not found")

    def assign_teacher(self, *, current_role: Role, class_id: int, teacher_id: Optional[int]) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")
        if not self._classes.set_teacher(int(class_id), self._check_teacher(teacher_id)):
            raise NotFoundError("Class not found")

    def list_ui(self) -> list[dict]:
        counts = self._students.count_by_class()
        teachers = {u.user_id: u.full_name for u in self._users.list_by_roles([Role.TEACHER])}
        out = []
        for c in self._classes.list_all():
            enrolled = counts.get(c.name, 0)
            out.append(
                {
                    "class_id": c.class_id,
                    "name": c.name,
                    "age_range": c.age_range,
                    "capacity": c.capacity,
                    "enrolled": enrolled,
                    "is_full": enrolled >= c.capacity,
                    "teacher_id": c.teacher_id,
                    "teacher_name": teachers.get(c.teacher_id, "-") if c.teacher_id else "-",
                }
            )
        return out
