from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.validators import matches, optional_str, require_non_empty
from ..core.constants import STAFF_ROLES
from ..core.enums import Role, StudentStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import User
from .model import Student, StudentInput
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: student records (create/edit/delete/search)."""

    def __init__(self, students: StudentRepository):
        self._students = students

    @staticmethod
    def _build_input(
        *,
        name: str,
        class_group: str,
        age=None,
        parent_name: str = "",
        phone: Optional[str] = None,
        email: Optional[str] = None,
        status: str | StudentStatus = StudentStatus.ACTIVE,
        avatar: Optional[str] = None,
        birthday: Optional[date] = None,
    ) -> StudentInput:
        name = require_non_empty(name, "Name")
        class_group = require_non_empty(class_group, "Class")

        age_v: Optional[int] = None
        if age not in (None, ""):
            try:
                age_v = int(age)
            except (TypeError, ValueError):
                raise ValidationError("Age must be a number")
            if age_v < 0 or age_v > 30:
                raise ValidationError("Age is out of range")

        try:
            status_v = StudentStatus(status)
        except ValueError:
            raise ValidationError("Invalid student status")

        return StudentInput(
            name=name,
            class_group=class_group,
            age=age_v,
            parent_name=(parent_name or "").strip(),
            phone=optional_str(phone),
            email=optional_str(email),
            status=status_v,
            avatar=optional_str(avatar),
            birthday=birthday,
        )

    def create(self, *, current_role: Role, **fields) -> int:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")
        student_id = self._students.create(self._build_input(**fields))
        logger.info("Student %s created", student_id)
        return student_id

    def update(self, *, current_role: Role, student_id: int, **fields) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")
        if not self._students.update(int(student_id), self._build_input(**fields)):
            raise NotFoundError("Student not found")

    def delete(self, *, current_role: Role, student_id: int) -> None:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")
        if not self._students.delete(int(student_id)):
            raise NotFoundError("Student not found")
        logger.info("Student %s deleted", student_id)

    def get(self, student_id: int) -> Student:
        s = self._students.get_by_id(int(student_id))
        if not s:
            raise NotFoundError("Student not found")
        return s

    def get_visible(self, viewer: User, student_id: int) -> Student:
        if viewer.role == Role.PARENT and int(student_id) not in viewer.linked_student_ids:
            raise AuthorizationError("You can only view your own children")
        return self.get(student_id)

    def visible_to(self, user: User) -> Sequence[Student]:
        """Parents only see their own children."""
        if user.role == Role.PARENT:
            if not user.linked_student_ids:
                return []
            kids = self._students.get_many(list(user.linked_student_ids))
            return sorted(kids, key=lambda s: s.name.lower())
        return self._students.list_all()

    def search(
        self,
        viewer: User,
        *,
        term: Optional[str] = None,
        class_group: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Student]:
        out = []
        for s in self.visible_to(viewer):
            if class_group and s.class_group != class_group:
                continue
            if status and s.status.value != status:
                continue
            if not matches(term, s.name, s.parent_name, s.phone):
                continue
            out.append(s)
        return out
