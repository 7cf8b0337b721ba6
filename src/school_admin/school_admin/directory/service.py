from __future__ import annotations

import re
from typing import Optional

from ..common.validators import matches
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..students.repository import StudentRepository
from ..users.repository import UserRepository

_WS = re.compile(r"\s+")


def contact_links(phone: Optional[str] = None, email: Optional[str] = None) -> dict:
    """tel:/mailto: hrefs for the call and email buttons; None when the contact is missing."""
    phone = (phone or "").strip()
    email = (email or "").strip()
    return {
        "tel": f"tel:{_WS.sub('', phone)}" if phone else None,
        "mailto": f"mailto:{email}" if email else None,
    }


class DirectoryService:
    """Read-only contact directory with students, teachers and parents tabs."""

    TABS = ("students", "teachers", "parents")

    def __init__(self, students: StudentRepository, users: UserRepository):
        self._students = students
        self._users = users

    contact_links = staticmethod(contact_links)

    def students(self, search: Optional[str] = None) -> list[dict]:
        out = []
        for s in self._students.list_all():
            if not matches(search, s.name, s.phone, s.email):
                continue
            out.append(
                {
                    "id": s.student_id,
                    "name": s.name,
                    "class_group": s.class_group,
                    "parent_name": s.parent_name,
                    "phone": s.phone,
                    "email": s.email,
                    "avatar": s.avatar,
                    **contact_links(s.phone, s.email),
                }
            )
        return out

    def teachers(self, search: Optional[str] = None) -> list[dict]:
        out = []
        for u in self._users.list_by_roles([Role.TEACHER, Role.ADMIN]):
            if not matches(search, u.full_name, u.phone, u.email):
                continue
            out.append(
                {
                    "id": u.user_id,
                    "name": u.full_name,
                    "role": u.role.value,
                    "phone": u.phone,
                    "email": u.email,
                    "avatar": u.avatar,
                    **contact_links(u.phone, u.email),
                }
            )
        return out

    def parents(self, search: Optional[str] = None) -> list[dict]:
        names = {s.student_id: s.name for s in self._students.list_all()}
        out = []
        for u in self._users.list_by_roles([Role.PARENT]):
            if not matches(search, u.full_name, u.phone, u.email):
                continue
            out.append(
                {
                    "id": u.user_id,
                    "name": u.full_name,
                    "phone": u.phone,
                    "email": u.email,
                    "avatar": u.avatar,
                    "linked_students": [names.get(sid, "-") for sid in u.linked_student_ids],
                    **contact_links(u.phone, u.email),
                }
            )
        return out

    def tab(self, name: str, search: Optional[str] = None) -> list[dict]:
        if name not in self.TABS:
            raise NotFoundError(f"Unknown directory tab: {name}")
        return getattr(self, name)(search)

    def summary(self) -> dict:
        return {
            "students": len(self._students.list_all()),
            "teachers": len(self._users.list_by_roles([Role.TEACHER, Role.ADMIN])),
            "parents": len(self._users.list_by_roles([Role.PARENT])),
        }
