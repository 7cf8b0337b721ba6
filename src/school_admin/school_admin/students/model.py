from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Domain entity: an enrolled child.

    `class_group` holds the class name (not an id), so renaming or deleting a
    class leaves students pointing at a name that may no longer exist.
    """

    student_id: int
    name: str
    class_group: str
    age: Optional[int] = None
    parent_name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE
    avatar: Optional[str] = None
    birthday: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "name": self.name,
            "class_group": self.class_group,
            "age": self.age,
            "parent_name": self.parent_name,
            "phone": self.phone,
            "email": self.email,
            "status": self.status.value,
            "avatar": self.avatar,
            "birthday": self.birthday.strftime("%Y-%m-%d") if self.birthday else None,
        }


@dataclass(frozen=True)
class StudentInput:
    name: str
    class_group: str
    age: Optional[int] = None
    parent_name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    status: StudentStatus = StudentStatus.ACTIVE
    avatar: Optional[str] = None
    birthday: Optional[date] = None
