from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account (admin, manager, teacher or parent).

    Note: Plain data object, no DB access here.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    permissions: tuple[str, ...] = ()
    email: Optional[str] = None
    phone: Optional[str] = None
    interests: tuple[str, ...] = ()
    avatar: Optional[str] = None
    salary: Optional[Decimal] = None
    linked_student_ids: tuple[int, ...] = ()
    is_active: bool = True

    def to_public(self) -> dict:
        """Serializable view without the password hash."""
        return {
            "user_id": self.user_id,
            "full_name": self.full_name,
            "username": self.username,
            "role": self.role.value,
            "permissions": list(self.permissions),
            "email": self.email,
            "phone": self.phone,
            "interests": list(self.interests),
            "avatar": self.avatar,
            "salary": str(self.salary) if self.salary is not None else None,
            "linked_student_ids": list(self.linked_student_ids),
            "is_active": self.is_active,
        }


@dataclass
class UserDraft:
    """Mutable input collected from a create/edit form."""

    full_name: str
    username: str
    password_hash: str
    role: Role
    permissions: list[str] = field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    interests: list[str] = field(default_factory=list)
    avatar: Optional[str] = None
    salary: Optional[Decimal] = None
    linked_student_ids: list[int] = field(default_factory=list)
