from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..classes.repository import ClassRepository
from ..common.validators import matches, optional_str, parse_amount, require_min_length, require_non_empty, unique_ids
from ..core.constants import MIN_PASSWORD_LENGTH, STAFF_ROLES, TEACHER_PERMISSIONS
from ..core.enums import Role, View
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..login_history.service import LoginHistoryService
from ..students.repository import StudentRepository
from .model import User, UserDraft
from .repository import UserRepository

logger = logging.getLogger(__name__)

_BAD_LOGIN = "Invalid username or password"


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    full_name: str
    username: str
    role: Role


def _parse_role(role) -> Role:
    try:
        return Role(role)
    except ValueError:
        raise ValidationError("Invalid role")


def _parse_permissions(permissions: Optional[Iterable[str]]) -> list[str]:
    out: list[str] = []
    for p in permissions or []:
        try:
            view = View(p)
        except ValueError:
            raise ValidationError(f"Unknown permission: {p}")
        if view.value not in out:
            out.append(view.value)
    return out


def _parse_salary(salary) -> Optional[Decimal]:
    if salary in (None, ""):
        return None
    return parse_amount(salary, "Salary")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository, login_history: LoginHistoryService):
        self._users = users
        self._login_history = login_history

    def authenticate(
        self,
        username: str,
        password: str,
        *,
        device: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError(_BAD_LOGIN)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError(_BAD_LOGIN)

        self._login_history.record(user, device=device, now=now)
        logger.info("User %s logged in", user.username)

        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            username=user.username,
            role=user.role,
        )


class UserService:
    """Use case: manage accounts, permissions and parent links (admin)."""

    def __init__(self, users: UserRepository, students: StudentRepository, classes: ClassRepository):
        self._users = users
        self._students = students
        self._classes = classes

    def _check_username(self, username: str, *, exclude_id: Optional[int] = None) -> str:
        username = require_non_empty(username, "Username")
        existing = self._users.get_by_username(username)
        if existing and existing.user_id != exclude_id:
            raise ValidationError("Username already exists")
        return username

    def _check_students(self, student_ids) -> list[int]:
        ids = unique_ids(student_ids)
        found = {s.student_id for s in self._students.get_many(ids)} if ids else set()
        missing = [i for i in ids if i not in found]
        if missing:
            raise ValidationError(f"Student not found: {missing[0]}")
        return ids

    def create_account(
        self,
        *,
        current_role: Role,
        full_name: str,
        username: str,
        password: str,
        role: str | Role,
        permissions: Optional[Sequence[str]] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_student_ids: Optional[Sequence[int]] = None,
        salary=None,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can manage users")

        full_name = require_non_empty(full_name, "Full name")
        username = self._check_username(username)
        require_non_empty(password, "Password")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        role_v = _parse_role(role)

        draft = UserDraft(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=role_v,
            permissions=_parse_permissions(permissions),
            email=optional_str(email),
            phone=optional_str(phone),
            salary=_parse_salary(salary),
            linked_student_ids=self._check_students(linked_student_ids) if role_v == Role.PARENT else [],
        )
        user_id = self._users.create_user(draft)
        logger.info("User %s (%s) created as %s", username, user_id, role_v.value)
        return user_id

    def update_account(
        self,
        *,
        current_role: Role,
        user_id: int,
        full_name: str,
        username: str,
        role: str | Role,
        password: Optional[str] = None,
        permissions: Optional[Sequence[str]] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        linked_student_ids: Optional[Sequence[int]] = None,
        salary=None,
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can manage users")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")

        full_name = require_non_empty(full_name, "Full name")
        username = self._check_username(username, exclude_id=user.user_id)
        role_v = _parse_role(role)
        if user.role == Role.ADMIN and role_v != Role.ADMIN and self._users.count_by_role(Role.ADMIN) <= 1:
            raise ValidationError("Cannot demote the last admin")

        # Blank password keeps the current one.
        password_hash = user.password_hash
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            password_hash = generate_password_hash(password)

        draft = UserDraft(
            full_name=full_name,
            username=username,
            password_hash=password_hash,
            role=role_v,
            permissions=_parse_permissions(permissions),
            email=optional_str(email),
            phone=optional_str(phone),
            interests=list(user.interests),
            avatar=user.avatar,
            salary=_parse_salary(salary),
            linked_student_ids=self._check_students(linked_student_ids) if role_v == Role.PARENT else [],
        )
        self._users.update_user(user.user_id, draft)
        if user.role == Role.TEACHER and role_v != Role.TEACHER:
            self._classes.unassign_teacher(user.user_id)

    def delete_user(self, *, current_role: Role, current_user_id: int, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can manage users")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if user.user_id == int(current_user_id):
            raise ValidationError("You cannot delete your own account")
        if user.role == Role.ADMIN and self._users.count_by_role(Role.ADMIN) <= 1:
            raise ValidationError("Cannot delete the last admin")

        if user.role == Role.TEACHER:
            self._classes.unassign_teacher(user.user_id)
        if not self._users.delete_by_id(user.user_id):
            raise NotFoundError("User not found")
        logger.info("User %s (%s) deleted", user.username, user.user_id)

    def set_permissions(self, *, current_role: Role, user_id: int, permissions: Sequence[str]) -> list[str]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can manage users")
        perms = _parse_permissions(permissions)
        if not self._users.set_permissions(int(user_id), perms):
            raise NotFoundError("User not found")
        return perms

    def link_students(self, *, current_role: Role, user_id: int, student_ids: Sequence[int]) -> list[int]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can manage users")
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if user.role != Role.PARENT:
            raise ValidationError("Only parent accounts can be linked to students")
        ids = self._check_students(student_ids)
        self._users.set_linked_students(user.user_id, ids)
        return ids

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def list_users(self) -> Sequence[User]:
        return self._users.list_all()

    def search(self, term: Optional[str] = None, *, role: Optional[str] = None) -> list[User]:
        out = []
        for u in self._users.list_all():
            if role and u.role.value != role:
                continue
            if matches(term, u.full_name, u.username):
                out.append(u)
        return out


class TeacherService:
    """Teacher accounts together with the classes they lead."""

    def __init__(self, users: UserRepository, classes: ClassRepository):
        self._users = users
        self._classes = classes

    def _check_classes(self, class_ids) -> list[int]:
        wanted = unique_ids(class_ids)
        for cid in wanted:
            if not self._classes.get_by_id(cid):
                raise ValidationError(f"Class not found: {cid}")
        return wanted

    def _assign_classes(self, teacher_id: int, wanted: Sequence[int]) -> None:
        for c in self._classes.list_all():
            if c.class_id in wanted and c.teacher_id != teacher_id:
                self._classes.set_teacher(c.class_id, teacher_id)
            elif c.class_id not in wanted and c.teacher_id == teacher_id:
                self._classes.set_teacher(c.class_id, None)

    def save_teacher(
        self,
        *,
        current_role: Role,
        full_name: str,
        username: str,
        teacher_id: Optional[int] = None,
        password: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        salary=None,
        class_ids: Optional[Sequence[int]] = None,
    ) -> int:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("You do not have permission")

        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        existing = self._users.get_by_username(username)
        wanted = self._check_classes(class_ids)

        if teacher_id is None:
            if existing:
                raise ValidationError("Username already exists")
            require_non_empty(password, "Password")
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            teacher_id = self._users.create_user(
                UserDraft(
                    full_name=full_name,
                    username=username,
                    password_hash=generate_password_hash(password),
                    role=Role.TEACHER,
                    permissions=[v.value for v in TEACHER_PERMISSIONS],
                    email=optional_str(email),
                    phone=optional_str(phone),
                    salary=_parse_salary(salary),
                )
            )
            logger.info("Teacher %s (%s) created", username, teacher_id)
        else:
            teacher = self._users.get_by_id(int(teacher_id))
            if not teacher or teacher.role != Role.TEACHER:
                raise NotFoundError("Teacher not found")
            if existing and existing.user_id != teacher.user_id:
                raise ValidationError("Username already exists")

            password_hash = teacher.password_hash
            if password:
                require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
                password_hash = generate_password_hash(password)

            self._users.update_user(
                teacher.user_id,
                UserDraft(
                    full_name=full_name,
                    username=username,
                    password_hash=password_hash,
                    role=Role.TEACHER,
                    permissions=list(teacher.permissions),
                    email=optional_str(email),
                    phone=optional_str(phone),
                    interests=list(teacher.interests),
                    avatar=teacher.avatar,
                    salary=_parse_salary(salary),
                ),
            )
            teacher_id = teacher.user_id

        self._assign_classes(int(teacher_id), wanted)
        return int(teacher_id)

    def list_teachers(self, search: Optional[str] = None) -> list[dict]:
        by_teacher: dict[int, list[str]] = {}
        for c in self._classes.list_all():
            if c.teacher_id:
                by_teacher.setdefault(c.teacher_id, []).append(c.name)

        out = []
        for t in self._users.list_by_roles([Role.TEACHER]):
            if not matches(search, t.full_name, t.username, t.email):
                continue
            row = t.to_public()
            row["classes"] = sorted(by_teacher.get(t.user_id, []))
            out.append(row)
        return out
