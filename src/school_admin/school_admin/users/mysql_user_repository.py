from __future__ import annotations

import json
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User, UserDraft
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, full_name, username, password_hash, role,
    email, phone, interests, avatar, salary, is_active
"""


def _decode_interests(raw) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        return tuple(str(x) for x in json.loads(raw))
    except ValueError:
        return ()


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[User]:
        if not rows:
            return []

        ids = [int(r["user_id"]) for r in rows]
        marks = in_clause(ids)

        cur.execute(f"SELECT user_id, view_id FROM user_permissions WHERE user_id IN ({marks}) ORDER BY position", tuple(ids))
        perms: dict[int, list[str]] = {}
        for p in fetchall(cur):
            perms.setdefault(int(p["user_id"]), []).append(p["view_id"])

        cur.execute(
            f"SELECT parent_id, student_id FROM parent_students WHERE parent_id IN ({marks}) ORDER BY student_id",
            tuple(ids),
        )
        links: dict[int, list[int]] = {}
        for link in fetchall(cur):
            links.setdefault(int(link["parent_id"]), []).append(int(link["student_id"]))

        out: list[User] = []
        for r in rows:
            uid = int(r["user_id"])
            salary = r.get("salary")
            out.append(
                User(
                    user_id=uid,
                    full_name=r["full_name"],
                    username=r["username"],
                    password_hash=r["password_hash"],
                    role=Role(r["role"]),
                    permissions=tuple(perms.get(uid, [])),
                    email=r.get("email"),
                    phone=r.get("phone"),
                    interests=_decode_interests(r.get("interests")),
                    avatar=r.get("avatar"),
                    salary=Decimal(salary) if salary is not None else None,
                    linked_student_ids=tuple(links.get(uid, [])),
                    is_active=bool(r.get("is_active", True)),
                )
            )
        return out

    def _write_permissions(self, cur, user_id: int, permissions: Sequence[str]) -> None:
        cur.execute("DELETE FROM user_permissions WHERE user_id=%s", (int(user_id),))
        for pos, view_id in enumerate(permissions):
            cur.execute(
                "INSERT INTO user_permissions(user_id, view_id, position) VALUES(%s,%s,%s)",
                (int(user_id), view_id, pos),
            )

    def _write_links(self, cur, user_id: int, student_ids: Sequence[int]) -> None:
        cur.execute("DELETE FROM parent_students WHERE parent_id=%s", (int(user_id),))
        for sid in student_ids:
            cur.execute(
                "INSERT INTO parent_students(parent_id, student_id) VALUES(%s,%s)",
                (int(user_id), int(sid)),
            )

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            users = self._hydrate(cur, [row] if row else [])
            return users[0] if users else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE LOWER(username)=LOWER(%s)",
                (username.strip(),),
            )
            row = fetchone(cur)
            users = self._hydrate(cur, [row] if row else [])
            return users[0] if users else None

    def list_all(self) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY full_name")
            return self._hydrate(cur, fetchall(cur))

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        if not roles:
            return []
        marks = in_clause(roles)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE role IN ({marks}) ORDER BY full_name",
                tuple(r.value for r in roles),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_parents_of(self, student_id: int) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE user_id IN (SELECT parent_id FROM parent_students WHERE student_id=%s)
                ORDER BY full_name
                """,
                (int(student_id),),
            )
            return self._hydrate(cur, fetchall(cur))

    def create_user(self, draft: UserDraft) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(full_name, username, password_hash, role, email, phone, interests, avatar, salary, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    draft.full_name,
                    draft.username,
                    draft.password_hash,
                    draft.role.value,
                    draft.email,
                    draft.phone,
                    json.dumps(list(draft.interests)),
                    draft.avatar,
                    draft.salary,
                ),
            )
            user_id = int(cur.lastrowid)
            self._write_permissions(cur, user_id, draft.permissions)
            self._write_links(cur, user_id, draft.linked_student_ids)
            return user_id

    def update_user(self, user_id: int, draft: UserDraft) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE user_id=%s", (int(user_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE users
                SET full_name=%s, username=%s, password_hash=%s, role=%s,
                    email=%s, phone=%s, interests=%s, avatar=%s, salary=%s
                WHERE user_id=%s
                """,
                (
                    draft.full_name,
                    draft.username,
                    draft.password_hash,
                    draft.role.value,
                    draft.email,
                    draft.phone,
                    json.dumps(list(draft.interests)),
                    draft.avatar,
                    draft.salary,
                    int(user_id),
                ),
            )
            self._write_permissions(cur, user_id, draft.permissions)
            self._write_links(cur, user_id, draft.linked_student_ids)
            return True

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: str,
        email: Optional[str],
        phone: Optional[str],
        interests: Sequence[str],
        avatar: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users SET full_name=%s, email=%s, phone=%s, interests=%s, avatar=%s
                WHERE user_id=%s
                """,
                (full_name, email, phone, json.dumps(list(interests)), avatar, int(user_id)),
            )
            # MySQL reports 0 affected rows when values are unchanged.
            cur.execute("SELECT user_id FROM users WHERE user_id=%s", (int(user_id),))
            return fetchone(cur) is not None

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def set_permissions(self, user_id: int, permissions: Sequence[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE user_id=%s", (int(user_id),))
            if not fetchone(cur):
                return False
            self._write_permissions(cur, user_id, permissions)
            return True

    def set_linked_students(self, user_id: int, student_ids: Sequence[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM users WHERE user_id=%s", (int(user_id),))
            if not fetchone(cur):
                return False
            self._write_links(cur, user_id, student_ids)
            return True

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def count_by_role(self, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE role=%s AND is_active=1", (role.value,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0
