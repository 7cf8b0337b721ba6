from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import StudentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Student, StudentInput
from .repository import StudentRepository

_COLUMNS = "student_id, name, class_group, age, parent_name, phone, email, status, avatar, birthday"


def _row_to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        name=r["name"],
        class_group=r["class_group"],
        age=int(r["age"]) if r.get("age") is not None else None,
        parent_name=r.get("parent_name") or "",
        phone=r.get("phone"),
        email=r.get("email"),
        status=StudentStatus(r["status"]),
        avatar=r.get("avatar"),
        birthday=r.get("birthday"),
    )


def _params(data: StudentInput) -> tuple:
    return (
        data.name,
        data.class_group,
        data.age,
        data.parent_name,
        data.phone,
        data.email,
        data.status.value,
        data.avatar,
        data.birthday,
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _row_to_student(r) if r else None

    def get_many(self, student_ids: Sequence[int]) -> Sequence[Student]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE student_id IN ({in_clause(student_ids)})",
                tuple(int(s) for s in student_ids),
            )
            return [_row_to_student(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY name")
            return [_row_to_student(r) for r in fetchall(cur)]

    def create(self, data: StudentInput) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(name, class_group, age, parent_name, phone, email, status, avatar, birthday)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _params(data),
            )
            return int(cur.lastrowid)

    def update(self, student_id: int, data: StudentInput) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_id FROM students WHERE student_id=%s", (int(student_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE students
                SET name=%s, class_group=%s, age=%s, parent_name=%s, phone=%s,
                    email=%s, status=%s, avatar=%s, birthday=%s
                WHERE student_id=%s
                """,
                _params(data) + (int(student_id),),
            )
            return True

    def delete(self, student_id: int) -> bool:
        # route_students / parent_students rows go with it (ON DELETE CASCADE);
        # fee_records keep the id and render as an unknown student.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (int(student_id),))
            return cur.rowcount > 0

    def count_by_class(self) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_group, COUNT(*) AS n FROM students GROUP BY class_group")
            return {r["class_group"]: int(r["n"]) for r in fetchall(cur)}
