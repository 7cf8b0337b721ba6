from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassGroup
from .repository import ClassRepository

_COLUMNS = "class_id, name, age_range, capacity, teacher_id"


def _row_to_class(r: dict) -> ClassGroup:
    return ClassGroup(
        class_id=int(r["class_id"]),
        name=r["name"],
        age_range=r.get("age_range") or "",
        capacity=int(r["capacity"]),
        teacher_id=int(r["teacher_id"]) if r.get("teacher_id") is not None else None,
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[ClassGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE class_id=%s", (int(class_id),))
            r = fetchone(cur)
            return _row_to_class(r) if r else None

    def get_by_name(self, name: str) -> Optional[ClassGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes WHERE LOWER(name)=LOWER(%s)", (name.strip(),))
            r = fetchone(cur)
            return _row_to_class(r) if r else None

    def list_all(self) -> Sequence[ClassGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM classes ORDER BY name")
            return [_row_to_class(r) for r in fetchall(cur)]

    def create(self, *, name: str, age_range: str, capacity: int, teacher_id: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO classes(name, age_range, capacity, teacher_id) VALUES(%s,%s,%s,%s)",
                (name, age_range, int(capacity), teacher_id),
            )
            return int(cur.lastrowid)

    def update(self, class_id: int, *, name: str, age_range: str, capacity: int, teacher_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id FROM classes WHERE class_id=%s", (int(class_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                "UPDATE classes SET name=%s, age_range=%s, capacity=%s, teacher_id=%s WHERE class_id=%s",
                (name, age_range, int(capacity), teacher_id, int(class_id)),
            )
            return True

    def delete(self, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM classes WHERE class_id=%s", (int(class_id),))
            return cur.rowcount > 0

    def set_teacher(self, class_id: int, teacher_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id FROM classes WHERE class_id=%s", (int(class_id),))
            if not fetchone(cur):
                return False
            cur.execute("UPDATE classes SET teacher_id=%s WHERE class_id=%s", (teacher_id, int(class_id)))
            return True

    def unassign_teacher(self, teacher_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE classes SET teacher_id=NULL WHERE teacher_id=%s", (int(teacher_id),))
            return int(cur.rowcount)
