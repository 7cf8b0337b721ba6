from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import BusRoute
from .repository import RouteRepository

_COLUMNS = "route_id, name, driver_name, supervisor_name"


class MySQLRouteRepository(RouteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[BusRoute]:
        if not rows:
            return []
        ids = [int(r["route_id"]) for r in rows]
        cur.execute(
            f"SELECT route_id, student_id FROM route_students WHERE route_id IN ({in_clause(ids)}) ORDER BY position",
            tuple(ids),
        )
        members: dict[int, list[int]] = {}
        for m in fetchall(cur):
            members.setdefault(int(m["route_id"]), []).append(int(m["student_id"]))

        return [
            BusRoute(
                route_id=int(r["route_id"]),
                name=r["name"],
                driver_name=r["driver_name"],
                supervisor_name=r.get("supervisor_name"),
                student_ids=tuple(members.get(int(r["route_id"]), [])),
            )
            for r in rows
        ]

    def _write_students(self, cur, route_id: int, student_ids: Sequence[int]) -> None:
        cur.execute("DELETE FROM route_students WHERE route_id=%s", (int(route_id),))
        for pos, sid in enumerate(student_ids):
            cur.execute(
                "INSERT INTO route_students(route_id, student_id, position) VALUES(%s,%s,%s)",
                (int(route_id), int(sid), pos),
            )

    def get_by_id(self, route_id: int) -> Optional[BusRoute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM bus_routes WHERE route_id=%s", (int(route_id),))
            row = fetchone(cur)
            routes = self._hydrate(cur, [row] if row else [])
            return routes[0] if routes else None

    def list_all(self) -> Sequence[BusRoute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM bus_routes ORDER BY name")
            return self._hydrate(cur, fetchall(cur))

    def list_for_student(self, student_id: int) -> Sequence[BusRoute]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM bus_routes
                WHERE route_id IN (SELECT route_id FROM route_students WHERE student_id=%s)
                ORDER BY name
                """,
                (int(student_id),),
            )
            return self._hydrate(cur, fetchall(cur))

    def create(self, *, name: str, driver_name: str, supervisor_name: Optional[str], student_ids: Sequence[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO bus_routes(name, driver_name, supervisor_name) VALUES(%s,%s,%s)",
                (name, driver_name, supervisor_name),
            )
            route_id = int(cur.lastrowid)
            self._write_students(cur, route_id, student_ids)
            return route_id

    def update(
        self,
        route_id: int,
        *,
        name: str,
        driver_name: str,
        supervisor_name: Optional[str],
        student_ids: Sequence[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT route_id FROM bus_routes WHERE route_id=%s", (int(route_id),))
            if not fetchone(cur):
                return False
            cur.execute(
                "UPDATE bus_routes SET name=%s, driver_name=%s, supervisor_name=%s WHERE route_id=%s",
                (name, driver_name, supervisor_name, int(route_id)),
            )
            self._write_students(cur, route_id, student_ids)
            return True

    def set_students(self, route_id: int, student_ids: Sequence[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT route_id FROM bus_routes WHERE route_id=%s", (int(route_id),))
            if not fetchone(cur):
                return False
            self._write_students(cur, route_id, student_ids)
            return True

    def delete(self, route_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM bus_routes WHERE route_id=%s", (int(route_id),))
            return cur.rowcount > 0
