from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import LoginLog
from .repository import LoginLogRepository


class MySQLLoginLogRepository(LoginLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, *, user_id: int, user_name: str, user_role: Role, logged_at: datetime, device: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO login_logs(user_id, user_name, user_role, logged_at, device)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(user_id), user_name, user_role.value, logged_at, device),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int = 200) -> Sequence[LoginLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, user_id, user_name, user_role, logged_at, device
                FROM login_logs
                ORDER BY logged_at DESC, log_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                LoginLog(
                    log_id=int(r["log_id"]),
                    user_id=int(r["user_id"]),
                    user_name=r["user_name"],
                    user_role=Role(r["user_role"]),
                    logged_at=r["logged_at"],
                    device=r.get("device"),
                )
                for r in fetchall(cur)
            ]

    def clear(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM login_logs")
            return int(cur.rowcount)
