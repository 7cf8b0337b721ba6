from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AppNotification
from .repository import NotificationRepository

_COLUMNS = "notification_id, user_id, title, message, type, is_read, created_at"


def _row_to_notification(r: dict) -> AppNotification:
    return AppNotification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        title=r["title"],
        message=r["message"],
        type=NotificationType(r["type"]),
        is_read=bool(r["is_read"]),
        created_at=r["created_at"],
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        user_ids: Sequence[int],
        title: str,
        message: str,
        type: NotificationType,
        created_at: datetime,
    ) -> list[int]:
        ids: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for uid in user_ids:
                cur.execute(
                    """
                    INSERT INTO notifications(user_id, title, message, type, is_read, created_at)
                    VALUES(%s,%s,%s,%s,0,%s)
                    """,
                    (int(uid), title, message, type.value, created_at),
                )
                ids.append(int(cur.lastrowid))
        return ids

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[AppNotification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications
                WHERE user_id=%s
                ORDER BY notification_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def list_after(self, user_id: int, *, after_id: int, limit: int) -> Sequence[AppNotification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications
                WHERE user_id=%s AND notification_id > %s
                ORDER BY notification_id ASC
                LIMIT %s
                """,
                (int(user_id), int(after_id), int(limit)),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def count_unread(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM notifications WHERE user_id=%s AND is_read=0", (int(user_id),))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def mark_read(self, user_id: int, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT notification_id FROM notifications WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            if not fetchone(cur):
                return False
            cur.execute("UPDATE notifications SET is_read=1 WHERE notification_id=%s", (int(notification_id),))
            return True

    def mark_all_read(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (int(user_id),))
            return int(cur.rowcount)
