from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import GateScan
from .repository import GateScanRepository


class MySQLGateScanRepository(GateScanRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, *, student_id: int, parent_id: int, scanned_at: datetime, scanned_by: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO gate_scans(student_id, parent_id, scanned_at, scanned_by) VALUES(%s,%s,%s,%s)",
                (int(student_id), int(parent_id), scanned_at, scanned_by),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int) -> Sequence[GateScan]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT scan_id, student_id, parent_id, scanned_at, scanned_by
                FROM gate_scans
                ORDER BY scanned_at DESC, scan_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [
                GateScan(
                    scan_id=int(r["scan_id"]),
                    student_id=int(r["student_id"]),
                    parent_id=int(r["parent_id"]),
                    scanned_at=r["scanned_at"],
                    scanned_by=r["scanned_by"],
                )
                for r in fetchall(cur)
            ]
