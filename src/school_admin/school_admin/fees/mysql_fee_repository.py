from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import PaymentMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import FeeRecord, PaymentTransaction
from .repository import FeeRepository

_RECORD_COLUMNS = "record_id, student_id, monthly_amount, total_amount, paid_amount, last_payment_date"
_TX_COLUMNS = "transaction_id, record_id, student_id, paid_on, amount, method, for_month, note, recorded_by"


def _row_to_tx(r: dict) -> PaymentTransaction:
    return PaymentTransaction(
        transaction_id=int(r["transaction_id"]),
        record_id=int(r["record_id"]),
        student_id=int(r["student_id"]),
        paid_on=r["paid_on"],
        amount=Decimal(r["amount"]),
        method=PaymentMethod(r["method"]),
        for_month=r["for_month"],
        note=r.get("note"),
        recorded_by=r.get("recorded_by") or "",
    )


class MySQLFeeRepository(FeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: list[dict]) -> list[FeeRecord]:
        if not rows:
            return []
        ids = [int(r["record_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT {_TX_COLUMNS} FROM fee_transactions
            WHERE record_id IN ({in_clause(ids)})
            ORDER BY paid_on DESC, transaction_id DESC
            """,
            tuple(ids),
        )
        history: dict[int, list[PaymentTransaction]] = {}
        for t in fetchall(cur):
            tx = _row_to_tx(t)
            history.setdefault(tx.record_id, []).append(tx)

        return [
            FeeRecord(
                record_id=int(r["record_id"]),
                student_id=int(r["student_id"]),
                monthly_amount=Decimal(r["monthly_amount"]),
                total_amount=Decimal(r["total_amount"]),
                paid_amount=Decimal(r["paid_amount"]),
                last_payment_date=r.get("last_payment_date"),
                history=tuple(history.get(int(r["record_id"]), [])),
            )
            for r in rows
        ]

    def get_by_student(self, student_id: int) -> Optional[FeeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM fee_records WHERE student_id=%s", (int(student_id),))
            row = fetchone(cur)
            records = self._hydrate(cur, [row] if row else [])
            return records[0] if records else None

    def list_all(self) -> Sequence[FeeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RECORD_COLUMNS} FROM fee_records ORDER BY record_id")
            return self._hydrate(cur, fetchall(cur))

    def create_record(self, student_id: int, *, monthly_amount: Decimal) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fee_records(student_id, monthly_amount, total_amount, paid_amount)
                VALUES(%s,%s,0,0)
                """,
                (int(student_id), monthly_amount),
            )
            return int(cur.lastrowid)

    def set_monthly_amount(self, record_id: int, amount: Decimal) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE fee_records SET monthly_amount=%s WHERE record_id=%s", (amount, int(record_id)))

    def add_transaction(
        self,
        record_id: int,
        *,
        paid_on: date,
        amount: Decimal,
        method: PaymentMethod,
        for_month: str,
        note: Optional[str],
        recorded_by: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fee_transactions(record_id, student_id, paid_on, amount, method, for_month, note, recorded_by)
                SELECT record_id, student_id, %s, %s, %s, %s, %s, %s FROM fee_records WHERE record_id=%s
                """,
                (paid_on, amount, method.value, for_month, note, recorded_by, int(record_id)),
            )
            tx_id = int(cur.lastrowid)
            cur.execute(
                """
                UPDATE fee_records
                SET paid_amount = paid_amount + %s, last_payment_date=%s
                WHERE record_id=%s
                """,
                (amount, paid_on, int(record_id)),
            )
            return tx_id

    def get_transaction(self, transaction_id: int) -> Optional[PaymentTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TX_COLUMNS} FROM fee_transactions WHERE transaction_id=%s", (int(transaction_id),))
            r = fetchone(cur)
            return _row_to_tx(r) if r else None

    def delete_transaction(self, record_id: int, transaction_id: int) -> Optional[Decimal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT amount FROM fee_transactions WHERE transaction_id=%s AND record_id=%s",
                (int(transaction_id), int(record_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            amount = Decimal(r["amount"])
            cur.execute("DELETE FROM fee_transactions WHERE transaction_id=%s", (int(transaction_id),))
            cur.execute(
                "UPDATE fee_records SET paid_amount = paid_amount - %s WHERE record_id=%s",
                (amount, int(record_id)),
            )
            return amount
