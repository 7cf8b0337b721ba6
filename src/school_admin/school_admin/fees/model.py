from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentMethod


@dataclass(frozen=True)
class PaymentTransaction:
    transaction_id: int
    record_id: int
    student_id: int
    paid_on: date
    amount: Decimal
    method: PaymentMethod
    for_month: str
    note: Optional[str] = None
    recorded_by: str = ""

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "student_id": self.student_id,
            "date": self.paid_on.strftime("%Y-%m-%d"),
            "amount": str(self.amount),
            "method": self.method.value,
            "for_month": self.for_month,
            "note": self.note or "",
            "recorded_by": self.recorded_by,
        }


@dataclass(frozen=True)
class FeeRecord:
    """Per-student fee account.

    `paid_amount` is a running total over every transaction ever recorded;
    `history` is newest first.
    """

    record_id: int
    student_id: int
    monthly_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    last_payment_date: Optional[date] = None
    history: tuple[PaymentTransaction, ...] = ()

    def paid_for_month(self, month: str) -> Decimal:
        return sum((t.amount for t in self.history if t.for_month == month), Decimal("0"))

    def has_payment_for(self, month: str) -> bool:
        return any(t.for_month == month for t in self.history)


@dataclass(frozen=True)
class Receipt:
    receipt_no: str
    transaction_id: int
    student_id: int
    student_name: str
    class_group: str
    amount: Decimal
    method: PaymentMethod
    for_month: str
    paid_on: date
    recorded_by: str
    note: Optional[str]
    monthly_amount: Decimal
    remaining_for_month: Decimal

    def to_dict(self) -> dict:
        return {
            "receipt_no": self.receipt_no,
            "transaction_id": self.transaction_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "class_group": self.class_group,
            "amount": str(self.amount),
            "method": self.method.value,
            "for_month": self.for_month,
            "date": self.paid_on.strftime("%Y-%m-%d"),
            "recorded_by": self.recorded_by,
            "note": self.note or "",
            "monthly_amount": str(self.monthly_amount),
            "remaining_for_month": str(self.remaining_for_month),
        }
