from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentMethod
from .model import FeeRecord, PaymentTransaction


class FeeRepository(Protocol):
    def get_by_student(self, student_id: int) -> Optional[FeeRecord]:
        raise NotImplementedError

    def list_all(self) -> Sequence[FeeRecord]:
        raise NotImplementedError

    def create_record(self, student_id: int, *, monthly_amount: Decimal) -> int:
        raise NotImplementedError

    def set_monthly_amount(self, record_id: int, amount: Decimal) -> None:
        raise NotImplementedError

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
        """Insert the transaction, add `amount` to paid_amount and set last_payment_date."""
        raise NotImplementedError

    def get_transaction(self, transaction_id: int) -> Optional[PaymentTransaction]:
        raise NotImplementedError

    def delete_transaction(self, record_id: int, transaction_id: int) -> Optional[Decimal]:
        """Remove the transaction and subtract its amount; returns the amount or None if absent."""
        raise NotImplementedError
