from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import month_key, now_local, parse_month
from ..common.validators import matches, optional_str, parse_amount, require_non_empty
from ..core.constants import STAFF_ROLES, UNKNOWN_STUDENT_NAME
from ..core.enums import NotificationType, PaymentMethod, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..students.model import Student
from ..students.repository import StudentRepository
from ..users.model import User
from .model import FeeRecord, PaymentTransaction, Receipt
from .repository import FeeRepository

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")

HISTORY_CSV_FIELDS = [
    "transaction_id",
    "date",
    "student_id",
    "student_name",
    "for_month",
    "amount",
    "method",
    "recorded_by",
    "note",
]


def receipt_number(tx: PaymentTransaction) -> str:
    return f"RCPT-{tx.paid_on.strftime('%Y%m%d')}-{tx.transaction_id:06d}"


class FeeService:
    """Use cases: monthly tuition, payments, receipts and fee reports."""

    def __init__(self, fees: FeeRepository, students: StudentRepository, notifications: NotificationService):
        self._fees = fees
        self._students = students
        self._notifications = notifications

    def _require_student(self, student_id: int) -> Student:
        s = self._students.get_by_id(int(student_id))
        if not s:
            raise NotFoundError("Student not found")
        return s

    @staticmethod
    def _check_can_see(viewer: User, student_id: int) -> None:
        if viewer.role == Role.PARENT and int(student_id) not in viewer.linked_student_ids:
            raise AuthorizationError("You can only view your own children")

    def _get_or_create(self, student_id: int) -> FeeRecord:
        record = self._fees.get_by_student(student_id)
        if record:
            return record
        self._fees.create_record(student_id, monthly_amount=_ZERO)
        return self._fees.get_by_student(student_id)

    def set_monthly_amount(self, *, current_role: Role, student_id: int, amount) -> Decimal:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("Only an admin or manager can set tuition")
        student = self._require_student(student_id)
        value = parse_amount(amount)

        record = self._fees.get_by_student(student.student_id)
        if record:
            self._fees.set_monthly_amount(record.record_id, value)
        else:
            self._fees.create_record(student.student_id, monthly_amount=value)
        return value

    def record_payment(
        self,
        *,
        current_role: Role,
        student_id: int,
        amount,
        method: str | PaymentMethod = PaymentMethod.CASH,
        for_month: Optional[str] = None,
        note: Optional[str] = None,
        recorded_by: str,
        today: Optional[date] = None,
    ) -> int:
        if current_role == Role.PARENT:
            raise AuthorizationError("Parents cannot record payments")

        student = self._require_student(student_id)
        value = parse_amount(amount)
        today = today or now_local().date()
        month = parse_month(for_month) if for_month else month_key(today)
        try:
            method_v = PaymentMethod(method)
        except ValueError:
            raise ValidationError("Invalid payment method")

        record = self._get_or_create(student.student_id)
        if record.has_payment_for(month):
            raise ValidationError(f"A payment for {month} already exists")

        tx_id = self._fees.add_transaction(
            record.record_id,
            paid_on=today,
            amount=value,
            method=method_v,
            for_month=month,
            note=optional_str(note),
            recorded_by=require_non_empty(recorded_by, "Recorded by"),
        )
        logger.info("Payment %s recorded: student=%s month=%s amount=%s", tx_id, student.student_id, month, value)

        message = f"{student.name}: {value} received for {month} ({method_v.value})"
        self._notifications.broadcast(sorted(STAFF_ROLES), "Payment received", message, NotificationType.SUCCESS)
        self._notifications.notify_parents_of(student.student_id, "Payment received", message, NotificationType.SUCCESS)
        return tx_id

    def delete_transaction(self, *, current_role: Role, student_id: int, transaction_id: int) -> Decimal:
        if current_role not in STAFF_ROLES:
            raise AuthorizationError("Only an admin or manager can delete payments")
        record = self._fees.get_by_student(int(student_id))
        if not record:
            raise NotFoundError("Fee record not found")
        amount = self._fees.delete_transaction(record.record_id, int(transaction_id))
        if amount is None:
            raise NotFoundError("Transaction not found")
        logger.info("Payment %s deleted: student=%s amount=%s", transaction_id, student_id, amount)
        return amount

    def _visible_students(self, viewer: User) -> Sequence[Student]:
        if viewer.role == Role.PARENT:
            ids = list(viewer.linked_student_ids)
            return sorted(self._students.get_many(ids), key=lambda s: s.name.lower()) if ids else []
        return self._students.list_all()

    def overview(self, viewer: User, *, search: Optional[str] = None, month: Optional[str] = None) -> list[dict]:
        month = parse_month(month) if month else month_key(now_local().date())
        records = {r.student_id: r for r in self._fees.list_all()}

        out = []
        for s in self._visible_students(viewer):
            if not matches(search, s.name, s.parent_name):
                continue
            r = records.get(s.student_id)
            monthly = r.monthly_amount if r else _ZERO
            paid_month = r.paid_for_month(month) if r else _ZERO
            out.append(
                {
                    "student_id": s.student_id,
                    "student_name": s.name,
                    "class_group": s.class_group,
                    "parent_name": s.parent_name,
                    "month": month,
                    "monthly_amount": str(monthly),
                    "paid_this_month": str(paid_month),
                    "is_fully_paid": paid_month >= monthly,
                    "paid_amount": str(r.paid_amount if r else _ZERO),
                    "last_payment_date": r.last_payment_date.strftime("%Y-%m-%d") if r and r.last_payment_date else None,
                }
            )
        return out

    def stats(self, *, month: Optional[str] = None) -> dict:
        month = parse_month(month) if month else month_key(now_local().date())
        expected = _ZERO
        collected = _ZERO
        for r in self._fees.list_all():
            expected += r.monthly_amount
            collected += r.paid_for_month(month)
        return {
            "month": month,
            "total_expected_monthly": str(expected),
            "total_collected_this_month": str(collected),
            "outstanding_this_month": str(max(expected - collected, _ZERO)),
        }

    def _names(self) -> dict[int, Student]:
        return {s.student_id: s for s in self._students.list_all()}

    def history(self, viewer: User) -> list[dict]:
        students = self._names()
        rows = []
        for r in self._fees.list_all():
            if viewer.role == Role.PARENT and r.student_id not in viewer.linked_student_ids:
                continue
            for t in r.history:
                row = t.to_dict()
                s = students.get(t.student_id)
                row["student_name"] = s.name if s else UNKNOWN_STUDENT_NAME
                rows.append(row)
        rows.sort(key=lambda x: (x["date"], x["transaction_id"]), reverse=True)
        return rows

    def student_history(self, viewer: User, student_id: int) -> list[PaymentTransaction]:
        self._check_can_see(viewer, student_id)
        record = self._fees.get_by_student(int(student_id))
        return list(record.history) if record else []

    def receipt(self, viewer: User, transaction_id: int) -> Receipt:
        tx = self._fees.get_transaction(int(transaction_id))
        if not tx:
            raise NotFoundError("Transaction not found")
        self._check_can_see(viewer, tx.student_id)

        record = self._fees.get_by_student(tx.student_id)
        student = self._students.get_by_id(tx.student_id)
        monthly = record.monthly_amount if record else _ZERO
        paid = record.paid_for_month(tx.for_month) if record else tx.amount

        return Receipt(
            receipt_no=receipt_number(tx),
            transaction_id=tx.transaction_id,
            student_id=tx.student_id,
            student_name=student.name if student else UNKNOWN_STUDENT_NAME,
            class_group=student.class_group if student else "-",
            amount=tx.amount,
            method=tx.method,
            for_month=tx.for_month,
            paid_on=tx.paid_on,
            recorded_by=tx.recorded_by,
            note=tx.note,
            monthly_amount=monthly,
            remaining_for_month=max(monthly - paid, _ZERO),
        )
