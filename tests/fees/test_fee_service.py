from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.school_admin.school_admin.core.enums import PaymentMethod, Role
from src.school_admin.school_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError


@pytest.fixture
def omar(add_student):
    return add_student("Omar Ali", parent_name="Mohamed Ali")


@pytest.fixture
def admin(add_user):
    return add_user("admin", Role.ADMIN, full_name="Ms. Fatima")


def pay(container, student_id, amount, month, *, day=date(2026, 3, 10), role=Role.ADMIN, method="Cash"):
    return container.fee_service.record_payment(
        current_role=role,
        student_id=student_id,
        amount=amount,
        method=method,
        for_month=month,
        recorded_by="Ms. Fatima",
        today=day,
    )


def test_set_monthly_amount_creates_record(container, repos, omar):
    value = container.fee_service.set_monthly_amount(current_role=Role.MANAGER, student_id=omar.student_id, amount="1500")

    assert value == Decimal("1500.00")
    record = repos.fees.get_by_student(omar.student_id)
    assert record.monthly_amount == Decimal("1500.00")
    assert record.paid_amount == Decimal("0")


@pytest.mark.parametrize("amount", ["-1", "abc", "", None, "NaN"])
def test_set_monthly_amount_rejects_bad_amounts(container, omar, amount):
    with pytest.raises(ValidationError):
        container.fee_service.set_monthly_amount(current_role=Role.ADMIN, student_id=omar.student_id, amount=amount)


def test_teacher_cannot_set_tuition(container, omar):
    with pytest.raises(AuthorizationError):
        container.fee_service.set_monthly_amount(current_role=Role.TEACHER, student_id=omar.student_id, amount="10")


def test_record_payment_updates_totals_and_history(container, repos, omar):
    container.fee_service.set_monthly_amount(current_role=Role.ADMIN, student_id=omar.student_id, amount="1000")

    first = pay(container, omar.student_id, "600", "2026-02", day=date(2026, 2, 5))
    second = pay(container, omar.student_id, "1000", "2026-03", day=date(2026, 3, 10), method="Card")

    record = repos.fees.get_by_student(omar.student_id)
    assert record.paid_amount == Decimal("1600.00")
    assert record.last_payment_date == date(2026, 3, 10)
    assert [t.transaction_id for t in record.history] == [second, first]
    assert record.history[0].method == PaymentMethod.CARD
    assert record.history[0].recorded_by == "Ms. Fatima"


def test_payment_without_record_creates_one(container, repos, omar):
    pay(container, omar.student_id, "250", "2026-03")

    record = repos.fees.get_by_student(omar.student_id)
    assert record.monthly_amount == Decimal("0")
    assert record.paid_amount == Decimal("250.00")


def test_duplicate_month_payment_is_rejected(container, repos, omar):
    pay(container, omar.student_id, "500", "2026-03")
    with pytest.raises(ValidationError, match="2026-03"):
        pay(container, omar.student_id, "500", "2026-03")
    assert repos.fees.get_by_student(omar.student_id).paid_amount == Decimal("500.00")


@pytest.mark.parametrize("month", ["2026-13", "03-2026", "2026/03", "march"])
def test_record_payment_validates_month(container, omar, month):
    with pytest.raises(ValidationError, match="YYYY-MM"):
        pay(container, omar.student_id, "100", month)


def test_record_payment_rules(container, omar):
    with pytest.raises(AuthorizationError):
        pay(container, omar.student_id, "100", "2026-03", role=Role.PARENT)
    with pytest.raises(ValidationError, match="payment method"):
        pay(container, omar.student_id, "100", "2026-03", method="Crypto")
    with pytest.raises(NotFoundError):
        pay(container, 999, "100", "2026-03")
    # Teachers may take payments.
    assert pay(container, omar.student_id, "100", "2026-03", role=Role.TEACHER)


def test_payment_notifies_staff_and_linked_parents(container, repos, omar, admin, add_user):
    manager = add_user("manager", Role.MANAGER)
    parent = add_user("parent1", Role.PARENT, linked_student_ids=[omar.student_id])
    teacher = add_user("teacher1", Role.TEACHER)

    pay(container, omar.student_id, "700", "2026-03")

    recipients = sorted(n.user_id for n in repos.notifications.items)
    assert recipients == sorted([admin.user_id, manager.user_id, parent.user_id])
    assert teacher.user_id not in recipients
    assert all(n.type.value == "success" for n in repos.notifications.items)


def test_delete_transaction_reverses_amount(container, repos, omar):
    tx = pay(container, omar.student_id, "400", "2026-03")

    removed = container.fee_service.delete_transaction(
        current_role=Role.ADMIN, student_id=omar.student_id, transaction_id=tx
    )

    record = repos.fees.get_by_student(omar.student_id)
    assert removed == Decimal("400.00")
    assert record.paid_amount == Decimal("0.00")
    assert record.history == ()

    with pytest.raises(NotFoundError):
        container.fee_service.delete_transaction(current_role=Role.ADMIN, student_id=omar.student_id, transaction_id=tx)
    with pytest.raises(AuthorizationError):
        container.fee_service.delete_transaction(current_role=Role.TEACHER, student_id=omar.student_id, transaction_id=tx)


def test_overview_and_stats_for_month(container, admin, add_student, omar):
    layla = add_student("Layla Hassan", parent_name="Sara Hassan")
    container.fee_service.set_monthly_amount(current_role=Role.ADMIN, student_id=omar.student_id, amount="1000")
    container.fee_service.set_monthly_amount(current_role=Role.ADMIN, student_id=layla.student_id, amount="800")
    pay(container, omar.student_id, "1000", "2026-03")
    pay(container, layla.student_id, "300", "2026-02")

    rows = {r["student_name"]: r for r in container.fee_service.overview(admin, month="2026-03")}
    assert rows["Omar Ali"]["is_fully_paid"] is True
    assert rows["Omar Ali"]["paid_this_month"] == "1000.00"
    assert rows["Layla Hassan"]["is_fully_paid"] is False
    assert rows["Layla Hassan"]["paid_this_month"] == "0"
    assert rows["Layla Hassan"]["paid_amount"] == "300.00"

    assert [r["student_name"] for r in container.fee_service.overview(admin, search="sara")] == ["Layla Hassan"]

    stats = container.fee_service.stats(month="2026-03")
    assert stats["total_expected_monthly"] == "1800.00"
    assert stats["total_collected_this_month"] == "1000.00"
    assert stats["outstanding_this_month"] == "800.00"


def test_outstanding_never_negative(container, omar):
    container.fee_service.set_monthly_amount(current_role=Role.ADMIN, student_id=omar.student_id, amount="100")
    pay(container, omar.student_id, "150", "2026-03")

    assert container.fee_service.stats(month="2026-03")["outstanding_this_month"] == "0"


def test_parent_sees_only_own_children(container, add_user, add_student, omar):
    other = add_student("Layla Hassan")
    parent = add_user("parent1", Role.PARENT, linked_student_ids=[omar.student_id])
    pay(container, omar.student_id, "100", "2026-03")
    pay(container, other.student_id, "200", "2026-03")

    assert [r["student_id"] for r in container.fee_service.overview(parent, month="2026-03")] == [omar.student_id]
    assert [h["student_id"] for h in container.fee_service.history(parent)] == [omar.student_id]
    with pytest.raises(AuthorizationError):
        container.fee_service.student_history(parent, other.student_id)


def test_history_newest_first_with_unknown_for_deleted_students(container, admin, add_student, omar):
    gone = add_student("Temporary Kid")
    pay(container, gone.student_id, "50", "2026-01", day=date(2026, 1, 3))
    pay(container, omar.student_id, "80", "2026-03", day=date(2026, 3, 3))
    container.student_service.delete(current_role=Role.ADMIN, student_id=gone.student_id)

    rows = container.fee_service.history(admin)
    assert [r["student_name"] for r in rows] == ["Omar Ali", "Unknown"]
    assert rows[1]["amount"] == "50.00"
