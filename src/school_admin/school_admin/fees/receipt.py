from __future__ import annotations

from .model import Receipt

_WIDTH = 40


def _line(label: str, value) -> str:
    label = f"{label}:"
    return f"{label:<16}{value}"


def render_receipt_text(receipt: Receipt, *, school_name: str = "School Fees Office") -> str:
    """Plain-text receipt, suitable for printing or a text/plain download."""
    rule = "-" * _WIDTH
    lines = [
        school_name.center(_WIDTH),
        "PAYMENT RECEIPT".center(_WIDTH),
        rule,
        _line("Receipt No", receipt.receipt_no),
        _line("Date", receipt.paid_on.strftime("%Y-%m-%d")),
        rule,
        _line("Student", receipt.student_name),
        _line("Class", receipt.class_group),
        _line("For month", receipt.for_month),
        _line("Method", receipt.method.value),
        _line("Amount", receipt.amount),
        _line("Monthly fee", receipt.monthly_amount),
        _line("Balance due", receipt.remaining_for_month),
    ]
    if receipt.note:
        lines.append(_line("Note", receipt.note))
    lines += [
        rule,
        _line("Received by", receipt.recorded_by or "-"),
        "",
    ]
    return "\n".join(lines)
