from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_str(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    return v or None


def parse_amount(value, field_name: str = "Amount") -> Decimal:
    """Parse a non-negative money amount (str/int/float/Decimal) into a 2dp Decimal."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Please enter a valid amount")
    if not amount.is_finite() or amount < 0:
        raise ValidationError("Please enter a valid amount")
    return amount.quantize(Decimal("0.01"))


def unique_ids(values: Iterable) -> list[int]:
    """Coerce to ints and drop duplicates, keeping first-seen order."""
    out: list[int] = []
    seen: set[int] = set()
    for v in values or []:
        try:
            i = int(v)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid id: {v!r}")
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


def matches(term: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring search over the given fields; empty term matches all."""
    t = (term or "").strip().lower()
    if not t:
        return True
    return any(f and t in f.lower() for f in fields)
