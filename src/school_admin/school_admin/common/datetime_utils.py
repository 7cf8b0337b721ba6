from __future__ import annotations

import re
from datetime import date, datetime

from ..core.exceptions import ValidationError

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_month(value: str) -> str:
    """Validate a YYYY-MM month key and return it stripped."""
    v = (value or "").strip()
    if not _MONTH_RE.match(v):
        raise ValidationError("Month must be in YYYY-MM format")
    return v


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
