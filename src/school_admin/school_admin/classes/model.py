from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ClassGroup:
    class_id: int
    name: str
    age_range: str
    capacity: int
    teacher_id: Optional[int] = None
