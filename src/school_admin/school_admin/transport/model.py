from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BusRoute:
    """A bus route; `student_ids` keeps the boarding order."""

    route_id: int
    name: str
    driver_name: str
    supervisor_name: Optional[str] = None
    student_ids: tuple[int, ...] = ()
