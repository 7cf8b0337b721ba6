from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class GateScan:
    scan_id: int
    student_id: int
    parent_id: int
    scanned_at: datetime
    scanned_by: str

    def to_dict(self) -> dict:
        return {
            "scan_id": self.scan_id,
            "student_id": self.student_id,
            "parent_id": self.parent_id,
            "scanned_at": self.scanned_at.strftime("%Y-%m-%d %H:%M:%S"),
            "scanned_by": self.scanned_by,
        }
