from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import GateScan


class GateScanRepository(Protocol):
    def add(self, *, student_id: int, parent_id: int, scanned_at: datetime, scanned_by: str) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[GateScan]:
        """Newest first."""
        raise NotImplementedError
