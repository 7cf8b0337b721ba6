from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import LoginLog


class LoginLogRepository(Protocol):
    def add(self, *, user_id: int, user_name: str, user_role: Role, logged_at: datetime, device: Optional[str]) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 200) -> Sequence[LoginLog]:
        """Newest first."""
        raise NotImplementedError

    def clear(self) -> int:
        raise NotImplementedError
