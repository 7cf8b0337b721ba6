from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class LoginLog:
    log_id: int
    user_id: int
    user_name: str
    user_role: Role
    logged_at: datetime
    device: Optional[str] = None
