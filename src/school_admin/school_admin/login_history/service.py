from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import matches
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.model import User
from .repository import LoginLogRepository

logger = logging.getLogger(__name__)


class LoginHistoryService:
    def __init__(self, logs: LoginLogRepository):
        self._logs = logs

    def record(self, user: User, *, device: Optional[str] = None, now: Optional[datetime] = None) -> int:
        device = (device or "").strip()[:255] or None
        return self._logs.add(
            user_id=user.user_id,
            user_name=user.full_name,
            user_role=user.role,
            logged_at=now or now_local(),
            device=device,
        )

    def list_logs(self, *, search: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT) -> list[dict]:
        out = []
        for log in self._logs.list_recent(limit=limit):
            if not matches(search, log.user_name, log.user_role.value):
                continue
            out.append(
                {
                    "log_id": log.log_id,
                    "user_id": log.user_id,
                    "user_name": log.user_name,
                    "user_role": log.user_role.value,
                    "logged_at": log.logged_at.strftime("%Y-%m-%d %H:%M"),
                    "device": log.device or "-",
                }
            )
        return out

    def clear(self, *, current_role: Role) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only an admin can clear the login history")
        removed = self._logs.clear()
        logger.info("Login history cleared (%d entries)", removed)
        return removed
