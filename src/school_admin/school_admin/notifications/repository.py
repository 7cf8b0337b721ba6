from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from ..core.enums import NotificationType
from .model import AppNotification


class NotificationRepository(Protocol):
    def add(
        self,
        *,
        user_ids: Sequence[int],
        title: str,
        message: str,
        type: NotificationType,
        created_at: datetime,
    ) -> list[int]:
        """Insert one row per recipient; returns the new ids in the same order."""
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[AppNotification]:
        """Newest first."""
        raise NotImplementedError

    def list_after(self, user_id: int, *, after_id: int, limit: int) -> Sequence[AppNotification]:
        """Rows with id > after_id, oldest first."""
        raise NotImplementedError

    def count_unread(self, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, user_id: int, notification_id: int) -> bool:
        """False when the notification does not exist or belongs to someone else."""
        raise NotImplementedError

    def mark_all_read(self, user_id: int) -> int:
        raise NotImplementedError
