from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import AppNotification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """In-app notifications.

    Other services publish through `add`/`broadcast`/`notify_parents_of` when they
    write; clients poll with an id cursor (`poll(after_id=...)`).
    """

    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    @staticmethod
    def _check(title: str, message: str, type) -> tuple[str, str, NotificationType]:
        title = require_non_empty(title, "Title")
        message = require_non_empty(message, "Message")
        try:
            type_v = NotificationType(type)
        except ValueError:
            raise ValidationError("Invalid notification type")
        return title, message, type_v

    def _publish(self, user_ids: Sequence[int], title: str, message: str, type, now: Optional[datetime]) -> list[int]:
        title, message, type_v = self._check(title, message, type)
        if not user_ids:
            return []
        return self._notifications.add(
            user_ids=list(user_ids),
            title=title,
            message=message,
            type=type_v,
            created_at=now or now_local(),
        )

    def add(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str | NotificationType = NotificationType.INFO,
        *,
        now: Optional[datetime] = None,
    ) -> int:
        return self._publish([int(user_id)], title, message, type, now)[0]

    def broadcast(
        self,
        roles: Sequence[Role],
        title: str,
        message: str,
        type: str | NotificationType = NotificationType.INFO,
        *,
        now: Optional[datetime] = None,
    ) -> list[int]:
        recipients = [u.user_id for u in self._users.list_by_roles(list(roles)) if u.is_active]
        ids = self._publish(recipients, title, message, type, now)
        logger.debug("Broadcast %r to %d users", title, len(ids))
        return ids

    def notify_parents_of(
        self,
        student_id: int,
        title: str,
        message: str,
        type: str | NotificationType = NotificationType.INFO,
        *,
        now: Optional[datetime] = None,
    ) -> list[int]:
        recipients = [u.user_id for u in self._users.list_parents_of(int(student_id)) if u.is_active]
        return self._publish(recipients, title, message, type, now)

    def list_for(self, user_id: int, *, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> Sequence[AppNotification]:
        return self._notifications.list_for_user(int(user_id), limit=limit)

    def unread_count(self, user_id: int) -> int:
        return self._notifications.count_unread(int(user_id))

    def mark_as_read(self, user_id: int, notification_id: int) -> None:
        if not self._notifications.mark_read(int(user_id), int(notification_id)):
            raise NotFoundError("Notification not found")

    def mark_all_as_read(self, user_id: int) -> int:
        return self._notifications.mark_all_read(int(user_id))

    def poll(self, user_id: int, *, after_id: int = 0, limit: int = DEFAULT_NOTIFICATION_LIMIT) -> dict:
        try:
            after_id = max(int(after_id or 0), 0)
        except (TypeError, ValueError):
            raise ValidationError("after_id must be a number")

        items = list(self._notifications.list_after(int(user_id), after_id=after_id, limit=limit))
        cursor = items[-1].notification_id if items else after_id
        return {
            "items": [n.to_dict() for n in items],
            "cursor": cursor,
            "unread": self.unread_count(user_id),
        }
