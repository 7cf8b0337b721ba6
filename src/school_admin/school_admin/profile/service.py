from __future__ import annotations

from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import optional_str, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository


def split_interests(raw) -> list[str]:
    """'Art, , Music ' -> ['Art', 'Music']. Lists are accepted as-is (trimmed)."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    return [p.strip() for p in parts if p and p.strip()]


class ProfileService:
    """Self-service edits of the logged-in user's own account."""

    def __init__(self, users: UserRepository):
        self._users = users

    def _get(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        interests=None,
        avatar: Optional[str] = None,
    ) -> User:
        user = self._get(user_id)
        self._users.update_profile(
            user.user_id,
            full_name=require_non_empty(full_name, "Name"),
            email=optional_str(email),
            phone=optional_str(phone),
            interests=split_interests(interests),
            avatar=user.avatar if avatar is None else optional_str(avatar),
        )
        return self._get(user.user_id)

    def change_password(self, user_id: int, *, current: str, new: str, confirm: str) -> None:
        user = self._get(user_id)

        try:
            ok = check_password_hash(user.password_hash, current or "")
        except ValueError:
            ok = False
        if not ok:
            raise ValidationError("Current password is incorrect")

        if new != confirm:
            raise ValidationError("New passwords do not match")
        require_min_length(new, "New password", MIN_PASSWORD_LENGTH)

        self._users.set_password_hash(user.user_id, generate_password_hash(new))
