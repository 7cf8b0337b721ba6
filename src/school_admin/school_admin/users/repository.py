from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User, UserDraft


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        """Case-insensitive lookup."""
        raise NotImplementedError

    def list_all(self) -> Sequence[User]:
        raise NotImplementedError

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        raise NotImplementedError

    def list_parents_of(self, student_id: int) -> Sequence[User]:
        raise NotImplementedError

    def create_user(self, draft: UserDraft) -> int:
        raise NotImplementedError

    def update_user(self, user_id: int, draft: UserDraft) -> bool:
        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: str,
        email: Optional[str],
        phone: Optional[str],
        interests: Sequence[str],
        avatar: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def set_permissions(self, user_id: int, permissions: Sequence[str]) -> bool:
        raise NotImplementedError

    def set_linked_students(self, user_id: int, student_ids: Sequence[int]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError

