from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassGroup


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[ClassGroup]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[ClassGroup]:
        raise NotImplementedError

    def list_all(self) -> Sequence[ClassGroup]:
        raise NotImplementedError

    def create(self, *, name: str, age_range: str, capacity: int, teacher_id: Optional[int]) -> int:
        raise NotImplementedError

    def update(self, class_id: int, *, name: str, age_range: str, capacity: int, teacher_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, class_id: int) -> bool:
        raise NotImplementedError

    def set_teacher(self, class_id: int, teacher_id: Optional[int]) -> bool:
        raise NotImplementedError

    def unassign_teacher(self, teacher_id: int) -> int:
        """Clear `teacher_id` on every class taught by this teacher; returns rows touched."""
        raise NotImplementedError
