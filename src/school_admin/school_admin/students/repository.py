from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Student, StudentInput


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_many(self, student_ids: Sequence[int]) -> Sequence[Student]:
        """Return the students that exist, in no particular order."""
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def create(self, data: StudentInput) -> int:
        raise NotImplementedError

    def update(self, student_id: int, data: StudentInput) -> bool:
        raise NotImplementedError

    def delete(self, student_id: int) -> bool:
        raise NotImplementedError

    def count_by_class(self) -> dict[str, int]:
        raise NotImplementedError
