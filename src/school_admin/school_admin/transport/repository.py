from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import BusRoute


class RouteRepository(Protocol):
    def get_by_id(self, route_id: int) -> Optional[BusRoute]:
        raise NotImplementedError

    def list_all(self) -> Sequence[BusRoute]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[BusRoute]:
        raise NotImplementedError

    def create(self, *, name: str, driver_name: str, supervisor_name: Optional[str], student_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def update(
        self,
        route_id: int,
        *,
        name: str,
        driver_name: str,
        supervisor_name: Optional[str],
        student_ids: Sequence[int],
    ) -> bool:
        raise NotImplementedError

    def set_students(self, route_id: int, student_ids: Sequence[int]) -> bool:
        raise NotImplementedError

    def delete(self, route_id: int) -> bool:
        raise NotImplementedError
