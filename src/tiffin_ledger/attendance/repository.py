from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, AttendanceRow


class AttendanceRepository(Protocol):
    def get_for_member_and_date(self, member_id: int, att_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, *, member_id: int, att_date: date, lunch: bool, dinner: bool) -> int:
        raise NotImplementedError

    def update_meals(self, *, attendance_id: int, lunch: bool, dinner: bool) -> bool:
        raise NotImplementedError

    def list_for_date(self, att_date: date) -> Sequence[AttendanceRow]:
        raise NotImplementedError

    def list_for_member(self, member_id: int) -> Sequence[AttendanceRecord]:
        """Most recent day first."""

        raise NotImplementedError

    def count_present_on(self, att_date: date) -> int:
        """Records of the day with lunch or dinner marked."""

        raise NotImplementedError
