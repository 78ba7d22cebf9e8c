from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import EntryStatus, Meal


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one member's lunch/dinner presence for one day.

    A day with no record means both meals absent.
    """

    attendance_id: int
    member_id: int
    att_date: date
    lunch: bool = False
    dinner: bool = False
    created_at: Optional[datetime] = None

    def is_present(self, meal: Meal) -> bool:
        return self.lunch if meal == Meal.LUNCH else self.dinner

    def with_meal(self, meal: Meal, status: bool) -> "AttendanceRecord":
        if meal == Meal.LUNCH:
            return replace(self, lunch=status)
        return replace(self, dinner=status)


@dataclass(frozen=True)
class AttendanceRow:
    """Read-model for the per-day sheet (record joined with the member name)."""

    attendance_id: int
    member_id: int
    member_name: str
    att_date: date
    lunch: bool
    dinner: bool


@dataclass(frozen=True)
class MealToggleResult:
    record: Optional[AttendanceRecord]
    remaining_credits: int
    changed: bool = False
    # True when a present mark was recorded without debiting (balance already <= 0).
    debit_skipped: bool = False


@dataclass(frozen=True)
class BulkEntry:
    """One raw line of a bulk import; validated per entry by the service."""

    member_id: Any
    lunch: Any = False
    dinner: Any = False


@dataclass(frozen=True)
class BulkEntryResult:
    index: int
    member_id: Optional[int]
    status: EntryStatus
    remaining_credits: Optional[int] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != EntryStatus.ERROR
